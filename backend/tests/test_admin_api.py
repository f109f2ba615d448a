import uuid
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from starlette.websockets import WebSocketDisconnect

from autobid_admin.api.admin.auctions import (
    WS_CLOSE_FEED_FAILED,
    WS_CLOSE_FORBIDDEN,
    WS_CLOSE_UNAUTHENTICATED,
    get_monitor_fetcher,
)
from autobid_admin.config import settings
from autobid_admin.dependencies import (
    get_change_notifier,
    get_db,
    get_db_session_factory,
    get_scoped_session_resolver,
    get_session_resolver,
)
from autobid_admin.main import app
from autobid_admin.schemas.auction import MonitorItem
from tests.admin_fakes import (
    FakeNotifier,
    FakeResolver,
    FakeSession,
    auth_headers,
    monitoring_row,
    session_factory_for,
)

STREAM_URL = "/admin/auctions/monitor/stream"


class Harness:
    def __init__(
        self,
        db: FakeSession | None = None,
        audit_session: FakeSession | None = None,
        notifier: FakeNotifier | None = None,
        monitor_rows: list[SimpleNamespace] | None = None,
    ) -> None:
        self.db = db or FakeSession()
        self.audit_session = audit_session or FakeSession()
        self.notifier = notifier or FakeNotifier()
        self.resolver = FakeResolver()
        self.monitor_rows = monitor_rows or []
        self.db_opened = 0
        self.db_closed = 0
        self.client = TestClient(app)

    def install(self) -> None:
        async def override_get_db():
            self.db_opened += 1
            try:
                yield self.db
            finally:
                self.db_closed += 1

        @asynccontextmanager
        async def resolver_scope():
            yield self.resolver

        async def fetch() -> list[MonitorItem]:
            return [MonitorItem.model_validate(row) for row in self.monitor_rows]

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_db_session_factory] = lambda: session_factory_for(
            self.audit_session
        )
        app.dependency_overrides[get_session_resolver] = lambda: self.resolver
        app.dependency_overrides[get_scoped_session_resolver] = lambda: resolver_scope
        app.dependency_overrides[get_change_notifier] = lambda: self.notifier
        app.dependency_overrides[get_monitor_fetcher] = lambda: fetch


@pytest.fixture
def make_harness():
    def factory(**kwargs) -> Harness:
        harness = Harness(**kwargs)
        harness.install()
        return harness

    yield factory
    app.dependency_overrides.clear()


class TestMonitorEndpoint:
    def test_requires_session(self, make_harness) -> None:
        harness = make_harness()
        response = harness.client.get("/admin/auctions/monitor")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTH_ERROR"
        assert harness.resolver.principal_lookups == 0
        assert harness.db.executed == []

    def test_session_without_admin_row_is_forbidden(self, make_harness) -> None:
        harness = make_harness()
        response = harness.client.get("/admin/auctions/monitor", headers=auth_headers("outsider"))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    def test_role_without_capability_is_forbidden(self, make_harness) -> None:
        harness = make_harness()
        response = harness.client.get(
            "/admin/auctions/monitor", headers=auth_headers("finance_admin")
        )

        assert response.status_code == 403
        assert "auction.monitor" not in response.text
        assert harness.db.executed == []

    def test_returns_final_two_minutes_first(self, make_harness) -> None:
        rows = [
            monitoring_row(seconds=600, final_two_minutes=False, title="Civic"),
            monitoring_row(seconds=90, final_two_minutes=True, title="Corolla"),
            monitoring_row(seconds=300, final_two_minutes=False, title="Golf"),
            monitoring_row(seconds=30, final_two_minutes=True, title="Swift"),
        ]
        harness = make_harness(db=FakeSession(rows))

        response = harness.client.get("/admin/auctions/monitor", headers=auth_headers("moderator"))

        assert response.status_code == 200
        payload = response.json()
        assert [item["auctions"]["title"] for item in payload] == [
            "Swift",
            "Corolla",
            "Golf",
            "Civic",
        ]
        assert payload[0]["is_final_two_minutes"] is True
        assert payload[0]["auctions"]["current_highest_bid"] == "12500.00"

    def test_backend_failure_surfaces_backend_message(self, make_harness) -> None:
        harness = make_harness(db=FakeSession(execute_error=SQLAlchemyError("connection refused")))

        response = harness.client.get("/admin/auctions/monitor", headers=auth_headers("super_admin"))

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "BACKEND_ERROR"
        assert "connection refused" in error["message"]


class TestFlagEndpoint:
    def flag(self, harness: Harness, role: str | None, auction_id: uuid.UUID, reason: str = "Shill bidding"):
        headers = auth_headers(role) if role else {}
        return harness.client.post(
            f"/admin/auctions/{auction_id}/flag",
            json={"reason": reason},
            headers=headers,
        )

    def test_super_admin_flag_writes_one_audit_record(self, make_harness) -> None:
        harness = make_harness()
        auction_id = uuid.uuid4()

        response = self.flag(harness, "super_admin", auction_id, "Shill bidding suspected")

        assert response.status_code == 204
        assert harness.db.commits == 1
        assert len(harness.db.executed) == 1

        audit_logs = harness.audit_session.audit_logs
        assert len(audit_logs) == 1
        audit_log = audit_logs[0]
        assert audit_log.action == "auction.flagged"
        assert audit_log.resource_type == "auction"
        assert audit_log.resource_id == str(auction_id)
        assert audit_log.details == {"reason": "Shill bidding suspected"}
        assert audit_log.admin_id == harness.resolver.principal("super_admin").id
        assert harness.audit_session.commits == 1

        assert len(harness.notifier.published) == 1
        _, event = harness.notifier.published[0]
        assert event["table"] == "admin_auction_monitoring"
        assert event["auction_id"] == str(auction_id)

    def test_moderator_can_flag(self, make_harness) -> None:
        harness = make_harness()
        response = self.flag(harness, "moderator", uuid.uuid4())

        assert response.status_code == 204
        assert len(harness.audit_session.audit_logs) == 1

    def test_support_admin_is_forbidden_and_nothing_changes(self, make_harness) -> None:
        harness = make_harness()

        response = self.flag(harness, "support_admin", uuid.uuid4())

        assert response.status_code == 403
        assert harness.db.executed == []
        assert harness.db.commits == 0
        assert harness.audit_session.added == []
        assert harness.notifier.published == []

    def test_no_session_is_rejected(self, make_harness) -> None:
        harness = make_harness()

        response = self.flag(harness, None, uuid.uuid4())

        assert response.status_code == 401
        assert harness.db.executed == []

    def test_unmonitored_auction_is_not_found_and_not_audited(self, make_harness) -> None:
        harness = make_harness(db=FakeSession(rowcount=0))

        response = self.flag(harness, "moderator", uuid.uuid4())

        assert response.status_code == 404
        assert harness.db.commits == 0
        assert harness.db.rollbacks == 1
        assert harness.audit_session.added == []
        assert harness.notifier.published == []

    def test_mutation_failure_writes_no_audit(self, make_harness) -> None:
        error = OperationalError("UPDATE admin_auction_monitoring", {}, Exception("timeout"))
        harness = make_harness(db=FakeSession(execute_error=error))

        response = self.flag(harness, "moderator", uuid.uuid4())

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "BACKEND_ERROR"
        assert harness.audit_session.added == []

    def test_blank_reason_rejected(self, make_harness) -> None:
        harness = make_harness()

        response = self.flag(harness, "moderator", uuid.uuid4(), reason="")

        assert response.status_code == 422
        assert harness.db.executed == []


class TestDashboardMetrics:
    def snapshot(self) -> SimpleNamespace:
        return SimpleNamespace(
            metric_date=date(2026, 10, 19),
            pending_kyc_reviews=4,
            active_auctions=12,
            total_revenue_today=Decimal("1500.00"),
            active_users=310,
        )

    @pytest.mark.parametrize("role", ["moderator", "finance_admin", "auditor"])
    def test_any_admin_principal_can_read(self, make_harness, role: str) -> None:
        harness = make_harness(db=FakeSession([self.snapshot()]))

        response = harness.client.get("/admin/dashboard-metrics", headers=auth_headers(role))

        assert response.status_code == 200
        assert response.json()["active_auctions"] == 12

    def test_missing_snapshot_is_not_found(self, make_harness) -> None:
        harness = make_harness(db=FakeSession([]))

        response = harness.client.get("/admin/dashboard-metrics", headers=auth_headers("moderator"))

        assert response.status_code == 404

    def test_requires_session(self, make_harness) -> None:
        harness = make_harness(db=FakeSession([self.snapshot()]))

        assert harness.client.get("/admin/dashboard-metrics").status_code == 401


class TestCurrentAdmin:
    def test_moderator_profile_and_navigation(self, make_harness) -> None:
        harness = make_harness()

        response = harness.client.get("/admin/me", headers=auth_headers("moderator"))

        assert response.status_code == 200
        payload = response.json()
        assert payload["role"] == "moderator"
        assert payload["permissions"] == ["auction.flag", "auction.monitor", "dashboard.view"]
        assert [item["href"] for item in payload["navigation"]] == [
            "/",
            "/auctions/monitor",
            "/users",
        ]

    def test_unknown_role_has_no_permissions(self, make_harness) -> None:
        harness = make_harness()

        payload = harness.client.get("/admin/me", headers=auth_headers("auditor")).json()

        assert payload["permissions"] == []
        assert "/kyc/queue" not in [item["href"] for item in payload["navigation"]]


class TestAuditLogs:
    def audit_row(self) -> SimpleNamespace:
        return SimpleNamespace(
            id=uuid.uuid4(),
            admin_id=uuid.uuid4(),
            action="auction.flagged",
            resource_type="auction",
            resource_id=str(uuid.uuid4()),
            details={"reason": "Shill bidding"},
            created_at=datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc),
        )

    def test_super_admin_lists_records(self, make_harness) -> None:
        harness = make_harness(db=FakeSession([self.audit_row()]))

        response = harness.client.get(
            "/admin/audit-logs",
            params={"action": "auction.flagged"},
            headers=auth_headers("super_admin"),
        )

        assert response.status_code == 200
        payload = response.json()
        assert payload["total"] == 1
        assert payload["items"][0]["details"] == {"reason": "Shill bidding"}

    def test_moderator_is_forbidden(self, make_harness) -> None:
        harness = make_harness(db=FakeSession([self.audit_row()]))

        response = harness.client.get("/admin/audit-logs", headers=auth_headers("moderator"))

        assert response.status_code == 403
        assert harness.db.executed == []


class TestMonitorStream:
    def test_rejects_without_session_after_accepting(self, make_harness) -> None:
        harness = make_harness()

        with harness.client.websocket_connect(STREAM_URL) as websocket:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_json()

        assert exc_info.value.code == WS_CLOSE_UNAUTHENTICATED
        assert harness.notifier.active_subscriptions == 0

    def test_rejects_role_without_capability_after_accepting(self, make_harness) -> None:
        harness = make_harness()

        with harness.client.websocket_connect(
            STREAM_URL, headers=auth_headers("support_admin")
        ) as websocket:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_json()

        assert exc_info.value.code == WS_CLOSE_FORBIDDEN

    def test_sends_sorted_snapshot_and_releases_subscription(self, make_harness) -> None:
        harness = make_harness(
            monitor_rows=[
                monitoring_row(seconds=400, final_two_minutes=False, title="Golf"),
                monitoring_row(seconds=45, final_two_minutes=True, title="Swift"),
            ]
        )

        with harness.client.websocket_connect(
            STREAM_URL, headers=auth_headers("moderator")
        ) as websocket:
            message = websocket.receive_json()

        assert message["type"] == "snapshot"
        assert [item["auctions"]["title"] for item in message["items"]] == ["Swift", "Golf"]
        assert harness.notifier.active_subscriptions == 0

    def test_auth_session_is_released_before_streaming(self, make_harness) -> None:
        admin_id = uuid.uuid4()
        auth_session = FakeSession(
            [
                SimpleNamespace(
                    id=admin_id,
                    email="moderator@autobid.test",
                    role=SimpleNamespace(role_name="moderator"),
                )
            ]
        )
        harness = make_harness(audit_session=auth_session)
        del app.dependency_overrides[get_scoped_session_resolver]
        token = jwt.encode(
            {"sub": str(admin_id), "exp": datetime.now(timezone.utc) + timedelta(minutes=15)},
            settings.secret_key,
            algorithm=settings.algorithm,
        )

        with harness.client.websocket_connect(
            STREAM_URL, headers={"Authorization": f"Bearer {token}"}
        ) as websocket:
            message = websocket.receive_json()

            assert message["type"] == "snapshot"
            assert auth_session.entered == 1
            assert auth_session.exited == 1
            assert harness.db_opened == 0

    def test_unexpected_refresh_error_is_generic(self, make_harness) -> None:
        harness = make_harness()

        async def failing_fetch() -> list[MonitorItem]:
            raise RuntimeError("password=hunter2 host=db.internal")

        app.dependency_overrides[get_monitor_fetcher] = lambda: failing_fetch

        with harness.client.websocket_connect(
            STREAM_URL, headers=auth_headers("moderator")
        ) as websocket:
            message = websocket.receive_json()

        assert message["type"] == "error"
        assert message["error"] == {
            "code": "INTERNAL_ERROR",
            "message": "Internal server error",
            "details": None,
        }
        assert "hunter2" not in str(message)

    def test_lost_subscription_closes_stream(self, make_harness) -> None:
        harness = make_harness(
            notifier=FakeNotifier(subscription_error=ConnectionError("redis connection lost"))
        )
        messages = []

        with harness.client.websocket_connect(
            STREAM_URL, headers=auth_headers("moderator")
        ) as websocket:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                while True:
                    messages.append(websocket.receive_json())

        assert exc_info.value.code == WS_CLOSE_FEED_FAILED
        assert "error" in [message["type"] for message in messages]
        assert harness.notifier.active_subscriptions == 0


class TestConsolePages:
    def test_no_session_redirects_to_login(self, make_harness) -> None:
        harness = make_harness()

        response = harness.client.get("/auctions/monitor", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "/login"

    def test_missing_capability_redirects_to_unauthorized(self, make_harness) -> None:
        harness = make_harness()

        response = harness.client.get(
            "/kyc/queue", headers=auth_headers("moderator"), follow_redirects=False
        )

        assert response.status_code == 307
        assert response.headers["location"] == "/unauthorized"

    def test_allowed_page_returns_descriptor(self, make_harness) -> None:
        harness = make_harness()

        response = harness.client.get("/kyc/queue", headers=auth_headers("operations_admin"))

        assert response.status_code == 200
        assert response.json()["page"] == "kyc_queue"

    def test_unauthorized_page_renders_without_session(self, make_harness) -> None:
        harness = make_harness()

        response = harness.client.get("/unauthorized")

        assert response.status_code == 200
        assert response.json()["page"] == "access_denied"


class TestPlatform:
    def test_health_ok(self) -> None:
        client = TestClient(app)
        with patch("autobid_admin.main.get_engine"), patch(
            "autobid_admin.main.check_database_connection", new=AsyncMock()
        ):
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_health_reports_database_failure(self) -> None:
        client = TestClient(app)
        with patch("autobid_admin.main.get_engine"), patch(
            "autobid_admin.main.check_database_connection",
            new=AsyncMock(side_effect=SQLAlchemyError("down")),
        ):
            response = client.get("/health")

        assert response.status_code == 503

    def test_preflight_from_allowed_origin(self) -> None:
        client = TestClient(app)

        response = client.options(
            "/admin/auctions/monitor",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.status_code == 204
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_preflight_from_other_origin_has_no_cors_headers(self) -> None:
        client = TestClient(app)

        response = client.options(
            "/admin/auctions/monitor",
            headers={"Origin": "https://evil.example", "Access-Control-Request-Method": "GET"},
        )

        assert response.status_code == 204
        assert "access-control-allow-origin" not in response.headers
