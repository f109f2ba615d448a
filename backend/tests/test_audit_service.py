"""Audit trail: append inside a transaction, isolated appends and structured log lines."""
import json
import logging
import uuid

import pytest
from sqlalchemy.exc import SQLAlchemyError

from autobid_admin.errors import BackendError
from autobid_admin.services.audit_service import AuditService
from tests.admin_fakes import FakeSession, session_factory_for


@pytest.mark.anyio
async def test_record_does_not_commit_or_log(caplog: pytest.LogCaptureFixture):
    session = FakeSession()
    actor_id = uuid.uuid4()
    auction_id = uuid.uuid4()

    with caplog.at_level(logging.INFO, logger="autobid_admin.audit"):
        record = await AuditService().record(
            session,
            actor_id=actor_id,
            action="auction.flagged",
            resource_type="auction",
            resource_id=auction_id,
            details={"reason": "Shill bidding"},
        )

    assert session.commits == 0
    assert record.resource_id == str(auction_id)
    assert record.admin_id == actor_id
    assert caplog.records == []


@pytest.mark.anyio
async def test_record_isolated_commits_then_logs(caplog: pytest.LogCaptureFixture):
    session = FakeSession()
    service = AuditService(session_factory_for(session))

    with caplog.at_level(logging.INFO, logger="autobid_admin.audit"):
        record = await service.record_isolated(
            actor_id=uuid.uuid4(),
            action="auction.flagged",
            resource_type="auction",
            resource_id="a-1",
            details={"reason": "Shill bidding"},
        )

    assert record is not None
    assert session.commits == 1
    [line] = [message for message in caplog.messages if message.startswith("AUDIT: ")]
    entry = json.loads(line.removeprefix("AUDIT: "))
    assert entry["action"] == "auction.flagged"
    assert entry["resource_id"] == "a-1"
    assert entry["details"] == {"reason": "Shill bidding"}


@pytest.mark.anyio
async def test_record_isolated_swallows_commit_failure():
    session = FakeSession(commit_error=SQLAlchemyError("deadlock detected"))
    service = AuditService(session_factory_for(session))

    record = await service.record_isolated(
        actor_id=uuid.uuid4(),
        action="auction.flagged",
        resource_type="auction",
        resource_id="a-1",
    )

    assert record is None


@pytest.mark.anyio
async def test_record_isolated_requires_session_factory():
    with pytest.raises(RuntimeError):
        await AuditService().record_isolated(
            actor_id=uuid.uuid4(),
            action="auction.flagged",
            resource_type="auction",
            resource_id="a-1",
        )


@pytest.mark.anyio
async def test_list_records_wraps_backend_errors():
    session = FakeSession(execute_error=SQLAlchemyError("permission denied for table"))

    with pytest.raises(BackendError) as exc_info:
        await AuditService().list_records(session, action="auction.flagged")

    assert exc_info.value.status_code == 500
    assert "permission denied for table" in exc_info.value.message
