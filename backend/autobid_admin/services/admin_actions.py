"""
Admin Action Service - privileged mutations with capability re-check and audit.

Each action, in order:
1. re-checks the capability server-side (the UI check is advisory only)
2. applies the mutation through the data backend
3. appends exactly one audit record, only after the mutation succeeded
4. publishes a change event so live views refetch

AUDIT MODES:
- best_effort: the mutation commits on its own; the audit record is
  appended afterwards in a separate session. An audit failure is logged and
  the mutation stands.
- atomic: mutation and audit record share one transaction; either both
  land or the request fails with a backend error.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import AUDIT_MODES
from ..crud.auction_monitoring import AuctionMonitoringRepository
from ..domain.ports.notifications import ChangeNotifier
from ..errors import BackendError, NotFoundError, PermissionError
from ..models.auction_monitoring import AuctionMonitoring
from ..rbac.permissions import Permission, has_permission
from ..schemas.admin import AuditRecord, Principal
from .audit_service import AuditService

logger = logging.getLogger("autobid_admin.actions")

AUCTION_FLAGGED = "auction.flagged"
MONITORING_TABLE = AuctionMonitoring.__tablename__


class AdminActionService:
    def __init__(
        self,
        session: AsyncSession,
        *,
        notifier: ChangeNotifier,
        channel: str,
        audit_mode: str = "best_effort",
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ):
        if audit_mode not in AUDIT_MODES:
            raise ValueError(f"Unknown audit mode '{audit_mode}'")
        self.session = session
        self.notifier = notifier
        self.channel = channel
        self.audit_mode = audit_mode
        self.monitoring_repo = AuctionMonitoringRepository(session)
        self.audit = AuditService(session_factory)

    async def flag_auction(
        self,
        principal: Principal,
        auction_id: uuid.UUID,
        reason: str,
    ) -> AuditRecord | None:
        """Flag a monitored auction for review.

        Returns the audit record, or None when a best-effort append failed.

        Raises:
            PermissionError: Principal lacks ``auction.flag``
            NotFoundError: The auction has no monitoring row
            BackendError: The mutation (or, in atomic mode, the audit) failed
        """
        if not has_permission(principal.role, Permission.AUCTION_FLAG):
            logger.warning(
                "Flag rejected admin_id=%s role=%s auction_id=%s",
                principal.id,
                principal.role,
                auction_id,
            )
            raise PermissionError()

        details: dict[str, Any] = {"reason": reason}
        record: AuditRecord | None = None
        try:
            matched = await self.monitoring_repo.flag(
                auction_id, reason=reason, monitored_by=principal.id
            )
            if not matched:
                await self.session.rollback()
                raise NotFoundError("Auction is not being monitored")
            if self.audit_mode == "atomic":
                record = await self.audit.record(
                    self.session,
                    actor_id=principal.id,
                    action=AUCTION_FLAGGED,
                    resource_type="auction",
                    resource_id=auction_id,
                    details=details,
                )
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Flag failed auction_id=%s error=%s", auction_id, exc)
            raise BackendError(str(exc)) from exc

        if record is not None:
            self.audit.emit(record)
        else:
            record = await self.audit.record_isolated(
                actor_id=principal.id,
                action=AUCTION_FLAGGED,
                resource_type="auction",
                resource_id=auction_id,
                details=details,
            )

        logger.info("Auction flagged auction_id=%s admin_id=%s", auction_id, principal.id)
        await self._notify_changed(auction_id)
        return record

    async def _notify_changed(self, auction_id: uuid.UUID) -> None:
        # Live views also poll, so a lost event only delays their refresh
        try:
            await self.notifier.publish(
                self.channel,
                {
                    "table": MONITORING_TABLE,
                    "event": "UPDATE",
                    "auction_id": str(auction_id),
                },
            )
        except Exception as exc:
            logger.warning(
                "Change notification failed channel=%s auction_id=%s error=%s",
                self.channel,
                auction_id,
                exc,
            )
