"""
Audit Service - append-only audit trail for privileged admin mutations.

Every record is also written to the standard logger as a structured
``AUDIT:`` JSON line.
"""
from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..crud.audit_log import AuditLogRepository
from ..errors import BackendError
from ..schemas.admin import AuditRecord, AuditRecordList

logger = logging.getLogger("autobid_admin.audit")


class AuditService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None):
        self.session_factory = session_factory

    async def record(
        self,
        session: AsyncSession,
        *,
        actor_id: uuid.UUID,
        action: str,
        resource_type: str,
        resource_id: str | uuid.UUID,
        details: dict[str, Any] | None = None,
    ) -> AuditRecord:
        """Append a record inside the caller's transaction.

        The caller commits, then calls ``emit`` with the returned record.
        """
        audit_log = await AuditLogRepository(session).create(
            admin_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id),
            details=details,
        )
        return AuditRecord.model_validate(audit_log)

    async def record_isolated(
        self,
        *,
        actor_id: uuid.UUID,
        action: str,
        resource_type: str,
        resource_id: str | uuid.UUID,
        details: dict[str, Any] | None = None,
    ) -> AuditRecord | None:
        """Append a record in its own session after the mutation committed.

        Fire-and-forget: a failure is logged and reported as ``None``; it
        never undoes or fails the mutation that preceded it.
        """
        if self.session_factory is None:
            raise RuntimeError("AuditService.record_isolated requires a session factory")
        try:
            async with self.session_factory() as audit_session:
                record = await self.record(
                    audit_session,
                    actor_id=actor_id,
                    action=action,
                    resource_type=resource_type,
                    resource_id=resource_id,
                    details=details,
                )
                await audit_session.commit()
        except Exception:
            logger.error(
                "Audit append failed action=%s resource_type=%s resource_id=%s actor_id=%s",
                action,
                resource_type,
                resource_id,
                actor_id,
                exc_info=True,
            )
            return None
        self.emit(record)
        return record

    async def list_records(
        self,
        session: AsyncSession,
        *,
        action: str | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        admin_id: uuid.UUID | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> AuditRecordList:
        try:
            rows, total = await AuditLogRepository(session).list_by_filters(
                admin_id=admin_id,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                limit=limit,
                offset=offset,
            )
        except SQLAlchemyError as exc:
            raise BackendError(str(exc)) from exc
        return AuditRecordList(
            items=[AuditRecord.model_validate(row) for row in rows],
            total=total,
        )

    @staticmethod
    def emit(record: AuditRecord) -> None:
        entry = {
            "admin_id": str(record.admin_id) if record.admin_id else None,
            "action": record.action,
            "resource_type": record.resource_type,
            "resource_id": record.resource_id,
            "details": record.details or {},
            "timestamp": (record.created_at or datetime.now(timezone.utc)).isoformat(),
        }
        logger.info(
            "AUDIT: %s",
            json.dumps(entry, ensure_ascii=False, default=str),
            extra={"audit_entry": entry},
        )
