import uuid
from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.audit_log import AdminAuditLog


class AuditLogRepository:
    """Insert and read audit records. Records are never updated or deleted."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        admin_id: uuid.UUID | None,
        action: str,
        resource_type: str,
        resource_id: str,
        details: dict[str, Any] | None = None,
    ) -> AdminAuditLog:
        audit_log = AdminAuditLog(
            admin_id=admin_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
        )
        self.session.add(audit_log)
        await self.session.flush()
        await self.session.refresh(audit_log)
        return audit_log

    async def list_by_filters(
        self,
        admin_id: uuid.UUID | None = None,
        action: str | None = None,
        resource_type: str | None = None,
        resource_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[AdminAuditLog], int]:
        conditions = []
        if admin_id is not None:
            conditions.append(AdminAuditLog.admin_id == admin_id)
        if action is not None:
            conditions.append(AdminAuditLog.action == action)
        if resource_type is not None:
            conditions.append(AdminAuditLog.resource_type == resource_type)
        if resource_id is not None:
            conditions.append(AdminAuditLog.resource_id == resource_id)

        query = select(AdminAuditLog)
        count_query = select(func.count()).select_from(AdminAuditLog)
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        query = query.order_by(AdminAuditLog.created_at.desc()).limit(limit).offset(offset)

        result = await self.session.execute(query)
        total = await self.session.scalar(count_query)
        return list(result.scalars().all()), int(total or 0)
