import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...auth.dependencies import require_operation
from ...dependencies import get_db
from ...schemas.admin import AuditRecordList, Principal
from ...services.audit_service import AuditService

router = APIRouter(prefix="/admin", tags=["admin-audit"])


@router.get("/audit-logs", response_model=AuditRecordList)
async def list_audit_logs(
    action: str | None = Query(default=None, max_length=100),
    resource_type: str | None = Query(default=None, max_length=100),
    resource_id: str | None = Query(default=None, max_length=255),
    admin_id: uuid.UUID | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    _: Principal = Depends(require_operation("GET", "/admin/audit-logs")),
    db: AsyncSession = Depends(get_db),
) -> AuditRecordList:
    return await AuditService().list_records(
        db,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        admin_id=admin_id,
        limit=limit,
        offset=offset,
    )
