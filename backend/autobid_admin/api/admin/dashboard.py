from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ...auth.dependencies import require_operation
from ...dependencies import get_db
from ...schemas.admin import DashboardMetrics, Principal
from ...services.metrics import DashboardMetricsService

router = APIRouter(prefix="/admin", tags=["admin-dashboard"])


@router.get("/dashboard-metrics", response_model=DashboardMetrics)
async def get_dashboard_metrics(
    _: Principal = Depends(require_operation("GET", "/admin/dashboard-metrics")),
    db: AsyncSession = Depends(get_db),
) -> DashboardMetrics:
    """Latest daily metrics snapshot. Any admin principal may read it."""
    return await DashboardMetricsService(db).latest()
