import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..crud.dashboard_metrics import DashboardMetricsRepository
from ..errors import BackendError, NotFoundError
from ..schemas.admin import DashboardMetrics

logger = logging.getLogger("autobid_admin.metrics")


class DashboardMetricsService:
    def __init__(self, session: AsyncSession):
        self.repo = DashboardMetricsRepository(session)

    async def latest(self) -> DashboardMetrics:
        try:
            snapshot = await self.repo.latest()
        except SQLAlchemyError as exc:
            logger.error("Dashboard metrics query failed: %s", exc)
            raise BackendError(str(exc)) from exc
        if snapshot is None:
            raise NotFoundError("No dashboard metrics recorded")
        return DashboardMetrics.model_validate(snapshot)
