from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.dashboard_metrics import DashboardMetricsSnapshot


class DashboardMetricsRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def latest(self) -> DashboardMetricsSnapshot | None:
        result = await self.session.execute(
            select(DashboardMetricsSnapshot)
            .order_by(DashboardMetricsSnapshot.metric_date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
