import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.auction_monitoring import AuctionMonitoring


class AuctionMonitoringRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_ordered(self, limit: int | None = None) -> list[AuctionMonitoring]:
        query = select(AuctionMonitoring).order_by(
            AuctionMonitoring.is_final_two_minutes.desc(),
            AuctionMonitoring.time_remaining_seconds.asc(),
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def flag(
        self,
        auction_id: uuid.UUID,
        *,
        reason: str,
        monitored_by: uuid.UUID,
    ) -> int:
        """Mark the auction's monitoring row flagged. Returns rows matched."""
        result = await self.session.execute(
            update(AuctionMonitoring)
            .where(AuctionMonitoring.auction_id == auction_id)
            .values(is_flagged=True, flag_reason=reason, monitored_by=monitored_by)
        )
        return result.rowcount or 0
