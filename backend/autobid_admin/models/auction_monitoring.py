import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .auction import Auction


class AuctionMonitoring(Base):
    __tablename__ = "admin_auction_monitoring"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    auction_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("auctions.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    time_remaining_seconds: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default="0"
    )
    is_final_two_minutes: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false", index=True
    )
    is_flagged: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false"
    )
    flag_reason: Mapped[str | None] = mapped_column(Text)
    monitored_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("admin_users.id", ondelete="SET NULL"),
        nullable=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    auction: Mapped["Auction"] = relationship("Auction", lazy="joined")
