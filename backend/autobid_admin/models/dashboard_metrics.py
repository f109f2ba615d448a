import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Integer, Numeric
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class DashboardMetricsSnapshot(Base):
    __tablename__ = "admin_dashboard_metrics"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    metric_date: Mapped[date] = mapped_column(Date, unique=True, nullable=False, index=True)
    pending_kyc_reviews: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    active_auctions: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    total_revenue_today: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, server_default="0"
    )
    active_users: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
