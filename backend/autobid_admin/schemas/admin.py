import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Principal(BaseModel):
    """The authenticated admin making a request. Lives for one request."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    email: str | None = None
    # Kept as the stored name: roles outside the table are denied, not rejected
    role: str


class AuditRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    admin_id: uuid.UUID | None
    action: str = Field(..., min_length=1, max_length=100)
    resource_type: str = Field(..., min_length=1, max_length=100)
    resource_id: str = Field(..., min_length=1, max_length=255)
    details: dict[str, Any] | None = None
    created_at: datetime


class AuditRecordList(BaseModel):
    items: list[AuditRecord]
    total: int


class DashboardMetrics(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    metric_date: date
    pending_kyc_reviews: int = 0
    active_auctions: int = 0
    total_revenue_today: Decimal = Decimal("0")
    active_users: int = 0


class NavigationItem(BaseModel):
    label: str
    href: str


class CurrentAdminRead(BaseModel):
    id: uuid.UUID
    email: str | None
    role: str
    permissions: list[str]
    navigation: list[NavigationItem]
