import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class Auction(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    current_highest_bid: Decimal | None = None
    status: str
    end_time: datetime | None = None


class MonitorItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    auction_id: uuid.UUID
    time_remaining_seconds: int
    is_final_two_minutes: bool
    is_flagged: bool
    flag_reason: str | None = None
    # Serialized under the embedded-table name the console UI reads
    auction: Auction = Field(serialization_alias="auctions")


class FlagAuctionRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
