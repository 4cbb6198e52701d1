"""
Pydantic schemas for activity traveller splits.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from backoffice.models.split import SplitType


class SplitEntry(BaseModel):
    """One traveller's amount in a custom split."""
    traveller_id: int
    amount_cents: int
    notes: Optional[str] = None


class SetActivitySplitsRequest(BaseModel):
    """Replace all splits of an activity."""
    split_type: SplitType
    splits: Optional[List[SplitEntry]] = None  # Required for custom splits


class TravellerSummary(BaseModel):
    id: int
    name: str
    traveler_type: str
    is_primary: bool


class SplitResponse(BaseModel):
    """Schema for a stored split."""
    id: int
    trip_id: int
    activity_id: int
    traveller_id: int
    split_type: SplitType
    amount_cents: int
    currency: str
    exchange_rate_to_trip_currency: Optional[Decimal] = None
    exchange_rate_snapshot_at: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class ActivitySplitsSummary(BaseModel):
    """Splits of one activity plus the travellers not yet covered."""
    activity_id: int
    activity_name: str
    total_amount_cents: int
    currency: str
    split_type: SplitType
    splits: List[SplitResponse]
    is_complete: bool
    missing_travellers: List[TravellerSummary] = Field(default_factory=list)


class DeletedSplits(BaseModel):
    affected_activity_ids: List[int]
