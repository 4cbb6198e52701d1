"""
Pydantic schemas for the trip financial summary.

All amounts are integer minor units. Every model is frozen: a summary is a
value computed for display and reporting, never mutated afterwards.
"""
from pydantic import BaseModel
from typing import Dict, List, Optional
from backoffice.models.split import SplitType


class ActivityCostSummary(BaseModel):
    """Cost of one activity in its own and in the trip currency."""
    activity_id: int
    activity_name: str
    activity_type: str
    total_cost_cents: int
    currency: str
    total_in_trip_currency_cents: int
    has_splits: bool
    split_type: Optional[SplitType] = None

    class Config:
        frozen = True


class ActivitiesSummary(BaseModel):
    total_cents: int  # Sum of native amounts; mixed currencies when activities differ
    total_in_trip_currency_cents: int
    by_activity: List[ActivityCostSummary]

    class Config:
        frozen = True


class FeesSummary(BaseModel):
    """Service fee ledger totals.

    total_in_trip_currency_cents is only approximately
    paid_cents + pending_cents + refunded_cents: each figure is rounded
    separately and refunds are converted on their own.
    """
    total_cents: int
    total_in_trip_currency_cents: int
    paid_cents: int
    pending_cents: int
    refunded_cents: int
    by_status: Dict[str, int]

    class Config:
        frozen = True


class TravellerBreakdown(BaseModel):
    """Costs attributed to one traveller.

    Only the primary traveller carries service fees, and only fees billed to
    the primary traveller. Fees billed to all travellers are not distributed.
    """
    traveller_id: int
    traveller_name: str
    traveler_type: str
    is_primary: bool
    activity_costs_cents: int
    activity_costs_in_trip_currency_cents: int
    service_fees_cents: int
    service_fees_in_trip_currency_cents: int
    total_cents: int
    total_in_trip_currency_cents: int

    class Config:
        frozen = True


class CommissionSummary(BaseModel):
    expected_total_cents: int
    received_total_cents: int
    pending_total_cents: int  # Negative when more was received than expected

    class Config:
        frozen = True


class GrandTotal(BaseModel):
    total_cost_cents: int
    total_collected_cents: int
    outstanding_cents: int

    class Config:
        frozen = True


class TripFinancialSummary(BaseModel):
    """Complete financial picture of a trip in its canonical currency."""
    trip_id: int
    trip_currency: str
    activities_summary: ActivitiesSummary
    service_fees_summary: FeesSummary
    traveller_breakdown: List[TravellerBreakdown]
    commission_summary: CommissionSummary
    grand_total: GrandTotal

    class Config:
        frozen = True
