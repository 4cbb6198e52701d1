"""
Pydantic schemas for commission receipts.
"""
from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal
from backoffice.models.activity import CommissionStatus


class CommissionCreate(BaseModel):
    """Commission receipt as entered by an agent, in decimal major units."""
    activity_pricing_id: int
    commission_amount: Decimal = Field(ge=0)  # e.g. 125.50 dollars
    commission_rate: Optional[Decimal] = None
    commission_status: CommissionStatus = CommissionStatus.RECEIVED
    notes: Optional[str] = None


class CommissionResponse(BaseModel):
    id: int
    activity_pricing_id: int
    commission_amount_cents: int
    commission_rate: Optional[Decimal] = None
    commission_status: CommissionStatus
    notes: Optional[str] = None

    class Config:
        from_attributes = True
