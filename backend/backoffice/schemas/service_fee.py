"""
Pydantic schemas for ServiceFee entity.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from backoffice.models.service_fee import FeeStatus, RecipientType


class ServiceFeeCreate(BaseModel):
    """Schema for service fee creation (always starts as draft)."""
    title: str
    amount_cents: int = Field(ge=0)
    currency: Optional[str] = None  # Defaults to the trip currency
    due_date: Optional[date] = None
    description: Optional[str] = None
    recipient_type: RecipientType = RecipientType.PRIMARY_TRAVELLER


class ServiceFeeUpdate(BaseModel):
    """Schema for service fee update (draft only)."""
    title: Optional[str] = None
    amount_cents: Optional[int] = Field(default=None, ge=0)
    currency: Optional[str] = None
    due_date: Optional[date] = None
    description: Optional[str] = None
    recipient_type: Optional[RecipientType] = None


class RefundRequest(BaseModel):
    """Schema for a refund. Omitting amount refunds the remaining balance."""
    amount_cents: Optional[int] = Field(default=None, gt=0)
    reason: Optional[str] = None


class ServiceFeeResponse(BaseModel):
    """Schema for service fee response."""
    id: int
    trip_id: int
    recipient_type: RecipientType
    title: str
    amount_cents: int
    currency: str
    due_date: Optional[date] = None
    description: Optional[str] = None
    status: FeeStatus
    exchange_rate_to_trip_currency: Optional[Decimal] = None
    amount_in_trip_currency_cents: Optional[int] = None
    refunded_amount_cents: int = 0
    refund_reason: Optional[str] = None
    sent_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
