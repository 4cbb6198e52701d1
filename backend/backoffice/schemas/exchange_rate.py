"""
Pydantic schemas for exchange rates and conversions.
"""
from pydantic import BaseModel, Field
from datetime import date
from decimal import Decimal
from typing import List, Optional


class RateQuote(BaseModel):
    """Resolved rate: 1 from_currency = rate to_currency."""
    from_currency: str
    to_currency: str
    rate: Decimal
    rate_date: date
    source: str  # "identity", "exchangerate-api", "fallback", or a stored source

    class Config:
        frozen = True


class ConvertCurrencyRequest(BaseModel):
    """Schema for a conversion request."""
    amount_cents: int
    from_currency: str
    to_currency: str
    rate_date: Optional[date] = None  # Defaults to today


class ConversionResult(BaseModel):
    """Schema for a conversion result."""
    original_amount_cents: int
    original_currency: str
    converted_amount_cents: int
    converted_currency: str
    rate: Decimal
    rate_date: date
    source: str

    class Config:
        frozen = True


class RefreshResult(BaseModel):
    """Outcome of a rate refresh run."""
    refreshed_bases: List[str] = Field(default_factory=list)
    failed_bases: List[str] = Field(default_factory=list)
    rates_upserted: int = 0
