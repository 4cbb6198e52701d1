"""
Foreign exchange rates routes.
"""
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from datetime import date
from backoffice.api.dependencies import get_resolver
from backoffice.schemas.exchange_rate import ConversionResult, ConvertCurrencyRequest, RateQuote, RefreshResult
from backoffice.services.fx_service import ExchangeRateResolver

router = APIRouter(prefix="/fx-rates", tags=["fx-rates"])


@router.get("/currencies", response_model=List[str])
def list_supported_currencies():
    """List the currency codes the back office can convert between."""
    return ExchangeRateResolver.get_supported_currencies()


@router.get("/rate", response_model=RateQuote)
def get_exchange_rate(
    from_currency: str,
    to_currency: str,
    rate_date: Optional[date] = None,
    resolver: ExchangeRateResolver = Depends(get_resolver),
):
    """Get the rate for a currency pair on a date (default: today).

    Args:
        rate_date: Falls back to the most recent known rate before this date.
    """
    return resolver.get_rate(from_currency, to_currency, rate_date)


@router.get("/latest/{base}", response_model=List[RateQuote])
def get_latest_rates(
    base: str,
    resolver: ExchangeRateResolver = Depends(get_resolver),
):
    """Get today's rates from a base currency to every other supported currency."""
    return resolver.get_latest_rates(base)


@router.post("/convert", response_model=ConversionResult)
def convert_currency(
    request: ConvertCurrencyRequest,
    resolver: ExchangeRateResolver = Depends(get_resolver),
):
    """Convert an amount in minor units between two currencies."""
    return resolver.convert_currency(
        request.amount_cents, request.from_currency, request.to_currency, request.rate_date
    )


@router.post("/refresh", response_model=RefreshResult)
def refresh_rates(
    base_currencies: Optional[List[str]] = Query(None),
    resolver: ExchangeRateResolver = Depends(get_resolver),
):
    """Run the daily rate refresh now; repeat base_currencies to limit the bases."""
    return resolver.refresh_daily_rates(base_currencies)
