"""
Shared route dependencies.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from backoffice.db.session import get_db
from backoffice.services.fx_service import ExchangeRateResolver, get_rate_cache, get_rate_provider


def get_resolver(
    db: Session = Depends(get_db),
    provider=Depends(get_rate_provider),
    cache=Depends(get_rate_cache),
) -> ExchangeRateResolver:
    """Exchange rate resolver bound to the request's session."""
    return ExchangeRateResolver(db, provider=provider, cache=cache)
