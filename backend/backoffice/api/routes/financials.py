"""
Trip financial summary routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from backoffice.db.session import get_db
from backoffice.api.dependencies import get_resolver
from backoffice.schemas.financial import TripFinancialSummary
from backoffice.services.financial_summary_service import get_trip_financial_summary
from backoffice.services.fx_service import ExchangeRateResolver

router = APIRouter(prefix="/financials", tags=["financials"])


@router.get("/trips/{trip_id}/summary", response_model=TripFinancialSummary)
def get_financial_summary(
    trip_id: int,
    db: Session = Depends(get_db),
    resolver: ExchangeRateResolver = Depends(get_resolver),
):
    """Get the complete financial summary of a trip in its currency."""
    return get_trip_financial_summary(db, trip_id, resolver)
