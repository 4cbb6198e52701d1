"""
Trip financial summary: activities, service fees, per-traveller costs and
commission, all expressed in the trip currency.
"""
import logging

from sqlalchemy.orm import Session

from backoffice.core.errors import NotFoundError
from backoffice.models.trip import Trip
from backoffice.schemas.financial import GrandTotal, TripFinancialSummary
from backoffice.services.activity_cost_service import summarize_activities
from backoffice.services.commission_service import summarize_commissions
from backoffice.services.fx_service import ExchangeRateResolver, get_trip_currency
from backoffice.services.service_fee_ledger import summarize_fees
from backoffice.services.traveller_split_service import breakdown_by_traveller

logger = logging.getLogger(__name__)


def get_trip_financial_summary(
    db: Session,
    trip_id: int,
    resolver: ExchangeRateResolver,
) -> TripFinancialSummary:
    """Build the full financial summary of a trip.

    The grand total counts activity costs plus non-cancelled service fees.
    Collected is what has been paid on fees net of refunds; outstanding is
    the draft and sent fees still awaiting payment. Activity costs count
    toward the total cost only. Each part reads the same session one after
    another.
    """
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise NotFoundError(f"Trip {trip_id} not found")

    trip_currency = get_trip_currency(trip)

    activities_summary = summarize_activities(db, trip_id, trip_currency, resolver)
    fees_summary = summarize_fees(db, trip_id, trip_currency, resolver)
    traveller_breakdown = breakdown_by_traveller(db, trip_id, trip_currency, resolver)
    commission_summary = summarize_commissions(db, trip_id)

    total_cost_cents = (
        activities_summary.total_in_trip_currency_cents + fees_summary.total_in_trip_currency_cents
    )
    total_collected_cents = fees_summary.paid_cents

    logger.info(
        f"Financial summary for trip {trip_id}: cost {total_cost_cents}, "
        f"collected {total_collected_cents} {trip_currency}"
    )

    return TripFinancialSummary(
        trip_id=trip.id,
        trip_currency=trip_currency,
        activities_summary=activities_summary,
        service_fees_summary=fees_summary,
        traveller_breakdown=traveller_breakdown,
        commission_summary=commission_summary,
        grand_total=GrandTotal(
            total_cost_cents=total_cost_cents,
            total_collected_cents=total_collected_cents,
            outstanding_cents=fees_summary.pending_cents,
        ),
    )
