"""
Activity cost aggregation for a trip.
"""
import logging
from typing import Dict

from sqlalchemy.orm import Session

from backoffice.core.errors import BadRequestError
from backoffice.core.utils import normalize_currency
from backoffice.models.activity import Activity, ActivityPricing
from backoffice.models.split import ActivityTravellerSplit, SplitType
from backoffice.schemas.financial import ActivitiesSummary, ActivityCostSummary
from backoffice.services.fx_service import ExchangeRateResolver

logger = logging.getLogger(__name__)


def _split_types_by_activity(db: Session, trip_id: int) -> Dict[int, SplitType]:
    """Split type of every activity on the trip that has at least one split."""
    rows = (
        db.query(ActivityTravellerSplit.activity_id, ActivityTravellerSplit.split_type)
        .filter(ActivityTravellerSplit.trip_id == trip_id)
        .order_by(ActivityTravellerSplit.id)
        .all()
    )
    split_types: Dict[int, SplitType] = {}
    for activity_id, split_type in rows:
        # Splits of one activity are written together and share a type
        split_types.setdefault(activity_id, SplitType(split_type))
    return split_types


def summarize_activities(
    db: Session,
    trip_id: int,
    trip_currency: str,
    resolver: ExchangeRateResolver,
) -> ActivitiesSummary:
    """Sum activity prices for a trip, converted to the trip currency.

    An activity without a price counts as zero in the trip currency. Foreign
    prices convert at today's rate; activity pricing keeps no snapshot.
    """
    trip_currency = normalize_currency(trip_currency)
    activities = (
        db.query(Activity, ActivityPricing)
        .outerjoin(ActivityPricing, ActivityPricing.activity_id == Activity.id)
        .filter(Activity.trip_id == trip_id)
        .order_by(Activity.id)
        .all()
    )
    split_types = _split_types_by_activity(db, trip_id)

    by_activity = []
    total_cents = 0
    total_in_trip_currency_cents = 0

    for activity, pricing in activities:
        if pricing is None:
            logger.warning(f"Activity {activity.id} has no pricing row - using 0")
            cost_cents = 0
            currency = trip_currency
        else:
            currency = normalize_currency(pricing.currency) or trip_currency
            cost_cents = pricing.total_price_cents or 0
            if pricing.total_price_cents is None:
                logger.warning(f"Activity {activity.id} is not priced yet - using 0")

        cost_in_trip_currency_cents = cost_cents
        if currency != trip_currency and cost_cents > 0:
            try:
                cost_in_trip_currency_cents = resolver.convert_amount(cost_cents, currency, trip_currency)
            except BadRequestError as e:
                logger.error(f"Activity {activity.id} cost left unconverted: {e.detail}")

        split_type = split_types.get(activity.id)
        by_activity.append(
            ActivityCostSummary(
                activity_id=activity.id,
                activity_name=activity.name,
                activity_type=activity.activity_type,
                total_cost_cents=cost_cents,
                currency=currency,
                total_in_trip_currency_cents=cost_in_trip_currency_cents,
                has_splits=split_type is not None,
                split_type=split_type,
            )
        )
        total_cents += cost_cents
        total_in_trip_currency_cents += cost_in_trip_currency_cents

    return ActivitiesSummary(
        total_cents=total_cents,
        total_in_trip_currency_cents=total_in_trip_currency_cents,
        by_activity=by_activity,
    )
