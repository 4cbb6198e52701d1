"""
Per-traveller cost allocation and activity split management.
"""
import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from backoffice.core.errors import BadRequestError, NotFoundError
from backoffice.core.utils import convert_cents, normalize_currency
from backoffice.models.activity import Activity
from backoffice.models.service_fee import FeeStatus, RecipientType
from backoffice.models.split import ActivityTravellerSplit, SplitType
from backoffice.models.trip import TripTraveler
from backoffice.schemas.financial import TravellerBreakdown
from backoffice.schemas.split import ActivitySplitsSummary, SplitEntry, SplitResponse, TravellerSummary
from backoffice.services.fx_service import ExchangeRateResolver, get_trip_currency
from backoffice.services.service_fee_ledger import fee_in_trip_currency, load_trip_fees

logger = logging.getLogger(__name__)


def _load_travellers(db: Session, trip_id: int) -> List[TripTraveler]:
    return db.query(TripTraveler).filter(TripTraveler.trip_id == trip_id).order_by(TripTraveler.id).all()


def split_in_trip_currency(
    split: ActivityTravellerSplit,
    trip_currency: str,
    resolver: ExchangeRateResolver,
) -> int:
    """Split amount in the trip currency: stored rate first, live rate otherwise."""
    currency = normalize_currency(split.currency) or trip_currency
    if currency == trip_currency or split.amount_cents <= 0:
        return split.amount_cents

    if split.exchange_rate_to_trip_currency is not None:
        return convert_cents(split.amount_cents, Decimal(split.exchange_rate_to_trip_currency))

    logger.warning(f"Split {split.id} missing exchange rate snapshot, using live rate")
    try:
        return resolver.convert_amount(split.amount_cents, currency, trip_currency)
    except BadRequestError as e:
        logger.error(f"Split {split.id} left unconverted: {e.detail}")
        return split.amount_cents


def breakdown_by_traveller(
    db: Session,
    trip_id: int,
    trip_currency: str,
    resolver: ExchangeRateResolver,
) -> List[TravellerBreakdown]:
    """Costs attributed to each traveller on the trip.

    Travellers, splits and fees are each loaded once for the whole trip.
    Fees billed to all travellers are not spread across travellers; only
    primary-traveller fees are attributed, and only to the primary traveller.
    """
    trip_currency = normalize_currency(trip_currency)
    travellers = _load_travellers(db, trip_id)
    if not travellers:
        return []

    splits_by_traveller: Dict[int, List[ActivityTravellerSplit]] = defaultdict(list)
    splits = (
        db.query(ActivityTravellerSplit)
        .filter(ActivityTravellerSplit.trip_id == trip_id)
        .order_by(ActivityTravellerSplit.id)
        .all()
    )
    for split in splits:
        splits_by_traveller[split.traveller_id].append(split)

    primary_fees = [
        fee
        for fee in load_trip_fees(db, trip_id)
        if RecipientType(fee.recipient_type) is RecipientType.PRIMARY_TRAVELLER
        and FeeStatus(fee.status) is not FeeStatus.CANCELLED
    ]

    breakdown = []
    for traveller in travellers:
        activity_costs_cents = 0
        activity_costs_in_trip_currency_cents = 0
        for split in splits_by_traveller.get(traveller.id, []):
            activity_costs_cents += split.amount_cents
            activity_costs_in_trip_currency_cents += split_in_trip_currency(split, trip_currency, resolver)

        service_fees_cents = 0
        service_fees_in_trip_currency_cents = 0
        if traveller.is_primary_traveler:
            for fee in primary_fees:
                service_fees_cents += fee.amount_cents
                converted, _ = fee_in_trip_currency(fee, trip_currency, resolver)
                service_fees_in_trip_currency_cents += converted

        breakdown.append(
            TravellerBreakdown(
                traveller_id=traveller.id,
                traveller_name=traveller.display_name,
                traveler_type=traveller.traveler_type,
                is_primary=bool(traveller.is_primary_traveler),
                activity_costs_cents=activity_costs_cents,
                activity_costs_in_trip_currency_cents=activity_costs_in_trip_currency_cents,
                service_fees_cents=service_fees_cents,
                service_fees_in_trip_currency_cents=service_fees_in_trip_currency_cents,
                total_cents=activity_costs_cents + service_fees_cents,
                total_in_trip_currency_cents=(
                    activity_costs_in_trip_currency_cents + service_fees_in_trip_currency_cents
                ),
            )
        )

    return breakdown


class TravellerSplitService:
    """Sets and reads how an activity's cost is divided among travellers."""

    def __init__(self, db: Session, resolver: ExchangeRateResolver):
        self.db = db
        self.resolver = resolver

    def get_activity_splits(self, activity_id: int) -> ActivitySplitsSummary:
        activity = self._get_activity(activity_id)
        total_cents, currency = self._activity_price(activity)

        splits = (
            self.db.query(ActivityTravellerSplit)
            .filter(ActivityTravellerSplit.activity_id == activity_id)
            .order_by(ActivityTravellerSplit.id)
            .all()
        )
        split_traveller_ids = {s.traveller_id for s in splits}
        missing = [
            self._traveller_summary(t)
            for t in _load_travellers(self.db, activity.trip_id)
            if t.id not in split_traveller_ids
        ]

        return ActivitySplitsSummary(
            activity_id=activity.id,
            activity_name=activity.name,
            total_amount_cents=total_cents,
            currency=currency,
            split_type=SplitType(splits[0].split_type) if splits else SplitType.EQUAL,
            splits=[SplitResponse.model_validate(s) for s in splits],
            is_complete=not missing,
            missing_travellers=missing,
        )

    def set_activity_splits(
        self,
        activity_id: int,
        split_type: SplitType,
        entries: Optional[List[SplitEntry]] = None,
    ) -> ActivitySplitsSummary:
        """Replace every split of an activity.

        Equal splits divide the total over all travellers, the remainder going
        one cent at a time to the first travellers. Custom splits must name
        travellers on the trip, be non-negative and add up to the total.
        """
        activity = self._get_activity(activity_id)
        total_cents, currency = self._activity_price(activity)
        trip_currency = get_trip_currency(activity.trip)

        travellers = _load_travellers(self.db, activity.trip_id)
        if not travellers:
            raise BadRequestError("Trip has no travellers to split costs among")

        split_type = SplitType(split_type)
        if split_type is SplitType.EQUAL:
            share, remainder = divmod(total_cents, len(travellers))
            amounts = [
                (traveller.id, share + (1 if index < remainder else 0), None)
                for index, traveller in enumerate(travellers)
            ]
        else:
            amounts = self._validate_custom_entries(entries, travellers, total_cents)

        rate, snapshot_at = self._snapshot_rate(currency, trip_currency)

        self.db.query(ActivityTravellerSplit).filter(
            ActivityTravellerSplit.activity_id == activity_id
        ).delete(synchronize_session=False)
        for traveller_id, amount_cents, notes in amounts:
            self.db.add(
                ActivityTravellerSplit(
                    trip_id=activity.trip_id,
                    activity_id=activity_id,
                    traveller_id=traveller_id,
                    split_type=split_type,
                    amount_cents=amount_cents,
                    currency=currency,
                    exchange_rate_to_trip_currency=rate,
                    exchange_rate_snapshot_at=snapshot_at,
                    notes=notes,
                )
            )
        self.db.commit()

        return self.get_activity_splits(activity_id)

    def delete_activity_splits(self, activity_id: int) -> None:
        self._get_activity(activity_id)
        self.db.query(ActivityTravellerSplit).filter(
            ActivityTravellerSplit.activity_id == activity_id
        ).delete(synchronize_session=False)
        self.db.commit()

    def get_traveller_splits(self, trip_id: int, traveller_id: int) -> List[SplitResponse]:
        """All of one traveller's splits across a trip."""
        splits = (
            self.db.query(ActivityTravellerSplit)
            .filter(
                ActivityTravellerSplit.trip_id == trip_id,
                ActivityTravellerSplit.traveller_id == traveller_id,
            )
            .order_by(ActivityTravellerSplit.activity_id, ActivityTravellerSplit.id)
            .all()
        )
        return [SplitResponse.model_validate(split) for split in splits]

    def delete_traveller_splits(self, trip_id: int, traveller_id: int) -> List[int]:
        """Remove a traveller's splits; returns the activities needing a re-split."""
        query = self.db.query(ActivityTravellerSplit).filter(
            ActivityTravellerSplit.trip_id == trip_id,
            ActivityTravellerSplit.traveller_id == traveller_id,
        )
        affected = sorted({split.activity_id for split in query.all()})
        query.delete(synchronize_session=False)
        self.db.commit()
        return affected

    # ------------------------------------------------------------------

    def _get_activity(self, activity_id: int) -> Activity:
        activity = self.db.query(Activity).filter(Activity.id == activity_id).first()
        if not activity:
            raise NotFoundError(f"Activity {activity_id} not found")
        return activity

    def _activity_price(self, activity: Activity):
        trip_currency = get_trip_currency(activity.trip)
        pricing = activity.pricing
        if pricing is None or pricing.total_price_cents is None:
            logger.warning(f"Activity {activity.id} has no pricing - using 0 for splits")
        total_cents = (pricing.total_price_cents if pricing else None) or 0
        currency = normalize_currency(pricing.currency) if pricing and pricing.currency else trip_currency
        return total_cents, currency

    def _snapshot_rate(self, currency: str, trip_currency: str):
        if currency == trip_currency:
            return None, None
        try:
            quote = self.resolver.get_rate(currency, trip_currency)
        except BadRequestError as e:
            # Split is still stored; the live rate is used until a snapshot exists
            logger.warning(f"Failed to snapshot rate {currency}->{trip_currency}: {e.detail}")
            return None, None
        logger.info(f"Snapshotted exchange rate {currency}->{trip_currency}: {quote.rate}")
        return quote.rate, datetime.now(timezone.utc)

    @staticmethod
    def _validate_custom_entries(entries, travellers, total_cents):
        if not entries:
            raise BadRequestError("Custom splits require at least one split entry")

        trip_traveller_ids = {t.id for t in travellers}
        seen = set()
        for entry in entries:
            if entry.traveller_id not in trip_traveller_ids:
                raise BadRequestError(f"Traveller {entry.traveller_id} is not on this trip")
            if entry.traveller_id in seen:
                raise BadRequestError(f"Traveller {entry.traveller_id} appears more than once")
            seen.add(entry.traveller_id)
            if entry.amount_cents < 0:
                raise BadRequestError("Split amounts cannot be negative")

        split_total = sum(entry.amount_cents for entry in entries)
        if split_total != total_cents:
            raise BadRequestError(
                f"Split amounts ({split_total} cents) must equal activity total ({total_cents} cents)"
            )
        return [(entry.traveller_id, entry.amount_cents, entry.notes) for entry in entries]

    @staticmethod
    def _traveller_summary(traveller: TripTraveler) -> TravellerSummary:
        return TravellerSummary(
            id=traveller.id,
            name=traveller.display_name,
            traveler_type=traveller.traveler_type,
            is_primary=bool(traveller.is_primary_traveler),
        )
