"""
Service fee ledger: trip fees aggregated by lifecycle status.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Tuple

from sqlalchemy.orm import Session

from backoffice.core.errors import BadRequestError
from backoffice.core.utils import ONE, convert_cents, effective_rate, normalize_currency
from backoffice.models.service_fee import FeeStatus, ServiceFee
from backoffice.schemas.financial import FeesSummary
from backoffice.services.fx_service import ExchangeRateResolver

logger = logging.getLogger(__name__)


def load_trip_fees(db: Session, trip_id: int) -> List[ServiceFee]:
    return db.query(ServiceFee).filter(ServiceFee.trip_id == trip_id).order_by(ServiceFee.id).all()


def fee_in_trip_currency(
    fee: ServiceFee,
    trip_currency: str,
    resolver: ExchangeRateResolver,
) -> Tuple[int, Decimal]:
    """Fee amount in the trip currency and the rate that produced it.

    Preference: the stored trip-currency amount, then the stored rate, then
    today's live rate. Stored values are the historical record and always
    win over a live lookup.
    """
    currency = normalize_currency(fee.currency) or trip_currency
    amount_cents = fee.amount_cents
    if currency == trip_currency or amount_cents <= 0:
        return amount_cents, ONE

    if fee.amount_in_trip_currency_cents is not None:
        converted = fee.amount_in_trip_currency_cents
        return converted, effective_rate(amount_cents, converted)

    if fee.exchange_rate_to_trip_currency is not None:
        rate = Decimal(fee.exchange_rate_to_trip_currency)
        return convert_cents(amount_cents, rate), rate

    logger.warning(f"Service fee {fee.id} missing exchange rate snapshot, using live rate")
    try:
        quote = resolver.get_rate(currency, trip_currency)
    except BadRequestError as e:
        logger.error(f"Service fee {fee.id} left unconverted: {e.detail}")
        return amount_cents, ONE
    return convert_cents(amount_cents, quote.rate), quote.rate


def summarize_fees(
    db: Session,
    trip_id: int,
    trip_currency: str,
    resolver: ExchangeRateResolver,
) -> FeesSummary:
    """Aggregate a trip's service fees in the trip currency.

    Cancelled fees only show up in their own status bucket. Refunds are
    converted with the same rate as the fee they belong to.
    """
    trip_currency = normalize_currency(trip_currency)
    by_status: Dict[str, int] = {status.value: 0 for status in FeeStatus}

    total_cents = 0
    total_in_trip_currency_cents = 0
    paid_cents = 0
    pending_cents = 0
    refunded_cents = 0

    for fee in load_trip_fees(db, trip_id):
        status = FeeStatus(fee.status)
        converted, rate = fee_in_trip_currency(fee, trip_currency, resolver)
        by_status[status.value] += converted

        if status is FeeStatus.CANCELLED:
            continue

        total_cents += fee.amount_cents
        total_in_trip_currency_cents += converted
        refunded = convert_cents(fee.refunded_amount_cents or 0, rate)

        if status in (FeeStatus.PAID, FeeStatus.PARTIALLY_REFUNDED):
            paid_cents += converted - refunded
        if status in (FeeStatus.PARTIALLY_REFUNDED, FeeStatus.REFUNDED):
            refunded_cents += refunded
        if status in (FeeStatus.DRAFT, FeeStatus.SENT):
            pending_cents += converted

    return FeesSummary(
        total_cents=total_cents,
        total_in_trip_currency_cents=total_in_trip_currency_cents,
        paid_cents=paid_cents,
        pending_cents=pending_cents,
        refunded_cents=refunded_cents,
        by_status=by_status,
    )
