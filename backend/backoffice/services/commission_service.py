"""
Commission tracking: expected vs. received supplier commission.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.core.errors import NotFoundError
from backoffice.core.utils import major_to_minor
from backoffice.models.activity import Activity, ActivityPricing, CommissionStatus, CommissionTracking
from backoffice.schemas.financial import CommissionSummary

logger = logging.getLogger(__name__)


def summarize_commissions(db: Session, trip_id: int) -> CommissionSummary:
    """Expected commission from pricing rows vs. receipts marked received.

    pending_total_cents is not clamped; it goes negative when a supplier
    paid more than expected.
    """
    expected_total_cents = (
        db.query(func.coalesce(func.sum(ActivityPricing.commission_total_cents), 0))
        .join(Activity, ActivityPricing.activity_id == Activity.id)
        .filter(Activity.trip_id == trip_id)
        .scalar()
    )
    received_total_cents = (
        db.query(func.coalesce(func.sum(CommissionTracking.commission_amount_cents), 0))
        .join(ActivityPricing, CommissionTracking.activity_pricing_id == ActivityPricing.id)
        .join(Activity, ActivityPricing.activity_id == Activity.id)
        .filter(
            Activity.trip_id == trip_id,
            CommissionTracking.commission_status == CommissionStatus.RECEIVED,
        )
        .scalar()
    )

    expected_total_cents = int(expected_total_cents or 0)
    received_total_cents = int(received_total_cents or 0)
    return CommissionSummary(
        expected_total_cents=expected_total_cents,
        received_total_cents=received_total_cents,
        pending_total_cents=expected_total_cents - received_total_cents,
    )


def record_commission(
    db: Session,
    activity_pricing_id: int,
    commission_amount: Decimal,
    commission_status: CommissionStatus = CommissionStatus.RECEIVED,
    commission_rate: Optional[Decimal] = None,
    notes: Optional[str] = None,
) -> CommissionTracking:
    """Record a commission receipt entered in decimal major units.

    This is the single place where a decimal amount (e.g. 125.50 dollars)
    becomes minor units; everything downstream works in cents.
    """
    pricing = db.query(ActivityPricing).filter(ActivityPricing.id == activity_pricing_id).first()
    if not pricing:
        raise NotFoundError(f"Activity pricing {activity_pricing_id} not found")

    tracking = CommissionTracking(
        activity_pricing_id=activity_pricing_id,
        commission_amount_cents=major_to_minor(commission_amount),
        commission_rate=commission_rate,
        commission_status=commission_status,
        notes=notes,
    )
    db.add(tracking)
    db.commit()
    db.refresh(tracking)

    logger.info(
        f"Recorded {commission_status.value} commission of {tracking.commission_amount_cents} cents "
        f"for pricing {activity_pricing_id}"
    )
    return tracking
