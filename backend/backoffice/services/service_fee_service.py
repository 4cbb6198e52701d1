"""
Service fee lifecycle: draft -> sent -> paid -> partially_refunded/refunded,
with cancellation from any non-terminal state.

Fees in a foreign currency get their exchange rate and trip-currency amount
snapshotted at creation. Those snapshots are what the ledger reports once
money has moved.
"""
import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from backoffice.core.errors import BadRequestError, NotFoundError
from backoffice.core.utils import normalize_currency
from backoffice.models.service_fee import FeeStatus, ServiceFee
from backoffice.models.trip import Trip
from backoffice.schemas.service_fee import RefundRequest, ServiceFeeCreate, ServiceFeeUpdate
from backoffice.services.fx_service import ExchangeRateResolver, get_trip_currency

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ServiceFeeService:
    def __init__(self, db: Session, resolver: ExchangeRateResolver):
        self.db = db
        self.resolver = resolver

    def list_fees(self, trip_id: int) -> List[ServiceFee]:
        self._get_trip(trip_id)
        return (
            self.db.query(ServiceFee)
            .filter(ServiceFee.trip_id == trip_id)
            .order_by(ServiceFee.created_at.desc(), ServiceFee.id.desc())
            .all()
        )

    def get_fee(self, fee_id: int) -> ServiceFee:
        fee = self.db.query(ServiceFee).filter(ServiceFee.id == fee_id).first()
        if not fee:
            raise NotFoundError(f"Service fee {fee_id} not found")
        return fee

    def create_fee(self, trip_id: int, data: ServiceFeeCreate) -> ServiceFee:
        trip = self._get_trip(trip_id)
        trip_currency = get_trip_currency(trip)
        currency = normalize_currency(data.currency) if data.currency else trip_currency

        fee = ServiceFee(
            trip_id=trip_id,
            title=data.title,
            amount_cents=data.amount_cents,
            currency=currency,
            due_date=data.due_date,
            description=data.description,
            recipient_type=data.recipient_type,
            status=FeeStatus.DRAFT,
            refunded_amount_cents=0,
        )
        self._apply_snapshot(fee, trip_currency)
        self.db.add(fee)
        self.db.commit()
        self.db.refresh(fee)

        logger.info(f"Created service fee {fee.id} for trip {trip_id}: {fee.amount_cents} {fee.currency}")
        return fee

    def update_fee(self, fee_id: int, data: ServiceFeeUpdate) -> ServiceFee:
        fee = self.get_fee(fee_id)
        if FeeStatus(fee.status) is not FeeStatus.DRAFT:
            raise BadRequestError("Can only update service fees in draft status")

        changes = data.model_dump(exclude_unset=True)
        if "currency" in changes and changes["currency"] is not None:
            changes["currency"] = normalize_currency(changes["currency"])
        for field, value in changes.items():
            if value is not None:
                setattr(fee, field, value)

        trip_currency = get_trip_currency(fee.trip)
        if "currency" in changes or "amount_cents" in changes or fee.currency == trip_currency:
            self._apply_snapshot(fee, trip_currency)

        self.db.commit()
        self.db.refresh(fee)
        return fee

    def send_fee(self, fee_id: int) -> ServiceFee:
        fee = self.get_fee(fee_id)
        fee.status = FeeStatus.SENT
        fee.sent_at = _now()
        self.db.commit()
        self.db.refresh(fee)
        return fee

    def mark_paid(self, fee_id: int) -> ServiceFee:
        fee = self.get_fee(fee_id)
        fee.status = FeeStatus.PAID
        fee.paid_at = _now()
        self.db.commit()
        self.db.refresh(fee)

        logger.info(f"Service fee {fee.id} paid: {fee.amount_cents} {fee.currency}")
        return fee

    def refund_fee(self, fee_id: int, data: RefundRequest) -> ServiceFee:
        fee = self.get_fee(fee_id)
        status = FeeStatus(fee.status)
        if status not in (FeeStatus.PAID, FeeStatus.PARTIALLY_REFUNDED):
            raise BadRequestError("Can only refund paid or partially refunded service fees")

        already_refunded = fee.refunded_amount_cents or 0
        remaining = fee.amount_cents - already_refunded
        refund_amount = data.amount_cents if data.amount_cents is not None else remaining
        if refund_amount <= 0:
            raise BadRequestError("Nothing left to refund")
        if refund_amount > remaining:
            raise BadRequestError(
                f"Refund amount exceeds remaining balance. Max refundable: {remaining} cents"
            )

        total_refunded = already_refunded + refund_amount
        fee.status = FeeStatus.REFUNDED if total_refunded >= fee.amount_cents else FeeStatus.PARTIALLY_REFUNDED
        fee.refunded_amount_cents = total_refunded
        if data.reason:
            fee.refund_reason = data.reason
        fee.refunded_at = _now()
        self.db.commit()
        self.db.refresh(fee)

        logger.info(f"Refunded {refund_amount} {fee.currency} on service fee {fee.id}")
        return fee

    def cancel_fee(self, fee_id: int) -> ServiceFee:
        fee = self.get_fee(fee_id)
        fee.status = FeeStatus.CANCELLED
        fee.cancelled_at = _now()
        self.db.commit()
        self.db.refresh(fee)
        return fee

    def delete_fee(self, fee_id: int) -> None:
        fee = self.get_fee(fee_id)
        if FeeStatus(fee.status) is not FeeStatus.DRAFT:
            raise BadRequestError("Can only delete service fees in draft status")
        self.db.delete(fee)
        self.db.commit()

    # ------------------------------------------------------------------

    def _get_trip(self, trip_id: int) -> Trip:
        trip = self.db.query(Trip).filter(Trip.id == trip_id).first()
        if not trip:
            raise NotFoundError(f"Trip {trip_id} not found")
        return trip

    def _apply_snapshot(self, fee: ServiceFee, trip_currency: str) -> None:
        """Snapshot today's rate onto a draft fee, or clear it for same-currency fees."""
        if fee.currency == trip_currency:
            fee.exchange_rate_to_trip_currency = None
            fee.amount_in_trip_currency_cents = None
            return

        conversion = self.resolver.convert_currency(fee.amount_cents, fee.currency, trip_currency)
        fee.exchange_rate_to_trip_currency = conversion.rate
        fee.amount_in_trip_currency_cents = conversion.converted_amount_cents
