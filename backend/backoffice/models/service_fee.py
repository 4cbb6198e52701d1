"""
Service fee model and its lifecycle state machine.
"""
import enum

from sqlalchemy import Column, String, Integer, Numeric, Date, DateTime, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship, validates
from backoffice.core.errors import ConflictError
from backoffice.db.base import BaseModel


class FeeStatus(str, enum.Enum):
    """Service fee lifecycle status."""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"

    def allowed_transitions(self) -> frozenset:
        return FEE_STATUS_TRANSITIONS[self]

    def can_transition_to(self, new_status: "FeeStatus") -> bool:
        return FeeStatus(new_status) in FEE_STATUS_TRANSITIONS[self]

    @property
    def is_settled(self) -> bool:
        """Money has moved; snapshot fields are the historical record."""
        return self in (FeeStatus.PAID, FeeStatus.PARTIALLY_REFUNDED, FeeStatus.REFUNDED)


# Forward-only, with cancellation reachable from every non-terminal state.
# partially_refunded -> partially_refunded covers successive partial refunds.
FEE_STATUS_TRANSITIONS = {
    FeeStatus.DRAFT: frozenset({FeeStatus.SENT, FeeStatus.CANCELLED}),
    FeeStatus.SENT: frozenset({FeeStatus.PAID, FeeStatus.CANCELLED}),
    FeeStatus.PAID: frozenset({FeeStatus.PARTIALLY_REFUNDED, FeeStatus.REFUNDED, FeeStatus.CANCELLED}),
    FeeStatus.PARTIALLY_REFUNDED: frozenset(
        {FeeStatus.PARTIALLY_REFUNDED, FeeStatus.REFUNDED, FeeStatus.CANCELLED}
    ),
    FeeStatus.REFUNDED: frozenset(),
    FeeStatus.CANCELLED: frozenset(),
}


class RecipientType(str, enum.Enum):
    """Who a service fee is billed to."""
    PRIMARY_TRAVELLER = "primary_traveller"
    ALL_TRAVELLERS = "all_travellers"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class ServiceFee(BaseModel):
    """Agency-issued charge against a trip."""
    __tablename__ = "service_fees"

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_type = Column(
        SQLEnum(RecipientType, values_callable=_enum_values),
        nullable=False,
        default=RecipientType.PRIMARY_TRAVELLER,
    )
    title = Column(String(255), nullable=False)
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="CAD")
    due_date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)
    status = Column(
        SQLEnum(FeeStatus, values_callable=_enum_values),
        nullable=False,
        default=FeeStatus.DRAFT,
        index=True,
    )

    # Exchange rate snapshot taken when the fee is created in a foreign currency
    exchange_rate_to_trip_currency = Column(Numeric(18, 8), nullable=True)
    amount_in_trip_currency_cents = Column(Integer, nullable=True)

    # Refund tracking
    refunded_amount_cents = Column(Integer, nullable=False, default=0)
    refund_reason = Column(Text, nullable=True)

    # Lifecycle timestamps
    sent_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    trip = relationship("Trip", back_populates="service_fees")

    @validates("status")
    def _validate_status(self, key, new_status):
        new_status = FeeStatus(new_status)
        current = self.status
        # Unset on construction; any starting state is allowed
        if current is None:
            return new_status
        current = FeeStatus(current)
        if not current.can_transition_to(new_status):
            allowed = ", ".join(sorted(s.value for s in current.allowed_transitions())) or "none"
            raise ConflictError(
                f"Cannot transition from {current.value} to {new_status.value}. "
                f"Valid transitions: {allowed}"
            )
        return new_status

    @validates("exchange_rate_to_trip_currency", "amount_in_trip_currency_cents")
    def _validate_snapshot(self, key, value):
        current = getattr(self, key)
        if (
            self.status is not None
            and FeeStatus(self.status).is_settled
            and current is not None
            and value != current
        ):
            raise ConflictError(f"{key} is fixed once a service fee has been paid")
        return value
