"""
Per-traveller allocation of an activity's cost.
"""
import enum

from sqlalchemy import Column, String, Integer, Numeric, DateTime, Text, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel


class SplitType(str, enum.Enum):
    """How an activity's cost was divided."""
    EQUAL = "equal"
    CUSTOM = "custom"


class ActivityTravellerSplit(BaseModel):
    """One traveller's share of one activity.

    The shares of an activity need not add up to its total; unreconciled
    splits are reported as incomplete rather than rejected here.
    """
    __tablename__ = "activity_traveller_splits"

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)
    traveller_id = Column(Integer, ForeignKey("trip_travelers.id", ondelete="CASCADE"), nullable=False, index=True)
    split_type = Column(
        SQLEnum(SplitType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SplitType.EQUAL,
    )
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False)

    # Exchange rate snapshot (activity currency -> trip currency)
    exchange_rate_to_trip_currency = Column(Numeric(18, 8), nullable=True)
    exchange_rate_snapshot_at = Column(DateTime(timezone=True), nullable=True)

    notes = Column(Text, nullable=True)

    # Relationships
    activity = relationship("Activity", back_populates="splits")
    traveller = relationship("TripTraveler", back_populates="splits")

    # One split per traveller per activity
    __table_args__ = (
        UniqueConstraint("activity_id", "traveller_id", name="uq_activity_traveller"),
    )
