"""
Bookable activities, their pricing and commission tracking.
"""
import enum

from sqlalchemy import Column, String, Integer, Numeric, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel


class CommissionStatus(str, enum.Enum):
    """Commission receipt status."""
    PENDING = "pending"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class Activity(BaseModel):
    """Activity booked as part of a trip."""
    __tablename__ = "activities"

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    activity_type = Column(String(50), nullable=False, default="tour")

    # Relationships
    trip = relationship("Trip", back_populates="activities")
    pricing = relationship("ActivityPricing", back_populates="activity", uselist=False, cascade="all, delete-orphan")
    splits = relationship("ActivityTravellerSplit", back_populates="activity", cascade="all, delete-orphan")


class ActivityPricing(BaseModel):
    """Pricing for an activity (one-to-one). A null total means not yet priced."""
    __tablename__ = "activity_pricing"

    activity_id = Column(
        Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    total_price_cents = Column(Integer, nullable=True)
    currency = Column(String(3), nullable=False, default="CAD")
    commission_total_cents = Column(Integer, nullable=True)  # Expected commission, minor units

    # Relationships
    activity = relationship("Activity", back_populates="pricing")
    commissions = relationship("CommissionTracking", back_populates="pricing", cascade="all, delete-orphan")


class CommissionTracking(BaseModel):
    """Actual commission receipt against a pricing row.

    Amounts are minor units like every other money column. Decimal major-unit
    inputs are converted once, in commission_service.record_commission.
    """
    __tablename__ = "commission_tracking"

    activity_pricing_id = Column(
        Integer, ForeignKey("activity_pricing.id", ondelete="CASCADE"), nullable=False, index=True
    )
    commission_rate = Column(Numeric(5, 2), nullable=True)  # Percentage for display, e.g. 10.00
    commission_amount_cents = Column(Integer, nullable=False)
    commission_status = Column(
        SQLEnum(CommissionStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=CommissionStatus.PENDING,
    )
    notes = Column(String(500), nullable=True)

    # Relationships
    pricing = relationship("ActivityPricing", back_populates="commissions")
