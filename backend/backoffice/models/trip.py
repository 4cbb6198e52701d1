"""
Trip and traveller models.
"""
from sqlalchemy import Column, String, Boolean, ForeignKey, Integer, JSON
from sqlalchemy.orm import relationship
from backoffice.db.base import BaseModel


class Trip(BaseModel):
    """Trip whose currency is the canonical settlement currency."""
    __tablename__ = "trips"

    name = Column(String(200), nullable=False)
    currency = Column(String(3), nullable=True)  # Falls back to DEFAULT_TRIP_CURRENCY when absent

    # Relationships
    travelers = relationship("TripTraveler", back_populates="trip", cascade="all, delete-orphan")
    activities = relationship("Activity", back_populates="trip", cascade="all, delete-orphan")
    service_fees = relationship("ServiceFee", back_populates="trip", cascade="all, delete-orphan")


class TripTraveler(BaseModel):
    """A person travelling on a trip; one is flagged primary (billing contact)."""
    __tablename__ = "trip_travelers"

    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    contact_snapshot = Column(JSON, nullable=True)  # {"first_name": ..., "last_name": ...}
    traveler_type = Column(String(20), nullable=False, default="adult")
    is_primary_traveler = Column(Boolean, nullable=False, default=False)

    # Relationships
    trip = relationship("Trip", back_populates="travelers")
    splits = relationship("ActivityTravellerSplit", back_populates="traveller", cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        snapshot = self.contact_snapshot or {}
        first_name = snapshot.get("first_name") or ""
        last_name = snapshot.get("last_name") or ""
        return f"{first_name} {last_name}".strip() or "Unknown"
