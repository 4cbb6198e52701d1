"""Models package - Import all models for SQLAlchemy registration."""
from backoffice.models.trip import Trip, TripTraveler
from backoffice.models.activity import Activity, ActivityPricing, CommissionTracking, CommissionStatus
from backoffice.models.service_fee import ServiceFee, FeeStatus, RecipientType, FEE_STATUS_TRANSITIONS
from backoffice.models.split import ActivityTravellerSplit, SplitType
from backoffice.models.exchange_rate import ExchangeRate

__all__ = [
    "Trip",
    "TripTraveler",
    "Activity",
    "ActivityPricing",
    "CommissionTracking",
    "CommissionStatus",
    "ServiceFee",
    "FeeStatus",
    "RecipientType",
    "FEE_STATUS_TRANSITIONS",
    "ActivityTravellerSplit",
    "SplitType",
    "ExchangeRate",
]
