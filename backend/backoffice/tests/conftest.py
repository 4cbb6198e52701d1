"""
Shared fixtures: in-memory SQLite database, fake FX provider, resolver and
record factories.
"""
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice.core.errors import ProviderUnavailableError
from backoffice.db.base import Base
from backoffice.models import (
    Activity,
    ActivityPricing,
    ActivityTravellerSplit,
    CommissionStatus,
    CommissionTracking,
    FeeStatus,
    RecipientType,
    ServiceFee,
    SplitType,
    Trip,
    TripTraveler,
)
from backoffice.services.fx_service import ExchangeRateResolver, upsert_exchange_rate
from backoffice.services.rate_cache import InMemoryRateCache


class FakeRateProvider:
    """Provider returning canned rates per base and recording every call."""

    def __init__(self, rates: Optional[Dict[str, Dict[str, str]]] = None, failing_bases=()):
        self.rates = rates or {}
        self.failing_bases = set(failing_bases)
        self.calls: List[str] = []

    def fetch_latest_rates(self, base_currency: str) -> Dict[str, Decimal]:
        self.calls.append(base_currency)
        if base_currency in self.failing_bases or base_currency not in self.rates:
            raise ProviderUnavailableError(f"No rates for {base_currency}")
        return {code: Decimal(value) for code, value in self.rates[base_currency].items()}


class Factory:
    """Creates and commits records with sensible defaults."""

    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def trip(self, currency: Optional[str] = "CAD", name: str = "Lisbon Getaway") -> Trip:
        return self._save(Trip(name=name, currency=currency))

    def traveller(self, trip, first_name="Alex", last_name="Smith", is_primary=False, traveler_type="adult"):
        return self._save(
            TripTraveler(
                trip_id=trip.id,
                contact_snapshot={"first_name": first_name, "last_name": last_name},
                traveler_type=traveler_type,
                is_primary_traveler=is_primary,
            )
        )

    def activity(self, trip, price_cents=None, currency="CAD", commission_cents=None, name="Harbour Tour",
                 with_pricing=True) -> Activity:
        activity = self._save(Activity(trip_id=trip.id, name=name, activity_type="tour"))
        if with_pricing:
            self._save(
                ActivityPricing(
                    activity_id=activity.id,
                    total_price_cents=price_cents,
                    currency=currency,
                    commission_total_cents=commission_cents,
                )
            )
            self.db.refresh(activity)
        return activity

    def fee(self, trip, amount_cents=10000, currency="CAD", status=FeeStatus.DRAFT,
            recipient_type=RecipientType.PRIMARY_TRAVELLER, rate=None, amount_in_trip_cents=None,
            refunded_cents=0, title="Planning fee") -> ServiceFee:
        return self._save(
            ServiceFee(
                trip_id=trip.id,
                title=title,
                amount_cents=amount_cents,
                currency=currency,
                status=status,
                recipient_type=recipient_type,
                exchange_rate_to_trip_currency=rate,
                amount_in_trip_currency_cents=amount_in_trip_cents,
                refunded_amount_cents=refunded_cents,
            )
        )

    def split(self, activity, traveller, amount_cents, currency="CAD", rate=None,
              split_type=SplitType.CUSTOM) -> ActivityTravellerSplit:
        return self._save(
            ActivityTravellerSplit(
                trip_id=activity.trip_id,
                activity_id=activity.id,
                traveller_id=traveller.id,
                split_type=split_type,
                amount_cents=amount_cents,
                currency=currency,
                exchange_rate_to_trip_currency=rate,
            )
        )

    def commission(self, activity, amount_cents, status=CommissionStatus.RECEIVED) -> CommissionTracking:
        return self._save(
            CommissionTracking(
                activity_pricing_id=activity.pricing.id,
                commission_amount_cents=amount_cents,
                commission_status=status,
            )
        )

    def rate(self, from_currency, to_currency, rate, rate_date: date, source="exchangerate-api"):
        upsert_exchange_rate(self.db, from_currency, to_currency, rate_date, Decimal(rate), source)
        self.db.commit()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def rate_cache():
    return InMemoryRateCache(max_entries=64, ttl_seconds=3600)


@pytest.fixture
def provider():
    return FakeRateProvider(
        rates={
            "CAD": {"CAD": "1", "USD": "0.73", "EUR": "0.68", "GBP": "0.58"},
            "USD": {"USD": "1", "CAD": "1.37", "EUR": "0.93"},
            "EUR": {"EUR": "1", "CAD": "1.47", "USD": "1.08"},
        }
    )


@pytest.fixture
def resolver(db, rate_cache):
    """Resolver with no provider: DB rates, then static fallback."""
    return ExchangeRateResolver(db, provider=None, cache=rate_cache)


@pytest.fixture
def live_resolver(db, rate_cache, provider):
    return ExchangeRateResolver(db, provider=provider, cache=rate_cache)


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def make_provider():
    """Build a FakeRateProvider with custom rates or failing bases."""
    return FakeRateProvider
