"""
Tests for commission tracking.
"""
from decimal import Decimal

import pytest

from backoffice.core.errors import NotFoundError
from backoffice.models.activity import CommissionStatus
from backoffice.services.commission_service import record_commission, summarize_commissions


def test_expected_vs_received(db, factory):
    trip = factory.trip()
    tour = factory.activity(trip, price_cents=50000, commission_cents=5000)
    cruise = factory.activity(trip, price_cents=80000, commission_cents=8000)
    factory.commission(tour, 4000)
    factory.commission(cruise, 3000, status=CommissionStatus.PENDING)
    factory.commission(cruise, 1000, status=CommissionStatus.CANCELLED)

    summary = summarize_commissions(db, trip.id)

    assert summary.expected_total_cents == 13000
    assert summary.received_total_cents == 4000
    assert summary.pending_total_cents == 9000


def test_other_trips_are_ignored(db, factory):
    trip = factory.trip()
    other = factory.trip(name="Other")
    factory.activity(trip, price_cents=100, commission_cents=10)
    other_activity = factory.activity(other, price_cents=100, commission_cents=50)
    factory.commission(other_activity, 50)

    summary = summarize_commissions(db, trip.id)

    assert summary.expected_total_cents == 10
    assert summary.received_total_cents == 0


def test_overpaid_commission_goes_negative(db, factory):
    trip = factory.trip()
    tour = factory.activity(trip, price_cents=50000, commission_cents=5000)
    factory.commission(tour, 6000)

    assert summarize_commissions(db, trip.id).pending_total_cents == -1000


def test_trip_without_commission_is_zero(db, factory):
    trip = factory.trip()
    factory.activity(trip, price_cents=100)

    summary = summarize_commissions(db, trip.id)

    assert (summary.expected_total_cents, summary.received_total_cents, summary.pending_total_cents) == (0, 0, 0)


def test_record_commission_converts_major_units(db, factory):
    trip = factory.trip()
    tour = factory.activity(trip, price_cents=50000, commission_cents=5000)

    tracking = record_commission(db, tour.pricing.id, Decimal("125.505"))

    assert tracking.commission_amount_cents == 12551
    assert tracking.commission_status is CommissionStatus.RECEIVED
    assert summarize_commissions(db, trip.id).received_total_cents == 12551


def test_record_commission_requires_pricing(db):
    with pytest.raises(NotFoundError):
        record_commission(db, 999, Decimal("10"))
