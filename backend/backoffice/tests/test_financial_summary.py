"""
Tests for the trip financial summary.
"""
from decimal import Decimal

import pytest

from backoffice.core.errors import NotFoundError
from backoffice.core.utils import utc_today
from backoffice.models.service_fee import FeeStatus
from backoffice.services.financial_summary_service import get_trip_financial_summary


def test_single_currency_trip(db, factory, resolver):
    trip = factory.trip(currency="CAD")
    primary = factory.traveller(trip, first_name="Ana", is_primary=True)
    activity = factory.activity(trip, price_cents=50000)
    factory.split(activity, primary, 50000)
    factory.fee(trip, amount_cents=10000, status=FeeStatus.PAID)

    summary = get_trip_financial_summary(db, trip.id, resolver)

    assert summary.trip_currency == "CAD"
    assert summary.grand_total.total_cost_cents == 60000
    assert summary.grand_total.total_collected_cents == 10000
    assert summary.grand_total.outstanding_cents == 0

    (row,) = summary.traveller_breakdown
    assert row.activity_costs_cents == 50000
    assert row.service_fees_cents == 10000
    assert row.total_cents == 60000


def test_missing_trip_raises(db, resolver):
    with pytest.raises(NotFoundError):
        get_trip_financial_summary(db, 12345, resolver)


def test_trip_without_currency_uses_default(db, factory, resolver):
    trip = factory.trip(currency=None)

    summary = get_trip_financial_summary(db, trip.id, resolver)

    assert summary.trip_currency == "CAD"
    assert summary.grand_total.total_cost_cents == 0
    assert summary.traveller_breakdown == []


def test_multi_currency_trip(db, factory, resolver):
    trip = factory.trip(currency="CAD")
    factory.traveller(trip, is_primary=True)
    factory.rate("USD", "CAD", "1.35", utc_today())
    factory.rate("EUR", "CAD", "1.50", utc_today())
    factory.activity(trip, price_cents=20000, currency="USD", commission_cents=2000)
    factory.fee(trip, amount_cents=10000, currency="EUR", status=FeeStatus.SENT, rate=Decimal("1.45"))
    factory.fee(trip, amount_cents=5000, status=FeeStatus.PAID)
    factory.fee(trip, amount_cents=7000, status=FeeStatus.CANCELLED)

    summary = get_trip_financial_summary(db, trip.id, resolver)

    assert summary.activities_summary.total_in_trip_currency_cents == 27000
    assert summary.service_fees_summary.total_in_trip_currency_cents == 14500 + 5000
    assert summary.grand_total.total_cost_cents == 27000 + 19500
    assert summary.grand_total.total_collected_cents == 5000
    assert summary.grand_total.outstanding_cents == 14500
    assert summary.commission_summary.pending_total_cents == 2000


def test_summary_is_repeatable(db, factory, resolver):
    trip = factory.trip()
    factory.activity(trip, price_cents=1234, currency="GBP")
    factory.fee(trip, amount_cents=999, currency="JPY")

    first = get_trip_financial_summary(db, trip.id, resolver)
    second = get_trip_financial_summary(db, trip.id, resolver)

    assert first == second
