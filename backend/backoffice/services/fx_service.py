"""
Foreign exchange service: rate resolution, caching and conversion.

Resolution order for a (from, to, date) request:
    identity -> memory cache -> exact cached row -> most recent row on or
    before the date -> live provider (upserted for today) -> static fallback.
The fallback path never raises; a summary must render even when the
provider is down.
"""
import logging
from datetime import date
from decimal import Decimal
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.core.errors import BackofficeError, BadRequestError, ProviderUnavailableError
from backoffice.core.utils import ONE, convert_cents, normalize_currency, quantize_rate, utc_today
from backoffice.models.exchange_rate import ExchangeRate
from backoffice.models.trip import Trip
from backoffice.schemas.exchange_rate import ConversionResult, RateQuote, RefreshResult
from backoffice.services.fx_provider import RateProvider, build_default_provider
from backoffice.services.rate_cache import InMemoryRateCache, RateCache

logger = logging.getLogger(__name__)

# Common currencies for travel agencies
SUPPORTED_CURRENCIES = (
    "CAD", "USD", "EUR", "GBP", "AUD", "NZD", "MXN", "JPY",
    "CHF", "SGD", "HKD", "CNY", "THB", "INR", "ZAR", "BRL",
)

# Approximate units per 1 USD, last resort when no provider rate exists
FALLBACK_USD_RATES: Dict[str, Decimal] = {
    "CAD": Decimal("1.38"),
    "USD": Decimal("1.00"),
    "EUR": Decimal("0.92"),
    "GBP": Decimal("0.79"),
    "AUD": Decimal("1.53"),
    "NZD": Decimal("1.67"),
    "MXN": Decimal("17.20"),
    "JPY": Decimal("154.00"),
    "CHF": Decimal("0.88"),
    "SGD": Decimal("1.34"),
    "HKD": Decimal("7.78"),
    "CNY": Decimal("7.24"),
    "THB": Decimal("34.50"),
    "INR": Decimal("84.00"),
    "ZAR": Decimal("17.80"),
    "BRL": Decimal("5.78"),
}

SOURCE_IDENTITY = "identity"
SOURCE_PROVIDER = "exchangerate-api"
SOURCE_FALLBACK = "fallback"


def get_trip_currency(trip: Optional[Trip]) -> str:
    """Canonical currency of a trip, defaulting when the trip has none."""
    if trip is not None and trip.currency:
        return normalize_currency(trip.currency)
    return normalize_currency(settings.DEFAULT_TRIP_CURRENCY)


def upsert_exchange_rate(
    db: Session,
    from_currency: str,
    to_currency: str,
    rate_date: date,
    rate: Decimal,
    source: str = SOURCE_PROVIDER,
) -> None:
    """Insert or update one cached rate keyed on (from, to, rate_date).

    Last write wins. Uses the dialect's native upsert so concurrent writers
    cannot trip the unique constraint. Does not commit.
    """
    values = {
        "from_currency": from_currency,
        "to_currency": to_currency,
        "rate_date": rate_date,
        "rate": quantize_rate(rate),
        "source": source,
    }
    dialect = db.get_bind().dialect.name

    if dialect in ("postgresql", "sqlite"):
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        else:
            from sqlalchemy.dialects.sqlite import insert
        stmt = insert(ExchangeRate).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["from_currency", "to_currency", "rate_date"],
            set_={"rate": stmt.excluded.rate, "source": stmt.excluded.source, "updated_at": func.now()},
        )
        db.execute(stmt)
    elif dialect in ("mysql", "mariadb"):
        from sqlalchemy.dialects.mysql import insert
        stmt = insert(ExchangeRate).values(**values)
        stmt = stmt.on_duplicate_key_update(
            rate=stmt.inserted.rate, source=stmt.inserted.source, updated_at=func.now()
        )
        db.execute(stmt)
    else:
        existing = db.query(ExchangeRate).filter(
            ExchangeRate.from_currency == from_currency,
            ExchangeRate.to_currency == to_currency,
            ExchangeRate.rate_date == rate_date,
        ).first()
        if existing:
            existing.rate = values["rate"]
            existing.source = source
        else:
            db.add(ExchangeRate(**values))
        db.flush()


class ExchangeRateResolver:
    """Resolves and converts exchange rates for one database session."""

    def __init__(
        self,
        db: Session,
        provider: Optional[RateProvider] = None,
        cache: Optional[RateCache] = None,
    ):
        self.db = db
        self.provider = provider
        self.cache = cache if cache is not None else get_rate_cache()
        # Bases the provider failed for during this resolver's lifetime
        self._unavailable_bases: Set[str] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_rate(self, from_currency: str, to_currency: str, on_date: Optional[date] = None) -> RateQuote:
        """Rate for 1 unit of from_currency in to_currency on a date (default today)."""
        from_code = normalize_currency(from_currency)
        to_code = normalize_currency(to_currency)
        rate_date = on_date or utc_today()

        if from_code == to_code:
            return RateQuote(
                from_currency=from_code,
                to_currency=to_code,
                rate=ONE,
                rate_date=rate_date,
                source=SOURCE_IDENTITY,
            )

        self._check_supported(from_code, to_code)

        key = (from_code, to_code, rate_date)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        quote = self._get_stored_rate(from_code, to_code, rate_date)
        if quote is None:
            quote = self._fetch_and_store_rate(from_code, to_code)
        if quote is None:
            return self._fallback_rate(from_code, to_code, rate_date)

        self.cache.put(key, quote)
        return quote

    @staticmethod
    def convert(amount_cents: int, rate: Decimal) -> int:
        """Apply a rate to minor units; each call rounds independently."""
        return convert_cents(amount_cents, rate)

    def convert_amount(
        self, amount_cents: int, from_currency: str, to_currency: str, on_date: Optional[date] = None
    ) -> int:
        """Convert minor units between currencies, returning only the amount."""
        quote = self.get_rate(from_currency, to_currency, on_date)
        return self.convert(amount_cents, quote.rate)

    def convert_currency(
        self, amount_cents: int, from_currency: str, to_currency: str, on_date: Optional[date] = None
    ) -> ConversionResult:
        """Convert a non-negative amount and report the rate used."""
        if amount_cents < 0:
            raise BadRequestError("Amount must be non-negative")

        quote = self.get_rate(from_currency, to_currency, on_date)
        return ConversionResult(
            original_amount_cents=amount_cents,
            original_currency=quote.from_currency,
            converted_amount_cents=self.convert(amount_cents, quote.rate),
            converted_currency=quote.to_currency,
            rate=quote.rate,
            rate_date=quote.rate_date,
            source=quote.source,
        )

    @staticmethod
    def get_supported_currencies() -> List[str]:
        return list(SUPPORTED_CURRENCIES)

    def get_latest_rates(self, base_currency: str) -> List[RateQuote]:
        """Today's rate from base_currency to every other supported currency."""
        base = normalize_currency(base_currency)
        self._check_supported(base)
        today = utc_today()

        quotes = []
        for currency in SUPPORTED_CURRENCIES:
            if currency == base:
                continue
            try:
                quotes.append(self.get_rate(base, currency, today))
            except BackofficeError as e:
                logger.warning(f"Failed to get rate for {base}/{currency}: {e}")
        return quotes

    def refresh_daily_rates(self, base_currencies: Optional[Iterable[str]] = None) -> RefreshResult:
        """Fetch and upsert today's rates for each base currency.

        Idempotent; safe to overlap with another run. A failing base is
        logged and skipped so the others still refresh.
        """
        bases = [normalize_currency(c) for c in (base_currencies or settings.FX_REFRESH_BASE_CURRENCIES)]
        result = RefreshResult()

        if self.provider is None:
            logger.warning("No FX provider configured - skipping daily rate refresh")
            result.failed_bases = bases
            return result

        logger.info(f"Starting daily exchange rate refresh for {', '.join(bases)}")
        today = utc_today()
        for base in bases:
            try:
                rates = self.provider.fetch_latest_rates(base)
                count = self._store_rates(base, rates, today)
                self.db.commit()
            except ProviderUnavailableError as e:
                logger.error(f"Failed to refresh rates for {base}: {e}")
                result.failed_bases.append(base)
                continue
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to store refreshed rates for {base}: {e}")
                result.failed_bases.append(base)
                continue
            result.refreshed_bases.append(base)
            result.rates_upserted += count
            logger.info(f"Refreshed {count} rates for {base}")

        logger.info("Daily exchange rate refresh complete")
        return result

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _check_supported(*codes: str) -> None:
        for code in codes:
            if code not in SUPPORTED_CURRENCIES:
                raise BadRequestError(f"Currency {code or '(empty)'} not supported")

    def _get_stored_rate(self, from_code: str, to_code: str, rate_date: date) -> Optional[RateQuote]:
        base_query = self.db.query(ExchangeRate).filter(
            ExchangeRate.from_currency == from_code,
            ExchangeRate.to_currency == to_code,
        )

        row = base_query.filter(ExchangeRate.rate_date == rate_date).first()
        if row is None:
            # No rate for the exact date; use the latest one before it
            row = (
                base_query.filter(ExchangeRate.rate_date <= rate_date)
                .order_by(ExchangeRate.rate_date.desc())
                .first()
            )
        if row is None:
            return None

        return RateQuote(
            from_currency=row.from_currency,
            to_currency=row.to_currency,
            rate=quantize_rate(row.rate),
            rate_date=row.rate_date,
            source=row.source,
        )

    def _fetch_and_store_rate(self, from_code: str, to_code: str) -> Optional[RateQuote]:
        if self.provider is None or from_code in self._unavailable_bases:
            return None

        try:
            rates = self.provider.fetch_latest_rates(from_code)
        except ProviderUnavailableError as e:
            logger.warning(f"FX provider unavailable for {from_code}/{to_code}: {e}")
            self._unavailable_bases.add(from_code)
            return None

        rate = rates.get(to_code)
        if rate is None:
            logger.warning(f"FX provider returned no {to_code} rate for base {from_code}")
            return None

        today = utc_today()
        try:
            self._store_rates(from_code, rates, today)
            self.db.commit()
        except SQLAlchemyError as e:
            # The rate is still good for this request; only the cache write failed
            self.db.rollback()
            logger.warning(f"Could not cache rate {from_code}/{to_code}: {e}")

        return RateQuote(
            from_currency=from_code,
            to_currency=to_code,
            rate=quantize_rate(rate),
            rate_date=today,
            source=SOURCE_PROVIDER,
        )

    def _store_rates(self, base: str, rates: Dict[str, Decimal], rate_date: date) -> int:
        count = 0
        for currency, rate in rates.items():
            if currency == base or currency not in SUPPORTED_CURRENCIES:
                continue
            upsert_exchange_rate(self.db, base, currency, rate_date, rate, SOURCE_PROVIDER)
            self.cache.put(
                (base, currency, rate_date),
                RateQuote(
                    from_currency=base,
                    to_currency=currency,
                    rate=quantize_rate(rate),
                    rate_date=rate_date,
                    source=SOURCE_PROVIDER,
                ),
            )
            count += 1
        return count

    def _fallback_rate(self, from_code: str, to_code: str, rate_date: date) -> RateQuote:
        from_rate = FALLBACK_USD_RATES.get(from_code)
        to_rate = FALLBACK_USD_RATES.get(to_code)
        if not from_rate or not to_rate:
            raise BadRequestError(f"Currency pair {from_code}/{to_code} not supported")

        rate = quantize_rate(to_rate / from_rate)
        logger.warning(f"Using fallback rate for {from_code}/{to_code}: {rate}")
        return RateQuote(
            from_currency=from_code,
            to_currency=to_code,
            rate=rate,
            rate_date=rate_date,
            source=SOURCE_FALLBACK,
        )


@lru_cache
def get_rate_cache() -> InMemoryRateCache:
    """Process-wide cache shared by request handlers and the refresh job."""
    return InMemoryRateCache(
        max_entries=settings.FX_MEMORY_CACHE_MAX_ENTRIES,
        ttl_seconds=settings.FX_MEMORY_CACHE_TTL_SECONDS,
    )


@lru_cache
def get_rate_provider() -> Optional[RateProvider]:
    return build_default_provider()
