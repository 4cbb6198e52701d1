"""
External FX provider client (ExchangeRate-API v6).
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional, Protocol

import httpx

from backoffice.core.config import settings
from backoffice.core.errors import ProviderUnavailableError

logger = logging.getLogger(__name__)


class RateProvider(Protocol):
    def fetch_latest_rates(self, base_currency: str) -> Dict[str, Decimal]:
        """Return {currency: units of currency per 1 base_currency}."""
        ...


class ExchangeRateApiProvider:
    """Fetches latest rates from ExchangeRate-API.

    Endpoint: {base_url}/{api_key}/latest/{BASE}
    Response: {"result": "success", "conversion_rates": {"USD": 1, "CAD": 1.38, ...}}

    Every failure surfaces as ProviderUnavailableError so the resolver can
    fall back without knowing about httpx.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://v6.exchangerate-api.com/v6",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def fetch_latest_rates(self, base_currency: str) -> Dict[str, Decimal]:
        base = base_currency.upper()
        url = f"{self.base_url}/{self.api_key}/latest/{base}"
        logger.info(f"Fetching latest exchange rates from ExchangeRate-API for {base}")

        try:
            if self._client is not None:
                response = self._client.get(url, timeout=self.timeout)
            else:
                response = httpx.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error with ExchangeRate-API: {e.response.status_code}")
            raise ProviderUnavailableError(f"ExchangeRate-API HTTP error: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Network error with ExchangeRate-API: {e}")
            raise ProviderUnavailableError(f"ExchangeRate-API network error: {e}")
        except ValueError as e:
            raise ProviderUnavailableError(f"ExchangeRate-API returned invalid JSON: {e}")

        if not isinstance(data, dict):
            logger.error(f"ExchangeRate-API returned a {type(data).__name__} instead of an object")
            raise ProviderUnavailableError("ExchangeRate-API returned an unexpected payload")

        if data.get("result") != "success":
            error_type = data.get("error-type", "Unknown error")
            logger.error(f"ExchangeRate-API returned error: {error_type}")
            raise ProviderUnavailableError(f"ExchangeRate-API error: {error_type}")

        conversion_rates = data.get("conversion_rates")
        if not isinstance(conversion_rates, dict):
            raise ProviderUnavailableError(f"ExchangeRate-API returned no rate table for {base}")

        rates: Dict[str, Decimal] = {}
        for code, value in conversion_rates.items():
            try:
                rate = Decimal(str(value))
            except InvalidOperation:
                logger.warning(f"Skipping unparseable rate {code}={value!r}")
                continue
            # NaN and Infinity parse but are not rates
            if not rate.is_finite() or rate <= 0:
                logger.warning(f"Skipping invalid rate {code}={value!r}")
                continue
            rates[str(code).upper()] = rate

        if not rates:
            raise ProviderUnavailableError(f"ExchangeRate-API returned no rates for {base}")
        return rates


def build_default_provider() -> Optional[RateProvider]:
    """Provider from settings, or None when no API key is configured."""
    if not settings.FX_API_KEY:
        return None
    return ExchangeRateApiProvider(
        api_key=settings.FX_API_KEY,
        base_url=settings.FX_API_BASE_URL,
        timeout=settings.FX_HTTP_TIMEOUT_SECONDS,
    )
