"""On-demand pricing for catalog entries.

OCI bills compute per OCPU-hour and per GB-hour of memory, with rates that
depend on the shape series. Rates are configured inline or loaded from a JSON
rate table served over HTTP:

    {"VM.Standard.E4": {"ocpu_hour": 0.025, "memory_gb_hour": 0.0015}, ...}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final, Protocol

import httpx
from loguru import logger

from shapecat.exceptions import ConfigurationError, PricingError
from shapecat.types import CatalogEntry

DEFAULT_TIMEOUT: Final[float] = 30.0

log = logger.bind(component="pricing")


class PricingProvider(Protocol):
    def price(self, entry: CatalogEntry) -> float:
        """Hourly on-demand price for ``entry``."""
        ...


# =============================================================================
# Models
# =============================================================================


@dataclass(frozen=True, slots=True)
class ShapeRate:
    """Hourly rates for one shape series."""

    ocpu_hour: float
    memory_gb_hour: float = 0.0

    def hourly(self, ocpus: int, memory_gb: int) -> float:
        return ocpus * self.ocpu_hour + memory_gb * self.memory_gb_hour


# =============================================================================
# Parsing helpers (pure functions)
# =============================================================================


def _safe_float(value: Any) -> float | None:
    """Parse float, None on failure."""
    try:
        return float(value) if value is not None else None
    except (ValueError, TypeError):
        return None


def parse_rates(raw: Mapping[str, Any]) -> dict[str, ShapeRate]:
    """Build a prefix -> ShapeRate table from plain mappings.

    Raises:
        ConfigurationError: If a rate is missing or not numeric.
    """
    rates: dict[str, ShapeRate] = {}
    for prefix, values in raw.items():
        if not isinstance(values, Mapping):
            raise ConfigurationError(f"Rate for {prefix!r} must be a table, got {values!r}")
        ocpu_hour = _safe_float(values.get("ocpu_hour"))
        if ocpu_hour is None:
            raise ConfigurationError(f"Rate for {prefix!r} needs a numeric ocpu_hour")
        memory_gb_hour = _safe_float(values.get("memory_gb_hour", 0.0))
        if memory_gb_hour is None:
            raise ConfigurationError(f"Rate for {prefix!r} has a non-numeric memory_gb_hour")
        rates[prefix] = ShapeRate(ocpu_hour=ocpu_hour, memory_gb_hour=memory_gb_hour)
    return rates


# =============================================================================
# Data fetching
# =============================================================================


def fetch_rates(
    url: str,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, ShapeRate]:
    """Download a JSON rate table.

    HTTP and decoding errors propagate; a missing price must never turn into
    a zero price.
    """
    log.info(f"Fetching shape rates from {url}")
    if client is None:
        response = httpx.get(url, timeout=timeout)
    else:
        response = client.get(url, timeout=timeout)
    response.raise_for_status()
    data = response.json()
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Rate table at {url} must be a JSON object")
    return parse_rates(data)


# =============================================================================
# Providers
# =============================================================================


class RatePricing:
    """Prices entries from per-series rates, matched by longest name prefix."""

    def __init__(self, rates: Mapping[str, ShapeRate]) -> None:
        # Longest prefix first so "VM.Standard.E4" wins over "VM.Standard"
        self._rates = sorted(rates.items(), key=lambda item: len(item[0]), reverse=True)

    def rate_for(self, shape_name: str) -> ShapeRate:
        for prefix, rate in self._rates:
            if shape_name.startswith(prefix):
                return rate
        raise PricingError(shape_name)

    def price(self, entry: CatalogEntry) -> float:
        return self.rate_for(entry.name).hourly(entry.ocpus, entry.memory_gb)


class StaticPricing:
    """Explicit prices keyed by catalog key ("name-vcpu-memory") or shape name."""

    def __init__(self, prices: Mapping[str, float]) -> None:
        self._prices = dict(prices)

    def price(self, entry: CatalogEntry) -> float:
        key = str(entry.key)
        if key in self._prices:
            return self._prices[key]
        if entry.name in self._prices:
            return self._prices[entry.name]
        raise PricingError(entry.name, f"no static price for {key}")


def pricing_from_config(raw: Mapping[str, Any], client: httpx.Client | None = None) -> RatePricing:
    """RatePricing from a ``[pricing]`` table.

    Rates fetched from ``rates_url`` are overridden by inline ``rates``.
    """
    rates: dict[str, ShapeRate] = {}
    url = raw.get("rates_url")
    if url:
        rates.update(fetch_rates(url, client=client))
    rates.update(parse_rates(raw.get("rates", {})))
    if not rates:
        raise ConfigurationError("No pricing configured: set pricing.rates or pricing.rates_url")
    return RatePricing(rates)
