"""Instance type provider: the surface consumed by scheduling logic.

Wires discovery, expansion, merge, caching and offering generation:

    lister -> CatalogFetcher -> ShapeExpander -> merge -> CatalogCache
                                                              |
                                  OfferingGenerator <- entry -+

Example:
    provider = InstanceTypeProvider.from_options(
        options,
        lister=OCIShapeLister.from_config(),
        pricing=RatePricing(rates),
    )
    for entry, zones, offerings in provider.list_offerable_instance_types():
        ...
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from loguru import logger

from shapecat.cache import CatalogCache
from shapecat.expander import ShapeExpander
from shapecat.fetcher import BACKGROUND, CatalogFetcher, RequestContext
from shapecat.merger import merge
from shapecat.offerings import OfferingGenerator
from shapecat.types import Catalog, CatalogEntry, OfferableInstanceType
from shapecat.unavailable import UnavailableOfferings

if TYPE_CHECKING:
    from shapecat.config import CatalogOptions
    from shapecat.fetcher import ShapeLister
    from shapecat.metrics import CatalogMetrics
    from shapecat.pricing import PricingProvider
    from shapecat.unavailable import UnavailabilityTracker

log = logger.bind(component="provider")


class InstanceTypeProvider:
    def __init__(
        self,
        fetcher: CatalogFetcher,
        cache: CatalogCache,
        offerings: OfferingGenerator,
        metrics: CatalogMetrics | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.cache = cache
        self.offerings = offerings
        self.metrics = metrics

    @classmethod
    def from_options(
        cls,
        options: CatalogOptions,
        lister: ShapeLister,
        pricing: PricingProvider,
        unavailable: UnavailabilityTracker | None = None,
        metrics: CatalogMetrics | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> InstanceTypeProvider:
        if unavailable is None:
            unavailable = UnavailableOfferings(ttl=options.unavailable_offerings_ttl, clock=clock)
        expander = ShapeExpander.from_options(options)
        return cls(
            fetcher=CatalogFetcher.from_options(lister, expander, options),
            cache=CatalogCache(ttl=options.cache_ttl, clock=clock),
            offerings=OfferingGenerator.from_options(options, pricing, unavailable, metrics),
            metrics=metrics,
        )

    def _refresh(self, ctx: RequestContext) -> Catalog:
        zones = self.fetcher.availability_domains
        log.info(f"Refreshing shape catalog across {len(zones)} availability domain(s)")
        start = time.monotonic()
        try:
            catalog = merge(self.fetcher.fetch_all(ctx))
        except Exception as e:
            log.warning(f"Shape catalog refresh failed: {e}")
            raise

        if self.metrics is not None:
            for entry in catalog.values():
                self.metrics.record_entry(entry)
        log.info(
            f"Discovered {len(catalog)} instance type variant(s) "
            f"in {time.monotonic() - start:.2f}s"
        )
        return catalog

    def list_catalog(self, ctx: RequestContext = BACKGROUND) -> Mapping[str, CatalogEntry]:
        """Merged catalog, served from cache while fresh.

        The result is a read-only view over the cached catalog.
        """
        return MappingProxyType(self.cache.get_or_refresh(lambda: self._refresh(ctx)))

    def list_offerable_instance_types(
        self, ctx: RequestContext = BACKGROUND
    ) -> list[OfferableInstanceType]:
        """Every catalog variant with its zones and freshly generated offerings."""
        result: list[OfferableInstanceType] = []
        for entry in self.list_catalog(ctx).values():
            zones = frozenset(entry.zones)
            result.append(OfferableInstanceType(entry, zones, self.offerings.generate(entry, zones)))
        return result
