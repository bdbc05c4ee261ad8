"""Offering generation: zone x capacity-type matrix for a catalog entry."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Final

from shapecat.types import CAPACITY_TYPES, PREEMPTIBLE, CatalogEntry, Offering

if TYPE_CHECKING:
    from shapecat.config import CatalogOptions
    from shapecat.metrics import CatalogMetrics
    from shapecat.pricing import PricingProvider
    from shapecat.unavailable import UnavailabilityTracker

PREEMPTIBLE_DISCOUNT: Final[float] = 0.5


def _matches_any(shape_name: str, prefixes: Iterable[str]) -> bool:
    return any(shape_name.startswith(p) for p in prefixes if p)


def supports_preemptible(
    shape_name: str,
    allow: Sequence[str],
    exclude: Sequence[str],
) -> bool:
    """Whether a shape may run preemptible capacity.

    Empty prefixes are ignored on both lists; an empty exclude list excludes
    nothing.
    """
    return _matches_any(shape_name, allow) and not _matches_any(shape_name, exclude)


class OfferingGenerator:
    """Builds priced, availability-annotated offerings for catalog entries.

    Holds no mutable state of its own; concurrent calls are safe as long as
    the pricing provider and unavailability tracker are.
    """

    def __init__(
        self,
        pricing: PricingProvider,
        unavailable: UnavailabilityTracker,
        preemptible_shapes: Sequence[str],
        preemptible_exclude_shapes: Sequence[str] = (),
        metrics: CatalogMetrics | None = None,
    ) -> None:
        self.pricing = pricing
        self.unavailable = unavailable
        self.preemptible_shapes = tuple(preemptible_shapes)
        self.preemptible_exclude_shapes = tuple(preemptible_exclude_shapes)
        self.metrics = metrics

    @classmethod
    def from_options(
        cls,
        options: CatalogOptions,
        pricing: PricingProvider,
        unavailable: UnavailabilityTracker,
        metrics: CatalogMetrics | None = None,
    ) -> OfferingGenerator:
        return cls(
            pricing,
            unavailable,
            preemptible_shapes=options.preemptible_shapes,
            preemptible_exclude_shapes=options.preemptible_exclude_shapes,
            metrics=metrics,
        )

    def supports_preemptible(self, shape_name: str) -> bool:
        return supports_preemptible(
            shape_name, self.preemptible_shapes, self.preemptible_exclude_shapes
        )

    def generate(self, entry: CatalogEntry, zones: Iterable[str]) -> tuple[Offering, ...]:
        """One offering per (zone, capacity type).

        Pricing and tracker errors propagate unchanged.
        """
        offerings: list[Offering] = []
        preemptible_ok = self.supports_preemptible(entry.name)

        for zone in sorted(set(zones)):
            for capacity_type in CAPACITY_TYPES:
                # Skip offerings that recently hit an out-of-capacity error
                unavailable = self.unavailable.is_unavailable(entry.name, zone, capacity_type)
                price = float(self.pricing.price(entry))

                if capacity_type == PREEMPTIBLE:
                    if preemptible_ok:
                        price *= PREEMPTIBLE_DISCOUNT
                    else:
                        # Bare metal and other non-VM shapes can't be preemptible
                        unavailable = True

                offerings.append(
                    Offering(
                        shape=entry.name,
                        key=entry.key,
                        zone=zone,
                        capacity_type=capacity_type,
                        price=price,
                        available=not unavailable,
                    )
                )
                if self.metrics is not None:
                    self.metrics.record_offering(entry, zone, capacity_type, price, not unavailable)

        return tuple(offerings)
