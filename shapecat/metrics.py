"""Prometheus gauges describing the catalog and its offerings.

Gauges are write-only observability: nothing in shapecat reads them back.
Each CatalogMetrics owns its own CollectorRegistry so several providers (or
tests) can coexist in one process; pass ``prometheus_client.REGISTRY`` to
expose them on the default endpoint.
"""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Gauge

from shapecat.types import CapacityType, CatalogEntry

NAMESPACE = "shapecat"
SUBSYSTEM = "instance_type"

INSTANCE_TYPE_LABEL = "instance_type"
CAPACITY_TYPE_LABEL = "capacity_type"
ZONE_LABEL = "zone"

_BYTES_PER_GB = 1024 * 1024 * 1024


def price_label(entry: CatalogEntry) -> str:
    """Per-variant label: flexible shapes share a name across sizes."""
    return f"{entry.name}_{entry.ocpus}_{entry.memory_gb}"


class CatalogMetrics:
    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        self.cpu_cores = Gauge(
            "cpu_cores",
            "vCPU cores of a catalog variant.",
            [INSTANCE_TYPE_LABEL],
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=self.registry,
        )
        self.memory_bytes = Gauge(
            "memory_bytes",
            "Memory of a catalog variant in bytes.",
            [INSTANCE_TYPE_LABEL],
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=self.registry,
        )
        self.offering_available = Gauge(
            "offering_available",
            "1 when the offering can currently be launched, 0 otherwise.",
            [INSTANCE_TYPE_LABEL, CAPACITY_TYPE_LABEL, ZONE_LABEL],
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=self.registry,
        )
        self.offering_price_estimate = Gauge(
            "offering_price_estimate",
            "Estimated hourly price of the offering.",
            [INSTANCE_TYPE_LABEL, CAPACITY_TYPE_LABEL, ZONE_LABEL],
            namespace=NAMESPACE,
            subsystem=SUBSYSTEM,
            registry=self.registry,
        )

    def record_entry(self, entry: CatalogEntry) -> None:
        self.cpu_cores.labels(price_label(entry)).set(entry.vcpu)
        self.memory_bytes.labels(price_label(entry)).set(entry.memory_gb * _BYTES_PER_GB)

    def record_offering(
        self,
        entry: CatalogEntry,
        zone: str,
        capacity_type: CapacityType,
        price: float,
        available: bool,
    ) -> None:
        self.offering_available.labels(entry.name, capacity_type, zone).set(1 if available else 0)
        self.offering_price_estimate.labels(price_label(entry), capacity_type, zone).set(price)
