"""Catalog data model: raw upstream shapes, normalized entries and offerings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, NamedTuple

__all__ = [
    "CapacityType",
    "ON_DEMAND",
    "PREEMPTIBLE",
    "CAPACITY_TYPES",
    "OcpuOptions",
    "MemoryOptions",
    "VnicAttachmentOptions",
    "BandwidthOptions",
    "RawShape",
    "ShapeKey",
    "CatalogEntry",
    "Catalog",
    "Offering",
    "OfferableInstanceType",
]

type CapacityType = Literal["on-demand", "preemptible"]

ON_DEMAND: CapacityType = "on-demand"
PREEMPTIBLE: CapacityType = "preemptible"
CAPACITY_TYPES: tuple[CapacityType, ...] = (ON_DEMAND, PREEMPTIBLE)


# =============================================================================
# Upstream shape descriptor
# =============================================================================


@dataclass(frozen=True, slots=True)
class OcpuOptions:
    min: float | None = None
    max: float | None = None


@dataclass(frozen=True, slots=True)
class MemoryOptions:
    min_in_gbs: float | None = None
    max_in_gbs: float | None = None


@dataclass(frozen=True, slots=True)
class VnicAttachmentOptions:
    default_per_ocpu: float | None = None


@dataclass(frozen=True, slots=True)
class BandwidthOptions:
    default_per_ocpu_in_gbps: float | None = None
    min_in_gbps: float | None = None
    max_in_gbps: float | None = None


@dataclass(frozen=True, slots=True)
class RawShape:
    """Shape as published by the listing API.

    Numeric fields are optional because the API leaves them unset for the
    shape kinds they do not apply to. Fixed shapes publish flat values,
    flexible shapes publish the ``*_options`` ranges.
    """

    name: str
    is_flexible: bool = False
    ocpus: float | None = None
    memory_in_gbs: float | None = None
    max_vnic_attachments: int | None = None
    networking_bandwidth_in_gbps: float | None = None
    ocpu_options: OcpuOptions | None = None
    memory_options: MemoryOptions | None = None
    max_vnic_attachment_options: VnicAttachmentOptions | None = None
    networking_bandwidth_options: BandwidthOptions | None = None


# =============================================================================
# Normalized catalog
# =============================================================================


class ShapeKey(NamedTuple):
    """Identity of a catalog entry."""

    name: str
    vcpu: int
    memory_gb: int

    def __str__(self) -> str:
        return f"{self.name}-{self.vcpu}-{self.memory_gb}"


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """A concrete CPU/memory variant of a shape and the zones offering it.

    Entries are immutable. The merge step widens ``zones`` by replacing the
    stored entry, so a catalog handed to callers cannot be changed through
    its entries.
    """

    name: str
    vcpu: int
    memory_gb: int
    max_vnics: int
    max_bandwidth_gbps: int
    ocpus: int
    zones: tuple[str, ...] = ()
    shape: RawShape | None = field(default=None, repr=False, compare=False)

    @property
    def key(self) -> ShapeKey:
        return ShapeKey(self.name, self.vcpu, self.memory_gb)


type Catalog = dict[str, CatalogEntry]


@dataclass(frozen=True, slots=True)
class Offering:
    """Priced, zone- and capacity-type-scoped purchase option."""

    shape: str
    key: ShapeKey
    zone: str
    capacity_type: CapacityType
    price: float
    available: bool


class OfferableInstanceType(NamedTuple):
    entry: CatalogEntry
    zones: frozenset[str]
    offerings: tuple[Offering, ...]
