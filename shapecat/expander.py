"""Shape expansion: raw upstream shapes into concrete catalog entries.

Fixed shapes map to a single entry. Flexible shapes are fanned out over the
Cartesian product of configured OCPU counts and memory ratios, keeping only
the combinations the shape's published ranges allow.

Reference: https://docs.oracle.com/en-us/iaas/Content/Compute/References/computeshapes.htm
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from itertools import product
from typing import TYPE_CHECKING, Final

from loguru import logger

from shapecat.exceptions import MalformedShapeError
from shapecat.types import CatalogEntry, MemoryOptions, OcpuOptions, RawShape

if TYPE_CHECKING:
    from shapecat.config import CatalogOptions

# Ampere A1 shapes bill one OCPU per vCPU; every other family has two threads per OCPU.
REDUCED_RATIO_PREFIXES: Final[tuple[str, ...]] = ("VM.Standard.A1",)

FIXED_VCPU_PER_OCPU: Final[int] = 2
SINGLE_OCPU_MAX_VNICS: Final[int] = 2
MAX_VNICS_CAP: Final[int] = 24

log = logger.bind(component="expander")


# =============================================================================
# Candidate parsing
# =============================================================================


@dataclass(frozen=True, slots=True)
class ParsedCandidates:
    """Numeric candidates parsed from configuration tokens.

    Attributes:
        values: Tokens that parsed as integers, in configured order.
        skipped: Tokens that did not parse and were left out.
    """

    values: tuple[int, ...]
    skipped: tuple[str, ...] = ()


def parse_candidates(tokens: Iterable[str]) -> ParsedCandidates:
    values: list[int] = []
    skipped: list[str] = []
    for token in tokens:
        token = token.strip()
        if not token:
            continue
        try:
            values.append(int(token))
        except ValueError:
            skipped.append(token)
    return ParsedCandidates(tuple(values), tuple(skipped))


# =============================================================================
# Predicates and per-OCPU calculations
# =============================================================================


def ratio_factor(shape_name: str) -> int:
    """vCPUs per OCPU for a flexible shape."""
    return 1 if shape_name.startswith(REDUCED_RATIO_PREFIXES) else 2


def within_ocpu_bounds(ocpus: int, options: OcpuOptions) -> bool:
    """Inclusive range check. A range with an unset bound admits nothing."""
    if options.min is None or options.max is None:
        return False
    return options.min <= ocpus <= options.max


def within_memory_bounds(memory_gb: int, options: MemoryOptions) -> bool:
    if options.min_in_gbs is None or options.max_in_gbs is None:
        return False
    return options.min_in_gbs <= memory_gb <= options.max_in_gbs


def _require[T](shape: RawShape, value: T | None, field: str) -> T:
    if value is None:
        raise MalformedShapeError(shape.name, field)
    return value


def max_vnics_for(shape: RawShape, ocpus: int) -> int:
    """VNIC attachment limit for a flexible shape sized at ``ocpus``."""
    opts = shape.max_vnic_attachment_options
    if opts is None or opts.default_per_ocpu is None:
        return int(_require(shape, shape.max_vnic_attachments, "max_vnic_attachments"))
    if ocpus == 1:
        vnics = SINGLE_OCPU_MAX_VNICS
    else:
        vnics = int(opts.default_per_ocpu) * ocpus
    return min(MAX_VNICS_CAP, vnics)


def max_bandwidth_for(shape: RawShape, ocpus: int) -> int:
    """Network bandwidth (Gbps) for a flexible shape sized at ``ocpus``."""
    opts = shape.networking_bandwidth_options
    if opts is None or opts.default_per_ocpu_in_gbps is None:
        return int(
            _require(shape, shape.networking_bandwidth_in_gbps, "networking_bandwidth_in_gbps")
        )
    lower = int(_require(shape, opts.min_in_gbps, "networking_bandwidth_options.min_in_gbps"))
    upper = int(_require(shape, opts.max_in_gbps, "networking_bandwidth_options.max_in_gbps"))
    bandwidth = int(opts.default_per_ocpu_in_gbps) * ocpus
    return max(lower, min(upper, bandwidth))


# =============================================================================
# Expander
# =============================================================================


class ShapeExpander:
    """Turns one raw shape into the catalog entries it can be launched as."""

    def __init__(self, ocpu_candidates: Iterable[str], ratio_candidates: Iterable[str]) -> None:
        self.ocpus = parse_candidates(ocpu_candidates)
        self.ratios = parse_candidates(ratio_candidates)
        if self.skipped:
            log.warning(f"Ignoring non-numeric flexible shape candidates: {list(self.skipped)}")

    @classmethod
    def from_options(cls, options: CatalogOptions) -> ShapeExpander:
        return cls(options.flex_cpu_constrain_list, options.flex_cpu_mem_ratios)

    @property
    def skipped(self) -> tuple[str, ...]:
        return self.ocpus.skipped + self.ratios.skipped

    def expand(self, shape: RawShape, zone: str) -> tuple[CatalogEntry, ...]:
        if shape.is_flexible:
            return tuple(self._expand_flexible(shape, zone))
        return (self._expand_fixed(shape, zone),)

    def _expand_fixed(self, shape: RawShape, zone: str) -> CatalogEntry:
        ocpus = int(_require(shape, shape.ocpus, "ocpus"))
        return CatalogEntry(
            name=shape.name,
            vcpu=ocpus * FIXED_VCPU_PER_OCPU,
            memory_gb=int(_require(shape, shape.memory_in_gbs, "memory_in_gbs")),
            max_vnics=int(_require(shape, shape.max_vnic_attachments, "max_vnic_attachments")),
            max_bandwidth_gbps=int(
                _require(shape, shape.networking_bandwidth_in_gbps, "networking_bandwidth_in_gbps")
            ),
            ocpus=ocpus,
            zones=(zone,),
            shape=shape,
        )

    def _expand_flexible(self, shape: RawShape, zone: str) -> Iterator[CatalogEntry]:
        ocpu_opts = _require(shape, shape.ocpu_options, "ocpu_options")
        mem_opts = _require(shape, shape.memory_options, "memory_options")
        _require(shape, ocpu_opts.min, "ocpu_options.min")
        _require(shape, ocpu_opts.max, "ocpu_options.max")
        _require(shape, mem_opts.min_in_gbs, "memory_options.min_in_gbs")
        _require(shape, mem_opts.max_in_gbs, "memory_options.max_in_gbs")

        factor = ratio_factor(shape.name)
        for ocpus, ratio in product(self.ocpus.values, self.ratios.values):
            memory_gb = ocpus * factor * ratio
            if not within_ocpu_bounds(ocpus, ocpu_opts):
                continue
            if not within_memory_bounds(memory_gb, mem_opts):
                continue
            yield CatalogEntry(
                name=shape.name,
                vcpu=ocpus * factor,
                memory_gb=memory_gb,
                max_vnics=max_vnics_for(shape, ocpus),
                max_bandwidth_gbps=max_bandwidth_for(shape, ocpus),
                ocpus=ocpus,
                zones=(zone,),
                shape=shape,
            )
