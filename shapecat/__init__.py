"""shapecat - compute shape catalog and offering generator.

Discovers every shape an OCI-style cloud offers across availability domains,
expands flexible shapes into concrete CPU/memory variants, merges variants
across zones and prices each (shape, zone, capacity type) offering.

Example:

    from shapecat import CatalogOptions, InstanceTypeProvider, RatePricing, ShapeRate
    from shapecat.adaptors.oci import OCIShapeLister

    options = CatalogOptions(
        compartment_id="ocid1.compartment.oc1..aaaa",
        availability_domains=("Uocm:PHX-AD-1", "Uocm:PHX-AD-2"),
    )
    provider = InstanceTypeProvider.from_options(
        options,
        lister=OCIShapeLister.from_config(),
        pricing=RatePricing({"VM.Standard": ShapeRate(0.03, 0.0015)}),
    )
    for entry, zones, offerings in provider.list_offerable_instance_types():
        ...
"""

from shapecat.cache import CatalogCache
from shapecat.config import CatalogOptions, load_config, resolve_settings
from shapecat.exceptions import (
    ConfigurationError,
    FetchCancelledError,
    FetchDeadlineExceeded,
    MalformedShapeError,
    PricingError,
    ShapecatError,
)
from shapecat.expander import ShapeExpander
from shapecat.fetcher import CatalogFetcher, RequestContext, ShapeLister, ShapePage
from shapecat.logging import LogConfig
from shapecat.merger import merge
from shapecat.metrics import CatalogMetrics
from shapecat.offerings import OfferingGenerator, supports_preemptible
from shapecat.pricing import PricingProvider, RatePricing, ShapeRate, StaticPricing
from shapecat.provider import InstanceTypeProvider
from shapecat.types import (
    CAPACITY_TYPES,
    ON_DEMAND,
    PREEMPTIBLE,
    CapacityType,
    Catalog,
    CatalogEntry,
    OfferableInstanceType,
    Offering,
    RawShape,
)
from shapecat.unavailable import UnavailableOfferings

__all__ = [
    "CAPACITY_TYPES",
    "ON_DEMAND",
    "PREEMPTIBLE",
    "CapacityType",
    "Catalog",
    "CatalogCache",
    "CatalogEntry",
    "CatalogFetcher",
    "CatalogMetrics",
    "CatalogOptions",
    "ConfigurationError",
    "FetchCancelledError",
    "FetchDeadlineExceeded",
    "InstanceTypeProvider",
    "LogConfig",
    "MalformedShapeError",
    "OfferableInstanceType",
    "Offering",
    "OfferingGenerator",
    "PricingError",
    "PricingProvider",
    "RatePricing",
    "RawShape",
    "RequestContext",
    "ShapeExpander",
    "ShapeLister",
    "ShapePage",
    "ShapeRate",
    "ShapecatError",
    "StaticPricing",
    "UnavailableOfferings",
    "load_config",
    "merge",
    "resolve_settings",
    "supports_preemptible",
]
