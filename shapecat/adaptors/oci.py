"""Oracle OCI shape listing adaptor.

Wraps ``oci.core.ComputeClient.list_shapes`` as a ShapeLister. The ``oci``
SDK is an optional dependency and is only imported when a client has to be
built from the local OCI config.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from shapecat.exceptions import MalformedShapeError
from shapecat.fetcher import RequestContext, ShapePage
from shapecat.types import (
    BandwidthOptions,
    MemoryOptions,
    OcpuOptions,
    RawShape,
    VnicAttachmentOptions,
)

if TYPE_CHECKING:
    from oci.core import ComputeClient

OCI_CONFIG_PATH = "~/.oci/config"
ENV_VAR_OCI_CONFIG = "OCI_CONFIG"


def get_config_file() -> str:
    return os.environ.get(ENV_VAR_OCI_CONFIG, OCI_CONFIG_PATH)


def get_core_client(region: str | None = None, profile: str = "DEFAULT") -> ComputeClient:
    try:
        import oci
    except ImportError as e:
        raise ImportError(
            "Failed to import dependencies for OCI. Try running: pip install \"shapecat[oci]\""
        ) from e

    config = oci.config.from_file(file_location=get_config_file(), profile_name=profile)
    if region is not None:
        config["region"] = region
    return oci.core.ComputeClient(config)


def _opt(obj: Any, name: str) -> Any:
    return getattr(obj, name, None) if obj is not None else None


def to_raw_shape(model: Any) -> RawShape:
    """Convert an ``oci.core.models.Shape`` into a RawShape.

    Raises:
        MalformedShapeError: If the model does not say whether it is flexible.
    """
    if model.is_flexible is None:
        raise MalformedShapeError(model.shape, "is_flexible")

    ocpu = model.ocpu_options
    memory = model.memory_options
    vnic = model.max_vnic_attachment_options
    bandwidth = model.networking_bandwidth_options

    return RawShape(
        name=model.shape,
        is_flexible=model.is_flexible,
        ocpus=model.ocpus,
        memory_in_gbs=model.memory_in_gbs,
        max_vnic_attachments=model.max_vnic_attachments,
        networking_bandwidth_in_gbps=model.networking_bandwidth_in_gbps,
        ocpu_options=OcpuOptions(min=_opt(ocpu, "min"), max=_opt(ocpu, "max")) if ocpu else None,
        # The SDK spells GB as "g_bs" on the options model
        memory_options=(
            MemoryOptions(
                min_in_gbs=_opt(memory, "min_in_g_bs"),
                max_in_gbs=_opt(memory, "max_in_g_bs"),
            )
            if memory
            else None
        ),
        max_vnic_attachment_options=(
            VnicAttachmentOptions(default_per_ocpu=_opt(vnic, "default_per_ocpu")) if vnic else None
        ),
        networking_bandwidth_options=(
            BandwidthOptions(
                default_per_ocpu_in_gbps=_opt(bandwidth, "default_per_ocpu_in_gbps"),
                min_in_gbps=_opt(bandwidth, "min_in_gbps"),
                max_in_gbps=_opt(bandwidth, "max_in_gbps"),
            )
            if bandwidth
            else None
        ),
    )


class OCIShapeLister:
    """ShapeLister backed by the OCI Compute API."""

    def __init__(self, client: Any) -> None:
        self.client = client

    @classmethod
    def from_config(cls, region: str | None = None, profile: str = "DEFAULT") -> OCIShapeLister:
        return cls(get_core_client(region, profile))

    @contextmanager
    def _read_timeout(self, seconds: float | None) -> Iterator[None]:
        """Bound the read timeout of the SDK client to ``seconds`` for one call."""
        base_client = getattr(self.client, "base_client", None)
        if seconds is None or base_client is None:
            yield
            return

        previous = base_client.timeout
        connect = previous[0] if isinstance(previous, tuple) else previous
        read = previous[1] if isinstance(previous, tuple) else previous
        base_client.timeout = (connect, min(read, seconds) if read else seconds)
        try:
            yield
        finally:
            base_client.timeout = previous

    def list(
        self,
        availability_domain: str,
        compartment_id: str,
        page_token: str | None,
        page_size: int,
        ctx: RequestContext,
    ) -> ShapePage:
        ctx.check(availability_domain)
        kwargs: dict[str, Any] = {"availability_domain": availability_domain, "limit": page_size}
        if page_token:
            kwargs["page"] = page_token
        with self._read_timeout(ctx.remaining()):
            response = self.client.list_shapes(compartment_id, **kwargs)
        return ShapePage(
            items=[to_raw_shape(m) for m in response.data],
            next_page=response.next_page,
        )
