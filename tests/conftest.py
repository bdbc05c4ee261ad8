from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

from shapecat.config import CatalogOptions
from shapecat.fetcher import RequestContext, ShapePage
from shapecat.types import (
    BandwidthOptions,
    MemoryOptions,
    OcpuOptions,
    RawShape,
    VnicAttachmentOptions,
)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class FakeLister:
    """Serves pre-built pages per availability domain and records every call.

    ``pages`` maps a domain to the item lists returned page by page; tokens
    are "p1", "p2", ... ``errors`` maps a domain to an exception raised on
    its first call.
    """

    pages: dict[str, list[list[RawShape]]]
    errors: dict[str, Exception] = field(default_factory=dict)
    calls: list[tuple[str, str, str | None, int]] = field(default_factory=list)

    def list(
        self,
        availability_domain: str,
        compartment_id: str,
        page_token: str | None,
        page_size: int,
        ctx: RequestContext,
    ) -> ShapePage:
        self.calls.append((availability_domain, compartment_id, page_token, page_size))
        if availability_domain in self.errors:
            raise self.errors[availability_domain]
        pages = self.pages.get(availability_domain, [[]])
        index = 0 if page_token is None else int(page_token[1:])
        next_page = f"p{index + 1}" if index + 1 < len(pages) else None
        return ShapePage(items=pages[index], next_page=next_page)


def fixed_shape(
    name: str = "VM.Standard2.1",
    ocpus: float = 1,
    memory: float = 15,
    vnics: int = 2,
    bandwidth: float = 1,
) -> RawShape:
    return RawShape(
        name=name,
        is_flexible=False,
        ocpus=ocpus,
        memory_in_gbs=memory,
        max_vnic_attachments=vnics,
        networking_bandwidth_in_gbps=bandwidth,
    )


def flex_shape(
    name: str = "VM.Standard.E4.Flex",
    ocpu_range: tuple[float, float] = (1, 64),
    memory_range: tuple[float, float] = (1, 1024),
    vnics_per_ocpu: float | None = 1,
    max_vnics: int | None = None,
    bandwidth_per_ocpu: float | None = 1,
    bandwidth_range: tuple[float, float] = (1, 40),
    bandwidth: float | None = None,
) -> RawShape:
    return RawShape(
        name=name,
        is_flexible=True,
        max_vnic_attachments=max_vnics,
        networking_bandwidth_in_gbps=bandwidth,
        ocpu_options=OcpuOptions(min=ocpu_range[0], max=ocpu_range[1]),
        memory_options=MemoryOptions(min_in_gbs=memory_range[0], max_in_gbs=memory_range[1]),
        max_vnic_attachment_options=(
            VnicAttachmentOptions(default_per_ocpu=vnics_per_ocpu)
            if vnics_per_ocpu is not None
            else None
        ),
        networking_bandwidth_options=(
            BandwidthOptions(
                default_per_ocpu_in_gbps=bandwidth_per_ocpu,
                min_in_gbps=bandwidth_range[0],
                max_in_gbps=bandwidth_range[1],
            )
            if bandwidth_per_ocpu is not None
            else None
        ),
    )


def make_options(
    domains: Sequence[str] = ("Uocm:PHX-AD-1", "Uocm:PHX-AD-2"),
    **overrides,
) -> CatalogOptions:
    return CatalogOptions(
        compartment_id="ocid1.compartment.oc1..test",
        availability_domains=tuple(domains),
        **overrides,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def options() -> CatalogOptions:
    return make_options()
