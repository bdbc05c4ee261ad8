"""Paginated shape discovery across availability domains."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Protocol

from loguru import logger

from shapecat.exceptions import FetchCancelledError, FetchDeadlineExceeded

if TYPE_CHECKING:
    from shapecat.config import CatalogOptions
    from shapecat.expander import ShapeExpander
    from shapecat.types import CatalogEntry, RawShape

DEFAULT_PAGE_SIZE: Final[int] = 50

# Cursor sent with the first request of a listing
FIRST_PAGE: Final[None] = None

log = logger.bind(component="fetcher")


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Deadline and cancellation carried through a catalog fetch.

    Attributes:
        deadline: Absolute time on ``clock`` after which the fetch is abandoned.
        cancelled: Event that aborts the fetch once set.
        clock: Monotonic time source the deadline is measured on.
    """

    deadline: float | None = None
    cancelled: threading.Event | None = None
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    @classmethod
    def with_timeout(
        cls,
        seconds: float,
        cancelled: threading.Event | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> RequestContext:
        return cls(deadline=clock() + seconds, cancelled=cancelled, clock=clock)

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self.clock())

    def check(self, zone: str) -> None:
        if self.cancelled is not None and self.cancelled.is_set():
            raise FetchCancelledError(zone)
        if self.deadline is not None and self.clock() >= self.deadline:
            raise FetchDeadlineExceeded(zone)


BACKGROUND: Final[RequestContext] = RequestContext()


@dataclass(frozen=True, slots=True)
class ShapePage:
    items: Sequence[RawShape]
    next_page: str | None = None


class ShapeLister(Protocol):
    """Client for the upstream shape listing API.

    Callers keep requesting pages until ``next_page`` comes back empty.
    """

    def list(
        self,
        availability_domain: str,
        compartment_id: str,
        page_token: str | None,
        page_size: int,
        ctx: RequestContext,
    ) -> ShapePage: ...


def zone_name(availability_domain: str) -> str:
    """Zone label for a fully-qualified domain ("Uocm:PHX-AD-1" -> "PHX-AD-1")."""
    _, sep, name = availability_domain.partition(":")
    return name if sep else availability_domain


class CatalogFetcher:
    """Lists and expands shapes for every configured availability domain."""

    def __init__(
        self,
        lister: ShapeLister,
        expander: ShapeExpander,
        compartment_id: str,
        availability_domains: Sequence[str],
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.lister = lister
        self.expander = expander
        self.compartment_id = compartment_id
        self.availability_domains = tuple(availability_domains)
        self.page_size = page_size

    @classmethod
    def from_options(
        cls, lister: ShapeLister, expander: ShapeExpander, options: CatalogOptions
    ) -> CatalogFetcher:
        return cls(
            lister,
            expander,
            compartment_id=options.compartment_id,
            availability_domains=options.availability_domains,
            page_size=options.page_size,
        )

    def fetch_zone(
        self, availability_domain: str, ctx: RequestContext = BACKGROUND
    ) -> tuple[RawShape, ...]:
        """Collect every shape listed for one availability domain.

        Raises:
            FetchCancelledError: If ``ctx`` is cancelled or past its deadline.
        """
        shapes: list[RawShape] = []
        page_token: str | None = FIRST_PAGE
        pages = 0
        while True:
            ctx.check(availability_domain)
            page = self.lister.list(
                availability_domain,
                self.compartment_id,
                page_token,
                self.page_size,
                ctx,
            )
            pages += 1
            shapes.extend(page.items)
            if not page.next_page:
                break
            page_token = page.next_page

        log.bind(zone=availability_domain).debug(f"Listed {len(shapes)} shapes in {pages} page(s)")
        return tuple(shapes)

    def fetch_all(self, ctx: RequestContext = BACKGROUND) -> dict[str, list[CatalogEntry]]:
        """Expanded entries per zone name for all configured domains.

        The first failing listing call aborts the whole fetch.
        """
        per_zone: dict[str, list[CatalogEntry]] = {}
        for availability_domain in self.availability_domains:
            shapes = self.fetch_zone(availability_domain, ctx)
            zone = zone_name(availability_domain)
            entries = per_zone.setdefault(zone, [])
            for shape in shapes:
                entries.extend(self.expander.expand(shape, zone))
        return per_zone
