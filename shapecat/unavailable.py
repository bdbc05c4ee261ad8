"""Short-lived memory of offerings that recently ran out of capacity.

When a launch fails with an out-of-capacity error, the (shape, zone,
capacity type) combination is marked unavailable for a while so offering
generation steers the scheduler elsewhere until the mark expires.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Final, Protocol

from loguru import logger

from shapecat.types import CapacityType

DEFAULT_UNAVAILABLE_TTL: Final[timedelta] = timedelta(minutes=3)

type OfferingKey = tuple[str, str, CapacityType]

log = logger.bind(component="unavailable")


class UnavailabilityTracker(Protocol):
    def is_unavailable(self, shape: str, zone: str, capacity_type: CapacityType) -> bool: ...


class UnavailableOfferings:
    """TTL set of offerings known to be out of capacity.

    ``seq_num`` increases on every mutation so callers can tell whether
    availability changed since they last looked.
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_UNAVAILABLE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._expires: dict[OfferingKey, float] = {}
        self.seq_num = 0

    def is_unavailable(self, shape: str, zone: str, capacity_type: CapacityType) -> bool:
        key = (shape, zone, capacity_type)
        with self._lock:
            expires = self._expires.get(key)
            if expires is None:
                return False
            if self._clock() >= expires:
                del self._expires[key]
                return False
            return True

    def mark_unavailable(
        self,
        shape: str,
        zone: str,
        capacity_type: CapacityType,
        reason: str = "insufficient capacity",
    ) -> None:
        log.bind(shape=shape, zone=zone, capacity_type=capacity_type).debug(
            f"Marking offering unavailable for {self.ttl}: {reason}"
        )
        with self._lock:
            self._expires[(shape, zone, capacity_type)] = self._clock() + self.ttl.total_seconds()
            self.seq_num += 1

    def delete(self, shape: str, zone: str, capacity_type: CapacityType) -> None:
        with self._lock:
            if self._expires.pop((shape, zone, capacity_type), None) is not None:
                self.seq_num += 1

    def flush(self) -> None:
        with self._lock:
            self._expires.clear()
            self.seq_num += 1
