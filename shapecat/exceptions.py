"""Exception hierarchy for shapecat.

Every shapecat-specific exception inherits from ShapecatError, so callers
can catch them with a single except clause. Errors raised by the upstream
shape listing client are never wrapped and propagate as-is.
"""

from __future__ import annotations


class ShapecatError(Exception):
    """Base exception for all shapecat errors."""


class ConfigurationError(ShapecatError):
    """Raised for invalid configuration or missing required settings."""


class MalformedShapeError(ShapecatError):
    """Raised when an upstream shape lacks a field its kind requires."""

    def __init__(self, shape: str, field: str) -> None:
        self.shape = shape
        self.field = field
        super().__init__(f"Shape {shape!r} is missing required field {field!r}")


class FetchCancelledError(ShapecatError):
    """Raised when a catalog fetch is cancelled before completion."""

    def __init__(self, zone: str, reason: str = "cancelled") -> None:
        self.zone = zone
        self.reason = reason
        super().__init__(f"Shape listing for {zone} aborted: {reason}")


class FetchDeadlineExceeded(FetchCancelledError):
    """Raised when a catalog fetch runs past its deadline."""

    def __init__(self, zone: str) -> None:
        super().__init__(zone, "deadline exceeded")


class PricingError(ShapecatError):
    """Raised when no price can be determined for a shape."""

    def __init__(self, shape: str, reason: str = "no matching rate") -> None:
        self.shape = shape
        self.reason = reason
        super().__init__(f"Cannot price shape {shape!r}: {reason}")
