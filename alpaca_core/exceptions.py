"""
Error taxonomy for the client core.

Validation errors are raised before any network call. Read operations surface
transport problems as InvalidResponse; mutating operations turn them into
False / None results instead of raising.
"""

from __future__ import annotations


class AlpacaError(Exception):
    """Base class for every error raised by alpaca_core."""


class InvalidParameter(AlpacaError, ValueError):
    """Caller supplied an out-of-range or unrecognized argument."""


class MalformedTimestamp(AlpacaError, ValueError):
    """A date-time string could not be normalized."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Provided timestamp does not conform to required format: {value!r}")
        self.value = value


class InvalidResponse(AlpacaError):
    """Upstream returned unusable data, or the transport failed during a read."""


class TransportError(AlpacaError):
    """Raised by HttpGateway implementations when a request cannot complete."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
