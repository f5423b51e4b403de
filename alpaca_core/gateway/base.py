"""
HTTP gateway abstraction.

HttpGateway ABC: get, post, patch, delete. The Orders resource talks to the API
only through this contract; RestGateway (requests) implements it for the real
service, tests substitute an in-memory fake.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

# Decoded JSON body: an object, an array, or a scalar wrapped in a one-element list.
JsonValue = Any


def normalize_payload(payload: Any) -> JsonValue:
    """Wrap a top-level scalar in a list; an empty body (None) becomes []."""
    if payload is None:
        return []
    if isinstance(payload, (dict, list)):
        return payload
    return [payload]


class HttpGateway(ABC):
    """
    Abstract transport. Implementations raise TransportError when a request
    cannot complete (network failure, error status, undecodable body).
    No retries are expected at this layer's callers.
    """

    @abstractmethod
    def get(self, path: str, params: Mapping[str, Any] | None = None) -> JsonValue:
        """GET path with query parameters; return the decoded body."""
        ...

    @abstractmethod
    def post(self, path: str, body: Mapping[str, Any] | None = None) -> JsonValue:
        """POST a JSON body; return the decoded response body."""
        ...

    @abstractmethod
    def patch(self, path: str, body: Mapping[str, Any] | None = None) -> JsonValue:
        """PATCH a JSON body; return the decoded response body."""
        ...

    @abstractmethod
    def delete(self, path: str) -> tuple[JsonValue, int]:
        """DELETE path; return the decoded body and the HTTP status code."""
        ...
