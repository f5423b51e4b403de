"""
Transport layer: HttpGateway contract and the requests-based RestGateway.
"""

from alpaca_core.gateway.base import HttpGateway, JsonValue, normalize_payload
from alpaca_core.gateway.rest import RestGateway, RestSettings

__all__ = [
    "HttpGateway",
    "JsonValue",
    "RestGateway",
    "RestSettings",
    "normalize_payload",
]
