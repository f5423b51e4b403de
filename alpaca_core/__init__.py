"""
alpaca-core: typed order model and order-lifecycle client for the Alpaca v2 trading API.

No websocket streaming, rate limiting or persistence. Transport is pluggable via HttpGateway.
"""

__version__ = "0.1.0"

from alpaca_core.client import Client
from alpaca_core.collection import OrderCollection
from alpaca_core.exceptions import (
    AlpacaError,
    InvalidParameter,
    InvalidResponse,
    MalformedTimestamp,
    TransportError,
)
from alpaca_core.gateway import HttpGateway, RestGateway
from alpaca_core.order import Order, OrderClass, OrderStatus, OrderType, Side, TimeInForce
from alpaca_core.orders import ListStatus, Orders
from alpaca_core.record import Composite, FieldType, TypedRecord
from alpaca_core.timestamps import normalize_timestamp

__all__ = [
    "AlpacaError",
    "Client",
    "Composite",
    "FieldType",
    "HttpGateway",
    "InvalidParameter",
    "InvalidResponse",
    "ListStatus",
    "MalformedTimestamp",
    "Order",
    "OrderClass",
    "OrderCollection",
    "OrderStatus",
    "OrderType",
    "Orders",
    "RestGateway",
    "Side",
    "TimeInForce",
    "TransportError",
    "TypedRecord",
    "normalize_timestamp",
]
