"""
Order: a TypedRecord describing one order on the trading API.

Mutable and change-tracked. Built empty (a client_order_id is generated so the
order is addressable before the server assigns an id) or from a wire-format
mapping as returned by the API.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from enum import Enum
from typing import Any

from alpaca_core.record import Composite, FieldType, TypedRecord


class Side(Enum):
    BUY = "buy"
    SELL = "sell"


class OrderType(Enum):
    MARKET = "market"
    LIMIT = "limit"
    STOP = "stop"
    STOP_LIMIT = "stop_limit"


class TimeInForce(Enum):
    DAY = "day"
    GOOD_TIL_CANCELED = "gtc"
    OPENING = "opg"
    CLOSING = "cls"
    IMMEDIATE_OR_CANCEL = "ioc"
    FILL_OR_KILL = "fok"


class OrderClass(Enum):
    SIMPLE = "simple"
    BRACKET = "bracket"
    ONE_TRIGGERS_OTHER = "oto"
    ONE_CANCELS_OTHER = "oco"


class OrderStatus(Enum):
    NEW = "new"
    PARTIALLY_FILLED = "partially_filled"
    FILLED = "filled"
    DONE_FOR_DAY = "done_for_day"
    CANCELED = "canceled"
    EXPIRED = "expired"
    REPLACED = "replaced"
    PENDING_CANCEL = "pending_cancel"
    PENDING_REPLACE = "pending_replace"
    ACCEPTED = "accepted"  # accepted by the broker, not yet routed
    PENDING_NEW = "pending_new"
    ACCEPTED_FOR_BIDDING = "accepted_for_bidding"
    STOPPED = "stopped"
    REJECTED = "rejected"
    SUSPENDED = "suspended"
    CALCULATED = "calculated"

    @property
    def is_terminal(self) -> bool:
        """True once the order can no longer fill or change."""
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.FILLED,
        OrderStatus.CANCELED,
        OrderStatus.EXPIRED,
        OrderStatus.REPLACED,
        OrderStatus.REJECTED,
    }
)

TAKE_PROFIT = Composite(required=("limit_price",))
STOP_LOSS = Composite(required=("stop_price", "limit_price"))

# Wire name -> field name. Keys not listed here are ignored on load.
WIRE_FIELDS: dict[str, str] = {
    "id": "id",
    "client_order_id": "client_order_id",
    "created_at": "created_at",
    "updated_at": "updated_at",
    "submitted_at": "submitted_at",
    "filled_at": "filled_at",
    "expired_at": "expired_at",
    "canceled_at": "canceled_at",
    "failed_at": "failed_at",
    "replaced_at": "replaced_at",
    "replaced_by": "replaced_by",
    "replaces": "replaces",
    "asset_id": "asset_id",
    "symbol": "symbol",
    "qty": "quantity",
    "filled_qty": "filled_quantity",
    "type": "type",
    "side": "side",
    "time_in_force": "time_in_force",
    "limit_price": "limit_price",
    "stop_price": "stop_price",
    "filled_avg_price": "filled_avg_price",
    "status": "status",
    "extended_hours": "extended_hours",
    "order_class": "order_class",
    "take_profit": "take_profit",
    "stop_loss": "stop_loss",
}


def generate_client_order_id() -> str:
    """Random UUID4 in canonical 8-4-4-4-12 lowercase hex form."""
    return str(uuid.uuid4())


class Order(TypedRecord):
    """
    An order as exchanged with the API.

    Field names are snake_case; see WIRE_FIELDS for the wire translation.
    Child legs of bracket/OCO/OTO orders (present when the API is queried with
    nested=true) are kept in ``legs`` as Order instances.
    """

    FIELDS = {
        "id": FieldType.UUID,
        "client_order_id": FieldType.UUID,
        "asset_id": FieldType.UUID,
        "symbol": FieldType.STRING,
        "status": OrderStatus,
        "quantity": FieldType.INT,
        "filled_quantity": FieldType.INT,
        "time_in_force": TimeInForce,
        "side": Side,
        "type": OrderType,
        "limit_price": FieldType.FLOAT,
        "stop_price": FieldType.FLOAT,
        "filled_avg_price": FieldType.FLOAT,
        "order_class": OrderClass,
        "take_profit": TAKE_PROFIT,
        "stop_loss": STOP_LOSS,
        "created_at": FieldType.DATE,
        "updated_at": FieldType.DATE,
        "submitted_at": FieldType.DATE,
        "filled_at": FieldType.DATE,
        "expired_at": FieldType.DATE,
        "canceled_at": FieldType.DATE,
        "failed_at": FieldType.DATE,
        "replaced_at": FieldType.DATE,
        "replaced_by": FieldType.UUID,
        "replaces": FieldType.UUID,
        "extended_hours": FieldType.BOOL,
    }

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self.legs: list[Order] = []
        if data:
            self._load_wire(data, clear_changes=True)
        else:
            self.set("client_order_id", generate_client_order_id())

    def update(self, data: Mapping[str, Any]) -> Order:
        """
        Apply a server response without checkpointing: fields whose value
        differs from before show up in changes().
        """
        self._load_wire(data, clear_changes=False)
        return self

    def _load_wire(self, data: Mapping[str, Any], clear_changes: bool) -> None:
        fields = {WIRE_FIELDS[k]: v for k, v in data.items() if k in WIRE_FIELDS}
        self.load(fields, clear_changes=clear_changes)
        legs = data.get("legs")
        if isinstance(legs, list):
            self.legs = [Order(leg) for leg in legs if isinstance(leg, Mapping) and leg]

    @property
    def id(self) -> str | None:
        """Server-assigned order id; None until the order has been placed."""
        return self.get("id")

    @property
    def client_order_id(self) -> str | None:
        return self.get("client_order_id")

    @property
    def status(self) -> OrderStatus | None:
        return self.get("status")
