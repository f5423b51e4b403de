"""
Orders resource: list, fetch, place, amend and cancel orders through an HttpGateway.

Reads raise InvalidResponse when the transport fails. Mutations report failure
as False / None so callers can check the outcome without an error path.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from alpaca_core.collection import OrderCollection
from alpaca_core.exceptions import InvalidParameter, InvalidResponse, TransportError
from alpaca_core.gateway.base import HttpGateway, JsonValue
from alpaca_core.order import Order
from alpaca_core.timestamps import format_timestamp

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK = timedelta(days=7)
DEFAULT_LIMIT = 50
MAX_LIMIT = 500


class ListStatus(Enum):
    """Status filter for list_orders."""

    OPEN = "open"
    CLOSED = "closed"
    ALL = "all"


def _wire(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _as_str(value: Any) -> str | None:
    """Plain decimal string for the wire; floats never use exponent notation."""
    if value is None:
        return None
    if isinstance(value, float):
        return format(Decimal(repr(value)), "f")
    return str(value)


def _drop_none(body: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in body.items() if v is not None}


def prepare_order_for_post(order: Order) -> dict[str, Any]:
    """Request body for creating an order. Unset fields are left out."""
    return _drop_none(
        {
            "symbol": order.get("symbol"),
            "qty": _as_str(order.get("quantity")),
            "side": _wire(order.get("side")),
            "type": _wire(order.get("type")),
            "time_in_force": _wire(order.get("time_in_force")),
            "limit_price": _as_str(order.get("limit_price")),
            "stop_price": _as_str(order.get("stop_price")),
            "extended_hours": "true" if order.get("extended_hours") else "false",
            "client_order_id": order.get("client_order_id"),
            "order_class": _wire(order.get("order_class")),
            "take_profit": order.get("take_profit"),
            "stop_loss": order.get("stop_loss"),
        }
    )


def prepare_order_for_patch(order: Order) -> dict[str, Any]:
    """Request body for amending an order: only the replaceable fields."""
    return _drop_none(
        {
            "qty": _as_str(order.get("quantity")),
            "time_in_force": _wire(order.get("time_in_force")),
            "limit_price": _as_str(order.get("limit_price")),
            "stop_price": _as_str(order.get("stop_price")),
            "client_order_id": order.get("client_order_id"),
        }
    )


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _require_object(results: JsonValue, what: str) -> Mapping[str, Any]:
    if not isinstance(results, Mapping):
        raise InvalidResponse(f"Expected an order object for {what}, got {type(results).__name__}")
    return results


class Orders:
    """
    Order endpoint. One outbound call per method; nothing is retried.
    Not safe for concurrent use of the same Order instance.
    """

    path = "/orders"

    def __init__(self, gateway: HttpGateway) -> None:
        self.gateway = gateway

    def list_orders(
        self,
        after: datetime | None = None,
        until: datetime | None = None,
        status: ListStatus | str = ListStatus.ALL,
        limit: int = DEFAULT_LIMIT,
    ) -> OrderCollection:
        """
        Orders submitted between after and until, oldest first, child legs nested.

        after defaults to seven days ago; until defaults to now, and is also
        reset to now when it is not later than after. Naive datetimes are
        taken as UTC. Raises InvalidParameter for an unknown status or a limit
        outside 1..500, and InvalidResponse when the request fails.
        """
        try:
            status = ListStatus(status)
        except ValueError:
            options = ", ".join(s.value for s in ListStatus)
            raise InvalidParameter(
                f"Provided status {status!r} is not a recognized option. Options are: {options}"
            ) from None

        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0 or limit > MAX_LIMIT:
            raise InvalidParameter(
                f"Provided limit {limit!r} is not in the acceptable range of 1 to {MAX_LIMIT}"
            )

        now = datetime.now(timezone.utc)
        after = _aware(after) if after is not None else now - DEFAULT_LOOKBACK
        if until is None or _aware(until) <= after:
            until = now
        else:
            until = _aware(until)

        params = {
            "status": status.value,
            "limit": limit,
            "after": format_timestamp(after),
            "until": format_timestamp(until),
            "direction": "asc",
            "nested": True,
        }
        try:
            results = self.gateway.get(self.path, params)
        except TransportError as e:
            raise InvalidResponse(str(e)) from e

        if not isinstance(results, list):
            raise InvalidResponse(f"Expected a list of orders, got {type(results).__name__}")

        collection = OrderCollection()
        for row in results:
            order = Order(_require_object(row, "list_orders row"))
            if not collection.add(order):
                logger.warning(
                    "list_orders: skipped order %s (missing or duplicate client_order_id %s)",
                    order.id,
                    order.client_order_id,
                )
        return collection

    def get_order(self, order_id: str) -> Order | None:
        """Fetch one order by server id, with legs. None when the response is empty."""
        try:
            results = self.gateway.get(f"{self.path}/{order_id}", {"nested": True})
        except TransportError as e:
            raise InvalidResponse(str(e)) from e
        if not results:
            return None
        return Order(_require_object(results, f"order {order_id}"))

    def get_order_by_client_id(self, client_order_id: str) -> Order | None:
        """Fetch one order by client_order_id. None when the response is empty."""
        try:
            results = self.gateway.get(
                f"{self.path}:by_client_order_id",
                {"client_order_id": client_order_id},
            )
        except TransportError as e:
            raise InvalidResponse(str(e)) from e
        if not results:
            return None
        return Order(_require_object(results, f"client order {client_order_id}"))

    def place_order(self, order: Order) -> bool:
        """
        Submit a new order. On success the given order is updated in place
        from the response (server id, status, timestamps) and True is
        returned. On transport failure returns False and leaves order as is.
        """
        body = prepare_order_for_post(order)
        logger.info(
            "Submitting order: symbol=%s, side=%s, qty=%s, type=%s, client_order_id=%s",
            body.get("symbol"),
            body.get("side"),
            body.get("qty"),
            body.get("type"),
            body.get("client_order_id"),
        )
        try:
            results = self.gateway.post(self.path, body)
        except TransportError as e:
            logger.warning("Order submission failed: %s", e)
            return False

        if isinstance(results, Mapping) and results:
            order.update(results)
        elif results:
            logger.warning("Order submission returned an unexpected body: %r", results)
        return True

    def update_order(self, order: Order) -> Order | None:
        """
        Amend an order that has a server id. Returns a new Order built from
        the response; None when the order has no id, the request fails, or
        the response is empty. The given order is not modified.
        """
        order_id = order.id
        if not order_id:
            return None
        try:
            results = self.gateway.patch(f"{self.path}/{order_id}", prepare_order_for_patch(order))
        except TransportError as e:
            logger.warning("Order update failed for %s: %s", order_id, e)
            return None
        if not results or not isinstance(results, Mapping):
            return None
        return Order(results)

    def cancel_order(self, order: Order) -> bool:
        """Cancel an order that has a server id. True only on a 2xx response."""
        order_id = order.id
        if not order_id:
            return False
        try:
            _, status_code = self.gateway.delete(f"{self.path}/{order_id}")
        except TransportError as e:
            logger.warning("Order cancel failed for %s: %s", order_id, e)
            return False
        logger.info("Cancel order %s: HTTP %s", order_id, status_code)
        return 200 <= status_code < 300
