"""
OrderCollection: insertion-ordered index of orders keyed by client_order_id.

Transient; used to hold the result of a list query or a caller-built set.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum

import pandas as pd

from alpaca_core.order import Order


class OrderCollection:
    """
    Orders keyed by client_order_id, iterated in insertion order.

    Every ``for`` loop starts a fresh pass, so the collection can be iterated
    repeatedly. Adding orders while iterating is undefined behavior (the
    underlying dict iterator raises RuntimeError when its size changes).
    """

    def __init__(self, orders: Iterable[Order] = ()) -> None:
        self._orders: dict[str, Order] = {}
        for order in orders:
            self.add(order)

    def add(self, order: Order, replace: bool = False) -> bool:
        """
        Index an order. Returns False when it has no client_order_id, or when
        the id is already present and replace is False.
        """
        key = order.client_order_id
        if key is None:
            return False
        if key in self._orders and not replace:
            return False
        self._orders[key] = order
        return True

    def find(self, client_order_id: str) -> Order | None:
        return self._orders.get(client_order_id)

    def count(self) -> int:
        return len(self._orders)

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, client_order_id: object) -> bool:
        return client_order_id in self._orders

    def __iter__(self) -> Iterator[Order]:
        return iter(self._orders.values())

    def to_dataframe(self) -> pd.DataFrame:
        """
        One row per order, in insertion order, indexed by client_order_id.
        Enum values are rendered as their wire strings.
        """
        rows = []
        for order in self._orders.values():
            row = {k: (v.value if isinstance(v, Enum) else v) for k, v in order.to_dict().items()}
            rows.append(row)
        columns = list(Order.FIELDS)
        if not rows:
            return pd.DataFrame(columns=columns).set_index("client_order_id")
        df = pd.DataFrame(rows, columns=columns)
        return df.set_index("client_order_id")
