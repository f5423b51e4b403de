"""
Tests for the Orders resource and Client: parameter validation, request shapes,
response handling and failure sentinels, using an in-memory gateway.
"""

from datetime import datetime, timedelta, timezone

import pytest

from alpaca_core import Client
from alpaca_core.exceptions import InvalidParameter, InvalidResponse, TransportError
from alpaca_core.gateway.base import HttpGateway
from alpaca_core.order import Order, OrderClass, OrderStatus, OrderType, Side, TimeInForce
from alpaca_core.orders import (
    ListStatus,
    Orders,
    prepare_order_for_patch,
    prepare_order_for_post,
)

ORDER_ID = "61e69015-8549-4bfd-b9c3-01e75843f47d"
OTHER_ID = "904837e3-3b76-47ec-b432-046db621571b"


class FakeGateway(HttpGateway):
    """Records calls; returns canned responses or raises a configured error."""

    def __init__(self, response=None, error=None, status_code=200):
        self.response = response
        self.error = error
        self.status_code = status_code
        self.calls = []

    def _reply(self, method, path, payload):
        self.calls.append((method, path, payload))
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, path, params=None):
        return self._reply("GET", path, params)

    def post(self, path, body=None):
        return self._reply("POST", path, body)

    def patch(self, path, body=None):
        return self._reply("PATCH", path, body)

    def delete(self, path):
        return self._reply("DELETE", path, None), self.status_code


def _market_order() -> Order:
    order = Order()
    order.set("symbol", "AAPL")
    order.set("side", Side.BUY)
    order.set("quantity", 10)
    order.set("type", OrderType.MARKET)
    order.set("time_in_force", TimeInForce.DAY)
    return order


def _row(client_order_id, symbol="AAPL", order_id=ORDER_ID, **extra):
    row = {
        "id": order_id,
        "client_order_id": client_order_id,
        "symbol": symbol,
        "qty": "1",
        "side": "buy",
        "type": "market",
        "time_in_force": "day",
        "status": "new",
    }
    row.update(extra)
    return row


# --- list_orders: validation ---


def test_list_orders_bad_status_raises_before_request():
    gw = FakeGateway(response=[])
    with pytest.raises(InvalidParameter):
        Orders(gw).list_orders(status="bogus")
    assert gw.calls == []


@pytest.mark.parametrize("limit", [0, -1, 501, True])
def test_list_orders_bad_limit_raises_before_request(limit):
    gw = FakeGateway(response=[])
    with pytest.raises(InvalidParameter):
        Orders(gw).list_orders(limit=limit)
    assert gw.calls == []


def test_list_orders_accepts_limit_bounds():
    gw = FakeGateway(response=[])
    Orders(gw).list_orders(limit=1)
    Orders(gw).list_orders(limit=500)
    assert [c[2]["limit"] for c in gw.calls] == [1, 500]


# --- list_orders: request ---


def test_list_orders_default_query():
    gw = FakeGateway(response=[])
    before = datetime.now(timezone.utc)
    Orders(gw).list_orders()
    method, path, params = gw.calls[0]
    assert (method, path) == ("GET", "/orders")
    assert params["status"] == "all"
    assert params["limit"] == 50
    assert params["direction"] == "asc"
    assert params["nested"] is True
    after = datetime.fromisoformat(params["after"])
    until = datetime.fromisoformat(params["until"])
    assert abs((before - timedelta(days=7)) - after) < timedelta(seconds=5)
    assert abs(before - until) < timedelta(seconds=5)


def test_list_orders_explicit_range_and_status():
    gw = FakeGateway(response=[])
    start = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)
    end = datetime(2024, 1, 5, 16, 0, tzinfo=timezone.utc)
    Orders(gw).list_orders(after=start, until=end, status=ListStatus.OPEN, limit=100)
    params = gw.calls[0][2]
    assert params["after"] == "2024-01-01T09:30:00+00:00"
    assert params["until"] == "2024-01-05T16:00:00+00:00"
    assert params["status"] == "open"
    assert params["limit"] == 100


def test_list_orders_until_not_after_from_resets_to_now():
    gw = FakeGateway(response=[])
    start = datetime(2024, 1, 5, tzinfo=timezone.utc)
    Orders(gw).list_orders(after=start, until=start - timedelta(days=1), status="closed")
    until = datetime.fromisoformat(gw.calls[0][2]["until"])
    assert until > start
    assert gw.calls[0][2]["status"] == "closed"


# --- list_orders: response ---


def test_list_orders_builds_collection_in_response_order():
    ids = [
        "00000000-0000-4000-8000-00000000000c",
        "00000000-0000-4000-8000-00000000000a",
        "00000000-0000-4000-8000-00000000000b",
    ]
    gw = FakeGateway(response=[_row(cid, symbol=s) for cid, s in zip(ids, ["C", "A", "B"])])
    coll = Orders(gw).list_orders()
    assert coll.count() == 3
    assert [o.client_order_id for o in coll] == ids
    assert coll.find(ids[1]).get("symbol") == "A"
    assert all(o.changes() == {} for o in coll)


def test_list_orders_transport_error_becomes_invalid_response():
    gw = FakeGateway(error=TransportError("boom", status_code=500))
    with pytest.raises(InvalidResponse) as exc:
        Orders(gw).list_orders()
    assert isinstance(exc.value.__cause__, TransportError)


def test_list_orders_non_list_response_raises():
    gw = FakeGateway(response={"message": "weird"})
    with pytest.raises(InvalidResponse):
        Orders(gw).list_orders()


def test_list_orders_scalar_row_raises():
    gw = FakeGateway(response=["oops"])
    with pytest.raises(InvalidResponse):
        Orders(gw).list_orders()


# --- get_order / get_order_by_client_id ---


def test_get_order_requests_nested_legs():
    gw = FakeGateway(response=_row("00000000-0000-4000-8000-000000000001"))
    order = Orders(gw).get_order(ORDER_ID)
    assert gw.calls == [("GET", f"/orders/{ORDER_ID}", {"nested": True})]
    assert order.id == ORDER_ID
    assert order.status is OrderStatus.NEW


def test_get_order_empty_response_is_none():
    assert Orders(FakeGateway(response={})).get_order(ORDER_ID) is None
    assert Orders(FakeGateway(response=[])).get_order(ORDER_ID) is None


def test_get_order_transport_error_raises():
    with pytest.raises(InvalidResponse):
        Orders(FakeGateway(error=TransportError("timeout"))).get_order(ORDER_ID)


def test_get_order_by_client_id_path():
    cid = "00000000-0000-4000-8000-000000000001"
    gw = FakeGateway(response=_row(cid))
    order = Orders(gw).get_order_by_client_id(cid)
    assert gw.calls == [("GET", "/orders:by_client_order_id", {"client_order_id": cid})]
    assert order.client_order_id == cid


def test_get_order_by_client_id_empty_and_error():
    assert Orders(FakeGateway(response=[])).get_order_by_client_id("x") is None
    with pytest.raises(InvalidResponse):
        Orders(FakeGateway(error=TransportError("down"))).get_order_by_client_id("x")


# --- request bodies ---


def test_prepare_for_post_omits_unset_fields():
    order = _market_order()
    body = prepare_order_for_post(order)
    assert body == {
        "symbol": "AAPL",
        "qty": "10",
        "side": "buy",
        "type": "market",
        "time_in_force": "day",
        "extended_hours": "false",
        "client_order_id": order.client_order_id,
    }
    for key in ("limit_price", "stop_price", "take_profit", "stop_loss", "order_class"):
        assert key not in body


def test_prepare_for_post_bracket():
    order = _market_order()
    order.set("type", "limit")
    order.set("limit_price", 150.5)
    order.set("extended_hours", True)
    order.set("order_class", OrderClass.BRACKET)
    order.set("take_profit", {"limit_price": 160})
    order.set("stop_loss", {"stop_price": 140, "limit_price": 139.5})
    body = prepare_order_for_post(order)
    assert body["limit_price"] == "150.5"
    assert body["extended_hours"] == "true"
    assert body["order_class"] == "bracket"
    assert body["take_profit"] == {"limit_price": 160.0}
    assert body["stop_loss"] == {"stop_price": 140.0, "limit_price": 139.5}


def test_prepare_prices_use_plain_decimal_strings():
    order = _market_order()
    order.set("type", OrderType.LIMIT)
    order.set("limit_price", 0.00001)
    order.set("stop_price", 1e16)
    body = prepare_order_for_post(order)
    assert body["limit_price"] == "0.00001"
    assert body["stop_price"] == "10000000000000000"
    assert prepare_order_for_patch(order)["limit_price"] == "0.00001"


def test_prepare_for_patch_only_amendable_fields():
    order = _market_order()
    order.set("stop_price", 99)
    body = prepare_order_for_patch(order)
    assert body == {
        "qty": "10",
        "time_in_force": "day",
        "stop_price": "99.0",
        "client_order_id": order.client_order_id,
    }


# --- place_order ---


def test_place_order_hydrates_in_place():
    order = _market_order()
    echo = _row(order.client_order_id, status="accepted", created_at="2024-01-02T14:30:00.123456Z")
    gw = FakeGateway(response=echo)
    assert Orders(gw).place_order(order) is True
    assert gw.calls[0][0:2] == ("POST", "/orders")
    assert order.id == ORDER_ID
    assert order.status is OrderStatus.ACCEPTED
    assert order.get("created_at") == datetime(2024, 1, 2, 14, 30, tzinfo=timezone.utc)


def test_place_order_failure_leaves_order_untouched():
    order = _market_order()
    before = order.to_dict()
    gw = FakeGateway(error=TransportError("rejected", status_code=403))
    assert Orders(gw).place_order(order) is False
    assert order.to_dict() == before
    assert order.id is None


def test_place_order_empty_response_is_success():
    order = _market_order()
    assert Orders(FakeGateway(response=[])).place_order(order) is True
    assert order.id is None


# --- update_order ---


def test_update_order_requires_server_id():
    gw = FakeGateway(response=_row("x"))
    assert Orders(gw).update_order(_market_order()) is None
    assert gw.calls == []


def test_update_order_returns_new_order():
    order = Order(_row("00000000-0000-4000-8000-000000000001"))
    order.set("quantity", 5)
    replacement = _row(
        "00000000-0000-4000-8000-000000000001",
        order_id=OTHER_ID,
        qty="5",
        replaces=ORDER_ID,
    )
    gw = FakeGateway(response=replacement)
    result = Orders(gw).update_order(order)
    assert gw.calls[0][0:2] == ("PATCH", f"/orders/{ORDER_ID}")
    assert gw.calls[0][2]["qty"] == "5"
    assert result is not order
    assert result.id == OTHER_ID
    assert result.get("replaces") == ORDER_ID
    assert order.id == ORDER_ID


def test_update_order_failure_and_empty_are_none():
    order = Order(_row("00000000-0000-4000-8000-000000000001"))
    assert Orders(FakeGateway(error=TransportError("422"))).update_order(order) is None
    assert Orders(FakeGateway(response={})).update_order(order) is None


# --- cancel_order ---


def test_cancel_order_requires_server_id():
    gw = FakeGateway()
    assert Orders(gw).cancel_order(_market_order()) is False
    assert gw.calls == []


@pytest.mark.parametrize("status_code, expected", [(200, True), (204, True), (207, True), (404, False)])
def test_cancel_order_status_codes(status_code, expected):
    order = Order(_row("00000000-0000-4000-8000-000000000001"))
    gw = FakeGateway(response=[], status_code=status_code)
    assert Orders(gw).cancel_order(order) is expected
    assert gw.calls == [("DELETE", f"/orders/{ORDER_ID}", None)]


def test_cancel_order_transport_error_is_false():
    order = Order(_row("00000000-0000-4000-8000-000000000001"))
    assert Orders(FakeGateway(error=TransportError("gone"))).cancel_order(order) is False


# --- Client ---


def test_client_orders_bound_to_gateway():
    gw = FakeGateway(response=[])
    orders = Client(gw).orders()
    assert isinstance(orders, Orders)
    assert orders.gateway is gw


def test_client_from_env_passes_session_to_gateway(monkeypatch):
    monkeypatch.setenv("APCA_API_KEY_ID", "k")
    monkeypatch.setenv("APCA_API_SECRET_KEY", "s")

    class Session:
        def __init__(self):
            self.headers = {}

    session = Session()
    client = Client.from_env(session=session, base_url="http://localhost:9000")
    assert client.gateway._session is session
    assert client.gateway.settings.endpoint == "http://localhost:9000"
    assert session.headers["APCA-API-KEY-ID"] == "k"
