"""
Client: single entry point holding the gateway and handing out resources.
"""

from __future__ import annotations

from typing import Any

import requests

from alpaca_core.gateway.base import HttpGateway
from alpaca_core.gateway.rest import RestGateway
from alpaca_core.orders import Orders


class Client:
    """Binds resources to one HttpGateway."""

    def __init__(self, gateway: HttpGateway) -> None:
        self.gateway = gateway

    @classmethod
    def from_env(cls, *, session: requests.Session | None = None, **overrides: Any) -> Client:
        """
        Client over a RestGateway configured from APCA_* environment variables.
        overrides go to RestSettings; session is handed to the gateway.
        """
        return cls(RestGateway.from_env(session=session, **overrides))

    def orders(self) -> Orders:
        return Orders(self.gateway)
