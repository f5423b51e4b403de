"""
RestGateway: HttpGateway over requests.

Paper-first: paper=True by default. With paper=False, mutating requests
(POST/PATCH/DELETE) are refused unless ALPACA_LIVE_TRADING_ENABLED=true.
Every request failure surfaces as TransportError; nothing is retried here.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import requests

from alpaca_core.exceptions import TransportError
from alpaca_core.gateway.base import HttpGateway, JsonValue, normalize_payload

logger = logging.getLogger(__name__)

PAPER_URL = "https://paper-api.alpaca.markets"
LIVE_URL = "https://api.alpaca.markets"
API_VERSION = "v2"

# Environment variable that must be set to "true" to allow order changes against the live endpoint.
LIVE_TRADING_ENV = "ALPACA_LIVE_TRADING_ENABLED"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class RestSettings:
    """Connection settings for RestGateway."""

    api_key: str
    api_secret: str
    paper: bool = True
    base_url: str | None = None
    timeout: float = 10.0

    @classmethod
    def from_env(cls, **overrides: Any) -> RestSettings:
        """
        Read APCA_API_KEY_ID, APCA_API_SECRET_KEY, APCA_API_BASE_URL and
        APCA_PAPER. Keyword overrides win over the environment.
        """
        values: dict[str, Any] = {
            "api_key": os.environ.get("APCA_API_KEY_ID", ""),
            "api_secret": os.environ.get("APCA_API_SECRET_KEY", ""),
            "paper": _env_flag("APCA_PAPER", True),
            "base_url": os.environ.get("APCA_API_BASE_URL") or None,
        }
        values.update(overrides)
        return cls(**values)

    @property
    def endpoint(self) -> str:
        return self.base_url or (PAPER_URL if self.paper else LIVE_URL)


def build_url(endpoint: str, path: str) -> str:
    """Join endpoint and path, making sure the endpoint ends in /v2."""
    endpoint = endpoint.rstrip("/")
    if not endpoint.endswith(API_VERSION):
        endpoint = f"{endpoint}/{API_VERSION}"
    if not path.startswith("/"):
        path = "/" + path
    return endpoint + path


def _encode_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Render booleans the way the API expects them (true / false)."""
    out: dict[str, Any] = {}
    for key, value in (params or {}).items():
        if isinstance(value, bool):
            out[key] = "true" if value else "false"
        else:
            out[key] = value
    return out


class RestGateway(HttpGateway):
    """
    Gateway for the v2 trading REST API.

    - paper=True (default): paper endpoint, no real money.
    - paper=False: live endpoint; order changes require ALPACA_LIVE_TRADING_ENABLED=true.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        paper: bool = True,
        base_url: str | None = None,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = RestSettings(
            api_key=api_key,
            api_secret=api_secret,
            paper=paper,
            base_url=base_url,
            timeout=timeout,
        )
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "APCA-API-KEY-ID": api_key,
                "APCA-API-SECRET-KEY": api_secret,
            }
        )
        if paper:
            logger.info("RestGateway: PAPER mode is ACTIVE (%s).", self.settings.endpoint)
        elif not self._live_enabled():
            logger.warning(
                "RestGateway: live trading is disabled. Set %s=true to allow order changes.",
                LIVE_TRADING_ENV,
            )
        else:
            logger.warning("RestGateway: LIVE TRADING is ENABLED. Real money at risk.")

    @classmethod
    def from_settings(cls, settings: RestSettings, **kwargs: Any) -> RestGateway:
        return cls(
            settings.api_key,
            settings.api_secret,
            paper=settings.paper,
            base_url=settings.base_url,
            timeout=settings.timeout,
            **kwargs,
        )

    @classmethod
    def from_env(cls, *, session: requests.Session | None = None, **overrides: Any) -> RestGateway:
        """Gateway from RestSettings.from_env(**overrides), optionally on a given session."""
        return cls.from_settings(RestSettings.from_env(**overrides), session=session)

    def _live_enabled(self) -> bool:
        return os.environ.get(LIVE_TRADING_ENV, "").lower() == "true"

    def get(self, path: str, params: Mapping[str, Any] | None = None) -> JsonValue:
        payload, _ = self._request("GET", path, params=_encode_params(params))
        return payload

    def post(self, path: str, body: Mapping[str, Any] | None = None) -> JsonValue:
        payload, _ = self._request("POST", path, body=body)
        return payload

    def patch(self, path: str, body: Mapping[str, Any] | None = None) -> JsonValue:
        payload, _ = self._request("PATCH", path, body=body)
        return payload

    def delete(self, path: str) -> tuple[JsonValue, int]:
        return self._request("DELETE", path)

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> tuple[JsonValue, int]:
        if method != "GET" and not self.settings.paper and not self._live_enabled():
            raise TransportError(
                f"Live trading disabled. Set {LIVE_TRADING_ENV}=true to allow {method} {path}."
            )

        url = build_url(self.settings.endpoint, path)
        logger.debug("%s %s params=%s", method, url, params)
        try:
            r = self._session.request(
                method=method,
                url=url,
                params=params or None,
                json=dict(body) if body is not None else None,
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e!s}") from e

        if r.status_code >= 400:
            raise TransportError(
                f"{method} {path} returned HTTP {r.status_code}: {r.text[:200]}",
                status_code=r.status_code,
            )

        if not r.content:
            return normalize_payload(None), r.status_code
        try:
            payload = r.json()
        except ValueError as e:
            raise TransportError(
                f"{method} {path} returned a body that is not JSON", status_code=r.status_code
            ) from e
        return normalize_payload(payload), r.status_code
