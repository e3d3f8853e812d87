"""
Shiprocket carrier client.

Logs in with account credentials and caches the bearer token for the whole
process (tokens are valid for ten days). All calls are blocking ``requests``
calls; route handlers run them in a threadpool.
"""

import logging
import threading
import time
from functools import lru_cache
from typing import Iterable, Optional

import requests

from ..config import settings
from ..envelope import UpstreamError

logger = logging.getLogger(__name__)


class ShiprocketClient:
    def __init__(
        self,
        base_url: str,
        email: str,
        password: str,
        token_ttl_seconds: float,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self.token_ttl_seconds = token_ttl_seconds
        self.timeout = timeout
        self.http = session or requests.Session()
        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._lock = threading.Lock()

    def get_token(self) -> str:
        with self._lock:
            if self._token and time.time() < self._token_expires_at:
                return self._token

            url = f"{self.base_url}/v1/external/auth/login"
            try:
                resp = self.http.post(
                    url, json={"email": self.email, "password": self.password}, timeout=self.timeout
                )
                resp.raise_for_status()
                token = resp.json().get("token")
            except (requests.RequestException, ValueError) as exc:
                raise UpstreamError("shiprocket", f"login failed: {exc}") from exc
            if not token:
                raise UpstreamError("shiprocket", "login response carried no token")

            self._token = token
            self._token_expires_at = time.time() + self.token_ttl_seconds
            logger.info("Obtained a new Shiprocket token")
            return token

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        headers = {"Authorization": f"Bearer {self.get_token()}"}
        url = f"{self.base_url}{path}"
        try:
            resp = self.http.request(method, url, json=payload, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise UpstreamError("shiprocket", f"{method} {path} failed: {exc}") from exc

    def create_order(self, payload: dict) -> dict:
        data = self._request("POST", "/v1/external/orders/create/adhoc", payload)
        if not data.get("order_id"):
            raise UpstreamError("shiprocket", f"order create returned no order_id: {data}")
        return data

    def get_order(self, order_id: int) -> dict:
        return self._request("GET", f"/v1/external/orders/show/{order_id}")

    def cancel_orders(self, order_ids: Iterable[int]) -> dict:
        return self._request("POST", "/v1/external/orders/cancel", {"ids": list(order_ids)})


@lru_cache
def get_carrier() -> ShiprocketClient:
    return ShiprocketClient(
        settings.SHIPROCKET_API_URL,
        settings.SHIPROCKET_EMAIL,
        settings.SHIPROCKET_PASSWORD,
        token_ttl_seconds=settings.SHIPROCKET_TOKEN_TTL_DAYS * 24 * 60 * 60,
        timeout=settings.HTTP_TIMEOUT,
    )
