# sopopped/client/storefront.py
"""
HTTP client for the storefront API, carrying the cart protocol that
runs around login:

    login -> wait until the session is visible -> load server cart
          -> merge with the local cart -> save merged -> overwrite local

Works on any `httpx.Client`, including FastAPI's TestClient.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from sopopped.client.cart_store import LocalCartStore
from sopopped.schemas.cart import CartLineItem
from sopopped.schemas.order import CheckoutResult, OrderRead
from sopopped.schemas.session import SessionInfo
from sopopped.services.cart_merge import merge_carts, union_carts

logger = logging.getLogger(__name__)

NETWORK_ERROR = "Network or server error"

# Session readiness poll after login
POLL_INTERVAL_SECONDS = 0.2
POLL_TIMEOUT_SECONDS = 2.0

# Re-merge attempts when another device saved in between
MAX_MERGE_ATTEMPTS = 3


class StorefrontClientError(Exception):
    """Transport failure or a response that is not the expected JSON."""

    def __init__(self, message: str = NETWORK_ERROR):
        super().__init__(message)
        self.message = message


class StorefrontAPIError(StorefrontClientError):
    """The API answered with {"success": false, ...}."""

    def __init__(self, status_code: int, message: str, errors: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors


class LoginOutcome:
    def __init__(
        self,
        user: dict[str, Any],
        redirect: str,
        message: str,
        merged: list[CartLineItem] | None = None,
        reload_required: bool = False,
    ):
        self.user = user
        self.redirect = redirect
        self.message = message
        self.merged = merged
        self.reload_required = reload_required


class StorefrontClient:
    """
    Storefront API client bound to a local cart store.

    The server cart version seen on the last load/save is sent back as
    `X-Cart-Version`, so a save that would overwrite another device's
    newer cart is rejected and re-merged instead.
    """

    def __init__(
        self,
        http: httpx.Client,
        store: LocalCartStore,
        api_prefix: str = "/api",
        poll_interval: float = POLL_INTERVAL_SECONDS,
        poll_timeout: float = POLL_TIMEOUT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.http = http
        self.store = store
        self.api_prefix = api_prefix.rstrip("/")
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self._sleep = sleep
        self._clock = clock
        self.cart_version: int | None = None
        self.merged = False

    # -------- Transport --------

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = {
            "Accept": "application/json",
            "X-Requested-With": "XMLHttpRequest",
        }
        headers.update(kwargs.pop("headers", None) or {})
        try:
            return self.http.request(method, f"{self.api_prefix}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise StorefrontClientError() from exc

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            raise StorefrontClientError()
        if not isinstance(data, dict):
            raise StorefrontClientError()
        if response.is_error or data.get("success") is False:
            raise StorefrontAPIError(
                response.status_code,
                data.get("error") or NETWORK_ERROR,
                data.get("errors"),
            )
        return data

    # -------- Session --------

    def session_info(self) -> SessionInfo:
        response = self._request("GET", "/session")
        if response.status_code == httpx.codes.UNAUTHORIZED:
            return SessionInfo(logged_in=False)
        return SessionInfo.model_validate(self._json(response))

    def wait_for_session(self) -> bool:
        """
        Poll the session endpoint until it reports logged in.

        Returns False once `poll_timeout` has elapsed.
        """
        start = self._clock()
        while self._clock() - start < self.poll_timeout:
            try:
                if self.session_info().logged_in:
                    return True
            except StorefrontClientError:
                logger.debug("Session check failed, retrying")
            self._sleep(self.poll_interval)
        return False

    def login(self, email: str, password: str) -> LoginOutcome:
        """
        Log in, then reconcile the local cart with the saved one.

        If the session never becomes visible the outcome asks for a full
        reload instead of failing; the local cart is left untouched and
        merges on the next sync.
        """
        data = self._json(self._request("POST", "/auth/login", json={"email": email, "password": password}))
        outcome = LoginOutcome(
            user=data.get("user") or {},
            redirect=data.get("redirect") or "/home",
            message=data.get("message") or "",
        )

        self.merged = False
        self.cart_version = None
        if not self.wait_for_session():
            outcome.reload_required = True
            return outcome

        try:
            outcome.merged = self.merge_cart_after_login()
        except StorefrontClientError as exc:
            # the local cart is intact, the next sync retries
            logger.warning("Cart merge after login failed: %s", exc.message)
        return outcome

    def logout(self) -> None:
        """End the session and forget the local cart."""
        self._json(self._request("POST", "/auth/logout"))
        self.store.clear()
        self.merged = False
        self.cart_version = None

    # -------- Cart --------

    def load_server_cart(self) -> list[CartLineItem]:
        data = self._json(self._request("GET", "/cart"))
        self.cart_version = data.get("version")
        return [CartLineItem.model_validate(item) for item in data.get("cart") or []]

    def save_server_cart(self, items: list[CartLineItem]) -> list[CartLineItem]:
        headers = {}
        if self.cart_version is not None:
            headers["X-Cart-Version"] = str(self.cart_version)
        data = self._json(
            self._request("POST", "/cart", json=[it.to_json() for it in items], headers=headers)
        )
        self.cart_version = data.get("version")
        return [CartLineItem.model_validate(item) for item in data.get("cart") or []]

    def _save_reconciled(
        self,
        combine: Callable[[list[CartLineItem]], list[CartLineItem]],
        pending: list[CartLineItem] | None = None,
    ) -> list[CartLineItem]:
        """
        Save `pending` (or `combine(server cart)` when None), then write
        the stored result locally. A 409 (someone saved in between)
        reloads the server cart and combines again.
        """
        for attempt in range(MAX_MERGE_ATTEMPTS):
            if pending is None:
                pending = combine(self.load_server_cart())
            try:
                saved = self.save_server_cart(pending)
            except StorefrontAPIError as exc:
                if exc.status_code == httpx.codes.CONFLICT and attempt + 1 < MAX_MERGE_ATTEMPTS:
                    pending = None
                    continue
                raise
            self.store.replace(saved)
            self.merged = True
            return saved
        raise StorefrontClientError()

    def merge_cart_after_login(self) -> list[CartLineItem]:
        """server + local -> merged (quantities summed), saved, then written locally."""
        local = self.store.get_all()
        return self._save_reconciled(lambda server: merge_carts(server, local))

    def sync_cart(self) -> list[CartLineItem] | None:
        """
        Page-load sync.

        Anonymous: nothing to do (returns None). A client that merged at
        login pushes its local cart as-is. Any other case, and any 409,
        takes the server cart plus local-only lines, never summing, so a
        reload on the same browser storage leaves quantities alone.
        """
        if not self.session_info().logged_in:
            return None
        local = self.store.get_all()
        return self._save_reconciled(
            lambda server: union_carts(server, local),
            pending=local if self.merged else None,
        )

    # -------- Orders --------

    def checkout(
        self,
        details: dict[str, Any],
        items: list[CartLineItem] | None = None,
    ) -> CheckoutResult:
        """
        Submit the local cart (or a subset of it) as an order.

        Purchased lines are dropped from the local cart; the server has
        already removed them from the saved cart.
        """
        lines = items if items is not None else self.store.get_all()
        payload = dict(details)
        payload["cart_items"] = [it.to_json() for it in lines]

        result = CheckoutResult.model_validate(
            self._json(self._request("POST", "/orders/checkout", json=payload))
        )
        self.store.remove_ids(result.purchased_ids)
        # the saved cart changed server-side
        self.cart_version = None
        return result

    def list_orders(self, limit: int | None = None) -> list[OrderRead]:
        params = {"limit": limit} if limit is not None else None
        data = self._json(self._request("GET", "/orders", params=params))
        return [OrderRead.model_validate(o) for o in data.get("orders") or []]
