# sopopped/client/cart_store.py
"""
Shopper-side cart kept in local storage.

The store works on any str -> str mapping. In the browser that is
localStorage; `JsonFileStorage` gives command-line and desktop clients
the same behaviour backed by a JSON file.

Reads never raise on bad data: a corrupt or foreign value under the cart
key reads back as an empty cart so the page (or client) keeps working.
"""

import json
import logging
import os
from collections.abc import Callable, Iterator, MutableMapping
from typing import Any

from pydantic import ValidationError

from sopopped.schemas.cart import LOCAL_CART_KEY, CartLineItem

logger = logging.getLogger(__name__)

CartListener = Callable[[int], None]


class StockExceeded(Exception):
    """Nothing could be added because of the known stock level."""


class JsonFileStorage(MutableMapping):
    """
    Minimal persistent str -> str mapping stored as one JSON object.

    Every write rewrites the file (via a temp file + rename).
    """

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> dict[str, str]:
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            logger.warning("Unreadable storage file %s, starting empty", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self, data: dict[str, str]) -> None:
        tmp = f"{self.path}.tmp"
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(data, fh)
        os.replace(tmp, self.path)

    def __getitem__(self, key: str) -> str:
        return self._read()[key]

    def __setitem__(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def __delitem__(self, key: str) -> None:
        data = self._read()
        del data[key]
        self._write(data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._read())

    def __len__(self) -> int:
        return len(self._read())


class LocalCartStore:
    """
    Durable local cart for a shopper, logged in or not.

    Every mutation persists the whole snapshot under `sopopped_cart_v1`
    and notifies listeners with the new number of lines (cart badge).
    """

    def __init__(
        self,
        storage: MutableMapping[str, str] | None = None,
        key: str = LOCAL_CART_KEY,
    ):
        self.storage: MutableMapping[str, str] = storage if storage is not None else {}
        self.key = key
        self._listeners: list[CartListener] = []

    # -------- Listeners --------

    def subscribe(self, listener: CartListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: CartListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # -------- Reads --------

    def get_all(self) -> list[CartLineItem]:
        """Current snapshot. Malformed storage reads as empty."""
        raw = self.storage.get(self.key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding malformed local cart")
            return []
        if not isinstance(data, list):
            return []
        try:
            return [CartLineItem.model_validate(item) for item in data]
        except ValidationError:
            logger.warning("Discarding local cart with invalid items")
            return []

    def count(self) -> int:
        return len(self.get_all())

    def find(self, product_id: int) -> CartLineItem | None:
        for item in self.get_all():
            if item.id == product_id:
                return item
        return None

    # -------- Mutations --------

    def add(self, item: CartLineItem | dict[str, Any], available: int | None = None) -> CartLineItem:
        """
        Add a product, or increase its quantity if already present.

        With a known `available` stock the resulting quantity is capped
        at it. Raises StockExceeded only when nothing could be added.
        """
        if not isinstance(item, CartLineItem):
            item = CartLineItem.model_validate(item)

        items = self.get_all()
        for i, existing in enumerate(items):
            if existing.id == item.id:
                new_qty = existing.quantity + item.quantity
                if available is not None:
                    new_qty = min(new_qty, available)
                if new_qty <= existing.quantity:
                    raise StockExceeded("Cannot add more items than available in stock.")
                items[i] = existing.model_copy(update={"quantity": new_qty})
                self._write(items)
                return items[i]

        initial = item.quantity
        if available is not None:
            initial = min(initial, available)
        if initial <= 0:
            raise StockExceeded("This product is out of stock.")
        added = item.model_copy(update={"quantity": initial})
        items.append(added)
        self._write(items)
        return added

    def remove(self, product_id: int) -> None:
        items = [it for it in self.get_all() if it.id != product_id]
        self._write(items)

    def set_quantity(self, product_id: int, qty: int, available: int | None = None) -> None:
        """Set a line's quantity, clamped to [1, available]. Unknown ids are ignored."""
        upper = available if available is not None and available >= 1 else None
        qty = max(1, qty)
        if upper is not None:
            qty = min(qty, upper)

        items = self.get_all()
        for i, existing in enumerate(items):
            if existing.id == product_id:
                items[i] = existing.model_copy(update={"quantity": qty})
                break
        self._write(items)

    def replace(self, items: list[CartLineItem]) -> None:
        """Overwrite the whole snapshot (after a server merge)."""
        self._write(list(items))

    def remove_ids(self, product_ids: list[int]) -> None:
        """Drop purchased lines after checkout."""
        drop = set(product_ids)
        self._write([it for it in self.get_all() if it.id not in drop])

    def clear(self) -> None:
        if self.key in self.storage:
            del self.storage[self.key]
        self._notify(0)

    # -------- Internals --------

    def _write(self, items: list[CartLineItem]) -> None:
        self.storage[self.key] = json.dumps([it.to_json() for it in items])
        self._notify(len(items))

    def _notify(self, count: int) -> None:
        for listener in list(self._listeners):
            listener(count)
