from __future__ import annotations

from dataclasses import asdict, replace
from typing import List, Optional, Tuple

from jamstore.core.notify import Notifier
from jamstore.db.models import CartLine, Product
from jamstore.utils.local_store import LocalStore
from jamstore.utils.logger import get_logger

_logger = get_logger(__name__)

CART_KEY = "jam_cart"


class CartEngine:
    """
    The shopper's cart: at most one line per (product_id, size).

    Every mutation is applied in memory first and then written through to
    the local store. A failed write is logged by the store and otherwise
    ignored, the in-memory cart stays authoritative.
    """

    def __init__(
        self, store: Optional[LocalStore] = None, notifier: Optional[Notifier] = None
    ) -> None:
        self._store = store
        self._notifier = notifier or Notifier()
        self._lines: List[CartLine] = []

    def load(self) -> Tuple[CartLine, ...]:
        """Read the persisted cart. Called once at startup."""
        self._lines = []
        if self._store is None:
            return self.snapshot()
        raw = self._store.get(CART_KEY, [])
        if not isinstance(raw, list):
            _logger.warning("Persisted cart is not a list, starting empty.")
            raw = []
        for entry in raw:
            try:
                line = CartLine.from_dict(entry)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                _logger.warning(f"Dropping malformed cart entry {entry!r}: {e}")
                continue
            if line.quantity < 1:
                continue
            idx = self._find(line.product_id, line.size)
            if idx is None:
                self._lines.append(line)
            else:
                merged = self._lines[idx].quantity + line.quantity
                self._lines[idx] = replace(self._lines[idx], quantity=merged)
        _logger.debug(f"Loaded cart with {len(self._lines)} lines")
        return self.snapshot()

    def _find(self, product_id: str, size: str) -> Optional[int]:
        for i, line in enumerate(self._lines):
            if line.product_id == product_id and line.size == size:
                return i
        return None

    def _persist(self) -> None:
        if self._store is None:
            return
        self._store.set(CART_KEY, [asdict(line) for line in self._lines])

    # ---------------------------
    # Mutations
    # ---------------------------

    def add_item(
        self, product: Product, size: str, quantity: int = 1
    ) -> Tuple[CartLine, ...]:
        """
        Add quantity of product in size. An existing line for the same
        (product, size) is incremented, never overwritten or duplicated.
        Name, price and image are copied from product now and kept as-is.
        """
        if quantity < 1:
            return self.snapshot()
        idx = self._find(product.id, size)
        if idx is not None:
            line = self._lines[idx]
            self._lines[idx] = replace(line, quantity=line.quantity + quantity)
            self._persist()
            self._notifier.success(f"Updated quantity of {product.name} in cart")
        else:
            self._lines.append(
                CartLine(
                    product_id=product.id,
                    product_name=product.name,
                    unit_price=product.price,
                    quantity=quantity,
                    image=product.image,
                    size=size,
                )
            )
            self._persist()
            self._notifier.success(f"{product.name} ({size}) added to bag")
        return self.snapshot()

    def update_quantity(
        self, product_id: str, size: str, new_quantity: int
    ) -> Tuple[CartLine, ...]:
        """Set a line's quantity. Values below 1 are ignored; use remove_item."""
        if new_quantity < 1:
            return self.snapshot()
        idx = self._find(product_id, size)
        if idx is None:
            return self.snapshot()
        if self._lines[idx].quantity != new_quantity:
            self._lines[idx] = replace(self._lines[idx], quantity=new_quantity)
            self._persist()
        return self.snapshot()

    def remove_item(self, product_id: str, size: str) -> Tuple[CartLine, ...]:
        idx = self._find(product_id, size)
        if idx is None:
            return self.snapshot()
        del self._lines[idx]
        self._persist()
        self._notifier.success("Item removed from bag")
        return self.snapshot()

    def clear(self) -> Tuple[CartLine, ...]:
        self._lines = []
        self._persist()
        return self.snapshot()

    # ---------------------------
    # Reads
    # ---------------------------

    def snapshot(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    def get_line(self, product_id: str, size: str) -> Optional[CartLine]:
        idx = self._find(product_id, size)
        return self._lines[idx] if idx is not None else None

    def is_empty(self) -> bool:
        return not self._lines

    def total_quantity(self) -> int:
        return sum(line.quantity for line in self._lines)

    def subtotal(self) -> float:
        return subtotal_of(self._lines)


def subtotal_of(lines) -> float:
    return sum(line.unit_price * line.quantity for line in lines)
