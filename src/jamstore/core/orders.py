from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, Optional, Sequence, Tuple

from jamstore.core.cart import CartEngine, subtotal_of
from jamstore.core.notify import Notifier
from jamstore.db import crud
from jamstore.db.errors import DataServiceError
from jamstore.db.models import CartLine, GeoPoint, Identity, Order
from jamstore.utils.logger import get_logger

_logger = get_logger(__name__)

ORDER_STATUSES: Tuple[str, ...] = (
    "PENDING",
    "PROCESSING",
    "SHIPPED",
    "DELIVERED",
    "CANCELLED",
)
INITIAL_STATUS = "PENDING"
TERMINAL_STATUSES = frozenset({"DELIVERED", "CANCELLED"})


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def check_status(status: str) -> str:
    """
    Admins may move an order to any known status, in any direction.
    Only values outside ORDER_STATUSES are refused.
    """
    if status not in ORDER_STATUSES:
        raise ValueError(f"Unknown order status: {status!r}")
    return status


def new_order_id(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"ORD-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:6].upper()}"


def build_order(
    shipping_address: str,
    phone: str,
    cart_snapshot: Iterable[CartLine],
    identity: Identity,
    location: Optional[GeoPoint] = None,
    now: Optional[datetime] = None,
) -> Order:
    """Freeze a cart snapshot into a new PENDING order with a recomputed total."""
    now = now or datetime.now(timezone.utc)
    items = tuple(cart_snapshot)
    return Order(
        id=new_order_id(now),
        user_id=identity.id,
        user_name=identity.name,
        user_email=identity.email,
        user_phone=phone,
        items=items,
        total_amount=subtotal_of(items),
        status=INITIAL_STATUS,
        created_at=now,
        shipping_address=shipping_address,
        latitude=location.latitude if location else None,
        longitude=location.longitude if location else None,
    )


class OrderPipeline:
    """
    Turns the cart into a stored order.

    Either the order is written and the cart cleared, or the cart is left
    exactly as it was. Only one submission may run at a time.
    """

    def __init__(
        self,
        cart: CartEngine,
        notifier: Optional[Notifier] = None,
        submit: Callable[[Order], Awaitable[None]] = crud.create_order,
        on_placed: Optional[Callable[[Order], None]] = None,
    ) -> None:
        self.cart = cart
        self._notifier = notifier or Notifier()
        self._submit = submit
        self._on_placed = on_placed
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def place_order(
        self,
        shipping_address: str,
        phone: str,
        cart_snapshot: Sequence[CartLine],
        identity: Optional[Identity],
        location: Optional[GeoPoint] = None,
    ) -> Optional[Order]:
        """
        Returns the stored order, or None if nothing was placed. Failures are
        reported through the notifier, never raised.
        """
        if self._in_flight:
            self._notifier.warning("Your order is already being placed.")
            return None
        if identity is None:
            self._notifier.error("Please log in to place an order.")
            return None
        if not cart_snapshot:
            self._notifier.error("Your bag is empty.")
            return None

        order = build_order(shipping_address, phone, cart_snapshot, identity, location)
        self._in_flight = True
        try:
            await self._submit(order)
        except DataServiceError as e:
            _logger.error(f"Order {order.id} was not stored: {e}")
            self._notifier.error("Error placing order. Please try again.")
            return None
        except Exception:
            _logger.exception(f"Unexpected failure while storing order {order.id}")
            self._notifier.error("Error placing order. Please try again.")
            return None
        finally:
            self._in_flight = False

        _logger.info(
            f"Order {order.id} placed by {identity.id}: "
            f"{len(order.items)} lines, total {order.total_amount:.2f}"
        )
        # the order is stored from here on; local follow-ups must not undo that
        try:
            self.cart.clear()
        except Exception:
            _logger.exception(f"Clearing the cart after order {order.id} failed")
        if self._on_placed is not None:
            try:
                self._on_placed(order)
            except Exception:
                _logger.exception(f"Order {order.id} stored but local update failed")
        self._notifier.success("Order placed successfully!")
        return order
