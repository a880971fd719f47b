from __future__ import annotations

import os
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import jamstore.db.crud as crud
from jamstore.core.cart import CartEngine
from jamstore.core.notify import Notifier
from jamstore.core.orders import OrderPipeline, check_status
from jamstore.core.session import SessionManager
from jamstore.db.auth import AuthProvider
from jamstore.db.errors import AuthError, DataServiceError
from jamstore.db.models import (
    CartLine,
    GeoPoint,
    HeroSlide,
    Identity,
    Order,
    Product,
    Review,
    SiteSettings,
)
from jamstore.utils.local_store import LocalStore
from jamstore.utils.logger import get_logger

_logger = get_logger(__name__)

ADMIN_EMAIL = os.getenv("JAMSTORE_ADMIN_EMAIL", "admin@jam.local")
ADMIN_PASSWORD = os.getenv("JAMSTORE_ADMIN_PASSWORD", "admin123")


class AppState:
    """
    Application state owned by the app and shared by screens via self.app.state.

    Fields:
      - session: current identity, fed by the auth provider
      - cart: the shopper's cart, persisted in the local store
      - pipeline: converts the cart into orders
      - products, reviews, hero_slides, settings, orders: last fetched collections.
        orders holds every order for an admin, the shopper's own otherwise.

    Nothing here raises into a screen: data service failures become an error
    toast and the collection keeps its previous value.
    """

    def __init__(
        self,
        store: Optional[LocalStore] = None,
        provider: Optional[AuthProvider] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.store = store or LocalStore()
        self.notifier = notifier or Notifier()
        self.session = SessionManager(provider or AuthProvider(self.store))
        self.cart = CartEngine(self.store, self.notifier)
        self.pipeline = OrderPipeline(
            self.cart, self.notifier, on_placed=self._on_order_placed
        )

        self.products: List[Product] = []
        self.reviews: List[Review] = []
        self.hero_slides: List[HeroSlide] = []
        self.settings: SiteSettings = SiteSettings()
        self.orders: List[Order] = []

        self.session.subscribe(self._on_identity_change)

    async def init(self) -> None:
        """Restore session and cart, then load every collection."""
        self.session.start()
        try:
            await self.session.provider.ensure_admin(ADMIN_EMAIL, ADMIN_PASSWORD)
            await self.session.restore()
        except DataServiceError as e:
            _logger.error(f"Session restore failed: {e}")
        self.cart.load()
        await self.refresh_all()

    # ---------------------------
    # Identity
    # ---------------------------

    @property
    def identity(self) -> Optional[Identity]:
        return self.session.identity

    @property
    def is_admin(self) -> bool:
        return self.session.is_admin

    def _on_identity_change(self, identity: Optional[Identity]) -> None:
        if identity is None:
            self.orders = []

    async def sign_in(self, email: str, pwd: str) -> Optional[Identity]:
        try:
            identity = await self.session.sign_in(email, pwd)
        except AuthError as e:
            self.notifier.error(str(e))
            return None
        except DataServiceError as e:
            _logger.error(f"Sign in failed: {e}")
            self.notifier.error("Login failed. Please try again.")
            return None
        await self.refresh_orders()
        self.notifier.success(f"Welcome back, {identity.name}!")
        return identity

    async def sign_up(self, name: str, email: str, pwd: str, **fields) -> Optional[Identity]:
        try:
            identity = await self.session.sign_up(name, email, pwd, **fields)
        except AuthError as e:
            self.notifier.error(str(e))
            return None
        except DataServiceError as e:
            _logger.error(f"Sign up failed: {e}")
            self.notifier.error("Signup failed. Please try again.")
            return None
        await self.refresh_orders()
        self.notifier.success(f"Welcome, {identity.name}!")
        return identity

    async def sign_out(self) -> None:
        await self.session.sign_out()
        self.notifier.success("Logged out successfully")

    async def update_profile(self, name: str, phone: str, address: str) -> bool:
        try:
            await self.session.update_profile(name, phone, address)
        except DataServiceError as e:
            _logger.error(f"Profile update failed: {e}")
            self.notifier.error("Failed to update profile. Please try again.")
            return False
        self.notifier.success("Profile updated.")
        return True

    # ---------------------------
    # Refresh
    # ---------------------------

    async def refresh_all(self) -> None:
        await self.refresh_products()
        await self.refresh_reviews()
        await self.refresh_hero_slides()
        await self.refresh_settings()
        await self.refresh_orders()

    async def refresh_products(self) -> bool:
        try:
            self.products = await crud.list_products()
        except DataServiceError as e:
            _logger.error(f"Could not load products: {e}")
            self.notifier.error("Could not load products.")
            return False
        return True

    async def refresh_reviews(self) -> bool:
        try:
            self.reviews = await crud.list_reviews()
        except DataServiceError as e:
            # reviews are decorative, no toast
            _logger.warning(f"Could not load reviews: {e}")
            return False
        return True

    async def refresh_hero_slides(self) -> bool:
        try:
            self.hero_slides = await crud.list_hero_slides()
        except DataServiceError as e:
            _logger.warning(f"Could not load hero slides: {e}")
            return False
        return True

    async def refresh_settings(self) -> bool:
        try:
            self.settings = await crud.get_site_settings()
        except DataServiceError as e:
            _logger.warning(f"Could not load site settings: {e}")
            return False
        return True

    async def refresh_orders(self) -> bool:
        identity = self.identity
        try:
            if identity is None:
                self.orders = []
            elif identity.role == "admin":
                self.orders = await crud.get_orders_all()
            else:
                self.orders = await crud.get_orders_by_user(identity.id)
        except DataServiceError as e:
            _logger.error(f"Could not load orders: {e}")
            self.notifier.error("Could not load orders.")
            return False
        return True

    def find_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    # ---------------------------
    # Cart
    # ---------------------------

    def add_to_cart(self, product: Product, size: str, quantity: int = 1) -> Tuple[CartLine, ...]:
        try:
            return self.cart.add_item(product, size, quantity)
        except Exception:
            _logger.exception("add_to_cart failed")
            self.notifier.error("Could not update your bag.")
            return self.cart.snapshot()

    def remove_from_cart(self, product_id: str, size: str) -> Tuple[CartLine, ...]:
        try:
            return self.cart.remove_item(product_id, size)
        except Exception:
            _logger.exception("remove_from_cart failed")
            self.notifier.error("Could not update your bag.")
            return self.cart.snapshot()

    def update_cart_quantity(
        self, product_id: str, size: str, quantity: int
    ) -> Tuple[CartLine, ...]:
        try:
            return self.cart.update_quantity(product_id, size, quantity)
        except Exception:
            _logger.exception("update_cart_quantity failed")
            self.notifier.error("Could not update your bag.")
            return self.cart.snapshot()

    def clear_cart(self) -> Tuple[CartLine, ...]:
        try:
            return self.cart.clear()
        except Exception:
            _logger.exception("clear_cart failed")
            self.notifier.error("Could not update your bag.")
            return self.cart.snapshot()

    def get_cart_total(self) -> float:
        return self.cart.subtotal()

    def get_cart_count(self) -> int:
        return self.cart.total_quantity()

    # ---------------------------
    # Orders
    # ---------------------------

    async def place_order(
        self, shipping_address: str, phone: str, location: Optional[GeoPoint] = None
    ) -> Optional[Order]:
        """Place an order from the current cart snapshot for the signed-in identity."""
        return await self.pipeline.place_order(
            shipping_address, phone, self.cart.snapshot(), self.identity, location
        )

    def _on_order_placed(self, order: Order) -> None:
        self.orders.insert(0, order)

    def _require_admin(self) -> bool:
        if not self.is_admin:
            self.notifier.error("Unauthorized")
            return False
        return True

    async def _order_gone(self, order_id: str) -> bool:
        # matched no row: someone else removed it first
        _logger.warning(f"Order {order_id} no longer exists")
        await self.refresh_orders()
        self.notifier.error("Order no longer exists.")
        return False

    async def set_order_status(self, order_id: str, status: str) -> bool:
        if not self._require_admin():
            return False
        try:
            check_status(status)
            updated = await crud.update_order_status(order_id, status)
        except ValueError as e:
            self.notifier.error(str(e))
            return False
        except DataServiceError as e:
            _logger.error(f"Status update for {order_id} failed: {e}")
            self.notifier.error("Failed to update status.")
            return False
        if not updated:
            return await self._order_gone(order_id)
        await self.refresh_orders()
        self.notifier.success(f"Order {order_id} marked {status}.")
        return True

    async def delete_order(self, order_id: str) -> bool:
        if not self._require_admin():
            return False
        try:
            deleted = await crud.delete_order(order_id)
        except DataServiceError as e:
            _logger.error(f"Delete of order {order_id} failed: {e}")
            self.notifier.error("Failed to delete order. Database error.")
            return False
        if not deleted:
            return await self._order_gone(order_id)
        await self.refresh_orders()
        self.notifier.success(f"Order {order_id} deleted.")
        return True

    # ---------------------------
    # Catalog admin
    # ---------------------------

    async def _product_gone(self, product_id: str) -> bool:
        _logger.warning(f"Product {product_id} no longer exists")
        await self.refresh_products()
        self.notifier.error("Product no longer exists.")
        return False

    async def save_product(self, product: Product, is_new: bool) -> bool:
        if not self._require_admin():
            return False
        try:
            if is_new:
                await crud.add_product(product)
                saved = True
            else:
                saved = await crud.update_product(product)
        except DataServiceError as e:
            _logger.error(f"Saving product {product.id} failed: {e}")
            self.notifier.error("Database Error: Could not save product data.")
            return False
        if not saved:
            return await self._product_gone(product.id)
        await self.refresh_products()
        self.notifier.success(f"Saved {product.name}.")
        return True

    async def delete_product(self, product_id: str) -> bool:
        if not self._require_admin():
            return False
        try:
            deleted = await crud.delete_product(product_id)
        except DataServiceError as e:
            _logger.error(f"Deleting product {product_id} failed: {e}")
            self.notifier.error("Cannot delete product.")
            return False
        if not deleted:
            return await self._product_gone(product_id)
        await self.refresh_products()
        self.notifier.success("Product deleted.")
        return True

    async def save_hero_slide(self, slide: HeroSlide) -> bool:
        if not self._require_admin():
            return False
        try:
            await crud.save_hero_slide(slide)
        except DataServiceError as e:
            _logger.error(f"Saving hero slide {slide.id} failed: {e}")
            self.notifier.error("Error saving hero slide.")
            return False
        await self.refresh_hero_slides()
        self.notifier.success("Hero slide saved.")
        return True

    async def delete_hero_slide(self, slide_id: str) -> bool:
        if not self._require_admin():
            return False
        try:
            deleted = await crud.delete_hero_slide(slide_id)
        except DataServiceError as e:
            _logger.error(f"Deleting hero slide {slide_id} failed: {e}")
            self.notifier.error("Error deleting hero slide.")
            return False
        await self.refresh_hero_slides()
        if not deleted:
            _logger.warning(f"Hero slide {slide_id} was already gone")
            self.notifier.error("Hero slide no longer exists.")
            return False
        return True

    async def save_settings(self, settings: SiteSettings) -> bool:
        if not self._require_admin():
            return False
        try:
            await crud.update_site_settings(settings)
        except DataServiceError as e:
            _logger.error(f"Saving settings failed: {e}")
            self.notifier.error("Error saving settings.")
            return False
        await self.refresh_settings()
        self.notifier.success("Store configuration updated successfully.")
        return True

    # ---------------------------
    # Reviews
    # ---------------------------

    async def submit_review(self, product_id: str, rating: int, comment: str) -> bool:
        identity = self.identity
        if identity is None:
            self.notifier.error("Please log in to leave a review.")
            return False
        review = Review(
            id=f"rev-{uuid.uuid4().hex[:12]}",
            product_id=product_id,
            user_id=identity.id,
            user_name=identity.name,
            rating=max(1, min(5, int(rating))),
            comment=comment,
            created_at=datetime.now(timezone.utc),
        )
        try:
            await crud.add_review(review)
        except DataServiceError as e:
            _logger.error(f"Review for {product_id} failed: {e}")
            self.notifier.error("Could not submit your review.")
            return False
        await self.refresh_reviews()
        self.notifier.success("Review submitted! Thank you for the feedback.")
        return True
