"""
Messages that drive view refreshes. Each one names the collection a
listening screen must re-read when it arrives.

The App forwards them to every screen on the active stack (see JamStoreApp.broadcast);
screens of inactive modes refresh on ScreenResume instead.
"""

from typing import Optional

from textual.message import Message

from jamstore.db.models import Identity


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class IdentityChangedMessage(Message):
    """
    Fired after sign in, sign out or a profile update.
    Sidebar re-renders user info and menu, screens re-check the role,
    order views re-read orders.
    """

    bubble = True

    def __init__(self, identity: Optional[Identity]) -> None:
        super().__init__()
        self.identity = identity


class CartChangedMessage(Message):
    """
    Fired after any cart mutation.
    Cart screen re-reads the cart snapshot, sidebar re-reads the item count.
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired when the shopper placed an order.
    Order history and admin dashboard re-read orders.
    """

    bubble = True


class OrdersChangedMessage(Message):
    """
    Fired after an admin status change or deletion.
    Order history and admin dashboard re-read orders.
    """

    bubble = True


class CatalogChangedMessage(Message):
    """
    Fired after a product was added, edited or deleted, or a review posted.
    Catalog and admin products re-read products and reviews.
    """

    bubble = True


class HeroChangedMessage(Message):
    """
    Fired after hero slides changed. Catalog banner and hero admin re-read slides.
    """

    bubble = True


class SettingsChangedMessage(Message):
    """
    Fired after site settings were saved. Checkout and settings re-read settings.
    """

    bubble = True


class LoginRequestedMessage(Message):
    """
    Posted by the sidebar or the cart when a guest must sign in.
    Handled at App level.
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    Posted by the sidebar once the user confirmed logging out.
    Handled at App level.
    """

    bubble = True
