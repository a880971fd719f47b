from typing import Optional, Type

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import LoadingIndicator

from jamstore.core.notify import Toast
from jamstore.db.models import Identity
from jamstore.utils.logger import get_logger
from jamstore.utils.messages import (
    IdentityChangedMessage,
    LoginRequestedMessage,
    QuitRequestedMessage,
    UserLogoutMessage,
)
from jamstore.utils.state import AppState
from jamstore.views.scr_admin_dashboard import AdminDashboardScreen
from jamstore.views.scr_admin_hero import AdminHeroScreen
from jamstore.views.scr_admin_products import AdminProductsScreen
from jamstore.views.scr_admin_settings import AdminSettingsScreen
from jamstore.views.scr_cart import CartScreen
from jamstore.views.scr_catalog import CatalogScreen
from jamstore.views.scr_login import LoginScreen
from jamstore.views.scr_past_orders import PastOrdersScreen

_logger = get_logger(__name__)


class JamStoreApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "cart": CartScreen,
        "orders": PastOrdersScreen,
        "admin_dashboard": AdminDashboardScreen,
        "admin_products": AdminProductsScreen,
        "admin_hero": AdminHeroScreen,
        "admin_settings": AdminSettingsScreen,
    }

    GUEST_MODES = {"catalog": "Shop", "cart": "Bag"}
    SHOPPER_MODES = {"catalog": "Shop", "cart": "Bag", "orders": "My Orders"}
    ADMIN_MODES = {
        "admin_dashboard": "Orders Dashboard",
        "admin_products": "Products",
        "admin_hero": "Hero Banners",
        "admin_settings": "Site Settings",
        "catalog": "Storefront",
    }
    MODE_TITLES = {**GUEST_MODES, **SHOPPER_MODES, **ADMIN_MODES}

    CSS_PATH = [
        "styles/index.tcss",
        "styles/login.tcss",
        "styles/catalog.tcss",
        "styles/cart.tcss",
        "styles/past_orders.tcss",
        "styles/admin.tcss",
    ]

    state: AppState

    def __init__(self, state: Optional[AppState] = None):
        super().__init__()
        self.state = state or AppState()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.state.notifier.bind(self._show_toast)
        self.state.session.subscribe(self._on_identity_change)
        self.start_up()

    def _show_toast(self, toast: Toast) -> None:
        self.notify(toast.message, severity=toast.severity)

    def _on_identity_change(self, identity: Optional[Identity]) -> None:
        self.broadcast(IdentityChangedMessage, identity)

    def broadcast(self, message_type: Type[Message], *args) -> None:
        """Post a fresh message of message_type to every screen on the active stack."""
        for screen in self.screen_stack:
            screen.post_message(message_type(*args))

    async def goto(self, mode: str) -> None:
        await self.switch_mode(mode)

    def home_mode(self) -> str:
        return "admin_dashboard" if self.state.is_admin else "catalog"

    @work(exclusive=True, group="startup")
    async def start_up(self):
        await self.state.init()
        await self.goto(self.home_mode())

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(LoginRequestedMessage)
    @work(exclusive=True, group="auth")
    async def handle_login_request(self):
        await self.request_login()

    async def request_login(self) -> Optional[Identity]:
        """Show the login screen; on success go to the role's home unless on the bag."""
        identity = await self.push_screen_wait(LoginScreen())
        if identity is not None and self.current_mode != "cart":
            await self.goto(self.home_mode())
        return identity

    @on(UserLogoutMessage)
    @work(exclusive=True, group="auth")
    async def handle_user_logout(self):
        await self.state.sign_out()
        await self.goto("catalog")

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.state.session.stop()
        self.exit()


def run():
    JamStoreApp().run()


if __name__ == "__main__":
    run()
