from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from jamstore.utils.messages import (
    CartChangedMessage,
    IdentityChangedMessage,
    LoginRequestedMessage,
    UserLogoutMessage,
)
from jamstore.utils.pure import generate_markdown_table
from jamstore.views.modal_dialog import DialogModal, QuitDialogModal


class Sidebar(Container):
    def compose(self) -> ComposeResult:
        yield Label("Account", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log in", id="btn-auth", variant="primary")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        await self.refresh_info()

    async def refresh_info(self) -> None:
        """Re-render user info, auth button and the role's menu."""
        state = self.app.state
        identity = state.identity
        btn_auth = self.query_one("#btn-auth", Button)

        if identity is None:
            rows = [["Status", "Guest"]]
            btn_auth.label = "Log in"
            btn_auth.variant = "primary"
            menu = self.app.GUEST_MODES
        else:
            rows = [
                ["Name", identity.name],
                ["Email", identity.email],
                ["Role", "Admin" if identity.role == "admin" else "Shopper"],
            ]
            btn_auth.label = "Log out"
            btn_auth.variant = "error"
            menu = self.app.ADMIN_MODES if state.is_admin else self.app.SHOPPER_MODES

        await self.query_one("#md-userinfo", Markdown).update(
            generate_markdown_table(None, rows, ["l", "l"])
        )

        list_menu = self.query_one("#list-menu", ListView)
        await list_menu.clear()
        await list_menu.extend(
            [
                ListItem(Label(self._menu_label(k, v)), id="list-menu-item-" + k)
                for k, v in menu.items()
            ]
        )
        self.highlight_item(self.app.current_mode)

    def _menu_label(self, mode: str, label: str) -> str:
        if mode == "cart":
            count = self.app.state.get_cart_count()
            return f"{label} ({count})" if count else label
        return label

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        if self.app.current_mode != selected_mode:
            await self.app.goto(selected_mode)

    @on(Button.Pressed, "#btn-auth")
    @work(exclusive=True)
    async def handle_auth(self):
        if self.app.state.identity is None:
            self.post_message(LoginRequestedMessage())
            return

        if await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        for item in self.query_one("#list-menu", ListView).children:
            item.highlighted = item.id == "list-menu-item-" + str(mode_str)


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()
        self.configure()

    def configure(
        self,
        header_sub_title: str = "",
        show_sidebar: bool = True,
    ) -> None:
        self.app.title = "Jersey Apparel Mizoram"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v):
                self.sub_title = self.app.MODE_TITLES.get(k, header_sub_title)
        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @on(IdentityChangedMessage)
    @on(CartChangedMessage)
    @on(ScreenResume)
    async def refresh_sidebar(self) -> None:
        for sidebar in self.query(Sidebar):
            await sidebar.refresh_info()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())


class AdminScreen(BaseScreen):
    """
    Base of the back-office screens. The role is checked on every mount,
    resume and identity change; a non-admin sees only the Unauthorized
    notice, whatever route led here. Put content inside #admin-body.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Label("Unauthorized", id="label-unauthorized")

    def gate(self) -> bool:
        allowed = self.app.state.is_admin
        self.set_class(not allowed, "unauthorized")
        return allowed

    @on(IdentityChangedMessage)
    @on(ScreenResume)
    def handle_gate(self) -> None:
        self.gate()

    def on_mount(self) -> None:
        self.gate()
