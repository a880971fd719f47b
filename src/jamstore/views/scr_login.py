from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from jamstore.views.base_screen import BaseScreen

MIN_PASSWORD_LENGTH = 6


class LoginScreen(BaseScreen):
    """
    Login and sign up tabs.
    Dismisses with the signed-in Identity, or None when the user backs out.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Back", id="btn-back")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Name")
                    yield Input(placeholder="Jane Doe", id="input-reg-name")
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label("Phone")
                    yield Input(placeholder="9876543210", id="input-reg-phone")
                    yield Label("Address")
                    yield Input(placeholder="Street, locality, city", id="input-reg-address")
                    yield Label("Password")
                    yield Input(
                        placeholder="at least 6 characters",
                        password=True,
                        id="input-reg-pwd",
                    )
                    with Container(id="div-reg-btns"):
                        yield Button("Create Account", id="btn-reg", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "escape":
            self.dismiss(None)
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-pwd"):
            self.handle_registration_submit()

    @on(Input.Changed)
    def handle_input_changed(self, message: Input.Changed) -> None:
        message.input.remove_class("-invalid")

    def _require(self, *input_ids: str) -> bool:
        ok = True
        for input_id in input_ids:
            field = self.query_one(input_id, Input)
            if not field.value.strip():
                field.add_class("-invalid")
                ok = False
        return ok

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        if not self._require("#input-login-email", "#input-login-pwd"):
            self.notify("Email or password cannot be empty!", severity="error")
            return

        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        identity = await self.app.state.sign_in(email, pwd)
        if identity is not None:
            self.dismiss(identity)
            return

        input_login_pwd = self.query_one("#input-login-pwd", Input)
        input_login_pwd.value = ""
        input_login_pwd.focus()
        input_login_pwd.add_class("-invalid")

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        if not self._require("#input-reg-name", "#input-reg-email", "#input-reg-pwd"):
            self.notify("Name, email and password are required.", severity="error")
            return

        email = self.query_one("#input-reg-email", Input).value.strip()
        if "@" not in email:
            self.query_one("#input-reg-email", Input).add_class("-invalid")
            self.notify("Enter a valid email address.", severity="error")
            return

        pwd = self.query_one("#input-reg-pwd", Input).value
        if len(pwd) < MIN_PASSWORD_LENGTH:
            self.query_one("#input-reg-pwd", Input).add_class("-invalid")
            self.notify(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
                severity="error",
            )
            return

        identity = await self.app.state.sign_up(
            self.query_one("#input-reg-name", Input).value.strip(),
            email,
            pwd,
            phone=self.query_one("#input-reg-phone", Input).value.strip(),
            address=self.query_one("#input-reg-address", Input).value.strip(),
        )
        if identity is not None:
            self.dismiss(identity)
        else:
            self.query_one("#input-reg-email", Input).add_class("-invalid")

    @on(Button.Pressed, "#btn-back")
    def handle_back(self) -> None:
        self.dismiss(None)
