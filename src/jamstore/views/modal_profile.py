from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label


class ProfileModal(ModalScreen[bool]):
    """Edit name, phone and default shipping address."""

    def compose(self) -> ComposeResult:
        with Vertical(id="div-profile"):
            yield Label("Name")
            yield Input(id="input-name")
            yield Label("Phone")
            yield Input(id="input-phone")
            yield Label("Address")
            yield Input(id="input-address")
            with Horizontal():
                yield Button("Cancel", id="btn-quit")
                yield Button("Save", id="btn-save", variant="primary")

    def on_mount(self):
        identity = self.app.state.identity
        if identity is None:
            self.dismiss(False)
            return
        self.query_one("#input-name", Input).value = identity.name
        self.query_one("#input-phone", Input).value = identity.phone
        self.query_one("#input-address", Input).value = identity.address
        self.query_one("#input-name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self):
        name_input = self.query_one("#input-name", Input)
        if not name_input.value.strip():
            name_input.add_class("-invalid")
            self.notify("Name cannot be empty.", severity="error")
            return

        if await self.app.state.update_profile(
            name_input.value.strip(),
            self.query_one("#input-phone", Input).value.strip(),
            self.query_one("#input-address", Input).value.strip(),
        ):
            self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)
