from dataclasses import replace

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import ScreenResume
from textual.widgets import Button, Input, Label, TextArea

from jamstore.db.models import SiteSettings
from jamstore.utils.messages import IdentityChangedMessage, SettingsChangedMessage
from jamstore.views.asset_upload import upload_image
from jamstore.views.base_screen import AdminScreen

# input id -> SiteSettings field
_FIELDS = {
    "#input-instagram": "instagram_handle",
    "#input-whatsapp": "whatsapp_number",
    "#input-tagline": "footer_tagline",
    "#input-upi": "upi_id",
    "#input-gpay": "gpay_number",
    "#input-paytm": "paytm_number",
    "#input-qr": "payment_qr_code",
}
_OPTIONAL = {"upi_id", "gpay_number", "paytm_number", "payment_qr_code"}


class AdminSettingsScreen(AdminScreen):
    """Store contact details, payment details and the about text."""

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with VerticalScroll(id="admin-body"):
            yield Label("About Us")
            yield TextArea(id="textarea-about")
            with Horizontal():
                with Vertical():
                    yield Label("Instagram")
                    yield Input(placeholder="@jam.mizoram", id="input-instagram")
                with Vertical():
                    yield Label("WhatsApp")
                    yield Input(placeholder="91XXXXXXXXXX", id="input-whatsapp")
            yield Label("Footer Tagline")
            yield Input(id="input-tagline")
            yield Label("Payment")
            with Horizontal():
                with Vertical():
                    yield Label("UPI ID")
                    yield Input(id="input-upi")
                with Vertical():
                    yield Label("GPay")
                    yield Input(id="input-gpay")
                with Vertical():
                    yield Label("Paytm")
                    yield Input(id="input-paytm")
            yield Label("Payment QR Code")
            with Horizontal():
                yield Input(placeholder="image url", id="input-qr")
                yield Input(placeholder="/path/to/qr.png", id="input-qr-path")
                yield Button("Upload", id="btn-upload-qr")
            with Horizontal():
                yield Button("Reset", id="btn-reset")
                yield Button("Save Settings", id="btn-save", variant="primary")

    @on(ScreenResume)
    @on(IdentityChangedMessage)
    @on(SettingsChangedMessage)
    @on(Button.Pressed, "#btn-reset")
    def handle_refresh(self) -> None:
        if self.gate():
            self.fill_form(self.app.state.settings)

    def fill_form(self, settings: SiteSettings) -> None:
        self.query_one("#textarea-about", TextArea).text = settings.about_us
        for input_id, field in _FIELDS.items():
            self.query_one(input_id, Input).value = getattr(settings, field) or ""

    def read_form(self) -> SiteSettings:
        values = {"about_us": self.query_one("#textarea-about", TextArea).text.strip()}
        for input_id, field in _FIELDS.items():
            value = self.query_one(input_id, Input).value.strip()
            values[field] = value or (None if field in _OPTIONAL else "")
        return replace(self.app.state.settings, **values)

    @on(Button.Pressed, "#btn-upload-qr")
    @work(exclusive=True, group="upload")
    async def handle_upload_qr(self):
        btn = self.query_one("#btn-upload-qr", Button)
        btn.disabled = True
        try:
            url = await upload_image(self, self.query_one("#input-qr-path", Input).value)
        finally:
            btn.disabled = False
        if url:
            self.query_one("#input-qr", Input).value = url

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True, group="save")
    async def handle_save(self):
        if await self.app.state.save_settings(self.read_form()):
            self.app.broadcast(SettingsChangedMessage)
