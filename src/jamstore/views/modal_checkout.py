from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, Input, Label, MarkdownViewer

from jamstore.core.geolocation import GeolocationError, locate
from jamstore.db.models import GeoPoint, Order
from jamstore.utils.logger import get_logger
from jamstore.utils.messages import SettingsChangedMessage
from jamstore.utils.pure import format_price, generate_markdown_table
from jamstore.views.modal_dialog import DialogModal

_logger = get_logger(__name__)


class CheckoutModal(ModalScreen[Optional[Order]]):
    """
    A modal screen for check out: order summary, payment details, shipping
    address, phone and an optional location pin.
    Returns the placed Order, or None if the shopper backed out.
    On a failed submission the modal stays open and the bag is untouched.
    """

    def __init__(self):
        super().__init__()
        self._location: Optional[GeoPoint] = None

    def compose(self) -> ComposeResult:
        with VerticalScroll():
            yield MarkdownViewer("", show_table_of_contents=False, id="md-summary")
            with Vertical(id="div-shipping"):
                yield Label("Shipping Address")
                yield Input(
                    placeholder="House no, street, locality, city",
                    id="input-address-line",
                )
                yield Label("Phone")
                yield Input(placeholder="10 digit mobile number", id="input-phone")
                with Horizontal():
                    yield Button("Pin my location", id="btn-locate")
                    yield Label("No location attached.", id="label-location")
                yield Checkbox("I have completed the payment", id="chk-paid")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        identity = self.app.state.identity
        if identity is not None:
            self.query_one("#input-address-line", Input).value = identity.address
            self.query_one("#input-phone", Input).value = identity.phone
        await self.render_summary()
        self.query_one("#input-address-line").focus()

    @on(SettingsChangedMessage)
    async def render_summary(self) -> None:
        state = self.app.state
        lines = state.cart.snapshot()
        rows = [
            [
                line.product_name,
                line.size,
                format_price(line.unit_price),
                str(line.quantity),
                format_price(line.line_total),
            ]
            for line in lines
        ]
        md = "### Order Summary\n\n"
        md += generate_markdown_table(
            ["Product", "Size", "Unit Price", "Qty", "Total"],
            rows,
            ["l", "c", "r", "c", "r"],
        )
        md += f"\n\n**Total:** {format_price(state.get_cart_total())}"
        md += "\n\n### Payment\n\n" + self.payment_md()
        await self.query_one("#md-summary", MarkdownViewer).document.update(md)

    def payment_md(self) -> str:
        settings = self.app.state.settings
        rows = [
            [k, v]
            for k, v in [
                ["UPI ID", settings.upi_id],
                ["GPay", settings.gpay_number],
                ["Paytm", settings.paytm_number],
                ["Payment QR", settings.payment_qr_code],
            ]
            if v
        ]
        if not rows:
            return "Contact the store for payment details."
        md = "Pay the total using any of these, then tick the box below.\n\n"
        return md + generate_markdown_table(["Method", "Details"], rows)

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape" and not self.app.state.pipeline.in_flight:
            self.dismiss(None)

    @on(Input.Changed)
    def handle_input_changed(self, message: Input.Changed) -> None:
        if message.value.strip():
            message.input.remove_class("-invalid")

    @on(Button.Pressed, "#btn-locate")
    @work(exclusive=True, group="locate")
    async def handle_locate(self):
        btn = self.query_one("#btn-locate", Button)
        label = self.query_one("#label-location", Label)
        btn.disabled = True
        label.update("Locating...")
        try:
            self._location = await locate()
        except GeolocationError as e:
            _logger.warning(str(e))
            self._location = None
            label.update("No location attached.")
            self.notify(
                "Could not get your location. You can still place the order.",
                severity="warning",
            )
        else:
            label.update(
                f"📍 {self._location.latitude:.4f}, {self._location.longitude:.4f}"
            )
        finally:
            btn.disabled = False

    def validate(self) -> bool:
        ok = True
        for input_id in ("#input-phone", "#input-address-line"):
            field = self.query_one(input_id, Input)
            if not field.value.strip():
                field.add_class("-invalid")
                field.focus()
                ok = False
        if not ok:
            self.notify("Address and phone are required.", severity="error")
            return False
        if not self.query_one("#chk-paid", Checkbox).value:
            self.notify("Please confirm that you have paid.", severity="error")
            return False
        return True

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True, group="submit")
    async def handle_submit(self):
        if not self.validate():
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        btn_submit = self.query_one("#btn-submit", Button)
        btn_submit.disabled = True
        btn_submit.label = "Placing order..."
        try:
            order = await self.app.state.place_order(
                self.query_one("#input-address-line", Input).value.strip(),
                self.query_one("#input-phone", Input).value.strip(),
                self._location,
            )
        finally:
            btn_submit.disabled = False
            btn_submit.label = "Place Order"

        if order is not None:
            self.dismiss(order)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        if not self.app.state.pipeline.in_flight:
            self.dismiss(None)
