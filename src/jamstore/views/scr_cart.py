from typing import Literal

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from jamstore.db.models import CartLine
from jamstore.utils.messages import CartChangedMessage, NewOrderMessage
from jamstore.utils.pure import format_price
from jamstore.views.base_screen import BaseScreen
from jamstore.views.modal_checkout import CheckoutModal
from jamstore.views.modal_dialog import DialogModal

CartAction = Literal["dec", "inc", "remove"]


class CartLineActionMessage(Message):
    bubble = True

    def __init__(self, line: CartLine, action: CartAction) -> None:
        super().__init__()
        self.line = line
        self.action = action


class CartLineActionLabel(Label):
    def action_dec(self):
        self.parent_line().post_action("dec")

    def action_inc(self):
        self.parent_line().post_action("inc")

    def action_remove(self):
        self.parent_line().post_action("remove")

    def parent_line(self) -> "CartLineWidget":
        return next(a for a in self.ancestors if isinstance(a, CartLineWidget))


class CartLineWidget(HorizontalGroup):
    def __init__(self, line: CartLine):
        super().__init__()
        self.line = line

    def compose(self):
        line = self.line
        with Container(classes="div-cart-item-group"):
            with Container(classes="div-item"):
                yield Label(f"{line.product_name} ({line.size})", classes="label-item-name")
                yield Label(
                    f"{format_price(line.unit_price)} × {line.quantity}",
                    classes="label-item-qty",
                )
                yield Label(format_price(line.line_total), classes="label-item-price")
            with Container(classes="div-actions"):
                yield CartLineActionLabel("[@click=dec()] - [/]")
                yield CartLineActionLabel("[@click=inc()] + [/]")
                yield CartLineActionLabel("[@click=remove()]Remove[/]")

    def post_action(self, action: CartAction) -> None:
        self.post_message(CartLineActionMessage(self.line, action))


class CartScreen(BaseScreen):
    """
    The shopper's bag: line items, subtotal and the way to checkout.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Your bag is empty.", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Bag", id="btn-clear-cart")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    async def on_mount(self):
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ScreenResume)
    @work(exclusive=True, group="cart-render")
    async def handle_cart_change(self):
        """Re-read the cart snapshot and rebuild the line list."""
        state = self.app.state
        lines = state.cart.snapshot()

        content = self.query_one("#vertscroll-content")
        if tuple(c.line for c in content.children) != lines:
            await content.remove_children()
            await content.mount_all([CartLineWidget(line) for line in lines])
        content.set_class(not lines, "no-items")

        label = self.query_one("#label-cart-total", Label)
        if lines:
            label.update(
                f"Items: {state.get_cart_count()}    "
                f"Subtotal: {format_price(state.get_cart_total())}"
            )
        else:
            label.update("Your bag is empty.")
        self.query_one("#btn-checkout", Button).disabled = not lines

    @on(CartLineActionMessage)
    @work()
    async def handle_line_action(self, message: CartLineActionMessage):
        state = self.app.state
        line = message.line
        if message.action == "inc":
            state.update_cart_quantity(line.product_id, line.size, line.quantity + 1)
        elif message.action == "dec":
            # never drops below 1; removing is its own action
            state.update_cart_quantity(line.product_id, line.size, line.quantity - 1)
        elif await self.app.push_screen_wait(
            DialogModal(
                f"Remove {line.product_name} ({line.size}) from your bag?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            state.remove_from_cart(line.product_id, line.size)
        self.app.broadcast(CartChangedMessage)

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if self.app.state.cart.is_empty():
            self.app.notify("Your bag is empty.", severity="warning")
            return

        if await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from your bag?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            self.app.state.clear_cart()
            self.app.broadcast(CartChangedMessage)

    @on(Button.Pressed, "#btn-checkout")
    @work(exclusive=True, group="checkout")
    async def handle_checkout(self) -> None:
        state = self.app.state
        if state.cart.is_empty():
            self.app.notify("Your bag is empty.", severity="warning")
            return

        if state.identity is None:
            self.app.notify("Please log in to checkout.", severity="warning")
            if await self.app.request_login() is None:
                return

        order = await self.app.push_screen_wait(CheckoutModal())
        self.app.broadcast(CartChangedMessage)
        if order is not None:
            self.app.broadcast(NewOrderMessage)
            await self.app.goto("orders")
