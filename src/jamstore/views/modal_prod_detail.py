from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer, Select

from jamstore.core.stats import (
    average_rating,
    format_category,
    review_count,
    similar_products,
)
from jamstore.db.models import Product
from jamstore.utils.pure import (
    format_date,
    format_price,
    format_rating,
    generate_markdown_table,
)

UNORDERABLE_STATUSES = {"OUT_OF_STOCK", "DISCONTINUED"}


class ProdDetailModal(ModalScreen[bool]):
    """
    prod detail, plus ordering
    Will return true if cart changed, false if not
    """

    order_qty = reactive(1)

    def __init__(self, product: Product) -> None:
        super().__init__()
        self._prod = product

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical(id="vert-order"):
                yield Label("Size")
                yield Select(
                    [(s, s) for s in self._prod.sizes],
                    prompt="Select a size",
                    id="select-size",
                )
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Bag", id="btn-addcart", variant="primary")

    async def on_mount(self):
        await self.query_one(MarkdownViewer).document.update(self.render_detail())
        self.update_add_button()
        self.query_one("#select-size").focus()

    def render_detail(self) -> str:
        state = self.app.state
        p = self._prod
        avg = average_rating(state.reviews, p.id)
        cnt = review_count(state.reviews, p.id)

        rows = [
            ["Team", p.team],
            ["Category", format_category(p.category)],
            ["Price", format_price(p.price)],
            ["Status", p.status.replace("_", " ")],
            ["In stock", str(p.stock)],
            ["Sizes", ", ".join(p.sizes) or "-"],
            ["Rating", format_rating(avg, cnt)],
        ]
        md = f"## {p.name}\n\n{p.description}\n\n"
        md += generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])

        reviews = [r for r in state.reviews if r.product_id == p.id]
        md += "\n\n### Reviews\n\n"
        if reviews:
            md += generate_markdown_table(
                ["Date", "By", "Rating", "Comment"],
                [
                    [format_date(r.created_at), r.user_name, "★" * r.rating, r.comment]
                    for r in reviews
                ],
            )
        else:
            md += "No reviews yet."

        similar = similar_products(state.products, p)
        if similar:
            md += "\n\n### You may also like\n\n"
            md += "\n".join(
                f"- **{s.name}** ({s.team}) {format_price(s.price)}" for s in similar
            )
        return md

    def selected_size(self):
        value = self.query_one("#select-size", Select).value
        if isinstance(value, str) and value in self._prod.sizes:
            return value
        return None

    def update_add_button(self) -> None:
        btn = self.query_one("#btn-addcart", Button)
        if self._prod.status in UNORDERABLE_STATUSES:
            btn.label = self._prod.status.replace("_", " ").title()
            btn.variant = "warning"
            btn.disabled = True
        else:
            # no size, no add
            btn.disabled = self.selected_size() is None

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Select.Changed, "#select-size")
    def handle_size_changed(self) -> None:
        self.update_add_button()

    @on(Input.Changed, "#input-order-qty")
    def handle_qty_input(self, message: Input.Changed) -> None:
        try:
            qty = int(message.value)
        except ValueError:
            message.input.add_class("-invalid")
            return
        message.input.set_class(qty < 1, "-invalid")
        if qty >= 1 and qty != self.order_qty:
            self.order_qty = qty

    def watch_order_qty(self, qty: int):
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        input_order_qty = self.query_one("#input-order-qty", Input)
        if input_order_qty.value != str(qty):
            input_order_qty.value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        if self.order_qty > 1:
            self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    def handle_addcart(self):
        size = self.selected_size()
        if size is None:
            self.query_one("#select-size").add_class("-invalid")
            self.app.notify("Please select a size.", severity="warning")
            return
        self.app.state.add_to_cart(self._prod, size, self.order_qty)
        self.dismiss(True)
