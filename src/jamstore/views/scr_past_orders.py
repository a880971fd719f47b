from math import ceil
from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer

from jamstore.db.models import Order
from jamstore.utils.messages import (
    CatalogChangedMessage,
    IdentityChangedMessage,
    NewOrderMessage,
    OrdersChangedMessage,
)
from jamstore.utils.pure import format_date, format_price, generate_markdown_table
from jamstore.views.base_screen import BaseScreen
from jamstore.views.modal_profile import ProfileModal
from jamstore.views.modal_review import ReviewModal

PAGE_SIZE = 5


class PastOrdersScreen(BaseScreen):
    """
    Shoppers browse their past orders with pagination and view details.

    Layout:
    - Markdown detail view at the top, showing the selected order.
    - Items of the selected order, each of which can be reviewed.
    - Orders table below (most recent first), 5 per page with Prev/Next.
    """

    # Show some hints in footer
    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-items")
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Edit Profile", id="btn-profile")
            yield Button("Review Item", id="btn-review", variant="primary")
            yield Button("<", id="btn-prev")
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")
            yield Button(">", id="btn-next")

    def on_mount(self) -> None:
        table = self.query_one("#table-orders", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Status", "Items", "Total")

        items = self.query_one("#table-items", DataTable)
        items.cursor_type = "row"
        items.add_columns("Product", "Size", "Qty", "Unit Price", "Line Total")

    @on(ScreenResume)
    @on(NewOrderMessage)
    @on(OrdersChangedMessage)
    @on(IdentityChangedMessage)
    @work(exclusive=True, group="orders")
    async def handle_refresh(self):
        await self.app.state.refresh_orders()
        self._orders = list(self.app.state.orders)
        self.page_cnt = max(ceil(len(self._orders) / PAGE_SIZE), 1)
        self.page_idx = min(self.page_idx, self.page_cnt)
        self._render_page()

    def watch_page_idx(self, old: int, new: int) -> None:
        self.query_one("#input-page", Input).value = str(new)
        self._render_page()

    def _refresh_buttons(self) -> None:
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt
        self.query_one("#label-total-page-cnt", Label).update(f" / {self.page_cnt}")

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @on(Input.Changed, "#input-page")
    def handle_page_input(self, ev: Input.Changed) -> None:
        if ev.value and ev.value.isdigit():
            new_idx = max(1, min(int(ev.value), self.page_cnt))
            if new_idx != self.page_idx:
                self.page_idx = new_idx

    def _render_page(self) -> None:
        start = (self.page_idx - 1) * PAGE_SIZE
        page = self._orders[start : start + PAGE_SIZE]

        table = self.query_one("#table-orders", DataTable)
        table.clear()
        for o in page:
            table.add_row(
                o.id,
                format_date(o.created_at),
                o.status,
                str(sum(line.quantity for line in o.items)),
                format_price(o.total_amount),
                key=o.id,
            )
        self._refresh_buttons()
        self._render_detail(page[0] if page else None)

    def _find_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self._orders if o.id == order_id), None)

    @on(DataTable.RowHighlighted, "#table-orders")
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        self._render_detail(self._find_order(event.row_key.value))

    def selected_order(self) -> Optional[Order]:
        table = self.query_one("#table-orders", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self._find_order(row_key.value)

    def _render_detail(self, order: Optional[Order]) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        items = self.query_one("#table-items", DataTable)
        items.clear()
        self.query_one("#btn-review", Button).disabled = order is None

        if order is None:
            md = "### No orders yet.\n\nOrders you place will show up here."
            if self.app.state.identity is None:
                md = "### Log in to see your orders."
            viewer.document.update(md)
            return

        md = f"### Order {order.id}\n\n"
        md += generate_markdown_table(
            None,
            [
                ["Placed", format_date(order.created_at, with_time=True)],
                ["Status", order.status],
                ["Ship To", order.shipping_address],
                ["Phone", order.user_phone],
                ["Total", format_price(order.total_amount)],
            ],
            ["l", "l"],
        )
        viewer.document.update(md)

        for idx, line in enumerate(order.items):
            items.add_row(
                line.product_name,
                line.size,
                str(line.quantity),
                format_price(line.unit_price),
                format_price(line.line_total),
                key=str(idx),
            )

    @on(Button.Pressed, "#btn-review")
    @work(exclusive=True, group="review")
    async def handle_review(self):
        order = self.selected_order()
        items = self.query_one("#table-items", DataTable)
        if order is None or items.row_count == 0:
            return
        line = order.items[min(items.cursor_row, len(order.items) - 1)]
        if await self.app.push_screen_wait(ReviewModal(line)):
            self.app.broadcast(CatalogChangedMessage)

    @on(Button.Pressed, "#btn-profile")
    @work(exclusive=True, group="profile")
    async def handle_profile(self):
        if self.app.state.identity is None:
            self.notify("Please log in first.", severity="warning")
            return
        await self.app.push_screen_wait(ProfileModal())
