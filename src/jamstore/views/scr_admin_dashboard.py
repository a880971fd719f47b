from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, MarkdownViewer, Select

from jamstore.core.orders import INITIAL_STATUS, ORDER_STATUSES
from jamstore.core.stats import delivered_count, pending_count, revenue_total
from jamstore.db.models import GeoPoint, Order
from jamstore.utils.messages import (
    IdentityChangedMessage,
    NewOrderMessage,
    OrdersChangedMessage,
)
from jamstore.utils.pure import format_date, format_price, generate_markdown_table
from jamstore.views.base_screen import AdminScreen
from jamstore.views.modal_dialog import ConfirmDeleteModal


class AdminDashboardScreen(AdminScreen):
    """
    Order fulfillment: totals, every order, and the status / delete controls
    for the selected one.
    """

    def __init__(self) -> None:
        super().__init__()
        self._selected: Optional[Order] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="admin-body"):
            with Horizontal(id="hort-stats"):
                yield Label("", id="label-stat-revenue", classes="stat")
                yield Label("", id="label-stat-orders", classes="stat")
                yield Label("", id="label-stat-pending", classes="stat")
                yield Label("", id="label-stat-delivered", classes="stat")
            yield DataTable(id="table-orders")
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            with Horizontal(id="hort-order-controls"):
                yield Select(
                    [(s.title(), s) for s in ORDER_STATUSES],
                    value=INITIAL_STATUS,
                    allow_blank=False,
                    id="select-status",
                )
                yield Button("Apply Status", id="btn-apply-status", variant="primary")
                yield Button("Delete Order", id="btn-delete-order", variant="error")

    def on_mount(self) -> None:
        table = self.query_one("#table-orders", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Customer", "Phone", "Status", "Total")

    @on(ScreenResume)
    @on(NewOrderMessage)
    @on(OrdersChangedMessage)
    @on(IdentityChangedMessage)
    @work(exclusive=True, group="dashboard")
    async def handle_refresh(self):
        if not self.gate():
            # no order data stays mounted once the role is gone
            self.query_one("#table-orders", DataTable).clear()
            self.render_detail(None)
            return
        await self.app.state.refresh_orders()
        self.render_orders()

    def render_orders(self) -> None:
        orders = self.app.state.orders
        self.query_one("#label-stat-revenue", Label).update(
            f"Revenue\n{format_price(revenue_total(orders))}"
        )
        self.query_one("#label-stat-orders", Label).update(f"Orders\n{len(orders)}")
        self.query_one("#label-stat-pending", Label).update(
            f"Pending\n{pending_count(orders)}"
        )
        self.query_one("#label-stat-delivered", Label).update(
            f"Delivered\n{delivered_count(orders)}"
        )

        table = self.query_one("#table-orders", DataTable)
        table.clear()
        for o in orders:
            table.add_row(
                o.id,
                format_date(o.created_at, with_time=True),
                o.user_name,
                o.user_phone,
                o.status,
                format_price(o.total_amount),
                key=o.id,
            )
        self.render_detail(orders[0] if orders else None)

    @on(DataTable.RowHighlighted, "#table-orders")
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        order_id = event.row_key.value
        self.render_detail(next((o for o in self.app.state.orders if o.id == order_id), None))

    def render_detail(self, order: Optional[Order]) -> None:
        self._selected = order
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        self.query_one("#btn-apply-status", Button).disabled = order is None
        self.query_one("#btn-delete-order", Button).disabled = order is None
        if order is None:
            viewer.document.update("### No orders yet.")
            return

        self.query_one("#select-status", Select).value = order.status

        location = "Not shared"
        if order.has_location:
            url = GeoPoint(order.latitude, order.longitude).maps_url()
            location = f"[{order.latitude:.4f}, {order.longitude:.4f}]({url})"

        md = f"### Order {order.id}\n\n"
        md += generate_markdown_table(
            None,
            [
                ["Customer", order.user_name],
                ["Email", order.user_email],
                ["Phone", order.user_phone],
                ["Ship To", order.shipping_address],
                ["Location", location],
                ["Status", order.status],
            ],
            ["l", "l"],
        )
        md += "\n\n" + generate_markdown_table(
            ["Product", "Size", "Qty", "Unit Price", "Line Total"],
            [
                [
                    line.product_name,
                    line.size,
                    str(line.quantity),
                    format_price(line.unit_price),
                    format_price(line.line_total),
                ]
                for line in order.items
            ],
            ["l", "c", "c", "r", "r"],
        )
        md += f"\n\n**Total:** {format_price(order.total_amount)}"
        viewer.document.update(md)

    @on(Button.Pressed, "#btn-apply-status")
    @work(exclusive=True, group="order-action")
    async def handle_apply_status(self):
        order = self._selected
        status = self.query_one("#select-status", Select).value
        if order is None or not isinstance(status, str):
            return
        if status == order.status:
            self.notify("Status unchanged.", severity="warning")
            return
        await self.app.state.set_order_status(order.id, status)
        self.app.broadcast(OrdersChangedMessage)

    @on(Button.Pressed, "#btn-delete-order")
    @work(exclusive=True, group="order-action")
    async def handle_delete_order(self):
        order = self._selected
        if order is None:
            return
        if not await self.app.push_screen_wait(ConfirmDeleteModal(f"order {order.id}")):
            return
        await self.app.state.delete_order(order.id)
        self.app.broadcast(OrdersChangedMessage)
