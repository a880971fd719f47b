from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, MarkdownViewer

from jamstore.core.stats import (
    average_rating,
    filter_products,
    format_category,
    review_count,
)
from jamstore.db.models import Product
from jamstore.utils.messages import CatalogChangedMessage, IdentityChangedMessage
from jamstore.utils.pure import format_price, format_rating, generate_markdown_table
from jamstore.views.base_screen import AdminScreen
from jamstore.views.modal_dialog import ConfirmDeleteModal
from jamstore.views.modal_product_form import ProductFormModal


class AdminProductsScreen(AdminScreen):
    """
    Catalog management: search, add, edit and delete products.
    """

    def __init__(self) -> None:
        super().__init__()
        self._selected: Optional[Product] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="admin-body"):
            with Horizontal(id="hort-product-controls"):
                yield Input(id="input-search", placeholder="Search products...")
                yield Button("Add Product", id="btn-add", variant="success")
                yield Button("Edit", id="btn-edit", variant="primary")
                yield Button("Delete", id="btn-delete", variant="error")
            yield DataTable(id="table-products")
            yield MarkdownViewer(id="md-prod", show_table_of_contents=False)

    def on_mount(self) -> None:
        table = self.query_one("#table-products", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Team", "Category", "Price", "Stock", "Status", "Sizes")

    @on(ScreenResume)
    @on(CatalogChangedMessage)
    @on(IdentityChangedMessage)
    def handle_refresh(self) -> None:
        if self.gate():
            self.render_products()

    @on(Input.Changed, "#input-search")
    def render_products(self) -> None:
        query = self.query_one("#input-search", Input).value
        products = filter_products(self.app.state.products, query=query)

        table = self.query_one("#table-products", DataTable)
        table.clear()
        for p in products:
            table.add_row(
                p.name,
                p.team,
                format_category(p.category),
                format_price(p.price),
                str(p.stock),
                p.status,
                ", ".join(p.sizes),
                key=p.id,
            )
        self.render_detail(products[0] if products else None)

    @on(DataTable.RowHighlighted, "#table-products")
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        self.render_detail(self.app.state.find_product(event.row_key.value))

    def render_detail(self, product: Optional[Product]) -> None:
        self._selected = product
        self.query_one("#btn-edit", Button).disabled = product is None
        self.query_one("#btn-delete", Button).disabled = product is None
        viewer = self.query_one("#md-prod", MarkdownViewer)
        if product is None:
            viewer.document.update("### No products.")
            return

        reviews = self.app.state.reviews
        rating = format_rating(
            average_rating(reviews, product.id), review_count(reviews, product.id)
        )
        rows = [
            ["Id", product.id],
            ["Image", product.image or "-"],
            ["Rating", rating],
        ]
        md = f"### {product.name}\n\n{product.description}\n\n"
        md += generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        viewer.document.update(md)

    @on(Button.Pressed, "#btn-add")
    @work(exclusive=True, group="product-edit")
    async def handle_add(self):
        await self.edit_product(None)

    @on(Button.Pressed, "#btn-edit")
    @work(exclusive=True, group="product-edit")
    async def handle_edit(self):
        if self._selected is not None:
            await self.edit_product(self._selected)

    async def edit_product(self, product: Optional[Product]) -> None:
        result = await self.app.push_screen_wait(ProductFormModal(product))
        if result is None:
            return
        await self.app.state.save_product(result, is_new=product is None)
        self.app.broadcast(CatalogChangedMessage)

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True, group="product-edit")
    async def handle_delete(self):
        product = self._selected
        if product is None:
            return
        if not await self.app.push_screen_wait(ConfirmDeleteModal(product.name)):
            return
        await self.app.state.delete_product(product.id)
        self.app.broadcast(CatalogChangedMessage)
