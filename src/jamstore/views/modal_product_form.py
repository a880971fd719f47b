import uuid
from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, Select, SelectionList, TextArea

from jamstore.core.copywriter import Copywriter
from jamstore.core.stats import format_category
from jamstore.db.models import CATEGORIES, PRODUCT_STATUSES, SIZES, Product
from jamstore.views.asset_upload import upload_image


def new_product_id() -> str:
    return f"prod-{uuid.uuid4().hex[:10]}"


class ProductFormModal(ModalScreen[Optional[Product]]):
    """
    Add or edit a product. Returns the filled-in Product, or None on cancel.
    Nothing is saved here; the caller decides.
    """

    def __init__(self, product: Optional[Product] = None) -> None:
        super().__init__()
        self._product = product

    @property
    def is_new(self) -> bool:
        return self._product is None

    def compose(self) -> ComposeResult:
        p = self._product
        with VerticalScroll(id="div-product-form"):
            yield Label("Add Product" if self.is_new else f"Edit {p.name}", id="label-form-title")
            with Horizontal():
                with Vertical():
                    yield Label("Name")
                    yield Input(p.name if p else "", id="input-name")
                with Vertical():
                    yield Label("Team")
                    yield Input(p.team if p else "", id="input-team")
            with Horizontal():
                with Vertical():
                    yield Label("Price (₹)")
                    yield Input(
                        f"{p.price:g}" if p else "",
                        id="input-price",
                        type="number",
                        validators=[Number(minimum=0.0)],
                    )
                with Vertical():
                    yield Label("Stock")
                    yield Input(
                        str(p.stock) if p else "0",
                        id="input-stock",
                        type="integer",
                        validators=[Number(minimum=0)],
                    )
            with Horizontal():
                with Vertical():
                    yield Label("Category")
                    yield Select(
                        [(format_category(c), c) for c in CATEGORIES],
                        value=p.category if p else CATEGORIES[0],
                        allow_blank=False,
                        id="select-category",
                    )
                with Vertical():
                    yield Label("Status")
                    yield Select(
                        [(s.replace("_", " ").title(), s) for s in PRODUCT_STATUSES],
                        value=p.status if p else PRODUCT_STATUSES[0],
                        allow_blank=False,
                        id="select-status",
                    )
            yield Label("Sizes")
            yield SelectionList[str](
                *[(s, s, bool(p and s in p.sizes)) for s in SIZES],
                id="sellist-sizes",
            )
            yield Label("Image")
            with Horizontal():
                yield Input(p.image if p else "", placeholder="image url", id="input-image")
                yield Input(placeholder="/path/to/local/file.png", id="input-upload-path")
                yield Button("Upload", id="btn-upload")
            with Horizontal():
                yield Label("Description")
                yield Button("✨ Draft with AI", id="btn-ai-draft")
            yield TextArea(p.description if p else "", id="textarea-description")
            with Horizontal():
                yield Button("Cancel", id="btn-quit")
                yield Button("Save", id="btn-save", variant="primary")

    def on_mount(self):
        self.query_one("#input-name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Input.Changed)
    def handle_input_changed(self, message: Input.Changed) -> None:
        message.input.remove_class("-invalid")

    @on(Button.Pressed, "#btn-upload")
    @work(exclusive=True, group="upload")
    async def handle_upload(self):
        btn = self.query_one("#btn-upload", Button)
        btn.disabled = True
        try:
            url = await upload_image(self, self.query_one("#input-upload-path", Input).value)
        finally:
            btn.disabled = False
        if url:
            self.query_one("#input-image", Input).value = url

    @on(Button.Pressed, "#btn-ai-draft")
    @work(exclusive=True, group="ai-draft")
    async def handle_ai_draft(self):
        name = self.query_one("#input-name", Input).value.strip()
        team = self.query_one("#input-team", Input).value.strip()
        if not name or not team:
            self.notify("Fill in name and team first.", severity="warning")
            return

        btn = self.query_one("#btn-ai-draft", Button)
        btn.disabled = True
        btn.label = "Drafting..."
        try:
            text = await Copywriter().describe(team, name)
        finally:
            btn.disabled = False
            btn.label = "✨ Draft with AI"
        self.query_one("#textarea-description", TextArea).text = text

    def collect(self) -> Optional[Product]:
        """Build a Product from the form, or mark the bad fields and return None."""
        bad = []
        name_input = self.query_one("#input-name", Input)
        team_input = self.query_one("#input-team", Input)
        price_input = self.query_one("#input-price", Input)
        stock_input = self.query_one("#input-stock", Input)

        for field in (name_input, team_input):
            if not field.value.strip():
                bad.append(field)
        try:
            price = float(price_input.value)
            if price < 0:
                raise ValueError
        except ValueError:
            bad.append(price_input)
        try:
            stock = int(stock_input.value)
            if stock < 0:
                raise ValueError
        except ValueError:
            bad.append(stock_input)

        sizes = tuple(s for s in SIZES if s in self.query_one(SelectionList).selected)
        if not sizes:
            self.notify("Select at least one size.", severity="error")
        if bad:
            for field in bad:
                field.add_class("-invalid")
            bad[0].focus()
            self.notify("Please fix the highlighted fields.", severity="error")
        if bad or not sizes:
            return None

        image = self.query_one("#input-image", Input).value.strip()
        images = tuple(self._product.images) if self._product else ()
        if image and image not in images:
            images = (image,) + images

        return Product(
            id=new_product_id() if self.is_new else self._product.id,
            name=name_input.value.strip(),
            team=team_input.value.strip(),
            price=price,
            image=image,
            description=self.query_one("#textarea-description", TextArea).text.strip(),
            stock=stock,
            status=self.query_one("#select-status", Select).value,
            category=self.query_one("#select-category", Select).value,
            sizes=sizes,
            images=images,
        )

    @on(Button.Pressed, "#btn-save")
    def handle_save(self):
        product = self.collect()
        if product is not None:
            self.dismiss(product)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
