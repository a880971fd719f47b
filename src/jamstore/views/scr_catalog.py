from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import DataTable, Input, Label, Select, Static

from jamstore.core.stats import (
    ALL_CATEGORIES,
    ALL_TEAMS,
    average_rating,
    filter_products,
    format_category,
    teams,
)
from jamstore.db.models import CATEGORIES
from jamstore.utils.messages import (
    CartChangedMessage,
    CatalogChangedMessage,
    HeroChangedMessage,
)
from jamstore.utils.pure import format_price
from jamstore.views.base_screen import BaseScreen
from jamstore.views.modal_prod_detail import ProdDetailModal

HERO_INTERVAL = 6


class CatalogScreen(BaseScreen):
    """
    Storefront: rotating hero banner, category/team filters, search and the
    product list. Enter on a row opens the product detail.
    """

    # only here to be displayed in footer
    BINDINGS = [
        Binding("fn+shift+1", "abs(1)", "View Product", show=True, key_display="⏎"),
    ]

    hero_idx = reactive(0)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-hero"):
            yield Label("", id="label-hero-badge")
            yield Static("", id="static-hero-title")
            yield Static("", id="static-hero-desc")
        with Horizontal(id="div-filters"):
            yield Select(
                [(ALL_CATEGORIES, ALL_CATEGORIES)]
                + [(format_category(c), c) for c in CATEGORIES],
                value=ALL_CATEGORIES,
                allow_blank=False,
                id="select-category",
            )
            yield Select(
                [(ALL_TEAMS, ALL_TEAMS)],
                value=ALL_TEAMS,
                allow_blank=False,
                id="select-team",
            )
            yield Input(id="input-search", placeholder="Search jerseys or teams...")
        yield DataTable(id="table-products")
        yield Label("", id="label-result-cnt")

    def on_mount(self):
        table = self.query_one("#table-products", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Team", "Category", "Price", "Status", "Rating")

        self.set_interval(HERO_INTERVAL, self.next_slide)
        self.refresh_catalog()
        self.query_one("#input-search").focus()

    # ---------------------------
    # Hero banner
    # ---------------------------

    def next_slide(self) -> None:
        slides = self.app.state.hero_slides
        if len(slides) > 1:
            self.hero_idx = (self.hero_idx + 1) % len(slides)

    def watch_hero_idx(self, _old: int, _new: int) -> None:
        self.render_hero()

    @on(HeroChangedMessage)
    def render_hero(self) -> None:
        slides = self.app.state.hero_slides
        div_hero = self.query_one("#div-hero")
        if not slides:
            div_hero.display = False
            return

        div_hero.display = True
        slide = slides[self.hero_idx % len(slides)]
        self.query_one("#label-hero-badge", Label).update(slide.badge)
        self.query_one("#static-hero-title", Static).update(f"[b]{slide.title}[/b]")
        self.query_one("#static-hero-desc", Static).update(
            f"{slide.description}\n[i]{slide.button_text} →[/i]"
        )
        div_hero.styles.background = slide.accent_color

    # ---------------------------
    # Product list
    # ---------------------------

    @on(ScreenResume)
    @on(CatalogChangedMessage)
    def refresh_catalog(self) -> None:
        self.refresh_team_options()
        self.render_hero()
        self.update_products()

    def refresh_team_options(self) -> None:
        select_team = self.query_one("#select-team", Select)
        current = select_team.value
        names = teams(self.app.state.products)
        select_team.set_options([(ALL_TEAMS, ALL_TEAMS)] + [(t, t) for t in names])
        select_team.value = current if current in names else ALL_TEAMS

    @on(Select.Changed)
    @on(Input.Changed, "#input-search")
    def handle_filter_changed(self) -> None:
        self.update_products()

    def update_products(self) -> None:
        state = self.app.state
        category = self.query_one("#select-category", Select).value
        team = self.query_one("#select-team", Select).value
        query = self.query_one("#input-search", Input).value

        products = filter_products(
            state.products,
            category if isinstance(category, str) else ALL_CATEGORIES,
            team if isinstance(team, str) else ALL_TEAMS,
            query,
        )

        table = self.query_one("#table-products", DataTable)
        table.clear()
        for p in products:
            avg = average_rating(state.reviews, p.id)
            table.add_row(
                p.name,
                p.team,
                format_category(p.category),
                format_price(p.price),
                p.status.replace("_", " "),
                "-" if avg is None else f"{avg:.1f} ★",
                key=p.id,
            )

        self.query_one("#label-result-cnt", Label).update(
            f"{len(products)} of {len(state.products)} products"
        )

    @on(DataTable.RowSelected, "#table-products")
    @work(exclusive=True)
    async def handle_view_product(self, event: DataTable.RowSelected):
        product = self.app.state.find_product(event.row_key.value)
        if product is None:
            return
        if await self.app.push_screen_wait(ProdDetailModal(product)):
            self.app.broadcast(CartChangedMessage)
