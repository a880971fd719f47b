from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable

from jamstore.db.models import HeroSlide
from jamstore.utils.messages import HeroChangedMessage, IdentityChangedMessage
from jamstore.views.base_screen import AdminScreen
from jamstore.views.modal_dialog import ConfirmDeleteModal
from jamstore.views.modal_hero_form import HeroFormModal


class AdminHeroScreen(AdminScreen):
    """Banner slides shown on the storefront, in display order."""

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="admin-body"):
            with Horizontal(id="hort-hero-controls"):
                yield Button("Add Slide", id="btn-add", variant="success")
                yield Button("Edit", id="btn-edit", variant="primary")
                yield Button("Delete", id="btn-delete", variant="error")
            yield DataTable(id="table-hero")

    def on_mount(self) -> None:
        table = self.query_one("#table-hero", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order", "Badge", "Title", "Button", "Accent")

    @on(ScreenResume)
    @on(HeroChangedMessage)
    @on(IdentityChangedMessage)
    def handle_refresh(self) -> None:
        if not self.gate():
            return
        slides = self.app.state.hero_slides
        table = self.query_one("#table-hero", DataTable)
        table.clear()
        for s in slides:
            table.add_row(
                str(s.display_order),
                s.badge,
                s.title,
                s.button_text,
                f"[on {s.accent_color}]   [/] {s.accent_color}",
                key=s.id,
            )
        self.query_one("#btn-edit", Button).disabled = not slides
        self.query_one("#btn-delete", Button).disabled = not slides

    def selected_slide(self) -> Optional[HeroSlide]:
        table = self.query_one("#table-hero", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return next((s for s in self.app.state.hero_slides if s.id == row_key.value), None)

    async def edit_slide(self, slide: Optional[HeroSlide]) -> None:
        slides = self.app.state.hero_slides
        next_order = max((s.display_order for s in slides), default=0) + 1
        result = await self.app.push_screen_wait(HeroFormModal(slide, next_order))
        if result is not None and await self.app.state.save_hero_slide(result):
            self.app.broadcast(HeroChangedMessage)

    @on(Button.Pressed, "#btn-add")
    @work(exclusive=True, group="hero-edit")
    async def handle_add(self):
        await self.edit_slide(None)

    @on(Button.Pressed, "#btn-edit")
    @work(exclusive=True, group="hero-edit")
    async def handle_edit(self):
        slide = self.selected_slide()
        if slide is not None:
            await self.edit_slide(slide)

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True, group="hero-edit")
    async def handle_delete(self):
        slide = self.selected_slide()
        if slide is None:
            return
        if not await self.app.push_screen_wait(ConfirmDeleteModal(f"slide '{slide.title}'")):
            return
        await self.app.state.delete_hero_slide(slide.id)
        self.app.broadcast(HeroChangedMessage)
