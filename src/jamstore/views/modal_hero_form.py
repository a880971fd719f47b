from datetime import datetime, timezone
from typing import Optional

from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.validation import Number, Regex
from textual.widgets import Button, Input, Label, TextArea

from jamstore.db.models import HeroSlide

HEX_COLOR = r"^#[0-9a-fA-F]{6}$"


class HeroFormModal(ModalScreen[Optional[HeroSlide]]):
    """Add or edit a hero slide. Returns the slide, or None on cancel."""

    def __init__(self, slide: Optional[HeroSlide] = None, next_order: int = 1) -> None:
        super().__init__()
        self._slide = slide
        self._next_order = next_order

    def compose(self) -> ComposeResult:
        s = self._slide
        with Vertical(id="div-hero-form"):
            yield Label("Badge")
            yield Input(s.badge if s else "", placeholder="e.g. NEW SEASON DROPPED", id="input-badge")
            yield Label("Title")
            yield Input(s.title if s else "", placeholder="Authentic Kits For True Fans.", id="input-title")
            yield Label("Description")
            yield TextArea(s.description if s else "", id="textarea-description")
            with Horizontal():
                with Vertical():
                    yield Label("Button Text")
                    yield Input(s.button_text if s else "Shop Now", id="input-button-text")
                with Vertical():
                    yield Label("Display Order")
                    yield Input(
                        str(s.display_order if s else self._next_order),
                        type="integer",
                        validators=[Number(minimum=0)],
                        id="input-order",
                    )
                with Vertical():
                    yield Label("Accent Color")
                    yield Input(
                        s.accent_color if s else HeroSlide.accent_color,
                        validators=[Regex(HEX_COLOR)],
                        id="input-accent",
                    )
            with Horizontal():
                yield Button("Cancel", id="btn-quit")
                yield Button("Save", id="btn-save", variant="primary")

    def on_mount(self):
        self.query_one("#input-badge").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-save")
    def handle_save(self):
        required = [
            self.query_one(i, Input)
            for i in ("#input-badge", "#input-title", "#input-button-text", "#input-order")
        ]
        bad = [f for f in required if not f.value.strip()]
        accent = self.query_one("#input-accent", Input)
        if not accent.is_valid:
            bad.append(accent)
        description = self.query_one("#textarea-description", TextArea).text.strip()
        if bad or not description:
            for field in bad:
                field.add_class("-invalid")
            self.notify("All fields are required.", severity="error")
            return

        stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        self.dismiss(
            HeroSlide(
                id=self._slide.id if self._slide else f"hero-{stamp}",
                badge=required[0].value.strip(),
                title=required[1].value.strip(),
                description=description,
                button_text=required[2].value.strip(),
                accent_color=accent.value.strip(),
                display_order=int(required[3].value),
            )
        )

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
