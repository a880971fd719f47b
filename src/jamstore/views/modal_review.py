from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Select, TextArea

from jamstore.db.models import CartLine


class ReviewModal(ModalScreen[bool]):
    """
    Rate one purchased item. Returns True once the review was stored.
    """

    def __init__(self, line: CartLine) -> None:
        super().__init__()
        self._line = line

    def compose(self) -> ComposeResult:
        with Vertical(id="div-review"):
            yield Label(f"Rate your {self._line.product_name}", id="label-review-title")
            yield Label("Rating")
            yield Select(
                [("★" * n, n) for n in range(5, 0, -1)],
                value=5,
                allow_blank=False,
                id="select-rating",
            )
            yield Label("Comment")
            yield TextArea(id="textarea-comment")
            with Horizontal():
                yield Button("Cancel", id="btn-quit")
                yield Button("Submit Review", id="btn-submit", variant="primary")

    def on_mount(self):
        self.query_one("#textarea-comment").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        comment = self.query_one("#textarea-comment", TextArea).text.strip()
        if not comment:
            self.query_one("#textarea-comment").add_class("-invalid")
            self.notify("Please write a few words.", severity="error")
            return

        btn = self.query_one("#btn-submit", Button)
        btn.disabled = True
        ok = await self.app.state.submit_review(
            self._line.product_id,
            int(self.query_one("#select-rating", Select).value),
            comment,
        )
        btn.disabled = False
        if ok:
            self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)
