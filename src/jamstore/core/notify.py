from dataclasses import dataclass
from typing import Callable, List, Literal, Optional

from jamstore.utils.logger import get_logger

_logger = get_logger(__name__)

Severity = Literal["information", "warning", "error"]


@dataclass(frozen=True)
class Toast:
    message: str
    severity: Severity = "information"


ToastSink = Callable[[Toast], None]


class Notifier:
    """
    Routes user feedback from business logic to whatever shows it.

    The app binds a sink that calls App.notify; until then toasts are only
    logged. A failing sink never propagates into the caller.
    """

    def __init__(self, sink: Optional[ToastSink] = None) -> None:
        self._sink = sink

    def bind(self, sink: Optional[ToastSink]) -> None:
        self._sink = sink

    def notify(self, message: str, severity: Severity = "information") -> None:
        toast = Toast(message, severity)
        if self._sink is None:
            _logger.info(f"toast[{severity}]: {message}")
            return
        try:
            self._sink(toast)
        except Exception:
            _logger.exception(f"Toast sink failed for: {message}")

    def success(self, message: str) -> None:
        self.notify(message, "information")

    def warning(self, message: str) -> None:
        self.notify(message, "warning")

    def error(self, message: str) -> None:
        self.notify(message, "error")


class ToastRecorder:
    """Sink that keeps every toast, for tests and headless runs."""

    def __init__(self) -> None:
        self.toasts: List[Toast] = []

    def __call__(self, toast: Toast) -> None:
        self.toasts.append(toast)

    @property
    def messages(self) -> List[str]:
        return [t.message for t in self.toasts]

    def last(self) -> Optional[Toast]:
        return self.toasts[-1] if self.toasts else None
