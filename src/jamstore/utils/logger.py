import logging
import os

from rich.console import Console
from rich.logging import RichHandler


class CenteredFormatter(logging.Formatter):
    longest_name_length = 16  # grows with the longest logger name seen

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )
        record.name = record.name.center(CenteredFormatter.longest_name_length)
        return super().format(record)


def _make_console() -> Console | None:
    # the textual screen owns stdout while the app runs
    log_file = os.getenv("JAMSTORE_LOG_FILE")
    if not log_file:
        return None
    os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
    return Console(file=open(log_file, "a", encoding="utf-8"), width=140)


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger that writes through a RichHandler.

    Level is DEBUG when the DEBUG env var is set. If JAMSTORE_LOG_FILE is set,
    records go to that file instead of the terminal.
    """
    name = name or "jamstore"
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if os.getenv("DEBUG") else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            console=_make_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(CenteredFormatter("[%(name)s]  %(message)s"))
        handler.setLevel(log_level)
        logger.addHandler(handler)
        logger.propagate = False
        logger.debug(f"Logger for '{name}' ready.")

    return logger
