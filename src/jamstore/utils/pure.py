from datetime import datetime
from typing import List, Literal, Optional


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of values (converted with str()).
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all left ('l').

    Returns:
        str: Markdown formatted table, or "" when there are no rows.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [md_escape(str(h)) for h in headers]
    rows = [[md_escape(str(v)) for v in row] for row in rows]

    if aligns is None:
        aligns = ["l"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}

    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(align_map[a] for a in aligns) + " |",
    ]
    lines += ["| " + " | ".join(row) + " |" for row in rows]
    return "\n".join(lines)


def md_escape(text: str) -> str:
    # pipes break table cells
    return text.replace("|", "\\|").replace("\n", " ")


def format_price(amount: float) -> str:
    """1200 -> '₹1,200', 1234.5 -> '₹1,234.50'"""
    if float(amount).is_integer():
        return f"₹{int(amount):,}"
    return f"₹{amount:,.2f}"


def format_date(value: datetime, with_time: bool = False) -> str:
    if not isinstance(value, datetime):
        return "N/A"
    local = value.astimezone() if value.tzinfo else value
    return local.strftime("%d %b %Y %H:%M" if with_time else "%d %b %Y")


def format_rating(avg: Optional[float], count: int = 0) -> str:
    if avg is None:
        return "No ratings yet"
    stars = "★" * round(avg) + "☆" * (5 - round(avg))
    return f"{stars} {avg:.1f} ({count})"
