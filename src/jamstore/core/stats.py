"""
Read-only aggregates over collections that are already loaded.
Nothing here talks to the data service.
"""

from typing import Iterable, List, Optional, Sequence

from jamstore.db.models import Order, Product, Review

ALL_CATEGORIES = "All"
ALL_TEAMS = "All Teams"


def revenue_total(orders: Iterable[Order]) -> float:
    """Sum of order totals, cancelled orders excluded."""
    return sum(o.total_amount for o in orders if o.status != "CANCELLED")


def pending_count(orders: Iterable[Order]) -> int:
    return sum(1 for o in orders if o.status == "PENDING")


def delivered_count(orders: Iterable[Order]) -> int:
    return sum(1 for o in orders if o.status == "DELIVERED")


def average_rating(reviews: Iterable[Review], product_id: str) -> Optional[float]:
    """Mean rating for one product, or None when it has no reviews."""
    ratings = [r.rating for r in reviews if r.product_id == product_id]
    if not ratings:
        return None
    return sum(ratings) / len(ratings)


def review_count(reviews: Iterable[Review], product_id: str) -> int:
    return sum(1 for r in reviews if r.product_id == product_id)


def filter_products(
    products: Iterable[Product],
    category: str = ALL_CATEGORIES,
    team: str = ALL_TEAMS,
    query: str = "",
) -> List[Product]:
    """Products matching category, team and a case-insensitive name/team search."""
    needle = (query or "").strip().lower()
    result = []
    for p in products:
        if category != ALL_CATEGORIES and p.category != category:
            continue
        if team != ALL_TEAMS and p.team != team:
            continue
        if needle and needle not in p.name.lower() and needle not in p.team.lower():
            continue
        result.append(p)
    return result


def teams(products: Iterable[Product]) -> List[str]:
    return sorted({p.team for p in products})


def similar_products(
    products: Sequence[Product], product: Product, limit: int = 4
) -> List[Product]:
    """Other products in the same category."""
    return [p for p in products if p.category == product.category and p.id != product.id][
        :limit
    ]


def format_category(category: str) -> str:
    """PREMIER_LEAGUE -> Premier League"""
    return " ".join(w.capitalize() for w in category.split("_"))
