import unittest
from dataclasses import replace
from datetime import datetime, timezone

from helpers import make_identity, make_product

from jamstore.core.orders import build_order
from jamstore.core.stats import (
    ALL_CATEGORIES,
    ALL_TEAMS,
    average_rating,
    delivered_count,
    filter_products,
    format_category,
    pending_count,
    review_count,
    revenue_total,
    similar_products,
    teams,
)
from jamstore.db.models import CartLine, Review

NOW = datetime(2025, 11, 1, tzinfo=timezone.utc)


def _order(total, status):
    line = CartLine("p1", "Jersey", total, 1, "", "M")
    return replace(build_order("A", "1", [line], make_identity()), status=status)


def _review(pid, rating):
    return Review(f"r-{pid}-{rating}", pid, "u1", "Mami", rating, "", NOW)


class StatsTestCase(unittest.TestCase):
    def test_revenue_and_counts(self):
        orders = [
            _order(100, "PENDING"),
            _order(200, "CANCELLED"),
            _order(50, "DELIVERED"),
        ]
        self.assertEqual(revenue_total(orders), 150)
        self.assertEqual(pending_count(orders), 1)
        self.assertEqual(delivered_count(orders), 1)
        self.assertEqual(revenue_total([]), 0)

    def test_average_rating_absent_is_none(self):
        reviews = [_review("p1", 5), _review("p1", 4), _review("p2", 1)]
        self.assertEqual(average_rating(reviews, "p1"), 4.5)
        self.assertEqual(review_count(reviews, "p1"), 2)
        self.assertIsNone(average_rating(reviews, "p3"))
        self.assertEqual(review_count(reviews, "p3"), 0)

    def test_filter_products(self):
        products = [
            make_product("a", name="Aizawl Home", team="Aizawl FC", category="OTHER"),
            make_product("b", name="Madrid Home", team="Real Madrid", category="LA_LIGA"),
            make_product("c", name="Aizawl Away", team="Aizawl FC", category="OTHER"),
        ]
        self.assertEqual(len(filter_products(products)), 3)
        self.assertEqual(
            [p.id for p in filter_products(products, category="LA_LIGA")], ["b"]
        )
        self.assertEqual(
            [p.id for p in filter_products(products, ALL_CATEGORIES, "Aizawl FC")], ["a", "c"]
        )
        self.assertEqual([p.id for p in filter_products(products, query="  away ")], ["c"])
        found = filter_products(products, ALL_CATEGORIES, ALL_TEAMS, "real")
        self.assertEqual([p.id for p in found], ["b"])
        self.assertEqual(teams(products), ["Aizawl FC", "Real Madrid"])

    def test_similar_products(self):
        base = make_product("a", category="OTHER")
        others = [make_product(str(i), category="OTHER") for i in range(6)]
        products = [base, make_product("x", category="LA_LIGA")] + others
        similar = similar_products(products, base)
        self.assertEqual(len(similar), 4)
        self.assertNotIn(base, similar)
        self.assertTrue(all(p.category == "OTHER" for p in similar))

    def test_format_category(self):
        self.assertEqual(format_category("PREMIER_LEAGUE"), "Premier League")
