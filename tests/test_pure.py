import unittest
from datetime import datetime

from jamstore.core.notify import Notifier, Toast, ToastRecorder
from jamstore.utils.pure import (
    format_date,
    format_price,
    format_rating,
    generate_markdown_table,
)


class PureTestCase(unittest.TestCase):
    def test_markdown_table(self):
        md = generate_markdown_table(["A", "B"], [["1", "x|y"]], ["l", "r"])
        self.assertEqual(md.splitlines(), ["| A | B |", "| :--- | ---: |", "| 1 | x\\|y |"])
        self.assertEqual(generate_markdown_table(["A"], []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["A", "B"], [["1", "2"]], ["l"])

    def test_markdown_table_first_row_as_header(self):
        md = generate_markdown_table(None, [["k", "v"], ["a", "b"]])
        self.assertEqual(md.splitlines()[0], "| k | v |")

    def test_format_price(self):
        self.assertEqual(format_price(1200), "₹1,200")
        self.assertEqual(format_price(1234.5), "₹1,234.50")

    def test_format_date(self):
        self.assertEqual(format_date(datetime(2025, 11, 1, 9, 30)), "01 Nov 2025")
        self.assertEqual(format_date(datetime(2025, 11, 1, 9, 30), True), "01 Nov 2025 09:30")
        self.assertEqual(format_date(None), "N/A")

    def test_format_rating(self):
        self.assertEqual(format_rating(None), "No ratings yet")
        self.assertEqual(format_rating(4.0, 2), "★★★★☆ 4.0 (2)")


class NotifierTestCase(unittest.TestCase):
    def test_routes_to_sink(self):
        recorder = ToastRecorder()
        notifier = Notifier()
        notifier.success("logged only")
        notifier.bind(recorder)
        notifier.warning("careful")
        notifier.error("broken")
        self.assertEqual(
            recorder.toasts, [Toast("careful", "warning"), Toast("broken", "error")]
        )

    def test_failing_sink_is_contained(self):
        def sink(_toast):
            raise RuntimeError("ui gone")

        Notifier(sink).error("still fine")
