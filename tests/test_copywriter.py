import unittest

from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.runnables import RunnableLambda

from jamstore.core.copywriter import EMPTY_REPLY_TEXT, FALLBACK_TEXT, Copywriter


class CopywriterTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_returns_model_text(self):
        writer = Copywriter(FakeListChatModel(responses=["  Pure Aizawl pride.  "]))
        self.assertEqual(await writer.describe("Aizawl FC", "Home Kit"), "Pure Aizawl pride.")

    async def test_empty_reply_gets_stock_text(self):
        writer = Copywriter(FakeListChatModel(responses=["   "]))
        self.assertEqual(await writer.describe("Aizawl FC", "Home Kit"), EMPTY_REPLY_TEXT)

    async def test_failure_gets_fallback_text(self):
        def unreachable(_prompt):
            raise ConnectionError("ollama is not running")

        writer = Copywriter(RunnableLambda(unreachable))
        self.assertEqual(await writer.describe("Aizawl FC", "Home Kit"), FALLBACK_TEXT)
