"""Product description drafts from a local Ollama model."""

import os
from typing import Optional

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import PromptTemplate
from langchain_ollama import ChatOllama

from jamstore.utils.logger import get_logger

_logger = get_logger(__name__)

OLLAMA_BASE_URL = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2")
OLLAMA_TEMPERATURE = 0.8

EMPTY_REPLY_TEXT = (
    "Unmatched quality meets unparalleled comfort. Represent your favorite colors "
    "with this premium edition kit, engineered for performance and styled for the "
    "streets of Aizawl."
)
FALLBACK_TEXT = (
    "A premium quality jersey built for performance and style. Featuring "
    "high-grade fabric designed for the ultimate fan experience."
)

_PROMPT = PromptTemplate.from_template(
    """You are a high-end sports copywriter for 'Jersey Apparel Mizoram'.
Write a compelling, premium description for a football jersey for {team} called {name}.

Requirements:
- Highlight the authentic fabric quality and moisture-wicking technology.
- Mention that it's perfect for both the pitch and casual streetwear in Aizawl.
- Evoke local pride and passion for the beautiful game in Mizoram.
- Use professional but exciting language.
- Keep it under 80 words."""
)


class Copywriter:
    def __init__(self, llm: Optional[ChatOllama] = None) -> None:
        self.llm = llm or ChatOllama(
            base_url=OLLAMA_BASE_URL,
            model=OLLAMA_MODEL,
            temperature=OLLAMA_TEMPERATURE,
        )
        self.chain = _PROMPT | self.llm | StrOutputParser()

    async def describe(self, team: str, name: str) -> str:
        """Never raises: a failed or empty generation yields a stock description."""
        try:
            text = await self.chain.ainvoke({"team": team, "name": name})
        except Exception as e:
            _logger.error(f"Description generation failed: {e}")
            return FALLBACK_TEXT
        return (text or "").strip() or EMPTY_REPLY_TEXT
