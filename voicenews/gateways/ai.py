from __future__ import annotations

from typing import Any

import httpx

from voicenews.gateways.base import GatewayError, decode_json
from voicenews.models import Article
from voicenews.telemetry.logging import get_logger
from voicenews.telemetry.tracing import get_tracer

tracer = get_tracer(__name__)

SUMMARY_PROMPT = "Summarize the following news in 3-4 bullet points in plain English.\n\n{article}"
KEY_POINTS_PROMPT = "Extract 5 concise key points from this news. Use bullets.\n\n{article}"
SENTIMENT_PROMPT = (
    "Classify the overall sentiment (Positive/Negative/Neutral) and give one-line justification.\n\n{article}"
)
ASK_PROMPT = (
    "You are a helpful assistant. Answer the user question using ONLY the information below "
    "(title/description). If unknown, say so briefly.\n\nARTICLE:\n{article}\n\nQUESTION:\n{question}"
)


def article_text(article: Article, max_chars: int = 5000) -> str:
    text = f"Title: {article.title}\nDescription: {article.description}".strip()
    return text[:max_chars]


def extract_text(data: Any) -> str:
    """Accept ``{"text": ...}`` or a forwarded Gemini ``generateContent`` body."""
    if not isinstance(data, dict):
        raise GatewayError("ai proxy payload is not an object")
    text = data.get("text")
    if isinstance(text, str):
        return text
    candidates = data.get("candidates")
    if isinstance(candidates, list) and candidates:
        try:
            parts = candidates[0]["content"]["parts"]
            return "".join(str(part.get("text", "")) for part in parts)
        except (KeyError, TypeError, AttributeError) as exc:
            raise GatewayError("ai proxy candidate has no text parts") from exc
    raise GatewayError("ai proxy payload has no text")


class AIGateway:
    """Client for the AI proxy: ``POST {"prompt": ...}`` -> ``{"text": ...}``."""

    def __init__(
        self,
        url: str,
        timeout: float = 60.0,
        max_chars: int = 5000,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._max_chars = max_chars
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._logger = get_logger(__name__)

    async def generate_text(self, prompt: str) -> str:
        with tracer.start_as_current_span("ai.generate") as span:
            span.set_attribute("ai.prompt_chars", len(prompt))
            try:
                resp = await self._client.post(self._url, json={"prompt": prompt})
            except httpx.HTTPError as exc:
                self._logger.error("ai.generate.transport_error", error=str(exc))
                raise GatewayError(f"ai proxy unreachable: {exc}") from exc
            text = extract_text(decode_json(resp, "ai proxy")).strip()
        if not text:
            raise GatewayError("ai proxy returned empty text")
        return text

    def _article(self, article: Article) -> str:
        return article_text(article, self._max_chars)

    async def summarize(self, article: Article) -> str:
        return await self.generate_text(SUMMARY_PROMPT.format(article=self._article(article)))

    async def key_points(self, article: Article) -> str:
        return await self.generate_text(KEY_POINTS_PROMPT.format(article=self._article(article)))

    async def sentiment(self, article: Article) -> str:
        return await self.generate_text(SENTIMENT_PROMPT.format(article=self._article(article)))

    async def ask(self, article: Article, question: str) -> str:
        return await self.generate_text(ASK_PROMPT.format(article=self._article(article), question=question))

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["AIGateway", "article_text", "extract_text"]
