from __future__ import annotations

import httpx

from voicenews.gateways.base import GatewayError, decode_json
from voicenews.lang.vocab import language_prefix
from voicenews.models import Article, ArticleSet
from voicenews.telemetry.logging import get_logger
from voicenews.telemetry.tracing import get_tracer

tracer = get_tracer(__name__)


class NewsGateway:
    """Client for the news proxy: ``GET ?category=&query=&lang=&max=`` -> ``{"articles": [...]}``."""

    def __init__(
        self,
        url: str,
        timeout: float = 15.0,
        max_articles: int = 10,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._max_articles = max_articles
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._logger = get_logger(__name__)

    async def fetch_news(self, category: str, query: str | None = None, language: str = "en-US") -> ArticleSet:
        params: dict[str, str | int] = {
            "category": category,
            "lang": language_prefix(language),
            "max": self._max_articles,
        }
        if query:
            params["query"] = query
        with tracer.start_as_current_span("news.fetch") as span:
            span.set_attribute("news.category", category)
            span.set_attribute("news.has_query", bool(query))
            try:
                resp = await self._client.get(self._url, params=params)
            except httpx.HTTPError as exc:
                self._logger.error("news.fetch.transport_error", category=category, error=str(exc))
                raise GatewayError(f"news proxy unreachable: {exc}") from exc
            data = decode_json(resp, "news proxy")
            if not isinstance(data, dict):
                raise GatewayError("news proxy payload is not an object")
            raw = data.get("articles")
            if raw is None:
                raw = []
            if not isinstance(raw, list):
                raise GatewayError("news proxy 'articles' is not a list")
            articles = [a for a in (Article.from_payload(item) for item in raw if isinstance(item, dict)) if a]
            span.set_attribute("news.count", len(articles))
        self._logger.info("news.fetch.complete", category=category, query=query, count=len(articles))
        return ArticleSet.of(articles)

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["NewsGateway"]
