from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Literal, Mapping, Sequence

SessionState = Literal["IDLE", "LISTENING", "PAUSED", "AWAITING_CONFIRMATION"]


@dataclass(frozen=True, slots=True)
class Article:
    title: str
    description: str
    url: str
    image_url: str | None = None
    source_name: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Article | None":
        """Build an article from a proxy item; items without title or url are dropped."""
        title = str(payload.get("title") or "").strip()
        url = str(payload.get("url") or "").strip()
        if not title or not url:
            return None
        source = payload.get("source")
        source_name = source.get("name") if isinstance(source, Mapping) else None
        image = payload.get("image") or payload.get("urlToImage")
        return cls(
            title=title,
            description=str(payload.get("description") or "").strip(),
            url=url,
            image_url=str(image) if image else None,
            source_name=str(source_name) if source_name else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "image_url": self.image_url,
            "source_name": self.source_name,
        }


@dataclass(frozen=True, slots=True)
class ArticleSet:
    """The current batch of fetched articles; replaced wholesale on each fetch."""

    articles: tuple[Article, ...] = ()

    @classmethod
    def of(cls, articles: Sequence[Article]) -> "ArticleSet":
        return cls(tuple(articles))

    def __len__(self) -> int:
        return len(self.articles)

    def __iter__(self) -> Iterator[Article]:
        return iter(self.articles)

    def __getitem__(self, index: int) -> Article:
        return self.articles[index]

    def get(self, index: int) -> Article | None:
        if 0 <= index < len(self.articles):
            return self.articles[index]
        return None

    def titles(self) -> list[str]:
        return [article.title for article in self.articles]

    def to_list(self) -> list[dict[str, Any]]:
        return [{"number": i + 1, **article.to_dict()} for i, article in enumerate(self.articles)]


@dataclass
class Session:
    listening: bool = False
    paused: bool = False
    language_key: str = "en-US"
    _awaiting_confirmation: bool = field(default=False, repr=False)
    _pending_payload: str | None = field(default=None, repr=False)

    @property
    def awaiting_confirmation(self) -> bool:
        return self._awaiting_confirmation

    @property
    def pending_confirmation_payload(self) -> str | None:
        return self._pending_payload

    def await_confirmation(self, payload: str) -> None:
        if not payload:
            raise ValueError("confirmation payload must be non-empty")
        self._awaiting_confirmation = True
        self._pending_payload = payload

    def clear_confirmation(self) -> None:
        self._awaiting_confirmation = False
        self._pending_payload = None

    @property
    def state(self) -> SessionState:
        if not self.listening:
            return "IDLE"
        if self.paused:
            return "PAUSED"
        if self._awaiting_confirmation:
            return "AWAITING_CONFIRMATION"
        return "LISTENING"

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "listening": self.listening,
            "paused": self.paused,
            "awaiting_confirmation": self._awaiting_confirmation,
            "pending_confirmation_payload": self._pending_payload,
            "language": self.language_key,
        }


__all__ = ["Article", "ArticleSet", "Session", "SessionState"]
