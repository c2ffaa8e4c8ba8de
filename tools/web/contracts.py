"""Data contracts for the web search module."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class WebSearchSource:
    """One search-result document. Identity is the URL."""

    title: str
    url: str
    content: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "url": self.url, "content": self.content}


@dataclass(frozen=True)
class WebSearchImage:
    url: str
    description: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"url": self.url, "description": self.description}


@dataclass(frozen=True)
class WebSearchResult:
    """Sources, images and the query that produced them, for a single request."""

    query: str
    sources: tuple[WebSearchSource, ...] = field(default_factory=tuple)
    images: tuple[WebSearchImage, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sources": [s.to_dict() for s in self.sources],
            "images": [i.to_dict() for i in self.images],
            "query": self.query,
        }
