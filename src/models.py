"""Data models for the AWS RSS Discord notifier."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class FeedItem:
    """Represents a single RSS feed item as fetched."""

    title: str
    link: str
    snippet: str | None
    published: str | None  # raw source text, may be malformed
    feed_url: str = ""
    guid: str | None = None


@dataclass
class EmbedField:
    """A name/value field rendered inside a Discord embed."""

    name: str
    value: str
    inline: bool = True


@dataclass
class NotificationMessage:
    """Bounded-size projection of a FeedItem, shaped like a Discord embed."""

    title: str
    url: str
    description: str
    color: int
    timestamp: str | None
    footer_text: str
    footer_icon_url: str
    fields: list[EmbedField] = field(default_factory=list)

    def to_embed(self) -> dict[str, Any]:
        """Return the Discord embed object for this message."""
        embed: dict[str, Any] = {
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "color": self.color,
            "footer": {"text": self.footer_text, "icon_url": self.footer_icon_url},
            "fields": [
                {"name": f.name, "value": f.value, "inline": f.inline}
                for f in self.fields
            ],
        }
        if self.timestamp:
            embed["timestamp"] = self.timestamp
        return embed


@dataclass
class DeliveryResult:
    """Outcome of delivering one item."""

    index: int
    title: str
    success: bool
    status_code: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "title": self.title,
            "success": self.success,
            "status_code": self.status_code,
            "error": self.error,
        }


@dataclass
class DeliveryReport:
    """Ordered per-item results of one delivery pass."""

    results: list[DeliveryResult] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    @property
    def failures(self) -> list[DeliveryResult]:
        return [result for result in self.results if not result.success]

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "failures": [result.to_dict() for result in self.failures],
        }
