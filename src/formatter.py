"""Builds Discord embed messages from feed items."""

from datetime import datetime

from .freshness import parse_published
from .models import EmbedField, FeedItem, NotificationMessage

TITLE_LIMIT = 256
DESCRIPTION_LIMIT = 500
ELLIPSIS = "..."

AWS_ORANGE = 0xFF9900
AWS_ICON_URL = "https://a0.awsstatic.com/libra-css/images/site/fav/favicon.ico"

# en-US month names, independent of the process locale
MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


def truncate(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters, ending in an ellipsis when cut."""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def format_published(published_at: datetime | None) -> str:
    """Render a publish time like ``October 18, 2026 at 14:05``."""
    if published_at is None:
        return "Unknown"
    return (
        f"{MONTH_NAMES[published_at.month - 1]} {published_at.day}, "
        f"{published_at.year} at {published_at:%H:%M}"
    )


class NotificationFormatter:
    """Turns a FeedItem into a NotificationMessage."""

    def __init__(
        self,
        source_name: str = "AWS What's New",
        color: int = AWS_ORANGE,
        icon_url: str = AWS_ICON_URL,
        placeholder: str = "No description available for this announcement",
    ):
        self.source_name = source_name
        self.color = color
        self.icon_url = icon_url
        self.placeholder = placeholder

    def format(self, item: FeedItem, index: int, total: int) -> NotificationMessage:
        """Build the message for item ``index`` of ``total`` (1-based)."""
        if not 1 <= index <= total:
            raise ValueError(f"index must be within 1..{total}, got {index}")

        published_at = parse_published(item.published)

        if item.snippet and item.snippet.strip():
            description = truncate(item.snippet, DESCRIPTION_LIMIT)
        else:
            description = self.placeholder

        return NotificationMessage(
            title=truncate(item.title, TITLE_LIMIT),
            url=item.link,
            description=description,
            color=self.color,
            timestamp=published_at.isoformat() if published_at else None,
            footer_text=f"{self.source_name} • {index}/{total}",
            footer_icon_url=self.icon_url,
            fields=[
                EmbedField(
                    name="📅 Published",
                    value=format_published(published_at),
                    inline=True,
                )
            ],
        )
