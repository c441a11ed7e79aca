"""RSS feed fetching for the AWS RSS Discord notifier."""

from urllib.parse import urlparse

import feedparser
import requests
from bs4 import BeautifulSoup

from .logging_config import create_execution_logger
from .models import FeedItem


class FeedFetchError(RuntimeError):
    """Raised when a feed cannot be downloaded or parsed."""


class FeedProcessor:
    """Fetches one RSS feed and normalizes its entries."""

    def __init__(self, timeout: int = 30, execution_id: str | None = None):
        """Initialize FeedProcessor with configuration.

        Args:
            timeout: HTTP request timeout in seconds
            execution_id: Execution ID for logging context
        """
        self.timeout = timeout
        self.logger = create_execution_logger("feed_processor", execution_id)
        self.session = requests.Session()
        self.session.headers.update(
            {"User-Agent": "AWS-RSS-Discord/1.0 (AWS What's New to Discord)"}
        )

        self.logger.info("FeedProcessor initialized", timeout=timeout)

    def parse_feed(self, feed_url: str) -> list[FeedItem]:
        """Download and parse a single RSS feed.

        Args:
            feed_url: URL of the RSS feed

        Returns:
            List of FeedItem objects in feed order

        Raises:
            ValueError: If feed URL is not HTTPS
            FeedFetchError: If the feed cannot be downloaded or parsed
        """
        self.logger.info("Starting to parse feed", feed_url=feed_url)

        parsed_url = urlparse(feed_url)
        if parsed_url.scheme != "https":
            error_msg = f"Feed URL must use HTTPS protocol: {feed_url}"
            self.logger.error(error_msg, feed_url=feed_url, scheme=parsed_url.scheme)
            raise ValueError(error_msg)

        try:
            response = self.session.get(feed_url, timeout=self.timeout)
            response.raise_for_status()
            self.logger.info(
                "Feed downloaded successfully",
                feed_url=feed_url,
                status_code=response.status_code,
                content_length=len(response.content),
            )
        except requests.RequestException as e:
            self.logger.error(
                f"Failed to download feed {feed_url}: {e}",
                feed_url=feed_url,
                error=str(e),
            )
            raise FeedFetchError(f"Failed to download feed {feed_url}: {e}") from e

        feed = feedparser.parse(response.content)

        if feed.bozo and not feed.entries:
            reason = getattr(feed, "bozo_exception", "unknown parse error")
            self.logger.error(
                f"Feed could not be parsed {feed_url}: {reason}",
                feed_url=feed_url,
                bozo_exception=str(reason),
            )
            raise FeedFetchError(f"Feed could not be parsed {feed_url}: {reason}")

        if feed.bozo:
            self.logger.warning(
                f"Feed parsing warning for {feed_url}: {feed.get('bozo_exception')}",
                feed_url=feed_url,
                bozo_exception=str(feed.get("bozo_exception")),
            )

        items = []
        for entry in feed.entries:
            try:
                items.append(self.normalize_item(entry, feed_url))
            except Exception as e:
                self.logger.warning(
                    f"Failed to normalize entry from {feed_url}: {e}",
                    feed_url=feed_url,
                    error=str(e),
                )
                continue

        self.logger.info(
            f"Successfully retrieved RSS feed containing {len(items)} total items",
            feed_url=feed_url,
            items_count=len(items),
            total_entries=len(feed.entries),
            last_build_date=feed.feed.get("updated", "Unknown"),
        )
        return items

    def normalize_item(self, raw_item, feed_url: str) -> FeedItem:
        """Normalize a raw feed entry into a FeedItem.

        The publish timestamp is kept as the source text; deciding whether it
        parses belongs to the freshness filter.

        Args:
            raw_item: Raw feed entry from feedparser
            feed_url: Source feed URL

        Returns:
            Normalized FeedItem object
        """
        title = getattr(raw_item, "title", None) or "No Title"
        link = getattr(raw_item, "link", None) or ""

        published = None
        for attr in ("published", "updated"):
            value = getattr(raw_item, attr, None)
            if value:
                published = value
                break

        content = None
        if getattr(raw_item, "summary", None):
            content = raw_item.summary
        elif getattr(raw_item, "description", None):
            content = raw_item.description

        snippet = self.clean_html_content(content) if content else None

        guid = None
        if getattr(raw_item, "id", None):
            guid = raw_item.id
        elif getattr(raw_item, "guid", None):
            guid = raw_item.guid

        return FeedItem(
            title=title,
            link=link,
            snippet=snippet or None,
            published=published,
            feed_url=feed_url,
            guid=guid,
        )

    def clean_html_content(self, content: str | None) -> str:
        """Remove HTML tags from content and normalize whitespace.

        Args:
            content: Raw content that may contain HTML

        Returns:
            Clean text content without HTML tags
        """
        if not content:
            return ""

        if "<" not in content and ">" not in content:
            return " ".join(content.split())

        soup = BeautifulSoup(content, "html.parser")

        for script in soup(["script", "style"]):
            script.decompose()

        text = soup.get_text(separator=" ")
        text = text.replace("<", "").replace(">", "")

        return " ".join(text.split())
