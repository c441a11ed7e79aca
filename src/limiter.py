"""Caps how many qualifying items are delivered in one run."""

from dataclasses import dataclass

from .logging_config import create_execution_logger
from .models import FeedItem


@dataclass
class LimitResult:
    """The batch selected for delivery and whether items were dropped."""

    batch: list[FeedItem]
    truncated: bool
    qualified_count: int

    @property
    def dropped_count(self) -> int:
        return self.qualified_count - len(self.batch)


class DeliveryLimiter:
    """Prefix selection of at most ``max_items`` items.

    Feed order is assumed to be newest first, so the prefix is the most
    recent announcements. The order itself is not checked here.
    """

    def __init__(self, max_items: int = 5, execution_id: str | None = None):
        if max_items < 0:
            raise ValueError(f"max_items must be non-negative, got {max_items}")

        self.max_items = max_items
        self.logger = create_execution_logger("delivery_limiter", execution_id)

    def limit(self, items: list[FeedItem]) -> LimitResult:
        batch = list(items[: self.max_items])
        result = LimitResult(
            batch=batch,
            truncated=len(items) > self.max_items,
            qualified_count=len(items),
        )

        if result.truncated:
            self.logger.warning(
                f"Spam protection activated: limited to {self.max_items} items "
                f"({len(items)} total qualified)",
                max_items=self.max_items,
                items_qualified=len(items),
                items_dropped=result.dropped_count,
            )
        else:
            self.logger.debug(
                "Batch within limit",
                max_items=self.max_items,
                items_qualified=len(items),
            )

        return result
