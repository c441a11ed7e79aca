"""Sequential, paced delivery of a batch of feed items."""

import time
from collections.abc import Callable

from .discord import WebhookPublisher
from .formatter import NotificationFormatter
from .logging_config import create_execution_logger
from .models import DeliveryReport, DeliveryResult, FeedItem


class DeliverySequencer:
    """Sends a batch one item at a time with a fixed pause between sends.

    Each item is attempted once. A failure on one item is recorded in the
    report and the next item is still attempted.
    """

    def __init__(
        self,
        publisher: WebhookPublisher,
        formatter: NotificationFormatter | None = None,
        pace_seconds: float = 2.0,
        thread_id: str | None = None,
        sleep: Callable[[float], None] = time.sleep,
        execution_id: str | None = None,
    ):
        if pace_seconds < 0:
            raise ValueError(f"pace_seconds must be non-negative, got {pace_seconds}")

        self.publisher = publisher
        self.formatter = formatter or NotificationFormatter()
        self.pace_seconds = pace_seconds
        self.thread_id = thread_id
        self.sleep = sleep
        self.logger = create_execution_logger("delivery_sequencer", execution_id)

    def deliver(self, batch: list[FeedItem]) -> DeliveryReport:
        """Deliver ``batch`` in order and report per-item outcomes."""
        report = DeliveryReport()
        total = len(batch)

        if total:
            self.logger.info(
                f"Initiating Discord delivery for {total} items",
                items_count=total,
                thread_id=self.thread_id,
            )

        for position, item in enumerate(batch, start=1):
            self.logger.info(
                f"Processing item {position}/{total}: {item.title[:50]}",
                item_index=position,
                item_title=item.title,
            )
            report.results.append(self._deliver_one(item, position, total))

            if position < total:
                self.logger.debug(
                    f"Waiting {self.pace_seconds} seconds before next delivery",
                    pace_seconds=self.pace_seconds,
                )
                self.sleep(self.pace_seconds)

        if report.failed:
            self.logger.warning(
                f"Delivery finished with {report.failed} failures",
                metrics=report.to_dict(),
            )
        elif total:
            self.logger.info(
                "Discord delivery workflow completed successfully",
                metrics=report.to_dict(),
            )

        return report

    def _deliver_one(self, item: FeedItem, index: int, total: int) -> DeliveryResult:
        try:
            message = self.formatter.format(item, index, total)
            result = self.publisher.send(message, index=index, thread_id=self.thread_id)
        except Exception as e:
            self.logger.exception(
                f"Error during Discord delivery for item {index}/{total}: {e}",
                item_index=index,
                item_title=item.title,
                thread_id=self.thread_id,
            )
            return DeliveryResult(
                index=index,
                title=item.title,
                success=False,
                error=f"{type(e).__name__}: {e}",
            )

        if not result.success:
            self.logger.log_item_processing(
                item.title,
                "delivery_failed",
                success=False,
                item_index=index,
                status_code=result.status_code,
                error=result.error,
                link=item.link,
            )
        return result
