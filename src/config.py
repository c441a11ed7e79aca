"""Configuration management for the AWS RSS Discord notifier."""

import math
import os
from dataclasses import dataclass
from datetime import timedelta


@dataclass
class WebhookConfig:
    """Configuration for the Discord webhook."""

    webhook_url: str
    thread_id: str | None = None
    username: str = "AWS Updates"
    avatar_url: str = "https://a0.awsstatic.com/libra-css/images/site/fav/favicon.ico"
    timeout: int = 30


@dataclass
class DeliveryConfig:
    """Freshness and flood-protection settings for a run."""

    window_minutes: float = 3
    max_items: int = 5
    pace_seconds: float = 2.0

    @property
    def window(self) -> timedelta:
        return timedelta(minutes=self.window_minutes)


@dataclass
class ScheduleConfig:
    """Configuration for scheduled execution."""

    interval_minutes: int = 30

    def leaves_gap(self, window_minutes: float) -> bool:
        """Whether items published between two runs can fall outside every window."""
        return window_minutes < self.interval_minutes


class Config:
    """Main configuration manager."""

    # Official AWS announcements feed
    DEFAULT_FEED_URL = "https://aws.amazon.com/about-aws/whats-new/recent/feed/"

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.feed_url = os.getenv("RSS_FEED_URL", "").strip() or self.DEFAULT_FEED_URL
        self.webhook_url = os.getenv("DISCORD_WEBHOOK_URL", "").strip()
        self.webhook_secret_name = os.getenv("WEBHOOK_SECRET_NAME", "").strip()
        self.thread_id = os.getenv("THREAD_ID", "").strip() or None
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        self.feed_timeout = _read_number("FEED_TIMEOUT_SECONDS", 30, int, minimum=1)
        self.window_minutes = _read_number(
            "FRESHNESS_WINDOW_MINUTES", 3, float, minimum=0, exclusive=True
        )
        self.max_items = _read_number("MAX_ITEMS_PER_RUN", 5, int, minimum=0)
        self.pace_seconds = _read_number("PACING_DELAY_SECONDS", 2.0, float, minimum=0)
        self.interval_minutes = _read_number(
            "SCHEDULE_INTERVAL_MINUTES", 30, int, minimum=1
        )
        self.metrics_enabled = _read_flag(
            "CLOUDWATCH_METRICS_ENABLED",
            default=bool(os.getenv("AWS_LAMBDA_FUNCTION_NAME")),
        )

    def get_webhook_config(self, webhook_url: str | None = None) -> WebhookConfig:
        """Get webhook configuration.

        Args:
            webhook_url: URL resolved elsewhere (e.g. Secrets Manager);
                falls back to DISCORD_WEBHOOK_URL
        """
        return WebhookConfig(
            webhook_url=webhook_url or self.webhook_url,
            thread_id=self.thread_id,
        )

    def get_delivery_config(self) -> DeliveryConfig:
        """Get delivery configuration."""
        return DeliveryConfig(
            window_minutes=self.window_minutes,
            max_items=self.max_items,
            pace_seconds=self.pace_seconds,
        )

    def get_schedule_config(self) -> ScheduleConfig:
        """Get schedule configuration."""
        return ScheduleConfig(interval_minutes=self.interval_minutes)


def _read_number(name, default, cast, minimum=None, exclusive=False):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default

    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None

    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number, got {raw!r}")

    if minimum is not None:
        if exclusive and value <= minimum:
            raise ValueError(f"{name} must be greater than {minimum}, got {value}")
        if not exclusive and value < minimum:
            raise ValueError(f"{name} must be at least {minimum}, got {value}")

    return value


def _read_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")
