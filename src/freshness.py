"""Time-window freshness filter for feed items.

Whether an item is new is decided only from its publish time and the
wall-clock time of the current run: an item qualifies when it was
published at or after ``now - window``. Nothing is remembered between
runs.

Timestamps that cannot be parsed never qualify. A malformed date must not
produce a delivery, so such items are rejected and logged instead.
"""

import warnings
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from dateutil import parser as date_parser
from dateutil.parser import UnknownTimezoneWarning

from .logging_config import create_execution_logger
from .models import FeedItem

REASON_WITHIN_WINDOW = "within window"
REASON_TOO_OLD = "older than cutoff"
REASON_UNPARSABLE = "unparsable timestamp"

# Zone abbreviations seen in RSS pubDate values, as UTC offsets in seconds.
# Names outside this table (and the UTC/GMT/Z names dateutil knows) are
# rejected rather than read as UTC.
ZONE_OFFSETS = {
    "UT": 0,
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
    "AKST": -9 * 3600,
    "AKDT": -8 * 3600,
    "HST": -10 * 3600,
    "CET": 1 * 3600,
    "CEST": 2 * 3600,
    "SGT": 8 * 3600,
    "JST": 9 * 3600,
    "KST": 9 * 3600,
    "AEST": 10 * 3600,
    "AEDT": 11 * 3600,
}

# A complete timestamp parses identically against both defaults. Seconds are
# left equal so "11:58 GMT" still parses.
_DEFAULTS = (datetime(2000, 1, 1, 0, 0), datetime(2001, 2, 2, 1, 1))


@dataclass
class FreshnessDecision:
    """Qualify/reject decision for one feed item."""

    item: FeedItem
    published_at: datetime | None
    age_seconds: float | None
    qualifies: bool
    reason: str


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_published(raw: str | None) -> datetime | None:
    """Parse a feed timestamp into an aware UTC datetime.

    Returns None for absent, empty or unparsable values, for partial values
    missing any of year, month, day, hour or minute, and for unknown zone
    names. Timestamps without any zone are taken as UTC.
    """
    if not raw or not str(raw).strip():
        return None

    results = []
    with warnings.catch_warnings():
        warnings.simplefilter("error", UnknownTimezoneWarning)
        for default in _DEFAULTS:
            try:
                results.append(
                    date_parser.parse(str(raw), default=default, tzinfos=ZONE_OFFSETS)
                )
            except (ValueError, TypeError, OverflowError, UnknownTimezoneWarning):
                return None

    if results[0] != results[1]:
        return None

    return _as_utc(results[0])


def compute_cutoff(now: datetime, window: timedelta) -> datetime:
    """Return the inclusive lower bound for qualifying publish times."""
    return _as_utc(now) - window


class FreshnessFilter:
    """Selects the feed items published inside the trailing window."""

    def __init__(self, window: timedelta, execution_id: str | None = None):
        if window <= timedelta(0):
            raise ValueError(f"Freshness window must be positive, got {window}")

        self.window = window
        self.logger = create_execution_logger("freshness_filter", execution_id)

    def evaluate(self, items: list[FeedItem], now: datetime) -> list[FreshnessDecision]:
        """Decide every item against one cutoff computed for this call."""
        now = _as_utc(now)
        cutoff = compute_cutoff(now, self.window)

        self.logger.info(
            "Evaluating items against freshness threshold",
            now=now.isoformat(),
            cutoff=cutoff.isoformat(),
            window_seconds=self.window.total_seconds(),
            items_count=len(items),
        )

        decisions = []
        for item in items:
            published_at = parse_published(item.published)

            if published_at is None:
                decision = FreshnessDecision(
                    item=item,
                    published_at=None,
                    age_seconds=None,
                    qualifies=False,
                    reason=REASON_UNPARSABLE,
                )
                self.logger.warning(
                    f"Rejected item with unparsable timestamp: {item.title[:60]}",
                    item_title=item.title,
                    raw_published=item.published,
                )
            else:
                age_seconds = (now - published_at).total_seconds()
                qualifies = published_at >= cutoff
                decision = FreshnessDecision(
                    item=item,
                    published_at=published_at,
                    age_seconds=age_seconds,
                    qualifies=qualifies,
                    reason=REASON_WITHIN_WINDOW if qualifies else REASON_TOO_OLD,
                )
                self.logger.debug(
                    f"{'Qualifying' if qualifies else 'Filtered out'} item: "
                    f"{item.title[:60]} (age {round(age_seconds / 60)} minutes)",
                    item_title=item.title,
                    published_at=published_at.isoformat(),
                    age_minutes=round(age_seconds / 60, 2),
                    qualifies=qualifies,
                )

            decisions.append(decision)

        qualified = sum(1 for decision in decisions if decision.qualifies)
        self.logger.info(
            f"Filtering complete: {qualified} items qualify for delivery",
            items_count=len(decisions),
            items_qualified=qualified,
            items_unparsable=sum(
                1 for decision in decisions if decision.reason == REASON_UNPARSABLE
            ),
        )
        return decisions

    def filter(self, items: list[FeedItem], now: datetime) -> list[FeedItem]:
        """Return the qualifying items in feed order."""
        return [
            decision.item
            for decision in self.evaluate(items, now)
            if decision.qualifies
        ]
