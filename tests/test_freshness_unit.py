"""Unit tests for the freshness filter."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.freshness import (
    REASON_TOO_OLD,
    REASON_UNPARSABLE,
    REASON_WITHIN_WINDOW,
    FreshnessFilter,
    compute_cutoff,
    parse_published,
)
from src.models import FeedItem

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=UTC)
WINDOW = timedelta(minutes=3)
PUBLISHED_UTC = datetime(2026, 10, 18, 11, 58, 30, tzinfo=UTC)


def make_item(title: str, published: str | None) -> FeedItem:
    return FeedItem(
        title=title,
        link=f"https://aws.amazon.com/about-aws/whats-new/{title}",
        snippet="Snippet",
        published=published,
    )


class TestParsePublished:
    """Unit tests for parse_published."""

    def test_rfc822_pub_date(self):
        result = parse_published("Sun, 18 Oct 2026 11:58:30 GMT")
        assert result == datetime(2026, 10, 18, 11, 58, 30, tzinfo=UTC)

    def test_offset_is_normalized_to_utc(self):
        result = parse_published("Sun, 18 Oct 2026 07:58:30 -0400")
        assert result == datetime(2026, 10, 18, 11, 58, 30, tzinfo=UTC)
        assert result.tzinfo == UTC

    def test_naive_timestamp_is_utc(self):
        result = parse_published("2026-10-18T11:58:30")
        assert result == datetime(2026, 10, 18, 11, 58, 30, tzinfo=UTC)

    @pytest.mark.parametrize(
        "raw", [None, "", "   ", "not a date", "unknown", "published recently"]
    )
    def test_unparsable_returns_none(self, raw):
        assert parse_published(raw) is None

    @pytest.mark.parametrize(
        "raw",
        [
            "14:05",
            "14:05:30",
            "Sunday",
            "2026",
            "October 2026",
            "18 Oct",
            "2026-10-18",
            "Sun, 18 Oct 2026",
        ],
    )
    def test_partial_timestamp_returns_none(self, raw):
        assert parse_published(raw) is None

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Sun, 18 Oct 2026 07:58:30 EDT", PUBLISHED_UTC),
            ("Sun, 18 Oct 2026 06:58:30 EST", PUBLISHED_UTC),
            ("Sun, 18 Oct 2026 04:58:30 PDT", PUBLISHED_UTC),
            ("Sun, 18 Oct 2026 03:58:30 PST", PUBLISHED_UTC),
            (
                "Sun, 18 Oct 2026 20:00:00 JST",
                datetime(2026, 10, 18, 11, 0, 0, tzinfo=UTC),
            ),
            ("Sun, 18 Oct 2026 11:58:30 UT", PUBLISHED_UTC),
        ],
    )
    def test_named_zone_is_converted_to_utc(self, raw, expected):
        assert parse_published(raw) == expected

    def test_unknown_zone_name_returns_none(self):
        assert parse_published("Sun, 18 Oct 2026 11:58:30 XYZT") is None

    def test_missing_seconds_is_accepted(self):
        assert parse_published("Sun, 18 Oct 2026 11:58 GMT") == datetime(
            2026, 10, 18, 11, 58, tzinfo=UTC
        )


class TestComputeCutoff:
    """Unit tests for compute_cutoff."""

    def test_cutoff_is_now_minus_window(self):
        assert compute_cutoff(NOW, WINDOW) == datetime(2026, 10, 18, 11, 57, tzinfo=UTC)

    def test_naive_now_is_treated_as_utc(self):
        naive = datetime(2026, 10, 18, 12, 0, 0)
        assert compute_cutoff(naive, WINDOW) == datetime(
            2026, 10, 18, 11, 57, tzinfo=UTC
        )

    def test_aware_now_in_other_zone(self):
        cest = timezone(timedelta(hours=2))
        local_now = datetime(2026, 10, 18, 14, 0, 0, tzinfo=cest)
        assert compute_cutoff(local_now, WINDOW) == datetime(
            2026, 10, 18, 11, 57, tzinfo=UTC
        )


class TestFreshnessFilterUnit:
    """Unit tests for FreshnessFilter."""

    def setup_method(self):
        self.freshness_filter = FreshnessFilter(WINDOW)

    def test_item_exactly_at_cutoff_is_included(self):
        item = make_item("at-cutoff", "Sun, 18 Oct 2026 11:57:00 GMT")
        assert self.freshness_filter.filter([item], NOW) == [item]

    def test_item_one_second_before_cutoff_is_excluded(self):
        item = make_item("too-old", "Sun, 18 Oct 2026 11:56:59 GMT")
        assert self.freshness_filter.filter([item], NOW) == []

    def test_future_item_is_included(self):
        item = make_item("future", "Sun, 18 Oct 2026 12:05:00 GMT")
        decisions = self.freshness_filter.evaluate([item], NOW)
        assert decisions[0].qualifies
        assert decisions[0].age_seconds == -300

    def test_order_is_preserved(self):
        items = [
            make_item("a", "Sun, 18 Oct 2026 11:59:00 GMT"),
            make_item("old", "Sun, 18 Oct 2026 10:00:00 GMT"),
            make_item("b", "Sun, 18 Oct 2026 11:58:00 GMT"),
            make_item("c", "Sun, 18 Oct 2026 11:59:30 GMT"),
        ]
        result = self.freshness_filter.filter(items, NOW)
        assert [item.title for item in result] == ["a", "b", "c"]

    def test_unparsable_timestamp_is_rejected(self):
        items = [
            make_item("broken", "published recently"),
            make_item("missing", None),
        ]
        decisions = self.freshness_filter.evaluate(items, NOW)

        assert [decision.qualifies for decision in decisions] == [False, False]
        assert all(decision.reason == REASON_UNPARSABLE for decision in decisions)
        assert all(decision.published_at is None for decision in decisions)
        assert all(decision.age_seconds is None for decision in decisions)

    def test_every_input_gets_a_decision(self):
        items = [
            make_item("fresh", "Sun, 18 Oct 2026 11:59:00 GMT"),
            make_item("stale", "Sun, 18 Oct 2026 09:00:00 GMT"),
            make_item("broken", "not a date"),
        ]
        decisions = self.freshness_filter.evaluate(items, NOW)

        assert [decision.item for decision in decisions] == items
        assert [decision.reason for decision in decisions] == [
            REASON_WITHIN_WINDOW,
            REASON_TOO_OLD,
            REASON_UNPARSABLE,
        ]
        assert decisions[1].age_seconds == 3 * 60 * 60

    def test_bare_time_of_day_is_rejected(self):
        now = datetime.now(UTC)
        item = make_item("bare-time", now.strftime("%H:%M"))

        decisions = self.freshness_filter.evaluate([item], now + timedelta(seconds=1))

        assert not decisions[0].qualifies
        assert decisions[0].reason == REASON_UNPARSABLE

    def test_named_zone_far_ahead_of_utc_is_not_fresh(self):
        # 20:00 JST is 11:00 UTC, an hour before NOW
        item = make_item("jst", "Sun, 18 Oct 2026 20:00:00 JST")
        decisions = self.freshness_filter.evaluate([item], NOW)

        assert not decisions[0].qualifies
        assert decisions[0].reason == REASON_TOO_OLD
        assert decisions[0].age_seconds == 60 * 60

    def test_empty_input(self):
        assert self.freshness_filter.filter([], NOW) == []

    @pytest.mark.parametrize("window", [timedelta(0), timedelta(minutes=-1)])
    def test_non_positive_window_is_rejected(self, window):
        with pytest.raises(ValueError):
            FreshnessFilter(window)
