"""Property-based and unit tests for the delivery limiter."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from src.limiter import DeliveryLimiter
from src.models import FeedItem


def make_items(count: int) -> list[FeedItem]:
    return [
        FeedItem(
            title=f"Announcement {i}",
            link=f"https://aws.amazon.com/about-aws/whats-new/{i}",
            snippet=None,
            published="2026-10-18T12:00:00Z",
        )
        for i in range(count)
    ]


class TestDeliveryLimiterProperties:
    """Property-based tests for DeliveryLimiter."""

    @given(
        count=st.integers(min_value=0, max_value=30),
        max_items=st.integers(min_value=0, max_value=10),
    )
    def test_batch_is_bounded_prefix(self, count, max_items):
        """
        The batch never exceeds max_items and is a prefix of the input in order.
        """
        items = make_items(count)
        result = DeliveryLimiter(max_items).limit(items)

        assert len(result.batch) <= max_items
        assert result.batch == items[: len(result.batch)]
        assert len(result.batch) == min(count, max_items)
        assert result.qualified_count == count

    @given(
        count=st.integers(min_value=0, max_value=30),
        max_items=st.integers(min_value=0, max_value=10),
    )
    def test_truncated_flag(self, count, max_items):
        """
        truncated is set exactly when more items qualified than may be delivered.
        """
        result = DeliveryLimiter(max_items).limit(make_items(count))

        assert result.truncated == (count > max_items)
        assert result.dropped_count == max(count - max_items, 0)


class TestDeliveryLimiterUnit:
    """Unit tests for DeliveryLimiter."""

    def test_exactly_max_is_not_truncated(self):
        result = DeliveryLimiter(5).limit(make_items(5))
        assert len(result.batch) == 5
        assert result.truncated is False

    def test_seven_items_capped_to_five(self):
        items = make_items(7)
        result = DeliveryLimiter(5).limit(items)
        assert result.batch == items[:5]
        assert result.truncated is True
        assert result.dropped_count == 2

    def test_input_list_is_not_modified(self):
        items = make_items(7)
        DeliveryLimiter(5).limit(items)
        assert len(items) == 7

    def test_negative_max_is_rejected(self):
        with pytest.raises(ValueError):
            DeliveryLimiter(-1)
