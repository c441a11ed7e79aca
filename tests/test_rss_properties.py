"""Property-based tests for the RSS feed processor."""

from feedparser import FeedParserDict
from hypothesis import given
from hypothesis import strategies as st

from src.models import FeedItem
from src.rss import FeedProcessor


class TestFeedProcessorProperties:
    """Property-based tests for FeedProcessor."""

    @given(
        st.text().filter(
            lambda x: not x.startswith("https://")
            and x.strip()
            and "[" not in x
            and "]" not in x
        )
    )
    def test_https_requirement_property(self, non_https_url):
        """
        Feed URLs that are not HTTPS are rejected before any download.
        """
        processor = FeedProcessor()

        if not non_https_url.startswith(("http://", "ftp://", "file://")):
            test_url = f"http://{non_https_url}"
        else:
            test_url = non_https_url

        try:
            processor.parse_feed(test_url)
            raise AssertionError(f"Expected ValueError for non-HTTPS URL: {test_url}")
        except ValueError as e:
            error_msg = str(e)
            assert (
                "Feed URL must use HTTPS protocol" in error_msg
                or "Invalid IPv6 URL" in error_msg
                or "Invalid URL" in error_msg
            ), f"Unexpected error: {error_msg}"

    @given(
        st.text(min_size=1, max_size=100).filter(lambda x: x.strip()),  # title
        st.text(min_size=1, max_size=200).filter(lambda x: x.strip()),  # link
        st.one_of(st.none(), st.text(min_size=1, max_size=500)),  # summary
        st.one_of(st.none(), st.text(min_size=1, max_size=60)),  # published
    )
    def test_field_extraction_completeness_property(
        self, title, link, summary, published
    ):
        """
        Title, link and raw publish text survive normalization unchanged.
        """
        processor = FeedProcessor()

        entry = FeedParserDict(title=title, link=link)
        if summary is not None:
            entry["summary"] = summary
        if published is not None:
            entry["published"] = published

        result = processor.normalize_item(entry, "https://example.com/feed")

        assert isinstance(result, FeedItem)
        assert result.title == title
        assert result.link == link
        assert result.published == published
        if result.snippet is not None:
            assert result.snippet.strip() != ""

    @given(
        st.text(min_size=1, max_size=500).filter(
            lambda x: x.strip() and not x.startswith("<") and not x.startswith(">")
        )
    )
    def test_html_cleaning_property(self, content_with_html):
        """
        Cleaned content carries no markup, scripts or styles.
        """
        processor = FeedProcessor()

        html_content = f"<p>{content_with_html}</p><script>alert('test')</script><style>body{{color:red}}</style>"

        result = processor.clean_html_content(html_content)

        assert "<" not in result
        assert ">" not in result
        assert "alert('test')" not in result
        assert "color:red" not in result
