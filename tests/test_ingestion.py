"""
Tests for the link ingestion pipeline
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from link_checker.exceptions import FetchError
from link_checker.ingestion import IngestionPipeline
from link_checker.link_store import LinkStore
from link_checker.models import LinkStatus

from .fixtures import SAMPLE_IMPORT_TEXT, SAMPLE_REMOTE_LIST, create_checked_store, create_store_with_links


class TestSplitLines:
    """Test line splitting"""

    def test_handles_both_line_endings(self):
        """Test LF and CRLF are both line breaks"""
        text = "https://a.com\r\nhttps://b.com\nhttps://c.com\r\n"

        assert IngestionPipeline.split_lines(text) == ["https://a.com", "https://b.com", "https://c.com"]

    def test_trims_and_drops_empty_lines(self):
        """Test whitespace is trimmed and blank lines dropped"""
        text = "  https://a.com  \n\n   \n\thttps://b.com\t"

        assert IngestionPipeline.split_lines(text) == ["https://a.com", "https://b.com"]


class TestIngest:
    """Test merging raw text into the store"""

    def test_sample_scenario(self):
        """Test mixed input against an empty store"""
        store = LinkStore()
        pipeline = IngestionPipeline(store)

        summary = pipeline.ingest(SAMPLE_IMPORT_TEXT)

        assert (summary.total, summary.added, summary.skipped) == (4, 2, 2)
        assert summary.error is None
        assert [r.url for r in store.all()] == ["https://a.com", "http://B.COM"]

    def test_new_records_defaults(self):
        """Test imported records are idle, not favorites, in the default category"""
        store = LinkStore()

        IngestionPipeline(store).ingest("https://a.com\nhttps://b.com")

        records = store.all()
        assert all(r.category == "Remote" for r in records)
        assert all(r.status == LinkStatus.IDLE for r in records)
        assert all(r.is_favorite is False for r in records)
        assert len({r.id for r in records}) == 2

    def test_custom_category(self):
        """Test the default category is configurable"""
        store = LinkStore()

        IngestionPipeline(store, default_category="Mirror").ingest("https://a.com")

        assert store.all()[0].category == "Mirror"

    def test_idempotent(self):
        """Test importing the same text twice adds nothing the second time"""
        store = LinkStore()
        pipeline = IngestionPipeline(store)

        first = pipeline.ingest(SAMPLE_REMOTE_LIST)
        second = pipeline.ingest(SAMPLE_REMOTE_LIST)

        assert first.added == 4
        assert second.added == 0
        assert second.skipped == second.total == first.total
        assert len(store) == 4

    def test_totals_always_add_up(self):
        """Test total equals added plus skipped"""
        store = create_store_with_links(["https://a.com"])
        pipeline = IngestionPipeline(store)

        for text in [SAMPLE_IMPORT_TEXT, SAMPLE_REMOTE_LIST, "x\ny\n", "https://A.com\nhttps://new.com"]:
            summary = pipeline.ingest(text)
            assert summary.total == summary.added + summary.skipped

    def test_scheme_check_is_case_sensitive(self):
        """Test an upper-case scheme is not accepted"""
        store = LinkStore()

        summary = IngestionPipeline(store).ingest("HTTPS://a.com\nhttps://b.com")

        assert (summary.added, summary.skipped) == (1, 1)
        assert [r.url for r in store.all()] == ["https://b.com"]

    def test_duplicates_against_store_ignore_case(self):
        """Test URLs already stored with different case are skipped"""
        store = create_store_with_links(["https://Example.com"])

        summary = IngestionPipeline(store).ingest("https://example.COM\nhttps://other.com")

        assert (summary.total, summary.added, summary.skipped) == (2, 1, 1)

    def test_existing_records_untouched(self):
        """Test ingestion never mutates or removes existing records"""
        store = create_checked_store()
        before = [r.to_dict() for r in store.all()]

        IngestionPipeline(store).ingest("https://movies.example.com\nhttps://new.example.com")

        after = [r.to_dict() for r in store.all()]
        assert after[:len(before)] == before
        assert len(after) == len(before) + 1

    def test_empty_text(self):
        """Test empty input gives an all-zero summary"""
        store = LinkStore()

        summary = IngestionPipeline(store).ingest("\n  \r\n")

        assert (summary.total, summary.added, summary.skipped) == (0, 0, 0)
        assert store.version == 0

    def test_ingest_file(self, tmp_path):
        """Test importing from a local file"""
        path = tmp_path / "links.txt"
        path.write_text(SAMPLE_IMPORT_TEXT, encoding="utf-8")
        store = LinkStore()

        summary = IngestionPipeline(store).ingest_file(path)

        assert (summary.total, summary.added, summary.skipped) == (4, 2, 2)

    def test_ingest_missing_file(self, tmp_path):
        """Test a missing file raises"""
        with pytest.raises(FileNotFoundError):
            IngestionPipeline(LinkStore()).ingest_file(tmp_path / "missing.txt")


class TestRemoteUpdate:
    """Test remote update entry point"""

    @pytest.mark.asyncio
    async def test_update_success(self):
        """Test remote text is ingested"""
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(return_value=SAMPLE_REMOTE_LIST)
        store = LinkStore()
        pipeline = IngestionPipeline(store, remote_source_url="https://example.com/list.txt", fetcher=fetcher)

        summary = await pipeline.update_from_remote()

        fetcher.fetch.assert_awaited_once_with("https://example.com/list.txt")
        assert (summary.total, summary.added, summary.skipped) == (5, 4, 1)
        assert summary.error is None
        assert len(store) == 4

    @pytest.mark.asyncio
    async def test_update_fetch_failure(self):
        """Test fetch failure gives an error summary and leaves the store unchanged"""
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=FetchError("https://example.com/list.txt", "HTTP 404"))
        store = create_checked_store()
        before = [r.to_dict() for r in store.all()]
        version = store.version
        pipeline = IngestionPipeline(store, remote_source_url="https://example.com/list.txt")

        summary = await pipeline.update_from_remote(fetcher=fetcher)

        assert (summary.total, summary.added, summary.skipped) == (0, 0, 0)
        assert summary.error is not None
        assert "HTTP 404" in summary.error
        assert [r.to_dict() for r in store.all()] == before
        assert store.version == version

    @pytest.mark.asyncio
    async def test_update_url_override(self):
        """Test an explicit URL overrides the configured one"""
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(return_value="https://a.com")
        pipeline = IngestionPipeline(LinkStore(), remote_source_url="https://configured.example.com")

        await pipeline.update_from_remote(fetcher=fetcher, url="https://override.example.com")

        fetcher.fetch.assert_awaited_once_with("https://override.example.com")

    @pytest.mark.asyncio
    async def test_update_without_url(self):
        """Test a missing source URL is a configuration error"""
        pipeline = IngestionPipeline(LinkStore(), fetcher=MagicMock())

        with pytest.raises(ValueError, match="No remote source URL"):
            await pipeline.update_from_remote()
