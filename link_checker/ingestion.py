"""
Link ingestion: parse raw text into new link records and merge them into the store.
"""
import re
from pathlib import Path
from typing import List, Optional, Union

from .exceptions import FetchError
from .link_store import LinkStore
from .logging_config import get_logger
from .models import IngestSummary, LinkRecord
from .remote_fetcher import RemoteFetcher

logger = get_logger("ingestion")

LINE_SPLIT = re.compile(r"\r?\n")
ALLOWED_SCHEMES = ("http://", "https://")


class IngestionPipeline:
    """Imports newline-separated URL lists into a LinkStore"""

    def __init__(
        self,
        store: LinkStore,
        default_category: str = "Remote",
        remote_source_url: Optional[str] = None,
        fetcher: Optional[RemoteFetcher] = None,
    ):
        self.store = store
        self.default_category = default_category
        self.remote_source_url = remote_source_url
        self.fetcher = fetcher

    @staticmethod
    def split_lines(raw_text: str) -> List[str]:
        """Split on either line ending, trim, and drop empty lines."""
        lines = (line.strip() for line in LINE_SPLIT.split(raw_text))
        return [line for line in lines if line]

    def ingest(self, raw_text: str, source: str = "text") -> IngestSummary:
        """Merge the URLs in ``raw_text`` into the store.

        Lines without an http(s) scheme and URLs already present (compared
        case-insensitively, including earlier lines of the same text) are
        counted as skipped. Existing records are never touched.
        """
        lines = self.split_lines(raw_text)
        known = self.store.urls()
        staged: List[LinkRecord] = []
        skipped = 0

        for url in lines:
            if not url.startswith(ALLOWED_SCHEMES):
                skipped += 1
                continue

            key = url.lower()
            if key in known:
                skipped += 1
                continue

            known.add(key)
            staged.append(LinkRecord(url=url, category=self.default_category))

        added = self.store.bulk_insert(staged) if staged else 0
        # Only a concurrent writer could make these differ
        skipped += len(staged) - added

        summary = IngestSummary(total=len(lines), added=added, skipped=skipped)
        logger.info(
            "Imported from %s: %d total, %d added, %d skipped",
            source, summary.total, summary.added, summary.skipped,
        )
        return summary

    def ingest_file(self, filepath: Union[str, Path]) -> IngestSummary:
        """Import links from a local text file."""
        filepath = Path(filepath)
        logger.info("Importing links from %s", filepath)
        content = filepath.read_text(encoding="utf-8")
        return self.ingest(content, source=str(filepath))

    async def update_from_remote(
        self,
        fetcher: Optional[RemoteFetcher] = None,
        url: Optional[str] = None,
    ) -> IngestSummary:
        """Fetch the remote link list and import it.

        A failed download is reported in the summary's ``error`` field and
        leaves the store unchanged.
        """
        fetcher = fetcher or self.fetcher or RemoteFetcher()
        url = url or self.remote_source_url
        if not url:
            raise ValueError("No remote source URL configured")

        try:
            text = await fetcher.fetch(url)
        except FetchError as e:
            logger.error("Remote update failed: %s", e)
            return IngestSummary(error=str(e))

        return self.ingest(text, source=url)
