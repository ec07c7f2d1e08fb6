"""
In-memory link store with case-insensitive URL uniqueness
"""
import json
import shutil
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from .exceptions import DuplicateURLError, LinkNotFoundError
from .logging_config import get_logger
from .models import LinkRecord, LinkStatus

logger = get_logger("link_store")

FILTER_TABS = ("all", "favorites") + tuple(status.value for status in LinkStatus)


class LinkStore:
    """Owns the ordered set of link records.

    Records are keyed by id and kept in insertion order. A secondary index on
    the lower-cased URL enforces uniqueness. Every mutator takes the store
    lock, so a write to one record is never observed half-applied.
    """

    def __init__(self, records: Optional[Iterable[LinkRecord]] = None):
        self._records: Dict[str, LinkRecord] = {}
        self._url_index: Dict[str, str] = {}
        self._lock = threading.Lock()
        self.version = 0
        if records:
            for record in records:
                self.insert(record)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, link_id: str) -> bool:
        return link_id in self._records

    def insert(self, record: LinkRecord) -> str:
        """Add a record and return its id.

        Raises:
            DuplicateURLError: a record with the same URL (ignoring case) exists.
            ValueError: a record with the same id exists.
        """
        key = record.url.lower()
        with self._lock:
            if key in self._url_index:
                raise DuplicateURLError(record.url)
            if record.id in self._records:
                raise ValueError(f"Duplicate link id: {record.id}")
            self._records[record.id] = record
            self._url_index[key] = record.id
            self.version += 1
        return record.id

    def bulk_insert(self, records: Iterable[LinkRecord]) -> int:
        """Insert records, skipping duplicates. Returns the number added."""
        added = 0
        for record in records:
            try:
                self.insert(record)
            except DuplicateURLError:
                logger.debug("Skipping duplicate link: %s", record.url)
                continue
            added += 1
        return added

    def all(self) -> List[LinkRecord]:
        """Get all records in insertion order."""
        return list(self._records.values())

    def get(self, link_id: str) -> LinkRecord:
        """Get a record by id."""
        try:
            return self._records[link_id]
        except KeyError:
            raise LinkNotFoundError(link_id) from None

    def urls(self) -> Set[str]:
        """Get set of all stored URLs, lower-cased."""
        return set(self._url_index.keys())

    def update_status(
        self,
        link_id: str,
        status: LinkStatus,
        latency_ms: Optional[int] = None,
        status_code: Optional[int] = None,
        checked_at: Optional[datetime] = None,
    ) -> LinkRecord:
        """Replace the health fields of one record."""
        with self._lock:
            record = self._records.get(link_id)
            if record is None:
                raise LinkNotFoundError(link_id)
            record.status = status
            record.latency_ms = latency_ms
            record.status_code = status_code
            record.last_checked_at = checked_at
            self.version += 1
        return record

    def mark_checking(self, link_ids: Iterable[str]):
        """Flag the given records as being probed."""
        with self._lock:
            for link_id in link_ids:
                record = self._records.get(link_id)
                if record is None:
                    raise LinkNotFoundError(link_id)
                record.status = LinkStatus.CHECKING
            self.version += 1

    def toggle_favorite(self, link_id: str) -> bool:
        """Flip the favorite flag and return its new value."""
        with self._lock:
            record = self._records.get(link_id)
            if record is None:
                raise LinkNotFoundError(link_id)
            record.is_favorite = not record.is_favorite
            self.version += 1
            return record.is_favorite

    def reset_for_scan(self):
        """Return every record to idle and clear latency and status code."""
        with self._lock:
            for record in self._records.values():
                record.status = LinkStatus.IDLE
                record.latency_ms = None
                record.status_code = None
            self.version += 1

    def stats(self) -> Dict[str, int]:
        """Get count of records per status."""
        stats = {"total": len(self._records)}
        for status in LinkStatus:
            stats[status.value] = 0
        for record in self._records.values():
            stats[record.status.value] += 1
        return stats

    def filter(self, query: str = "", tab: str = "all") -> List[LinkRecord]:
        """Search records by URL or category, restricted to a status tab.

        ``tab`` is ``all``, ``favorites`` or any status name.
        """
        if tab not in FILTER_TABS:
            raise ValueError(f"Unknown tab: {tab}")
        query_lower = query.lower()
        results = []

        for record in self._records.values():
            if query_lower and not (
                query_lower in record.url.lower() or query_lower in record.category.lower()
            ):
                continue
            if tab == "favorites":
                if not record.is_favorite:
                    continue
            elif tab != "all" and record.status.value != tab:
                continue
            results.append(record)

        return results

    def serialize_links(self) -> str:
        """One URL per line, in store order."""
        return "\n".join(record.url for record in self._records.values())

    def save(self, path: Path):
        """Save records to a JSON snapshot file."""
        data = [record.to_dict() for record in self.all()]
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.debug("Saved %d links to %s", len(data), path)

    @classmethod
    def load(cls, path: Path) -> "LinkStore":
        """Load a store from a JSON snapshot file.

        A missing file yields an empty store. Entries that cannot be parsed,
        and duplicate URLs, are dropped with a warning while the rest load.
        A file that is not a JSON list is copied to ``<name>.bak`` before an
        empty store is returned, so a later save cannot destroy it.
        """
        store = cls()
        if not path.exists():
            return store

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, list):
                raise ValueError(f"expected a list of links, got {type(data).__name__}")
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as e:
            backup = path.with_name(path.name + ".bak")
            shutil.copyfile(path, backup)
            logger.warning("Failed to load links from %s: %s (copied to %s)", path, e, backup)
            return store

        skipped = 0
        for index, item in enumerate(data):
            try:
                store.insert(LinkRecord.from_dict(item))
            except DuplicateURLError as e:
                logger.warning("Dropping duplicate link %s from %s", e.url, path)
                skipped += 1
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Dropping malformed entry %d in %s: %s", index, path, e)
                skipped += 1

        if skipped:
            logger.warning("Loaded %d links from %s, dropped %d", len(store), path, skipped)
        return store
