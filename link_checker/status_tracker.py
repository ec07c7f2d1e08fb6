"""
Status tracking system for monitoring scan progress
"""
import time
from collections import deque
from typing import Dict, Iterable, List, Optional, Tuple

from .models import LinkRecord, LinkStatus, ScanProgress


class StatusTracker:
    """Centralized status tracking for scan operations"""

    def __init__(self):
        """Initialize status tracker with empty state containers."""
        self.progress = ScanProgress()
        self.cancelled = False
        self.recent_activities: deque = deque(maxlen=100)  # Last 100 activities
        self.link_statuses: Dict[str, LinkStatus] = {}  # link id -> latest status
        self.active_links: Dict[str, str] = {}  # link id -> url being checked
        self.start_time: float = time.time()
        self.end_time: Optional[float] = None

    def start_scan(self, total: int):
        """Reset per-scan state at the beginning of a scan."""
        self.progress = ScanProgress(completed=0, total=total, running=True)
        self.cancelled = False
        self.link_statuses.clear()
        self.active_links.clear()
        self.start_time = time.time()
        self.end_time = None
        self.add_activity(f"Starting scan of {total} links")

    def update_progress(self, progress: ScanProgress):
        """Store the latest progress snapshot."""
        self.progress = progress

    def mark_checking(self, records: Iterable[LinkRecord]):
        """Register records that are being probed."""
        for record in records:
            self.link_statuses[record.id] = LinkStatus.CHECKING
            self.active_links[record.id] = record.url

    def record_result(self, record: LinkRecord):
        """Record the classified result of a probe and log activity."""
        self.link_statuses[record.id] = record.status
        self.active_links.pop(record.id, None)
        latency = f" {record.latency_ms}ms" if record.latency_ms is not None else ""
        self.add_activity(f"{record.url[:50]} -> {record.status.value}{latency}")

    def finish_scan(self, progress: ScanProgress, cancelled: bool = False):
        """Mark the scan as ended."""
        self.progress = progress
        self.cancelled = cancelled
        self.active_links.clear()
        self.end_time = time.time()
        if cancelled:
            self.add_activity(f"Scan stopped at {progress.completed}/{progress.total}")
        else:
            self.add_activity(f"Scan complete: {progress.completed}/{progress.total}")

    def add_activity(self, message: str):
        """Add timestamped activity message to recent activities log."""
        timestamp = time.strftime("%H:%M:%S")
        self.recent_activities.append(f"[{timestamp}] {message}")

    @property
    def elapsed_time(self) -> float:
        """Get elapsed time of the current (or last) scan in seconds."""
        end = self.end_time if self.end_time is not None else time.time()
        return end - self.start_time

    def get_status_summary(self) -> Dict[str, int]:
        """Get summary count of links seen in this scan by status."""
        summary = {}
        for status in self.link_statuses.values():
            summary[status.value] = summary.get(status.value, 0) + 1
        return summary

    def get_recent_activities(self, count: int = 20) -> List[str]:
        """Get recent activity messages up to specified count."""
        return list(self.recent_activities)[-count:]

    def get_active_tasks(self) -> List[Tuple[str, str]]:
        """Get list of links currently being checked as (link id, url) tuples."""
        return list(self.active_links.items())


# Global status tracker instance
_status_tracker = None


def get_status_tracker() -> StatusTracker:
    """Get the global singleton status tracker instance."""
    global _status_tracker
    if _status_tracker is None:
        _status_tracker = StatusTracker()
    return _status_tracker
