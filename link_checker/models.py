"""
Data models for link health monitoring
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional
import uuid


class LinkStatus(Enum):
    """Health status of a link"""
    IDLE = "idle"
    CHECKING = "checking"
    WORKING = "working"
    REDIRECT = "redirect"
    BLOCKED = "blocked"
    TIMEOUT = "timeout"
    SLOW = "slow"
    FAILED = "failed"


def new_link_id() -> str:
    """Generate a fresh opaque record id."""
    return uuid.uuid4().hex


@dataclass
class LinkRecord:
    """Represents a monitored link and its latest health result"""
    url: str
    id: str = field(default_factory=new_link_id)
    category: str = "Remote"
    status: LinkStatus = LinkStatus.IDLE
    latency_ms: Optional[int] = None
    status_code: Optional[int] = None
    last_checked_at: Optional[datetime] = None
    is_favorite: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert LinkRecord to dictionary format for JSON serialization."""
        return {
            "id": self.id,
            "url": self.url,
            "category": self.category,
            "status": self.status.value,
            "latency_ms": self.latency_ms,
            "status_code": self.status_code,
            "last_checked_at": self.last_checked_at.isoformat() if self.last_checked_at else None,
            "is_favorite": self.is_favorite,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinkRecord":
        checked = data.get("last_checked_at")
        status = data.get("status", LinkStatus.IDLE.value)
        # A snapshot taken mid-scan must not resurrect the transient state
        if status == LinkStatus.CHECKING.value:
            status = LinkStatus.IDLE.value
        return cls(
            url=data["url"],
            id=data.get("id") or new_link_id(),
            category=data.get("category", "Remote"),
            status=LinkStatus(status),
            latency_ms=data.get("latency_ms"),
            status_code=data.get("status_code"),
            last_checked_at=datetime.fromisoformat(checked) if checked else None,
            is_favorite=bool(data.get("is_favorite", False)),
        )


@dataclass
class ProbeOutcome:
    """Raw result of a single reachability attempt"""
    succeeded: bool
    latency_ms: int
    http_code: int = 0
    timed_out: bool = False
    error: Optional[str] = None


class Classification(NamedTuple):
    """Status assigned to a probe outcome"""
    status: LinkStatus
    latency_ms: int
    status_code: int


class ScanState(Enum):
    """Lifecycle state of the scan coordinator"""
    IDLE = "idle"
    SCANNING = "scanning"
    CANCELLED = "cancelled"


@dataclass
class ScanProgress:
    """Progress of the current (or last) scan"""
    completed: int = 0
    total: int = 0
    running: bool = False

    @property
    def percent(self) -> int:
        """Completion percentage rounded to an integer."""
        if self.total == 0:
            return 100
        # Half-up rounding; round() would send 12.5 to 12
        percent = (self.completed * 200 + self.total) // (2 * self.total)
        if self.completed < self.total:
            return min(percent, 99)
        return percent


@dataclass
class IngestSummary:
    """Outcome of importing a list of links"""
    total: int = 0
    added: int = 0
    skipped: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"total": self.total, "added": self.added, "skipped": self.skipped}
        if self.error:
            result["error"] = self.error
        return result
