"""
Shared test fixtures for store, ingestion and scan tests
"""

import asyncio
from typing import Callable, Dict, List, Optional, Union

from link_checker.link_store import LinkStore
from link_checker.models import LinkRecord, LinkStatus, ProbeOutcome


OK = ProbeOutcome(succeeded=True, latency_ms=50, http_code=200)
SLOW = ProbeOutcome(succeeded=True, latency_ms=2400, http_code=200)
FORBIDDEN = ProbeOutcome(succeeded=False, latency_ms=80, http_code=403)
BAD_GATEWAY = ProbeOutcome(succeeded=False, latency_ms=90, http_code=502)
TIMED_OUT = ProbeOutcome(succeeded=False, latency_ms=5000, timed_out=True)
REFUSED = ProbeOutcome(succeeded=False, latency_ms=3, error="Connection refused")

ScriptedOutcome = Union[ProbeOutcome, Exception, List[Union[ProbeOutcome, Exception]]]


class FakeChecker:
    """Checker returning scripted outcomes per URL.

    A list of outcomes is consumed one per call, which lets tests script
    retries. Exceptions in the script are raised instead of returned.
    """

    def __init__(
        self,
        outcomes: Optional[Dict[str, ScriptedOutcome]] = None,
        default: ProbeOutcome = OK,
        delay: float = 0.001,
        delays: Optional[Dict[str, float]] = None,
        on_probe: Optional[Callable[[str], None]] = None,
    ):
        self.outcomes = outcomes or {}
        self.default = default
        self.delay = delay
        self.delays = delays or {}
        self.on_probe = on_probe
        self.calls: List[str] = []
        self.timeouts: List[int] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def probe(self, url: str, timeout_ms: int) -> ProbeOutcome:
        self.calls.append(url)
        self.timeouts.append(timeout_ms)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_probe:
                self.on_probe(url)
            await asyncio.sleep(self.delays.get(url, self.delay))
            outcome = self.outcomes.get(url, self.default)
            if isinstance(outcome, list):
                outcome = outcome.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1


def make_urls(count: int, prefix: str = "https://site{}.example.com") -> List[str]:
    """Create ``count`` distinct URLs."""
    return [prefix.format(i) for i in range(count)]


def create_store_with_links(urls: List[str], category: str = "Test") -> LinkStore:
    """Create a store holding one idle record per URL."""
    return LinkStore(LinkRecord(url=url, category=category) for url in urls)


def create_checked_store() -> LinkStore:
    """Create a store with records in a mix of statuses."""
    store = LinkStore()
    records = [
        LinkRecord(url="https://movies.example.com", category="Movies", status=LinkStatus.WORKING, latency_ms=40, status_code=200),
        LinkRecord(url="https://ftp.example.net", category="FTP", status=LinkStatus.BLOCKED, latency_ms=70, status_code=403),
        LinkRecord(url="https://tv.example.org", category="TV", status=LinkStatus.SLOW, latency_ms=1800, status_code=200),
        LinkRecord(url="http://games.example.com", category="Games", status=LinkStatus.TIMEOUT, latency_ms=5000, status_code=0),
        LinkRecord(url="https://music.example.com", category="Music", is_favorite=True),
    ]
    store.bulk_insert(records)
    return store


SAMPLE_IMPORT_TEXT = "https://a.com\nhttp://B.COM\nftp://c.com\nhttps://a.com"

SAMPLE_REMOTE_LIST = """http://10.16.100.244/
http://172.16.50.4/

https://circleftp.net
   http://fs.ebox.live   
not a url
"""
