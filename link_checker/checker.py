"""
Reachability probes for a single URL
"""
import asyncio
import random
import time
from typing import Optional, Protocol

import aiohttp

from .logging_config import get_logger
from .models import ProbeOutcome

logger = get_logger("checker")


class Checker(Protocol):
    """Protocol for probe implementations (allows easy test mocking)."""

    async def probe(self, url: str, timeout_ms: int) -> ProbeOutcome: ...


class HttpChecker:
    """Checker that sends one HEAD request per probe using aiohttp."""

    def __init__(self, follow_redirects: bool = True, user_agent: str = "link-checker/1.0"):
        self.follow_redirects = follow_redirects
        self.user_agent = user_agent
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Setup async HTTP session for probes."""
        if self.session is None:
            self.session = aiohttp.ClientSession(headers={"User-Agent": self.user_agent})
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Cleanup HTTP session resources."""
        if self.session:
            await self.session.close()
            self.session = None

    async def probe(self, url: str, timeout_ms: int) -> ProbeOutcome:
        """Probe a URL once. Never raises; failures are reported in the outcome."""
        if not self.session:
            await self.__aenter__()

        timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
        started = time.perf_counter()
        try:
            async with self.session.head(
                url, timeout=timeout, allow_redirects=self.follow_redirects
            ) as response:
                latency = int((time.perf_counter() - started) * 1000)
                return ProbeOutcome(
                    succeeded=response.status < 400,
                    latency_ms=latency,
                    http_code=response.status,
                )
        except asyncio.TimeoutError:
            logger.debug("Probe timed out after %dms: %s", timeout_ms, url)
            return ProbeOutcome(succeeded=False, latency_ms=timeout_ms, timed_out=True)
        except (aiohttp.ClientError, OSError, ValueError) as e:
            latency = int((time.perf_counter() - started) * 1000)
            logger.debug("Probe failed for %s: %s", url, e)
            return ProbeOutcome(succeeded=False, latency_ms=latency, error=str(e) or type(e).__name__)


class SimulatedChecker:
    """Checker producing randomized outcomes instead of touching the network.

    Roughly 65% working, 12% blocked, 13% slow, 5% failed and 5% timed out,
    each after a 400-1200ms delay.
    """

    def __init__(self, seed: Optional[int] = None, delay_scale: float = 1.0):
        self.rng = random.Random(seed)
        self.delay_scale = delay_scale

    async def probe(self, url: str, timeout_ms: int) -> ProbeOutcome:
        await asyncio.sleep((self.rng.random() * 800 + 400) / 1000 * self.delay_scale)

        roll = self.rng.random()
        if roll < 0.12:
            return ProbeOutcome(succeeded=False, latency_ms=self._fast_latency(), http_code=403)
        if roll < 0.25:
            return ProbeOutcome(succeeded=True, latency_ms=int(self.rng.random() * 1500 + 1000), http_code=200)
        if roll < 0.30:
            return ProbeOutcome(succeeded=False, latency_ms=self._fast_latency(), http_code=502)
        if roll < 0.35:
            return ProbeOutcome(succeeded=False, latency_ms=timeout_ms, timed_out=True)
        return ProbeOutcome(succeeded=True, latency_ms=self._fast_latency(), http_code=200)

    def _fast_latency(self) -> int:
        return int(self.rng.random() * 150 + 20)
