"""
Tests for HTTP and simulated checkers
"""

import asyncio
from unittest.mock import MagicMock, patch

import aiohttp
import pytest

from link_checker.checker import HttpChecker, SimulatedChecker
from link_checker.classifier import classify
from link_checker.models import LinkStatus


def make_checker_with_response(status: int) -> HttpChecker:
    """Create an HttpChecker whose session answers HEAD with ``status``."""
    checker = HttpChecker()
    mock_response = MagicMock()
    mock_response.status = status
    checker.session = MagicMock()
    checker.session.head.return_value.__aenter__.return_value = mock_response
    return checker


class TestHttpChecker:
    """Test HttpChecker probes"""

    @pytest.mark.asyncio
    @patch("link_checker.checker.time")
    async def test_probe_success(self, mock_time):
        """Test a 200 response is a successful outcome with measured latency"""
        mock_time.perf_counter.side_effect = [10.0, 10.25]
        checker = make_checker_with_response(200)

        outcome = await checker.probe("https://example.com", 5000)

        assert outcome.succeeded is True
        assert outcome.http_code == 200
        assert outcome.latency_ms == 250
        assert outcome.timed_out is False

    @pytest.mark.asyncio
    async def test_probe_uses_head_with_timeout(self):
        """Test the probe is a HEAD request bounded by the timeout"""
        checker = make_checker_with_response(204)
        checker.follow_redirects = False

        await checker.probe("https://example.com", 2500)

        args, kwargs = checker.session.head.call_args
        assert args == ("https://example.com",)
        assert kwargs["allow_redirects"] is False
        assert kwargs["timeout"].total == 2.5

    @pytest.mark.asyncio
    async def test_probe_forbidden(self):
        """Test a 403 response is not a success but keeps the code"""
        checker = make_checker_with_response(403)

        outcome = await checker.probe("https://example.com", 5000)

        assert outcome.succeeded is False
        assert outcome.http_code == 403
        assert classify(outcome).status == LinkStatus.BLOCKED

    @pytest.mark.asyncio
    async def test_probe_timeout(self):
        """Test a timeout resolves to a timed out outcome"""
        checker = HttpChecker()
        checker.session = MagicMock()
        checker.session.head.side_effect = asyncio.TimeoutError()

        outcome = await checker.probe("https://slow.example.com", 3000)

        assert outcome.timed_out is True
        assert outcome.succeeded is False
        assert outcome.latency_ms == 3000
        assert outcome.http_code == 0

    @pytest.mark.asyncio
    async def test_probe_server_timeout(self):
        """Test aiohttp's own timeout error counts as a timeout"""
        checker = HttpChecker()
        checker.session = MagicMock()
        checker.session.head.side_effect = aiohttp.ServerTimeoutError("read timeout")

        outcome = await checker.probe("https://slow.example.com", 3000)

        assert outcome.timed_out is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        aiohttp.ClientConnectionError("Connection refused"),
        aiohttp.InvalidURL("not a url"),
        OSError("Name or service not known"),
        ValueError("bad header"),
    ])
    async def test_probe_transport_errors(self, error):
        """Test transport errors never raise"""
        checker = HttpChecker()
        checker.session = MagicMock()
        checker.session.head.side_effect = error

        outcome = await checker.probe("https://down.example.com", 5000)

        assert outcome.succeeded is False
        assert outcome.timed_out is False
        assert outcome.http_code == 0
        assert outcome.error
        assert classify(outcome).status == LinkStatus.FAILED

    @pytest.mark.asyncio
    async def test_context_manager(self):
        """Test async context manager opens and closes the session"""
        checker = HttpChecker(user_agent="tests/1.0")

        async with checker as c:
            assert c.session is not None
            assert c.session.headers["User-Agent"] == "tests/1.0"

        assert checker.session is None


class TestSimulatedChecker:
    """Test randomized checker"""

    @pytest.mark.asyncio
    async def test_outcomes_are_well_formed(self):
        """Test every simulated outcome classifies to a terminal status"""
        checker = SimulatedChecker(seed=7, delay_scale=0)
        statuses = set()

        for i in range(200):
            outcome = await checker.probe(f"https://site{i}.example.com", 5000)
            status = classify(outcome).status
            assert status not in (LinkStatus.IDLE, LinkStatus.CHECKING)
            statuses.add(status)

        assert statuses == {
            LinkStatus.WORKING, LinkStatus.BLOCKED, LinkStatus.SLOW,
            LinkStatus.FAILED, LinkStatus.TIMEOUT,
        }

    @pytest.mark.asyncio
    async def test_seed_is_reproducible(self):
        """Test the same seed yields the same outcomes"""
        first = SimulatedChecker(seed=42, delay_scale=0)
        second = SimulatedChecker(seed=42, delay_scale=0)

        a = [await first.probe("https://a.com", 5000) for _ in range(20)]
        b = [await second.probe("https://a.com", 5000) for _ in range(20)]

        assert a == b

    @pytest.mark.asyncio
    async def test_timeout_uses_probe_timeout(self):
        """Test simulated timeouts report the requested timeout"""
        checker = SimulatedChecker(seed=3, delay_scale=0)

        outcomes = [await checker.probe("https://a.com", 1234) for _ in range(200)]

        timeouts = [o for o in outcomes if o.timed_out]
        assert timeouts
        assert all(o.latency_ms == 1234 for o in timeouts)
