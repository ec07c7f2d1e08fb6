"""
Fetches a remote plain-text link list
"""
import asyncio

import aiohttp

from .exceptions import FetchError
from .logging_config import get_logger

logger = get_logger("remote_fetcher")


class RemoteFetcher:
    """Downloads the raw text of a remote link list"""

    def __init__(self, timeout_ms: int = 15000):
        self.timeout_ms = timeout_ms

    async def fetch(self, url: str) -> str:
        """Fetch the body of ``url`` as text.

        Raises:
            FetchError: on a non-2xx response, a body that is not valid text,
                or any transport failure.
        """
        logger.info("Fetching link list from %s", url)
        timeout = aiohttp.ClientTimeout(total=self.timeout_ms / 1000)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as response:
                    if not 200 <= response.status < 300:
                        raise FetchError(url, f"HTTP {response.status}")
                    try:
                        text = await response.text()
                    except UnicodeDecodeError as e:
                        raise FetchError(url, "undecodable body") from e
        except asyncio.TimeoutError as e:
            raise FetchError(url, f"timed out after {self.timeout_ms}ms") from e
        except aiohttp.ClientError as e:
            raise FetchError(url, str(e) or type(e).__name__) from e

        logger.debug("Fetched %d characters from %s", len(text), url)
        return text
