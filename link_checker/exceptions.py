"""
Error types raised by the link store and ingestion pipeline
"""


class LinkCheckerError(Exception):
    """Base class for link checker errors"""


class DuplicateURLError(LinkCheckerError):
    """A record with a case-insensitively equal URL is already stored"""

    def __init__(self, url: str):
        super().__init__(f"Duplicate URL: {url}")
        self.url = url


class LinkNotFoundError(LinkCheckerError, KeyError):
    """No record with the given id exists"""

    def __init__(self, link_id: str):
        super().__init__(f"Link not found: {link_id}")
        self.link_id = link_id

    def __str__(self) -> str:
        return self.args[0]


class FetchError(LinkCheckerError):
    """Remote link list could not be retrieved"""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason
