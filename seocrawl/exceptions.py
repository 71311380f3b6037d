"""Custom exceptions for SeoCrawl services."""
from typing import Optional


class HttpFetchError(Exception):
    """Raised when an HTTP fetch fails due to network/transport errors."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"HTTP fetch failed for {url}: {type(original).__name__}: {original}")


class HttpStatusError(HttpFetchError):
    """Raised when the server answered with an HTTP error status (>= 400)."""

    def __init__(self, url: str, status_code: int, reason: Optional[str] = None):
        self.url = url
        self.status_code = status_code
        self.reason = reason or ""
        self.original = None
        message = f"HTTP {status_code} {self.reason}".rstrip()
        Exception.__init__(self, message)


class CrawlConfigError(Exception):
    """Raised when a crawl config file cannot be read or fails validation."""

    def __init__(self, config_path: str, reason: str = "invalid"):
        self.config_path = config_path
        self.reason = reason
        super().__init__(f"Config '{config_path}' {reason}")


class QueryNotFoundError(KeyError):
    """Raised when a named analysis query is not in the catalog."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Query '{name}' not found")
