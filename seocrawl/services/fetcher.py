from __future__ import annotations

import logging
import time
from http import HTTPStatus
from typing import Callable, List, NamedTuple, Optional, Protocol

from seocrawl.domain.http_response import HttpResponse
from seocrawl.exceptions import HttpFetchError, HttpStatusError

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Fetch a URL and return a normalized HTTP-like response."""

    def fetch(self, url: str) -> HttpResponse: ...


class FetchResult(NamedTuple):
    """Outcome of fetching one URL, including every retry."""
    url: str
    response: Optional[HttpResponse] = None
    error: Optional[Exception] = None
    attempts: int = 1
    messages: List[str] = []
    """One failure message per failed attempt, oldest first."""

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status_code(self) -> Optional[int]:
        if isinstance(self.error, HttpStatusError):
            return self.error.status_code
        if self.response is not None:
            return self.response.status_code
        return None

    def error_message(self) -> str:
        """Last failure, followed by the earlier ones when the fetch was retried."""
        if not self.messages:
            return ""
        last = self.messages[-1]
        if len(self.messages) == 1:
            return last
        return f"{last} (Retry {len(self.messages) - 1}: {'; '.join(self.messages[:-1])})"


def describe_error(exc: Exception) -> str:
    """Short message for an error, without the URL so it can be categorized safely."""
    if isinstance(exc, HttpStatusError):
        return str(exc)
    if isinstance(exc, HttpFetchError) and exc.original is not None:
        return f"{type(exc.original).__name__}: {exc.original}"
    return f"{type(exc).__name__}: {exc}"


class RetryingFetcher:
    """Fetch with a politeness delay, HTTP-status checking and exponential-backoff retries.

    Runs on worker threads; it touches no crawl state, so it needs no locking.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        max_retries: int = 5,
        retry_delay: float = 1.0,
        backoff_factor: float = 2.0,
        delay_seconds: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.fetcher = fetcher
        self.max_retries = max(0, int(max_retries))
        self.retry_delay = retry_delay
        self.backoff_factor = backoff_factor
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def backoff(self, retry: int) -> float:
        """Seconds to wait before retry number `retry` (1-based)."""
        return self.retry_delay * (self.backoff_factor ** (retry - 1))

    def _fetch_once(self, url: str) -> HttpResponse:
        response = self.fetcher.fetch(url)
        if response.status_code >= 400:
            raise HttpStatusError(url, response.status_code, _reason(response.status_code))
        return response

    def fetch(self, url: str) -> FetchResult:
        messages: List[str] = []
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            if attempt:
                self._sleep(self.backoff(attempt))
            elif self.delay_seconds > 0:
                self._sleep(self.delay_seconds)
            try:
                response = self._fetch_once(url)
            except HttpFetchError as e:
                last_error = e
                messages.append(describe_error(e))
                logger.warning("Fetch failed for %s (attempt %d/%d): %s", url, attempt + 1, self.max_retries + 1, e)
                continue
            except Exception as e:
                last_error = e
                messages.append(describe_error(e))
                logger.error("Unexpected error fetching %s: %s", url, e, exc_info=True)
                continue
            return FetchResult(url=url, response=response, attempts=attempt + 1, messages=messages)
        return FetchResult(url=url, error=last_error, attempts=len(messages), messages=messages)


def _reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ""
