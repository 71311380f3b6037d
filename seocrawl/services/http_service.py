import time
from typing import Callable, List

import requests
from requests.structures import CaseInsensitiveDict

from seocrawl.domain.http_response import HttpResponse
from seocrawl.domain.page import Redirect
from seocrawl.exceptions import HttpFetchError

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class HttpService:
    """
    HTTP client wrapper for fetching web pages.

    Requires http_client callable for dependency injection (e.g. `requests.get`),
    so tests can substitute a Mock without patching.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout: float = 30):
        self.user_agent = user_agent
        self.timeout = timeout
        self.http_client = http_client

    @staticmethod
    def _redirects(resp) -> List[Redirect]:
        history = getattr(resp, "history", None)
        if not isinstance(history, list) or not history:
            return []
        hops = history + [resp]
        return [
            Redirect(from_url=hop.url, to_url=hops[i + 1].url, status_code=hop.status_code)
            for i, hop in enumerate(history)
        ]

    def fetch(self, url: str) -> HttpResponse:
        """Fetch URL following redirects; HTTP error statuses are returned, not raised."""
        headers = {**DEFAULT_HEADERS, "User-Agent": self.user_agent}
        started = time.monotonic()
        try:
            resp = self.http_client(url, headers=headers, timeout=self.timeout, allow_redirects=True)
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e
        elapsed_ms = int(round((time.monotonic() - started) * 1000))

        resp_headers = CaseInsensitiveDict(getattr(resp, "headers", None) or {})
        final_url = getattr(resp, "url", None)
        return HttpResponse(
            status_code=resp.status_code,
            text=resp.text,
            content_type=resp_headers.get("Content-Type"),
            headers=resp_headers,
            url=final_url if isinstance(final_url, str) else url,
            elapsed_ms=elapsed_ms,
            redirects=self._redirects(resp),
        )

    def fetch_robots(self, robots_url: str) -> HttpResponse:
        """Fetch robots.txt - delegates to fetch()."""
        return self.fetch(robots_url)
