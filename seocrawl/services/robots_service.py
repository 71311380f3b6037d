import logging
import threading
from typing import Dict, Optional
from urllib.parse import urljoin, urlsplit
from urllib.robotparser import RobotFileParser

from seocrawl.exceptions import HttpFetchError

logger = logging.getLogger(__name__)


class RobotsService:
    """
    Service for checking robots.txt permissions.

    robots.txt files are fetched up front with `load()`; `allowed()` only
    consults parsers already loaded, so the crawl's processing path never
    waits on the network. Origins that were never loaded, or whose robots.txt
    could not be fetched, are allowed (fail open).
    """

    def __init__(self, http_service, user_agent: str):
        self.http_service = http_service
        self.user_agent = user_agent
        self._parsers: Dict[str, Optional[RobotFileParser]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _origin(url: str) -> Optional[str]:
        try:
            parsed = urlsplit(url)
        except ValueError:
            return None
        if not parsed.scheme or not parsed.netloc:
            return None
        return f"{parsed.scheme}://{parsed.netloc}"

    def _fetch_parser(self, robots_url: str) -> Optional[RobotFileParser]:
        try:
            response = self.http_service.fetch_robots(robots_url)
        except HttpFetchError:
            logger.warning("Network error fetching robots.txt from %s", robots_url, exc_info=True)
            return None
        if response.status_code != 200 or not response.text:
            logger.info("No usable robots.txt at %s (status %s)", robots_url, response.status_code)
            return None
        parser = RobotFileParser()
        parser.parse(response.text.splitlines())
        return parser

    def load(self, url: str) -> None:
        """Fetch and cache robots.txt for the origin of `url`."""
        origin = self._origin(url)
        if origin is None:
            return
        with self._lock:
            if origin in self._parsers:
                return
        parser = self._fetch_parser(urljoin(origin, "/robots.txt"))
        with self._lock:
            self._parsers.setdefault(origin, parser)

    def allowed(self, url: str) -> bool:
        origin = self._origin(url)
        if origin is None:
            return True
        with self._lock:
            parser = self._parsers.get(origin)
        if parser is None:
            return True
        return parser.can_fetch(self.user_agent, url)
