import threading
from typing import Dict, List, Optional, Set

from seocrawl.utils.url_utils import base_domain as _base_domain
from seocrawl.utils.url_utils import is_internal as _is_internal
from seocrawl.utils.url_utils import normalize_url


class Frontier:
    """
    Tracks which URLs have been discovered and visited during one crawl.

    All URLs are keyed by their normalized form. The depth of a URL is fixed
    by the first call that records it; later discoveries only add sources.
    One lock guards every read and write, so the frontier can be shared by
    the coordinator and any number of worker threads.
    """

    def __init__(self, base_domain: str):
        """`base_domain` may be a full URL or a bare host; 'www.' is stripped."""
        self.base_domain = _base_domain(base_domain)
        self._lock = threading.Lock()
        self._depths: Dict[str, int] = {}
        self._sources: Dict[str, Set[str]] = {}
        self._visited: Set[str] = set()

    @staticmethod
    def normalize(url: str) -> str:
        return normalize_url(url)

    def is_internal(self, url: str) -> bool:
        return _is_internal(url, self.base_domain)

    def add_discovered(self, url: str, depth: int, source_url: Optional[str] = None) -> bool:
        """Record a discovery of `url` at `depth`.

        Returns True only for the call that first recorded the URL. The
        source, when given, is added either way.
        """
        key = normalize_url(url)
        with self._lock:
            first = key not in self._depths
            if first:
                self._depths[key] = depth
                self._sources[key] = set()
            if source_url:
                self._sources[key].add(normalize_url(source_url))
            return first

    def mark_visited(self, url: str) -> None:
        with self._lock:
            self._visited.add(normalize_url(url))

    def is_visited(self, url: str) -> bool:
        with self._lock:
            return normalize_url(url) in self._visited

    def is_discovered(self, url: str) -> bool:
        with self._lock:
            return normalize_url(url) in self._depths

    def get_depth(self, url: str) -> int:
        """Depth recorded at first discovery; 0 for unknown URLs."""
        with self._lock:
            return self._depths.get(normalize_url(url), 0)

    def get_source_pages(self, url: str) -> List[str]:
        with self._lock:
            return sorted(self._sources.get(normalize_url(url), ()))

    def get_unvisited_urls(self) -> List[str]:
        """Discovered but never visited, in discovery order."""
        with self._lock:
            return [u for u in self._depths if u not in self._visited]

    def total_discovered(self) -> int:
        with self._lock:
            return len(self._depths)

    def total_visited(self) -> int:
        with self._lock:
            return len(self._visited)

    def max_depth(self) -> int:
        with self._lock:
            return max(self._depths.values(), default=0)
