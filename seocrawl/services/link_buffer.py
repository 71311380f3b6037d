import logging
import threading
from typing import Callable, Iterable, List

from seocrawl.domain.link import LinkEdge

logger = logging.getLogger(__name__)


class LinkBuffer:
    """Collects link edges and writes them in batches.

    Appending and the size check happen under one lock, so a batch is handed
    to `flush_fn` exactly once even when several threads add concurrently.
    """

    def __init__(self, flush_fn: Callable[[List[LinkEdge]], object], max_size: int = 100):
        self.flush_fn = flush_fn
        self.max_size = max_size
        self._links: List[LinkEdge] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._links)

    def add(self, links: Iterable[LinkEdge]) -> int:
        """Buffer `links`; returns the number of edges written by this call."""
        with self._lock:
            self._links.extend(links)
            if len(self._links) < self.max_size:
                return 0
            return self._flush_locked()

    def flush(self) -> int:
        with self._lock:
            return self._flush_locked()

    def _flush_locked(self) -> int:
        if not self._links:
            return 0
        count = len(self._links)
        self.flush_fn(self._links)
        self._links = []
        logger.debug("Flushed %d links", count)
        return count
