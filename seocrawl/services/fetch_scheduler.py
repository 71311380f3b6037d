"""Bounded worker pool that fetches URLs concurrently.

The scheduler is driven from a single coordinator thread: it enqueues URLs,
submits them to a thread pool within the current in-flight limit and hands
completed results back. Worker threads only run the fetch function.
"""
import logging
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional

from seocrawl.services.fetcher import FetchResult

logger = logging.getLogger(__name__)


class FetchState(str, Enum):
    QUEUED = "queued"
    IN_FLIGHT = "in_flight"
    DONE = "done"


class FetchScheduler:
    def __init__(
        self,
        fetch_fn: Callable[[str], FetchResult],
        *,
        min_concurrency: int = 5,
        max_concurrency: int = 20,
        max_requests: Optional[int] = None,
    ):
        if min_concurrency < 1 or max_concurrency < min_concurrency:
            raise ValueError("expected 1 <= min_concurrency <= max_concurrency")
        self.fetch_fn = fetch_fn
        self.min_concurrency = min_concurrency
        self.max_concurrency = max_concurrency
        self.max_requests = max_requests
        self._limit = min_concurrency
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: Deque[str] = deque()
        self._in_flight: Dict[Future, str] = {}
        self._states: Dict[str, FetchState] = {}

    def __enter__(self) -> "FetchScheduler":
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_concurrency,
            thread_name_prefix="seocrawl-fetch",
        )
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._executor is None:
            return
        self._executor.shutdown(wait=True, cancel_futures=True)
        self._executor = None
        self._pending.clear()
        self._in_flight.clear()

    @property
    def concurrency_limit(self) -> int:
        return self._limit

    @property
    def scheduled_count(self) -> int:
        return len(self._states)

    def state(self, url: str) -> Optional[FetchState]:
        return self._states.get(url)

    def can_schedule(self) -> bool:
        return self.max_requests is None or len(self._states) < self.max_requests

    def enqueue(self, url: str) -> bool:
        """Queue `url` for fetching.

        Returns False when it was already scheduled or the request cap is reached.
        """
        if url in self._states or not self.can_schedule():
            return False
        self._states[url] = FetchState.QUEUED
        self._pending.append(url)
        return True

    def has_work(self) -> bool:
        return bool(self._pending or self._in_flight)

    def _fill(self) -> None:
        if self._executor is None:
            raise RuntimeError("FetchScheduler used outside its context manager")
        while self._pending and len(self._in_flight) < self._limit:
            url = self._pending.popleft()
            self._states[url] = FetchState.IN_FLIGHT
            self._in_flight[self._executor.submit(self.fetch_fn, url)] = url

    def _adjust(self, result: FetchResult) -> None:
        if result.ok:
            self._limit = min(self.max_concurrency, self._limit + 1)
        else:
            self._limit = max(self.min_concurrency, self._limit - 1)

    def next_completed(self) -> List[FetchResult]:
        """Block until at least one in-flight fetch finishes and return the finished results."""
        self._fill()
        if not self._in_flight:
            return []
        done, _ = wait(list(self._in_flight), return_when=FIRST_COMPLETED)
        results: List[FetchResult] = []
        for future in done:
            url = self._in_flight.pop(future)
            self._states[url] = FetchState.DONE
            result = future.result()
            self._adjust(result)
            results.append(result)
        logger.debug("%d fetches completed, %d in flight, limit %d", len(results), len(self._in_flight), self._limit)
        return results
