import logging
import time
from typing import Callable, List, Optional, Tuple

from bs4 import BeautifulSoup

from seocrawl.domain.config import CrawlConfig
from seocrawl.domain.crawl_error import CrawlError, ErrorCategory
from seocrawl.domain.crawl_metadata import CrawlMetadata, CrawlStatus
from seocrawl.domain.frontier import Frontier
from seocrawl.domain.http_response import HttpResponse
from seocrawl.domain.link import LinkEdge
from seocrawl.domain.page import PageRecord
from seocrawl.services.content_extractor import ContentExtractor, PageContext, default_soup_factory
from seocrawl.services.crawl_policy import CrawlPolicy
from seocrawl.services.crawl_storage import CrawlStorage
from seocrawl.services.error_classifier import categorize_error
from seocrawl.services.fetch_scheduler import FetchScheduler
from seocrawl.services.fetcher import FetchResult, RetryingFetcher
from seocrawl.services.link_buffer import LinkBuffer
from seocrawl.services.link_extractor import LinkExtractor
from seocrawl.utils.datetime_utils import utc_now_iso

logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """Runs one crawl session from the start URL to a terminal status.

    Worker threads (owned by the FetchScheduler) only fetch. Everything
    else happens on the thread that called `run()`: filtering, depth and
    page-cap checks, extraction, persistence and counters. It does NOT
    construct its collaborators (that stays in the audit service / DI layer).
    """

    LINK_BUFFER_SIZE = 100
    METADATA_SNAPSHOT_INTERVAL = 10

    def __init__(
        self,
        *,
        config: CrawlConfig,
        frontier: Frontier,
        storage: CrawlStorage,
        fetcher: RetryingFetcher,
        content_extractor: ContentExtractor,
        link_extractor: LinkExtractor,
        crawl_policy: Optional[CrawlPolicy] = None,
        robots_service=None,
        soup_factory: Callable[[str], BeautifulSoup] = default_soup_factory,
    ):
        self.config = config
        self.frontier = frontier
        self.storage = storage
        self.fetcher = fetcher
        self.content_extractor = content_extractor
        self.link_extractor = link_extractor
        self.robots_service = robots_service
        self.crawl_policy = crawl_policy or CrawlPolicy(config, frontier, robots_service)
        self.soup_factory = soup_factory
        self.metadata = CrawlMetadata(crawl_id=config.crawl_id)
        self.link_buffer = LinkBuffer(self.storage.save_links, max_size=self.LINK_BUFFER_SIZE)
        self._scheduler: Optional[FetchScheduler] = None
        self._started: Optional[float] = None

    def run(self) -> CrawlMetadata:
        """Crawl until the frontier is exhausted or the page cap is reached.

        Never raises for crawl failures: the returned metadata carries the
        terminal status, counters and errors.
        """
        self._started = time.monotonic()
        try:
            self.storage.initialize()
            self.metadata.status = CrawlStatus.RUNNING
            self.metadata.started_at = utc_now_iso()
            self.storage.save_metadata(self.metadata, self.config)
            logger.info("Starting crawl %s at %s", self.config.crawl_id, self.config.start_url)

            if self.config.respect_robots and self.robots_service is not None:
                self.robots_service.load(self.config.start_url)

            self.frontier.add_discovered(self.config.start_url, 0)
            self._crawl()
            self.link_buffer.flush()
            self.metadata.status = CrawlStatus.COMPLETED
            logger.info(
                "Crawl %s completed: %d crawled, %d failed, %d skipped",
                self.config.crawl_id,
                self.metadata.stats.crawled,
                self.metadata.stats.failed,
                self.metadata.stats.skipped,
            )
        except Exception as e:
            logger.exception("Crawl %s failed", self.config.crawl_id)
            self.metadata.status = CrawlStatus.FAILED
            self.metadata.errors.append(
                CrawlError(url="", category=ErrorCategory.UNKNOWN, message=f"{type(e).__name__}: {e}")
            )
            self._flush_after_failure()
        finally:
            self._scheduler = None
        self._finish_stats()
        self._persist_terminal_metadata()
        return self.metadata

    def _crawl(self) -> None:
        with FetchScheduler(
            self.fetcher.fetch,
            min_concurrency=self.config.min_concurrency,
            max_concurrency=self.config.max_concurrency,
            max_requests=self.config.max_pages,
        ) as scheduler:
            self._scheduler = scheduler
            scheduler.enqueue(self.config.start_url)
            while scheduler.has_work():
                for result in scheduler.next_completed():
                    self.handle_result(result)

    def handle_result(self, result: FetchResult) -> None:
        if not result.ok:
            self._handle_failure(result)
            return
        response = result.response
        if not response.is_html:
            self.frontier.mark_visited(result.url)
            self.metadata.stats.skipped += 1
            logger.info("Skipping non-HTML %s (%s)", result.url, response.content_type)
            return
        self.process_page(result.url, response)

    def process_page(self, url: str, response: HttpResponse) -> Optional[PageRecord]:
        """Extract, filter and persist one fetched HTML page.

        A page whose extraction raises is recorded as a parse error and
        returns None; storage failures propagate.
        """
        self.frontier.mark_visited(url)
        depth = self.frontier.get_depth(url)
        try:
            page, links = self._extract(url, depth, response)
        except Exception as e:
            self._handle_parse_failure(url, e)
            return None

        for link in links:
            target = link.target_url
            if not self.crawl_policy.should_crawl(target):
                self.metadata.stats.skipped += 1
                continue
            if depth >= self.config.max_depth:
                logger.debug("Skipping (max depth %d) %s", self.config.max_depth, target)
                self.metadata.stats.skipped += 1
                continue
            if self.frontier.add_discovered(target, depth + 1, url) and self._scheduler is not None:
                self._scheduler.enqueue(target)

        self.storage.save_page(page)
        self.link_buffer.add(links)

        stats = self.metadata.stats
        stats.crawled += 1
        stats.discovered = self.frontier.total_discovered()
        if stats.crawled % self.METADATA_SNAPSHOT_INTERVAL == 0:
            self._finish_stats()
            self.storage.update_metadata(self.metadata)
        logger.debug("Crawled %s (depth %d, %d links)", url, depth, len(links))
        return page

    def _extract(self, url: str, depth: int, response: HttpResponse) -> Tuple[PageRecord, List[LinkEdge]]:
        soup = self.soup_factory(response.text)
        context = PageContext(
            url=url,
            crawl_id=self.config.crawl_id,
            depth=depth,
            status_code=response.status_code,
            content_type=response.content_type or "",
            response_time=response.elapsed_ms,
            size=len(response.text.encode("utf-8")),
            is_internal=self.frontier.is_internal(url),
            linked_from=self.frontier.get_source_pages(url),
            redirects=list(response.redirects),
            headers=response.headers,
        )
        page = self.content_extractor.extract(soup, context, html=response.text)
        links = self.link_extractor.extract(soup, url, self.config.crawl_id)
        return page, links

    def _handle_parse_failure(self, url: str, exc: Exception) -> None:
        message = f"{type(exc).__name__}: {exc}"
        error = CrawlError(url=url, category=ErrorCategory.PARSE, message=message)
        self.metadata.stats.failed += 1
        self.metadata.errors.append(error)
        self.storage.save_error(self.config.crawl_id, error)
        logger.warning("Could not process %s: %s", url, message, exc_info=True)

    def _handle_failure(self, result: FetchResult) -> None:
        message = result.error_message() or repr(result.error)
        error = CrawlError(url=result.url, category=categorize_error(message), message=message)
        self.metadata.stats.failed += 1
        self.metadata.errors.append(error)
        self.storage.save_error(self.config.crawl_id, error)
        logger.warning("Giving up on %s after %d attempt(s): %s", result.url, result.attempts, message)

        status_code = result.status_code
        if status_code is not None:
            # keep a stub so status-code analyses see the failing URL
            self.storage.save_page(PageRecord(
                url=result.url,
                crawl_id=self.config.crawl_id,
                status_code=status_code,
                depth=self.frontier.get_depth(result.url),
                is_internal=self.frontier.is_internal(result.url),
                linked_from=self.frontier.get_source_pages(result.url),
                error=message,
            ))

    def _finish_stats(self) -> None:
        stats = self.metadata.stats
        stats.discovered = self.frontier.total_discovered()
        stats.depth = self.frontier.max_depth()
        if self._started is None:
            return
        elapsed = time.monotonic() - self._started
        self.metadata.duration = int(round(elapsed * 1000))
        stats.speed = round(stats.crawled / elapsed, 2) if elapsed > 0 else 0.0
        if self.metadata.is_finished:
            self.metadata.completed_at = utc_now_iso()

    def _flush_after_failure(self) -> None:
        try:
            self.link_buffer.flush()
        except Exception:
            logger.exception("Could not flush buffered links for crawl %s", self.config.crawl_id)

    def _persist_terminal_metadata(self) -> None:
        try:
            self.storage.initialize()
            self.storage.save_metadata(self.metadata, self.config)
            for error in self.metadata.errors:
                if error.url == "":
                    self.storage.save_error(self.config.crawl_id, error)
        except Exception:
            logger.exception("Could not persist final metadata for crawl %s", self.config.crawl_id)
