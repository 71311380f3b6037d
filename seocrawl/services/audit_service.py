import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from seocrawl.domain.config import CrawlConfig
from seocrawl.domain.crawl_metadata import CrawlMetadata
from seocrawl.domain.frontier import Frontier
from seocrawl.domain.seo_issue import IssueExample, SeoIssue
from seocrawl.services.content_extractor import ContentExtractor
from seocrawl.services.crawl_orchestrator import CrawlOrchestrator
from seocrawl.services.crawl_storage import DB_FILENAME, CrawlStorage
from seocrawl.services.fetcher import RetryingFetcher
from seocrawl.services.http_service import HttpService
from seocrawl.services.link_extractor import LinkExtractor
from seocrawl.services.query_catalog import QueryCatalog, QueryDefinition
from seocrawl.services.robots_service import RobotsService
from seocrawl.utils.datetime_utils import timestamp_slug
from seocrawl.utils.url_utils import hostname

logger = logging.getLogger(__name__)


@dataclass
class AuditResult:
    crawl_id: str
    output_path: str
    metadata: CrawlMetadata
    export_path: Optional[str] = None

    @property
    def status(self) -> str:
        return self.metadata.status.value

    def to_dict(self) -> dict:
        return {
            "crawlId": self.crawl_id,
            "outputPath": self.output_path,
            "status": self.status,
            "exportPath": self.export_path,
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class AnalysisResult:
    crawl_id: str
    crawl_path: str
    total_pages: int
    execution_time: int
    issues: List[SeoIssue] = field(default_factory=list)


def example_from_row(row: Dict[str, Any]) -> IssueExample:
    """Pick the URL of a result row and the most telling detail column."""
    url = row.get("url") or row.get("source_url") or row.get("target_url") or ""
    detail = None
    if row.get("anchor_text"):
        detail = f"Anchor: {row['anchor_text']}"
    elif row.get("duplicate_urls"):
        detail = f"Also on: {row['duplicate_urls']}"
    elif row.get("word_count") is not None:
        detail = f"Word count: {row['word_count']}"
    elif row.get("title_length") is not None:
        detail = f"Length: {row['title_length']}"
    elif row.get("heading_count_h1") is not None:
        detail = f"H1 count: {row['heading_count_h1']}"
    elif row.get("count") is not None:
        detail = f"Count: {row['count']}"
    elif row.get("h1"):
        detail = f"H1: {row['h1']}"
    if not url:
        for key in ("title", "meta_description", "h1"):
            if row.get(key):
                url = str(row[key])
                break
    return IssueExample(url=url, detail=detail)


class AuditService:
    """Allocates crawl directories, wires a crawl session, and analyzes finished crawls.

    Collaborators that depend on per-crawl settings (the HTTP client) are
    created through injected factories; the rest are shared.
    """

    def __init__(
        self,
        *,
        output_dir: str,
        http_service_factory: Callable[..., HttpService],
        content_extractor: ContentExtractor,
        query_catalog: QueryCatalog,
        default_user_agent: str = "chrome",
        default_timeout: Optional[int] = None,
        retry_delay: float = 1.0,
        backoff_factor: float = 2.0,
    ):
        self.output_dir = Path(output_dir)
        self.http_service_factory = http_service_factory
        self.content_extractor = content_extractor
        self.query_catalog = query_catalog
        self.default_user_agent = default_user_agent
        self.default_timeout = default_timeout
        self.retry_delay = retry_delay
        self.backoff_factor = backoff_factor

    def build_config(
        self,
        url: str,
        max_pages: Optional[int] = None,
        depth: Optional[int] = None,
        user_agent: Optional[str] = None,
        **overrides: Any,
    ) -> CrawlConfig:
        data: Dict[str, Any] = {"start_url": url, "user_agent": user_agent or self.default_user_agent}
        if max_pages is not None:
            data["max_pages"] = max_pages
        if depth is not None:
            data["max_depth"] = depth
        if self.default_timeout is not None:
            data["timeout"] = self.default_timeout
        data.update({k: v for k, v in overrides.items() if v is not None})
        return CrawlConfig(**data)

    def allocate_output_path(self, config: CrawlConfig) -> Path:
        host = (hostname(config.start_url) or "site").replace(":", "_")
        return self.output_dir / f"{host}_{timestamp_slug()}_{config.crawl_id[:8]}"

    def run_audit(
        self,
        url: str,
        max_pages: Optional[int] = None,
        depth: Optional[int] = None,
        user_agent: Optional[str] = None,
        **overrides: Any,
    ) -> AuditResult:
        return self.run_config(self.build_config(url, max_pages, depth, user_agent, **overrides))

    def run_config(self, config: CrawlConfig) -> AuditResult:
        output_path = Path(config.output_path) if config.output_path else self.allocate_output_path(config)
        config = config.with_output_path(str(output_path))
        storage = CrawlStorage(output_path)
        storage.save_config(config)

        http_service = self.http_service_factory(
            user_agent=config.resolved_user_agent,
            timeout=config.timeout_seconds,
        )
        robots_service = RobotsService(http_service, config.resolved_user_agent) if config.respect_robots else None
        orchestrator = CrawlOrchestrator(
            config=config,
            frontier=Frontier(config.start_url),
            storage=storage,
            fetcher=RetryingFetcher(
                http_service,
                max_retries=config.max_retries,
                retry_delay=self.retry_delay,
                backoff_factor=self.backoff_factor,
                delay_seconds=config.delay_seconds,
            ),
            content_extractor=self.content_extractor,
            link_extractor=LinkExtractor(config.start_url),
            robots_service=robots_service,
        )
        try:
            metadata = orchestrator.run()
            export_path = None
            if storage.engine is not None:
                export_path = str(storage.export_csv())
        finally:
            storage.close()
        logger.info("Audit of %s finished with status %s in %s", config.start_url, metadata.status.value, output_path)
        return AuditResult(
            crawl_id=config.crawl_id,
            output_path=str(output_path),
            metadata=metadata,
            export_path=export_path,
        )

    @staticmethod
    def open_storage(crawl_path: str) -> CrawlStorage:
        path = Path(crawl_path)
        if not (path / DB_FILENAME).is_file():
            raise FileNotFoundError(f"Database not found at: {path / DB_FILENAME}")
        storage = CrawlStorage(path)
        storage.initialize()
        return storage

    def run_query(self, storage: CrawlStorage, query: QueryDefinition, max_examples: int = 10) -> Optional[SeoIssue]:
        rows = storage.execute_query(query.sql)
        if not rows:
            return None
        return SeoIssue(
            query=query.name,
            category=query.category,
            priority=query.priority,
            title=query.title,
            description=query.description,
            impact=query.impact,
            fix=query.fix,
            affected_count=len(rows),
            examples=[example_from_row(r) for r in rows[:max_examples]],
        )

    def analyze(
        self,
        crawl_path: str,
        categories: Optional[List[str]] = None,
        max_examples: int = 10,
        priority: Optional[str] = None,
    ) -> AnalysisResult:
        """Run every selected catalog query against a finished crawl."""
        started = time.monotonic()
        storage = self.open_storage(crawl_path)
        try:
            metadata = storage.load_metadata()
            total_pages = metadata.stats.crawled if metadata and metadata.stats.crawled else storage.pages_repo.count()
            issues = []
            for query in self.query_catalog.select(categories, priority):
                issue = self.run_query(storage, query, max_examples)
                if issue is not None:
                    issues.append(issue)
        finally:
            storage.close()
        return AnalysisResult(
            crawl_id=metadata.crawl_id if metadata else "unknown",
            crawl_path=str(crawl_path),
            total_pages=total_pages,
            execution_time=int(round((time.monotonic() - started) * 1000)),
            issues=issues,
        )

    def query(self, crawl_path: str, name: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Rows of one named catalog query."""
        query = self.query_catalog.get_query(name)
        storage = self.open_storage(crawl_path)
        try:
            return storage.execute_query(query.sql, limit=limit)
        finally:
            storage.close()
