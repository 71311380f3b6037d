"""Per-crawl durable store: config.json, the SQLite database and the CSV export.

All writes go through one lock and each write call is its own transaction,
so concurrent callers never interleave partial batches.
"""
import csv
import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

from seocrawl.db.engine import make_engine
from seocrawl.db.migrations import migrate
from seocrawl.domain.config import CrawlConfig
from seocrawl.domain.crawl_error import CrawlError
from seocrawl.domain.crawl_metadata import CrawlMetadata
from seocrawl.domain.link import LinkEdge
from seocrawl.domain.page import PageRecord
from seocrawl.repository.crawls import CrawlsRepository
from seocrawl.repository.errors import ErrorsRepository
from seocrawl.repository.links import LinksRepository
from seocrawl.repository.pages import PagesRepository

logger = logging.getLogger(__name__)

DB_FILENAME = "crawl-data.db"
CONFIG_FILENAME = "config.json"
EXPORT_FILENAME = "crawl-export.csv"

CSV_COLUMNS = [
    "Address", "Status Code", "Status", "Content Type", "Size (bytes)",
    "Word Count", "Title", "Title Length", "Meta Description",
    "Meta Description Length", "H1-1", "H1-1 Length", "Canonical Link Element",
    "Robots", "Language", "Charset", "Depth", "Is Internal", "Linked From",
    "Internal Links", "External Links", "Has Google Analytics", "GA4 ID",
    "Has GTM", "GTM ID",
]


def _status_label(status_code: int) -> str:
    if 200 <= status_code < 300:
        return "OK"
    if 300 <= status_code < 400:
        return "Redirect"
    if 400 <= status_code < 500:
        return "Client Error"
    if status_code >= 500:
        return "Server Error"
    return "Unknown"


def _csv_row(page: PageRecord) -> List[Any]:
    return [
        page.url,
        page.status_code,
        _status_label(page.status_code),
        page.content_type,
        page.size,
        page.word_count,
        page.title,
        page.title_length,
        page.meta_description,
        page.meta_description_length,
        page.h1,
        len(page.h1),
        page.canonical_url,
        page.robots,
        page.lang,
        page.charset,
        page.depth,
        "Yes" if page.is_internal else "No",
        "; ".join(page.linked_from),
        page.internal_links,
        page.external_links,
        "Yes" if page.analytics.google_analytics else "No",
        page.analytics.ga4_id,
        "Yes" if page.analytics.gtm_id else "No",
        page.analytics.gtm_id,
    ]


class CrawlStorage:
    """Storage engine for one crawl directory."""

    def __init__(self, output_path: Union[str, Path]):
        self.output_path = Path(output_path)
        self.db_path = self.output_path / DB_FILENAME
        self.config_path = self.output_path / CONFIG_FILENAME
        self.export_path = self.output_path / EXPORT_FILENAME
        self._write_lock = threading.Lock()
        self.engine = None
        self.pages_repo: Optional[PagesRepository] = None
        self.links_repo: Optional[LinksRepository] = None
        self.errors_repo: Optional[ErrorsRepository] = None
        self.crawls_repo: Optional[CrawlsRepository] = None

    def initialize(self) -> List[str]:
        """Create the directory and database (idempotent); returns columns added by migration."""
        if self.engine is not None:
            return []
        self.output_path.mkdir(parents=True, exist_ok=True)
        self.engine = make_engine(self.db_path)
        added = migrate(self.engine)
        session_factory = sessionmaker(bind=self.engine)
        self.pages_repo = PagesRepository(session_factory)
        self.links_repo = LinksRepository(session_factory)
        self.errors_repo = ErrorsRepository(session_factory)
        self.crawls_repo = CrawlsRepository(session_factory)
        logger.info("Crawl database ready at %s", self.db_path)
        return added

    def _require(self) -> None:
        if self.engine is None:
            raise RuntimeError(f"CrawlStorage for {self.output_path} is not initialized")

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None

    def __enter__(self) -> "CrawlStorage":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # config.json

    def save_config(self, config: CrawlConfig) -> Path:
        self.output_path.mkdir(parents=True, exist_ok=True)
        with self._write_lock:
            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(config.to_document(), f, indent=2)
        return self.config_path

    def load_config(self) -> Optional[CrawlConfig]:
        if not self.config_path.is_file():
            return None
        with open(self.config_path, "r", encoding="utf-8") as f:
            return CrawlConfig.model_validate(json.load(f))

    # metadata

    def save_metadata(self, metadata: CrawlMetadata, config: CrawlConfig) -> None:
        self._require()
        with self._write_lock:
            self.crawls_repo.save_metadata(metadata, config)

    def update_metadata(self, metadata: CrawlMetadata) -> None:
        self._require()
        with self._write_lock:
            if not self.crawls_repo.update_metadata(metadata):
                logger.warning("No metadata row for crawl %s to update", metadata.crawl_id)

    def load_metadata(self, crawl_id: Optional[str] = None) -> Optional[CrawlMetadata]:
        self._require()
        metadata = self.crawls_repo.get_metadata(crawl_id)
        if metadata is not None:
            metadata.errors = self.errors_repo.fetch_errors(metadata.crawl_id)
        return metadata

    # pages

    def save_page(self, page: PageRecord) -> None:
        self.save_pages([page])

    def save_pages(self, pages: Iterable[PageRecord]) -> int:
        self._require()
        pages = list(pages)
        with self._write_lock:
            return self.pages_repo.upsert_pages(pages)

    def load_page(self, url: str) -> Optional[PageRecord]:
        self._require()
        return self.pages_repo.get_page_by_url(url)

    def load_all_pages(self) -> List[PageRecord]:
        self._require()
        return self.pages_repo.fetch_pages()

    # links and errors

    def save_links(self, links: Iterable[LinkEdge]) -> int:
        self._require()
        links = list(links)
        with self._write_lock:
            return self.links_repo.insert_links_batch(links)

    def load_all_links(self) -> List[LinkEdge]:
        self._require()
        return self.links_repo.fetch_links()

    def save_error(self, crawl_id: str, error: CrawlError) -> None:
        self._require()
        with self._write_lock:
            self.errors_repo.insert_error(crawl_id, error)

    def load_errors(self, crawl_id: Optional[str] = None) -> List[CrawlError]:
        self._require()
        return self.errors_repo.fetch_errors(crawl_id)

    # reads

    def execute_query(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Run caller-supplied SQL on a read-only connection; writes raise OperationalError."""
        self._require()
        with self.engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA query_only = ON")
            try:
                result = conn.execute(text(sql), dict(params or {}))
                rows = result.mappings().fetchmany(limit) if limit else result.mappings().all()
                return [dict(r) for r in rows]
            finally:
                conn.rollback()
                conn.exec_driver_sql("PRAGMA query_only = OFF")

    def get_stats(self) -> Dict[str, Any]:
        self._require()
        size = self.db_path.stat().st_size if self.db_path.exists() else 0
        return {
            "pages": self.pages_repo.count(),
            "links": self.links_repo.count(),
            "errors": self.errors_repo.count(),
            "database_size": size,
        }

    def export_csv(self) -> Path:
        """Write crawl-export.csv with one row per page ordered by depth then URL."""
        pages = self.load_all_pages()
        with self._write_lock:
            with open(self.export_path, "w", encoding="utf-8", newline="") as f:
                if pages:
                    writer = csv.writer(f, quoting=csv.QUOTE_MINIMAL)
                    writer.writerow(CSV_COLUMNS)
                    for page in pages:
                        writer.writerow(_csv_row(page))
        logger.info("Exported %d pages to %s", len(pages), self.export_path)
        return self.export_path
