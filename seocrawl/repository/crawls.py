from typing import Optional

from sqlalchemy import insert, select, update
from sqlalchemy.orm import Session

from seocrawl.db.models import CrawlMetadataRow
from seocrawl.domain.config import CrawlConfig
from seocrawl.domain.crawl_metadata import CrawlMetadata, CrawlStats, CrawlStatus
from seocrawl.utils.url_utils import base_domain


class CrawlsRepository:
    """Repository for the single crawl_metadata row of a crawl database."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_session(self) -> Session:
        return self.session_factory()

    @staticmethod
    def _stats_values(metadata: CrawlMetadata) -> dict:
        return {
            "status": metadata.status.value,
            "urls_discovered": metadata.stats.discovered,
            "urls_crawled": metadata.stats.crawled,
            "urls_failed": metadata.stats.failed,
            "urls_skipped": metadata.stats.skipped,
            "max_depth_reached": metadata.stats.depth,
            "started_at": metadata.started_at,
            "completed_at": metadata.completed_at,
            "duration_ms": metadata.duration,
            "speed_pages_per_sec": metadata.stats.speed,
        }

    def save_metadata(self, metadata: CrawlMetadata, config: CrawlConfig) -> None:
        """Insert or replace the full metadata row, including config-derived columns."""
        values = {
            "crawl_id": metadata.crawl_id,
            "base_url": config.start_url,
            "base_domain": base_domain(config.start_url),
            "max_depth": config.max_depth,
            "max_pages": config.max_pages,
            "user_agent": config.user_agent,
            **self._stats_values(metadata),
        }
        with self.get_session() as session, session.begin():
            session.execute(insert(CrawlMetadataRow.__table__).prefix_with("OR REPLACE").values(**values))

    def update_metadata(self, metadata: CrawlMetadata) -> bool:
        """Update status, timestamps and counters. Returns False when no row exists yet."""
        stmt = (
            update(CrawlMetadataRow.__table__)
            .where(CrawlMetadataRow.crawl_id == metadata.crawl_id)
            .values(**self._stats_values(metadata))
        )
        with self.get_session() as session, session.begin():
            result = session.execute(stmt)
            return result.rowcount > 0

    def get_metadata(self, crawl_id: Optional[str] = None) -> Optional[CrawlMetadata]:
        """Metadata for `crawl_id`, or the only/most recent row when not given."""
        with self.get_session() as session:
            q = select(CrawlMetadataRow)
            if crawl_id is not None:
                q = q.where(CrawlMetadataRow.crawl_id == crawl_id)
            else:
                q = q.order_by(CrawlMetadataRow.started_at.desc())
            row = session.execute(q).scalars().first()
            if not row:
                return None
            try:
                status = CrawlStatus(row.status)
            except ValueError:
                status = CrawlStatus.FAILED
            return CrawlMetadata(
                crawl_id=row.crawl_id,
                status=status,
                started_at=row.started_at,
                completed_at=row.completed_at,
                duration=row.duration_ms,
                stats=CrawlStats(
                    discovered=row.urls_discovered or 0,
                    crawled=row.urls_crawled or 0,
                    failed=row.urls_failed or 0,
                    skipped=row.urls_skipped or 0,
                    depth=row.max_depth_reached or 0,
                    speed=row.speed_pages_per_sec or 0.0,
                ),
            )
