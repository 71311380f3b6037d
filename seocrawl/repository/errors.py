from typing import List, Optional

from sqlalchemy import func, insert, select
from sqlalchemy.orm import Session

from seocrawl.db.models import ErrorRow
from seocrawl.domain.crawl_error import CrawlError, ErrorCategory


class ErrorsRepository:
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_session(self) -> Session:
        return self.session_factory()

    def insert_error(self, crawl_id: str, error: CrawlError) -> None:
        with self.get_session() as session, session.begin():
            session.execute(insert(ErrorRow.__table__).values(
                crawl_id=crawl_id,
                url=error.url,
                error_type=error.category.value,
                error_message=error.message,
                timestamp=error.timestamp,
            ))

    def fetch_errors(self, crawl_id: Optional[str] = None) -> List[CrawlError]:
        with self.get_session() as session:
            q = select(ErrorRow)
            if crawl_id is not None:
                q = q.where(ErrorRow.crawl_id == crawl_id)
            rows = session.execute(q.order_by(ErrorRow.id)).scalars().all()
            return [self._to_domain(row) for row in rows]

    @staticmethod
    def _to_domain(row: ErrorRow) -> CrawlError:
        try:
            category = ErrorCategory(row.error_type)
        except ValueError:
            category = ErrorCategory.UNKNOWN
        return CrawlError(
            url=row.url,
            category=category,
            message=row.error_message or "",
            timestamp=row.timestamp or "",
        )

    def count(self) -> int:
        with self.get_session() as session:
            return session.execute(select(func.count()).select_from(ErrorRow)).scalar_one()
