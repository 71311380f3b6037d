from typing import Iterable, List, Optional

from sqlalchemy import func, insert, select
from sqlalchemy.orm import Session

from seocrawl.db.models import LinkRow
from seocrawl.domain.link import LinkEdge


class LinksRepository:
    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_session(self) -> Session:
        return self.session_factory()

    def insert_links_batch(self, links: Iterable[LinkEdge]) -> int:
        """Append link edges in one transaction; duplicates are kept as separate rows."""
        rows = [
            {
                "crawl_id": link.crawl_id,
                "source_url": link.source_url,
                "target_url": link.target_url,
                "anchor_text": link.anchor_text,
                "is_internal": link.is_internal,
                "target_domain": link.target_domain,
                "target_status": link.target_status,
                "placement": link.placement,
                "discovered_at": link.discovered_at,
            }
            for link in links
        ]
        if not rows:
            return 0
        with self.get_session() as session, session.begin():
            session.execute(insert(LinkRow.__table__), rows)
        return len(rows)

    def fetch_links(self, source_url: Optional[str] = None, limit: Optional[int] = None) -> List[LinkEdge]:
        with self.get_session() as session:
            q = select(LinkRow)
            if source_url is not None:
                q = q.where(LinkRow.source_url == source_url)
            q = q.order_by(LinkRow.source_url, LinkRow.target_url)
            if limit:
                q = q.limit(limit)
            rows = session.execute(q).scalars().all()
            return [LinkEdge(
                crawl_id=row.crawl_id,
                source_url=row.source_url,
                target_url=row.target_url,
                anchor_text=row.anchor_text or "",
                is_internal=bool(row.is_internal),
                target_domain=row.target_domain or "",
                target_status=row.target_status,
                placement=row.placement or "body",
                discovered_at=row.discovered_at or "",
            ) for row in rows]

    def count(self) -> int:
        with self.get_session() as session:
            return session.execute(select(func.count()).select_from(LinkRow)).scalar_one()
