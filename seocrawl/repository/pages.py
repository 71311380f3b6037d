import json
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, insert, select
from sqlalchemy.orm import Session

from seocrawl.db.models import PageRow
from seocrawl.domain.page import (
    Analytics,
    HeadingCounts,
    LinkMetrics,
    PageRecord,
    SecurityHeaders,
)


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _loads(raw: Optional[str], default: Any) -> Any:
    if not raw:
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return default


class PagesRepository:
    """Repository for per-page SEO records.

    Requires an explicit `session_factory` (callable returning a `Session`).
    """
    def __init__(self, session_factory):
        self.session_factory = session_factory

    @staticmethod
    def _sanitize_text(val: Optional[str]) -> Optional[str]:
        """Remove NUL (\x00) characters, which some misclassified binary bodies carry."""
        if isinstance(val, str):
            return val.replace("\x00", "")
        return val

    def get_session(self) -> Session:
        return self.session_factory()

    def _to_row(self, page: PageRecord) -> Dict[str, Any]:
        """Flatten a PageRecord into the column layout of the pages table."""
        s = self._sanitize_text
        data = page.model_dump(by_alias=True)
        return {
            "crawl_id": page.crawl_id,
            "url": page.url,
            "status_code": page.status_code,
            "content_type": page.content_type,
            "size": page.size,
            "response_time": page.response_time,
            "depth": page.depth,
            "is_internal": page.is_internal,
            "linked_from": _dumps(page.linked_from),
            "title": s(page.title),
            "title_length": page.title_length,
            "meta_description": s(page.meta_description),
            "meta_description_length": page.meta_description_length,
            "h1": s(page.h1),
            "h2": _dumps([s(h) for h in page.h2]),
            "h3": _dumps([s(h) for h in page.h3]),
            "word_count": page.word_count,
            "lang": page.lang,
            "charset": page.charset,
            "canonical_url": page.canonical_url,
            "robots": page.robots,
            "viewport": page.viewport,
            "author": s(page.author),
            "keywords": s(page.keywords),
            "generator": s(page.generator),
            "theme_color": page.theme_color,
            "meta_tags": _dumps(page.meta_tags),
            "og_tags": _dumps(page.og_tags),
            "twitter_tags": _dumps(page.twitter_tags),
            "json_ld": _dumps(page.json_ld),
            "schema_org": _dumps(data["schema_org"]),
            "has_google_analytics": page.analytics.google_analytics,
            "has_gtag": page.analytics.gtag,
            "ga4_id": page.analytics.ga4_id,
            "has_gtm": bool(page.analytics.gtm_id),
            "gtm_id": page.analytics.gtm_id,
            "has_facebook_pixel": page.analytics.facebook_pixel,
            "has_hotjar": page.analytics.hotjar,
            "has_mixpanel": page.analytics.mixpanel,
            "images": _dumps(data["images"]),
            "internal_links": page.internal_links,
            "external_links": page.external_links,
            "hreflang": _dumps(data["hreflang"]),
            "redirects": _dumps(data["redirects"]),
            "security_headers_csp": page.security_headers.content_security_policy,
            "security_headers_hsts": page.security_headers.strict_transport_security,
            "security_headers_x_frame": page.security_headers.x_frame_options,
            "security_headers_referrer": page.security_headers.referrer_policy,
            "heading_count_h1": page.heading_counts.h1,
            "heading_count_h2": page.heading_counts.h2,
            "heading_count_h3": page.heading_counts.h3,
            "heading_count_h4": page.heading_counts.h4,
            "heading_count_h5": page.heading_counts.h5,
            "heading_count_h6": page.heading_counts.h6,
            "heading_hierarchy": _dumps(page.heading_hierarchy),
            "heading_sequential_errors": _dumps(page.heading_sequential_errors),
            "link_ext_target_blank_count": page.link_metrics.external_target_blank_count,
            "link_ext_target_blank_no_rel_count": page.link_metrics.external_target_blank_no_rel_count,
            "link_protocol_relative_count": page.link_metrics.protocol_relative_count,
            "error": page.error,
            "crawled_at": page.crawled_at,
        }

    def _to_domain(self, row: PageRow) -> PageRecord:
        """Convert a database row back into a PageRecord."""
        return PageRecord(
            url=row.url,
            crawl_id=row.crawl_id or "",
            status_code=row.status_code or 0,
            content_type=row.content_type or "",
            response_time=row.response_time or 0,
            size=row.size or 0,
            redirects=_loads(row.redirects, []),
            depth=row.depth or 0,
            is_internal=bool(row.is_internal),
            linked_from=_loads(row.linked_from, []),
            title=row.title or "",
            meta_description=row.meta_description or "",
            h1=row.h1 or "",
            h2=_loads(row.h2, []),
            h3=_loads(row.h3, []),
            word_count=row.word_count or 0,
            lang=row.lang or "",
            charset=row.charset or "",
            meta_tags=_loads(row.meta_tags, {}),
            viewport=row.viewport or "",
            robots=row.robots or "",
            author=row.author or "",
            keywords=row.keywords or "",
            generator=row.generator or "",
            theme_color=row.theme_color or "",
            canonical_url=row.canonical_url or "",
            json_ld=_loads(row.json_ld, []),
            schema_org=_loads(row.schema_org, []),
            og_tags=_loads(row.og_tags, {}),
            twitter_tags=_loads(row.twitter_tags, {}),
            images=_loads(row.images, []),
            internal_links=row.internal_links or 0,
            external_links=row.external_links or 0,
            hreflang=_loads(row.hreflang, []),
            security_headers=SecurityHeaders(
                content_security_policy=row.security_headers_csp,
                strict_transport_security=row.security_headers_hsts,
                x_frame_options=row.security_headers_x_frame,
                referrer_policy=row.security_headers_referrer,
            ),
            heading_counts=HeadingCounts(
                h1=row.heading_count_h1 or 0,
                h2=row.heading_count_h2 or 0,
                h3=row.heading_count_h3 or 0,
                h4=row.heading_count_h4 or 0,
                h5=row.heading_count_h5 or 0,
                h6=row.heading_count_h6 or 0,
            ),
            heading_hierarchy=_loads(row.heading_hierarchy, []),
            heading_sequential_errors=_loads(row.heading_sequential_errors, []),
            link_metrics=LinkMetrics(
                external_target_blank_count=row.link_ext_target_blank_count or 0,
                external_target_blank_no_rel_count=row.link_ext_target_blank_no_rel_count or 0,
                protocol_relative_count=row.link_protocol_relative_count or 0,
            ),
            analytics=Analytics(
                google_analytics=bool(row.has_google_analytics),
                gtag=bool(row.has_gtag),
                ga4_id=row.ga4_id or "",
                gtm_id=row.gtm_id or "",
                facebook_pixel=bool(row.has_facebook_pixel),
                hotjar=bool(row.has_hotjar),
                mixpanel=bool(row.has_mixpanel),
            ),
            crawled_at=row.crawled_at or "",
            error=row.error,
        )

    def upsert_pages(self, pages: Iterable[PageRecord]) -> int:
        """Insert-or-replace pages keyed by URL in a single transaction."""
        rows = [self._to_row(p) for p in pages]
        if not rows:
            return 0
        stmt = insert(PageRow.__table__).prefix_with("OR REPLACE")
        with self.get_session() as session, session.begin():
            session.execute(stmt, rows)
        return len(rows)

    def upsert_page(self, page: PageRecord) -> None:
        self.upsert_pages([page])

    def get_page_by_url(self, url: str) -> Optional[PageRecord]:
        with self.get_session() as session:
            q = select(PageRow).where(PageRow.url == url)
            row = session.execute(q).scalars().first()
            if not row:
                return None
            return self._to_domain(row)

    def fetch_pages(self, crawl_id: Optional[str] = None) -> List[PageRecord]:
        """All pages ordered by depth then URL."""
        with self.get_session() as session:
            q = select(PageRow)
            if crawl_id is not None:
                q = q.where(PageRow.crawl_id == crawl_id)
            q = q.order_by(PageRow.depth, PageRow.url)
            rows = session.execute(q).scalars().all()
            return [self._to_domain(row) for row in rows]

    def count(self) -> int:
        with self.get_session() as session:
            return session.execute(select(func.count()).select_from(PageRow)).scalar_one()
