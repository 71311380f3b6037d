from __future__ import annotations


from sqlalchemy import Boolean, Column, Float, ForeignKey, Index, Integer, Text, func, text
from sqlalchemy.orm import declarative_base


Base = declarative_base()


class CrawlMetadataRow(Base):
    __tablename__ = "crawl_metadata"

    crawl_id = Column(Text, primary_key=True)
    base_url = Column(Text, nullable=False)
    base_domain = Column(Text, nullable=False)
    status = Column(Text, nullable=False, server_default="running")
    max_depth = Column(Integer)
    max_pages = Column(Integer)
    user_agent = Column(Text)
    urls_discovered = Column(Integer, server_default=text("0"))
    urls_crawled = Column(Integer, server_default=text("0"))
    urls_failed = Column(Integer, server_default=text("0"))
    urls_skipped = Column(Integer, server_default=text("0"))
    max_depth_reached = Column(Integer, server_default=text("0"))
    started_at = Column(Text)
    completed_at = Column(Text)
    duration_ms = Column(Integer)
    speed_pages_per_sec = Column(Float)
    created_at = Column(Text, server_default=func.current_timestamp())


class PageRow(Base):
    __tablename__ = "pages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    crawl_id = Column(Text, ForeignKey("crawl_metadata.crawl_id"), nullable=False)
    url = Column(Text, unique=True, nullable=False)
    status_code = Column(Integer)
    content_type = Column(Text)
    size = Column(Integer)
    response_time = Column(Integer)
    depth = Column(Integer)
    is_internal = Column(Boolean)
    linked_from = Column(Text)  # JSON list

    title = Column(Text)
    title_length = Column(Integer)
    meta_description = Column(Text)
    meta_description_length = Column(Integer)
    h1 = Column(Text)
    h2 = Column(Text)  # JSON list
    h3 = Column(Text)  # JSON list
    word_count = Column(Integer)
    lang = Column(Text)
    charset = Column(Text)

    canonical_url = Column(Text)
    robots = Column(Text)
    viewport = Column(Text)
    author = Column(Text)
    keywords = Column(Text)
    generator = Column(Text)
    theme_color = Column(Text)
    meta_tags = Column(Text)
    og_tags = Column(Text)
    twitter_tags = Column(Text)
    json_ld = Column(Text)
    schema_org = Column(Text)

    has_google_analytics = Column(Boolean, server_default=text("0"))
    has_gtag = Column(Boolean, server_default=text("0"))
    ga4_id = Column(Text)
    has_gtm = Column(Boolean, server_default=text("0"))
    gtm_id = Column(Text)
    has_facebook_pixel = Column(Boolean, server_default=text("0"))
    has_hotjar = Column(Boolean, server_default=text("0"))
    has_mixpanel = Column(Boolean, server_default=text("0"))

    images = Column(Text)
    internal_links = Column(Integer, server_default=text("0"))
    external_links = Column(Integer, server_default=text("0"))
    hreflang = Column(Text)
    redirects = Column(Text)

    security_headers_csp = Column(Text)
    security_headers_hsts = Column(Text)
    security_headers_x_frame = Column(Text)
    security_headers_referrer = Column(Text)

    heading_count_h1 = Column(Integer, server_default=text("0"))
    heading_count_h2 = Column(Integer, server_default=text("0"))
    heading_count_h3 = Column(Integer, server_default=text("0"))
    heading_count_h4 = Column(Integer, server_default=text("0"))
    heading_count_h5 = Column(Integer, server_default=text("0"))
    heading_count_h6 = Column(Integer, server_default=text("0"))
    heading_hierarchy = Column(Text)
    heading_sequential_errors = Column(Text)

    link_ext_target_blank_count = Column(Integer, server_default=text("0"))
    link_ext_target_blank_no_rel_count = Column(Integer, server_default=text("0"))
    link_protocol_relative_count = Column(Integer, server_default=text("0"))

    error = Column(Text)
    crawled_at = Column(Text)

    __table_args__ = (
        Index("idx_pages_crawl_id", "crawl_id"),
        Index("idx_pages_status", "status_code"),
        Index("idx_pages_depth", "depth"),
        Index("idx_pages_title", "title"),
        Index("idx_pages_meta_desc", "meta_description"),
        Index("idx_pages_h1", "h1"),
    )


class LinkRow(Base):
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, autoincrement=True)
    crawl_id = Column(Text, ForeignKey("crawl_metadata.crawl_id"), nullable=False)
    source_url = Column(Text, nullable=False)
    target_url = Column(Text, nullable=False)
    anchor_text = Column(Text)
    is_internal = Column(Boolean)
    target_domain = Column(Text)
    target_status = Column(Integer)
    placement = Column(Text, server_default="body")
    discovered_at = Column(Text)

    __table_args__ = (
        Index("idx_links_crawl_id", "crawl_id"),
        Index("idx_links_source", "source_url"),
        Index("idx_links_target", "target_url"),
        Index("idx_links_internal", "is_internal"),
        Index("idx_links_placement", "placement"),
    )


class ErrorRow(Base):
    __tablename__ = "errors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    crawl_id = Column(Text, ForeignKey("crawl_metadata.crawl_id"), nullable=False)
    url = Column(Text, nullable=False)
    error_type = Column(Text)
    error_message = Column(Text)
    timestamp = Column(Text)

    __table_args__ = (
        Index("idx_errors_crawl_id", "crawl_id"),
        Index("idx_errors_type", "error_type"),
    )
