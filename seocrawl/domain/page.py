"""Typed per-page SEO record.

Every field has a default so extraction can fill what it finds; unknown
fields are rejected so a misspelt assignment is a validation error rather
than silently dropped data.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from seocrawl.utils.datetime_utils import utc_now_iso


class _Record(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class Redirect(_Record):
    from_url: str = Field(alias="from")
    to_url: str = Field(alias="to")
    status_code: int


class ImageData(_Record):
    src: str
    alt: str = ""
    width: Optional[int] = None
    height: Optional[int] = None


class SchemaItem(_Record):
    type: str
    properties: Dict[str, Any] = Field(default_factory=dict)


class HreflangLink(_Record):
    lang: str
    url: str


class SecurityHeaders(_Record):
    content_security_policy: Optional[str] = None
    strict_transport_security: Optional[str] = None
    x_frame_options: Optional[str] = None
    referrer_policy: Optional[str] = None


class HeadingCounts(_Record):
    h1: int = 0
    h2: int = 0
    h3: int = 0
    h4: int = 0
    h5: int = 0
    h6: int = 0


class LinkMetrics(_Record):
    external_target_blank_count: int = 0
    external_target_blank_no_rel_count: int = 0
    protocol_relative_count: int = 0


class Analytics(_Record):
    google_analytics: bool = False
    gtag: bool = False
    ga4_id: str = ""
    gtm_id: str = ""
    facebook_pixel: bool = False
    hotjar: bool = False
    mixpanel: bool = False


class PageRecord(_Record):
    url: str
    crawl_id: str = ""
    status_code: int = 0
    content_type: str = ""
    response_time: int = 0
    size: int = 0
    redirects: List[Redirect] = Field(default_factory=list)
    depth: int = 0
    is_internal: bool = True
    linked_from: List[str] = Field(default_factory=list)

    title: str = ""
    meta_description: str = ""
    h1: str = ""
    h2: List[str] = Field(default_factory=list)
    h3: List[str] = Field(default_factory=list)
    word_count: int = 0
    lang: str = ""
    charset: str = ""

    meta_tags: Dict[str, str] = Field(default_factory=dict)
    viewport: str = ""
    robots: str = ""
    author: str = ""
    keywords: str = ""
    generator: str = ""
    theme_color: str = ""
    canonical_url: str = ""

    json_ld: List[Any] = Field(default_factory=list)
    schema_org: List[SchemaItem] = Field(default_factory=list)
    og_tags: Dict[str, str] = Field(default_factory=dict)
    twitter_tags: Dict[str, str] = Field(default_factory=dict)

    images: List[ImageData] = Field(default_factory=list)
    internal_links: int = 0
    external_links: int = 0
    hreflang: List[HreflangLink] = Field(default_factory=list)

    security_headers: SecurityHeaders = Field(default_factory=SecurityHeaders)
    heading_counts: HeadingCounts = Field(default_factory=HeadingCounts)
    heading_hierarchy: List[str] = Field(default_factory=list)
    heading_sequential_errors: List[str] = Field(default_factory=list)
    link_metrics: LinkMetrics = Field(default_factory=LinkMetrics)
    analytics: Analytics = Field(default_factory=Analytics)

    crawled_at: str = Field(default_factory=utc_now_iso)
    error: Optional[str] = None

    @property
    def title_length(self) -> int:
        return len(self.title)

    @property
    def meta_description_length(self) -> int:
        return len(self.meta_description)
