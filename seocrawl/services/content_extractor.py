"""Extract on-page SEO signals from a parsed HTML document into a PageRecord.

Every field is extracted independently and falls back to its default when
the document does not provide it; only a malformed record after assembly is
an error. The soup is read, never modified, so it can be shared with the
link extractor.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Comment, Tag

from seocrawl.domain.page import (
    Analytics,
    HeadingCounts,
    HreflangLink,
    ImageData,
    LinkMetrics,
    PageRecord,
    Redirect,
    SchemaItem,
    SecurityHeaders,
)
from seocrawl.utils.url_utils import hostname, is_skipped_href, strip_www

logger = logging.getLogger(__name__)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
NON_RENDERED_TAGS = frozenset({"script", "style", "noscript", "template", "head", "title"})
MAX_IMAGES = 20
MAX_SUBHEADINGS = 10

_WORD_RE = re.compile(r"\b\w+\b")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_CHARSET_RE = re.compile(r"charset=([\w-]+)", re.I)

_GA_RE = re.compile(r"gtag\(|ga\(|GoogleAnalyticsObject|google-analytics\.com|googletagmanager\.com", re.I)
_GTAG_RE = re.compile(r"gtag\(")
_GA4_RE = re.compile(r"G-[A-Z0-9]{10}")
_GTM_RE = re.compile(r"GTM-[A-Z0-9]+")
_FB_PIXEL_RE = re.compile(r"fbq\(|facebook\.com/tr")
_HOTJAR_RE = re.compile(r"hotjar\.com|hj\(")
_MIXPANEL_RE = re.compile(r"mixpanel\.com|mixpanel\.track")


@dataclass(frozen=True)
class PageContext:
    """What the fetch knew about a page before its HTML was parsed."""
    url: str
    crawl_id: str
    depth: int = 0
    status_code: int = 200
    content_type: str = ""
    response_time: int = 0
    size: int = 0
    is_internal: bool = True
    linked_from: List[str] = field(default_factory=list)
    redirects: List[Redirect] = field(default_factory=list)
    headers: Mapping[str, str] = field(default_factory=dict)


def default_soup_factory(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _text(el: Optional[Tag]) -> str:
    return el.get_text().strip() if el is not None else ""


def _attr(el: Optional[Tag], name: str) -> str:
    """Attribute as a string; multi-valued attributes (class, rel) are space-joined."""
    if el is None:
        return ""
    value = el.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return value


def _parse_int(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    m = _LEADING_INT_RE.match(value)
    return int(m.group(1)) if m else None


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    # header mappings from requests are case-insensitive; plain dicts may not be
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        for key, candidate in headers.items():
            if key.lower() == lowered:
                value = candidate
                break
    return value or None


class ContentExtractor:
    """Builds a PageRecord from a parsed document and its fetch context."""

    def extract(self, soup: BeautifulSoup, context: PageContext, html: Optional[str] = None) -> PageRecord:
        """Extract every SEO signal; `html` is the raw body used for analytics detection."""
        raw_html = html if html is not None else str(soup)
        base_domain = strip_www(hostname(context.url) or "")

        meta_tags = self.extract_meta_tags(soup)
        heading_counts, hierarchy, sequential_errors = self.extract_headings(soup)
        internal_links, external_links = self.count_links(soup, context.url, base_domain)

        return PageRecord(
            url=context.url,
            crawl_id=context.crawl_id,
            status_code=context.status_code,
            content_type=context.content_type,
            response_time=context.response_time,
            size=context.size,
            redirects=list(context.redirects),
            depth=context.depth,
            is_internal=context.is_internal,
            linked_from=list(context.linked_from),
            title=_text(soup.find("title")),
            meta_description=_attr(soup.find("meta", attrs={"name": "description"}), "content").strip(),
            h1=_text(soup.find("h1")),
            h2=[_text(h) for h in soup.find_all("h2", limit=MAX_SUBHEADINGS)],
            h3=[_text(h) for h in soup.find_all("h3", limit=MAX_SUBHEADINGS)],
            word_count=self.count_words(soup),
            lang=_attr(soup.find("html"), "lang"),
            charset=self.extract_charset(soup),
            meta_tags=meta_tags,
            viewport=meta_tags.get("viewport", ""),
            robots=meta_tags.get("robots", ""),
            author=meta_tags.get("author", ""),
            keywords=meta_tags.get("keywords", ""),
            generator=meta_tags.get("generator", ""),
            theme_color=meta_tags.get("theme-color", ""),
            canonical_url=_attr(soup.find("link", rel="canonical"), "href"),
            json_ld=self.extract_json_ld(soup, context.url),
            schema_org=self.extract_microdata(soup),
            og_tags=self.extract_prefixed_meta(soup, "property", "og:"),
            twitter_tags=self.extract_prefixed_meta(soup, "name", "twitter:"),
            images=self.extract_images(soup, context.url),
            internal_links=internal_links,
            external_links=external_links,
            hreflang=self.extract_hreflang(soup),
            security_headers=self.extract_security_headers(context.headers),
            heading_counts=heading_counts,
            heading_hierarchy=hierarchy,
            heading_sequential_errors=sequential_errors,
            link_metrics=self.extract_link_metrics(soup, context.url, base_domain),
            analytics=self.detect_analytics(raw_html),
        )

    @staticmethod
    def count_words(soup: BeautifulSoup) -> int:
        """Words in the rendered body text (scripts, styles and comments excluded)."""
        root = soup.find("body") or soup
        parts = []
        for s in root.find_all(string=True):
            if isinstance(s, Comment) or s.parent is None or s.parent.name in NON_RENDERED_TAGS:
                continue
            parts.append(str(s))
        return len(_WORD_RE.findall(" ".join(parts)))

    @staticmethod
    def extract_charset(soup: BeautifulSoup) -> str:
        charset = _attr(soup.find("meta", charset=True), "charset").strip()
        if charset:
            return charset
        for meta in soup.find_all("meta", attrs={"http-equiv": True}):
            if _attr(meta, "http-equiv").lower() == "content-type":
                m = _CHARSET_RE.search(_attr(meta, "content"))
                if m:
                    return m.group(1)
        return ""

    @staticmethod
    def extract_meta_tags(soup: BeautifulSoup) -> Dict[str, str]:
        tags: Dict[str, str] = {}
        for meta in soup.find_all("meta", attrs={"name": True}):
            name = _attr(meta, "name").strip().lower()
            content = _attr(meta, "content")
            if name and content:
                tags[name] = content
        return tags

    @staticmethod
    def extract_prefixed_meta(soup: BeautifulSoup, attr: str, prefix: str) -> Dict[str, str]:
        """Social tags, keyed without their prefix (og:title -> title)."""
        tags: Dict[str, str] = {}
        for meta in soup.find_all("meta", attrs={attr: re.compile("^" + re.escape(prefix))}):
            key = _attr(meta, attr)[len(prefix):]
            content = _attr(meta, "content")
            if key and content:
                tags[key] = content
        return tags

    @staticmethod
    def extract_json_ld(soup: BeautifulSoup, url: str = "") -> List[Any]:
        blocks: List[Any] = []
        for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
            try:
                blocks.append(json.loads(script.get_text()))
            except (ValueError, RecursionError):
                logger.debug("Skipping malformed JSON-LD block on %s", url)
        return blocks

    @staticmethod
    def _microdata_value(el: Tag) -> str:
        if el.name == "meta":
            return _attr(el, "content")
        if el.name in ("a", "link"):
            return _attr(el, "href")
        if el.name == "img":
            return _attr(el, "src")
        if el.name == "time":
            return _attr(el, "datetime")
        return el.get_text().strip()

    def extract_microdata(self, soup: BeautifulSoup) -> List[SchemaItem]:
        items: List[SchemaItem] = []
        for scope in soup.find_all(attrs={"itemtype": True}):
            item_type = _attr(scope, "itemtype")
            if not item_type:
                continue
            properties: Dict[str, Any] = {}
            for prop in scope.find_all(attrs={"itemprop": True}):
                name = _attr(prop, "itemprop")
                value = self._microdata_value(prop)
                if name and value:
                    properties[name] = value
            if properties:
                items.append(SchemaItem(type=item_type, properties=properties))
        return items

    @staticmethod
    def _resolve_image_src(src: str, page_url: str) -> str:
        if src.startswith("//"):
            return "https:" + src
        parts = urlsplit(page_url)
        if src.startswith("/"):
            return f"{parts.scheme}://{parts.netloc}{src}"
        if src.startswith(("http://", "https://")):
            return src
        try:
            return urljoin(page_url, src)
        except ValueError:
            return src

    def extract_images(self, soup: BeautifulSoup, page_url: str) -> List[ImageData]:
        images: List[ImageData] = []
        for img in soup.find_all("img", limit=MAX_IMAGES):
            src = _attr(img, "src").strip()
            if not src:
                continue
            images.append(ImageData(
                src=self._resolve_image_src(src, page_url),
                alt=_attr(img, "alt"),
                width=_parse_int(_attr(img, "width")),
                height=_parse_int(_attr(img, "height")),
            ))
        return images

    @staticmethod
    def _link_is_internal(href: str, page_url: str, base_domain: str) -> Optional[bool]:
        """None when the href cannot be resolved at all."""
        try:
            host = urlsplit(urljoin(page_url, href)).hostname or ""
        except ValueError:
            return None
        return strip_www(host) == base_domain

    def count_links(self, soup: BeautifulSoup, page_url: str, base_domain: str) -> Tuple[int, int]:
        internal = external = 0
        for a in soup.find_all("a", href=True):
            href = _attr(a, "href")
            if not href or is_skipped_href(href):
                continue
            verdict = self._link_is_internal(href, page_url, base_domain)
            if verdict is None:
                continue
            if verdict:
                internal += 1
            else:
                external += 1
        return internal, external

    def extract_link_metrics(self, soup: BeautifulSoup, page_url: str, base_domain: str) -> LinkMetrics:
        target_blank = target_blank_no_rel = protocol_relative = 0
        for a in soup.find_all("a", href=True):
            href = _attr(a, "href")
            if not href or is_skipped_href(href):
                continue
            if href.startswith("//"):
                protocol_relative += 1
            is_internal = bool(self._link_is_internal(href, page_url, base_domain))
            if not is_internal and _attr(a, "target") == "_blank":
                target_blank += 1
                rel = _attr(a, "rel")
                if not rel or ("noopener" not in rel and "noreferrer" not in rel):
                    target_blank_no_rel += 1
        for tag, attr in (("link", "href"), ("script", "src"), ("img", "src")):
            for el in soup.find_all(tag, attrs={attr: True}):
                if _attr(el, attr).startswith("//"):
                    protocol_relative += 1
        return LinkMetrics(
            external_target_blank_count=target_blank,
            external_target_blank_no_rel_count=target_blank_no_rel,
            protocol_relative_count=protocol_relative,
        )

    @staticmethod
    def extract_hreflang(soup: BeautifulSoup) -> List[HreflangLink]:
        links: List[HreflangLink] = []
        for link in soup.find_all("link", attrs={"rel": "alternate", "hreflang": True}):
            lang = _attr(link, "hreflang")
            href = _attr(link, "href")
            if lang and href:
                links.append(HreflangLink(lang=lang, url=href))
        return links

    @staticmethod
    def extract_security_headers(headers: Mapping[str, str]) -> SecurityHeaders:
        return SecurityHeaders(
            content_security_policy=_header(headers, "Content-Security-Policy"),
            strict_transport_security=_header(headers, "Strict-Transport-Security"),
            x_frame_options=_header(headers, "X-Frame-Options"),
            referrer_policy=_header(headers, "Referrer-Policy"),
        )

    @staticmethod
    def extract_headings(soup: BeautifulSoup) -> Tuple[HeadingCounts, List[str], List[str]]:
        """Counts per level, the level sequence in document order, and skipped-level errors."""
        counts = dict.fromkeys(HEADING_TAGS, 0)
        hierarchy: List[str] = []
        errors: List[str] = []
        last_level = 0
        for heading in soup.find_all(HEADING_TAGS):
            tag = heading.name
            level = int(tag[1])
            counts[tag] += 1
            hierarchy.append(tag)
            if last_level and level > last_level + 1:
                errors.append(f"{tag} after h{last_level} (skipped levels)")
            last_level = level
        return HeadingCounts(**counts), hierarchy, errors

    @staticmethod
    def detect_analytics(html: str) -> Analytics:
        ga4 = _GA4_RE.search(html)
        gtm = _GTM_RE.search(html)
        return Analytics(
            google_analytics=bool(_GA_RE.search(html)),
            gtag=bool(_GTAG_RE.search(html)),
            ga4_id=ga4.group(0) if ga4 else "",
            gtm_id=gtm.group(0) if gtm else "",
            facebook_pixel=bool(_FB_PIXEL_RE.search(html)),
            hotjar=bool(_HOTJAR_RE.search(html)),
            mixpanel=bool(_MIXPANEL_RE.search(html)),
        )
