import logging
from typing import List

from bs4 import BeautifulSoup, Tag

from seocrawl.domain.link import LinkEdge, LinkPlacement
from seocrawl.utils.datetime_utils import utc_now_iso
from seocrawl.utils.url_utils import base_domain as _base_domain
from seocrawl.utils.url_utils import is_skipped_href, resolve_link, strip_www

logger = logging.getLogger(__name__)

MAX_ANCHOR_TEXT = 100
NO_ANCHOR_TEXT = "(no text)"
NAVIGATION_TAGS = ("nav", "header")
NAVIGATION_KEYWORDS = ("nav", "menu", "header")


def detect_placement(anchor: Tag) -> LinkPlacement:
    """Classify where an anchor sits by walking its ancestors, nearest first.

    The first ancestor that matches decides; at each level footer evidence
    is checked before navigation evidence.
    """
    for el in anchor.parents:
        if not isinstance(el, Tag) or el.name == "[document]":
            continue
        classes = " ".join(el.get("class") or []).lower()
        el_id = (el.get("id") or "").lower()
        if el.name == "footer" or "footer" in classes or "footer" in el_id:
            return LinkPlacement.FOOTER
        if el.name in NAVIGATION_TAGS:
            return LinkPlacement.NAVIGATION
        if any(k in classes or k in el_id for k in NAVIGATION_KEYWORDS):
            return LinkPlacement.NAVIGATION
    return LinkPlacement.BODY


class LinkExtractor:
    """Turns every followable anchor of a page into a LinkEdge.

    Duplicate anchors to the same target produce one edge each.
    """

    def __init__(self, base_domain: str):
        self.base_domain = _base_domain(base_domain)

    def extract(self, soup: BeautifulSoup, page_url: str, crawl_id: str) -> List[LinkEdge]:
        edges: List[LinkEdge] = []
        discovered_at = utc_now_iso()
        for anchor in soup.find_all("a", href=True):
            href = anchor.get("href", "").strip()
            if not href or is_skipped_href(href):
                continue
            resolved = resolve_link(href, page_url)
            if resolved is None:
                logger.debug("Skipping unresolvable href %r on %s", href, page_url)
                continue
            target_url, target_host = resolved
            text = anchor.get_text().strip()[:MAX_ANCHOR_TEXT]
            edges.append(LinkEdge(
                crawl_id=crawl_id,
                source_url=page_url,
                target_url=target_url,
                anchor_text=text or NO_ANCHOR_TEXT,
                is_internal=strip_www(target_host) == self.base_domain,
                target_domain=target_host,
                placement=detect_placement(anchor),
                discovered_at=discovered_at,
            ))
        return edges
