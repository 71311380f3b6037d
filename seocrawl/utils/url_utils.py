"""URL helpers shared by the frontier, the crawl policy and the extractors."""
import posixpath
from typing import Optional, Tuple
from urllib.parse import urljoin, urlsplit

SKIPPED_HREF_PREFIXES = ("#", "mailto:", "tel:", "javascript:")
WEB_SCHEMES = ("http", "https")


def strip_www(host: str) -> str:
    return host[4:] if host.startswith("www.") else host


def _netloc(host: str) -> str:
    return f"[{host}]" if ":" in host else host


def hostname(url: str) -> Optional[str]:
    """Lowercased host of an absolute URL, or None when it has none or cannot be parsed."""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return None
    return host or None


def base_domain(url_or_domain: str) -> str:
    """Host of a URL or bare domain with any leading 'www.' removed.

    >>> base_domain("https://www.example.com/a")
    'example.com'
    """
    candidate = url_or_domain.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    host = hostname(candidate)
    if host is None:
        return strip_www(url_or_domain.strip().lower())
    return strip_www(host)


def normalize_url(url: str) -> str:
    """Canonical key for deduplication.

    Keeps scheme, host (without a leading 'www.'), path and query; drops
    port, credentials and fragment. A trailing slash is dropped unless the
    path is the bare origin. Input that is not an absolute URL is returned
    unchanged.
    """
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname
    except ValueError:
        return url
    if not parts.scheme or not host:
        return url
    path = parts.path or "/"
    if path != "/" and path.endswith("/"):
        path = path.rstrip("/") or "/"
    clean = f"{parts.scheme}://{_netloc(strip_www(host))}{path}"
    if parts.query:
        clean += f"?{parts.query}"
    return clean


def is_internal(url: str, domain: str) -> bool:
    """True when the URL's host (www-stripped) equals `domain`; unparseable URLs are external."""
    host = hostname(url)
    if host is None:
        return False
    return strip_www(host) == domain


def is_skipped_href(href: str) -> bool:
    return href.startswith(SKIPPED_HREF_PREFIXES)


def resolve_link(href: str, page_url: str) -> Optional[Tuple[str, str]]:
    """Resolve `href` against `page_url`.

    Returns (clean absolute URL, target host) with the fragment removed, or
    None when the result is not an http(s) URL with a host.
    """
    try:
        absolute = urljoin(page_url, href)
        parts = urlsplit(absolute)
        host = parts.hostname
    except ValueError:
        return None
    if parts.scheme not in WEB_SCHEMES or not host:
        return None
    clean = f"{parts.scheme}://{_netloc(host)}{parts.path or '/'}"
    if parts.query:
        clean += f"?{parts.query}"
    return clean, host


def file_extension(url: str) -> str:
    """Lowercased extension of the last path segment, '' when there is none."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    ext = posixpath.splitext(posixpath.basename(path))[1]
    return ext[1:].lower()
