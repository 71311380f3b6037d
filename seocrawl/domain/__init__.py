"""Domain objects for SeoCrawl - explicit re-exports to satisfy linters."""
from .config import CrawlConfig as CrawlConfig
from .crawl_error import CrawlError as CrawlError, ErrorCategory as ErrorCategory
from .crawl_metadata import CrawlMetadata as CrawlMetadata, CrawlStats as CrawlStats, CrawlStatus as CrawlStatus
from .frontier import Frontier as Frontier
from .http_response import HttpResponse as HttpResponse
from .link import LinkEdge as LinkEdge, LinkPlacement as LinkPlacement
from .page import PageRecord as PageRecord

__all__ = [
    "CrawlConfig",
    "CrawlError",
    "CrawlMetadata",
    "CrawlStats",
    "CrawlStatus",
    "ErrorCategory",
    "Frontier",
    "HttpResponse",
    "LinkEdge",
    "LinkPlacement",
    "PageRecord",
]
