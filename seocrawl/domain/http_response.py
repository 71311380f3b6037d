from typing import List, Mapping, NamedTuple, Optional

from seocrawl.domain.page import Redirect


class HttpResponse(NamedTuple):
    """Response from HTTP fetch operation."""
    status_code: int
    text: str
    content_type: Optional[str] = None
    headers: Mapping[str, str] = {}
    url: Optional[str] = None
    """Final URL after redirects."""
    elapsed_ms: int = 0
    redirects: List[Redirect] = []

    @property
    def is_html(self) -> bool:
        if not self.content_type:
            return True
        ct = self.content_type.lower()
        return "text/html" in ct or "application/xhtml+xml" in ct
