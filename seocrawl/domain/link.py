from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from seocrawl.utils.datetime_utils import utc_now_iso


class LinkPlacement(str, Enum):
    NAVIGATION = "navigation"
    FOOTER = "footer"
    BODY = "body"


class LinkEdge(BaseModel):
    """One anchor occurrence from a source page to a target URL."""

    model_config = ConfigDict(extra="forbid", use_enum_values=True)

    crawl_id: str
    source_url: str
    target_url: str
    anchor_text: str
    is_internal: bool
    target_domain: str
    target_status: Optional[int] = None
    placement: LinkPlacement = LinkPlacement.BODY
    discovered_at: str = Field(default_factory=utc_now_iso)
