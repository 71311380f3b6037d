from dataclasses import dataclass, field
from enum import Enum

from seocrawl.utils.datetime_utils import utc_now_iso


class ErrorCategory(str, Enum):
    TIMEOUT = "timeout"
    DNS = "dns"
    CONNECTION = "connection"
    SSL = "ssl"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    NETWORK = "network"
    PARSE = "parse"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CrawlError:
    """A failed fetch or a session-level failure (url is '' for the latter)."""
    url: str
    category: ErrorCategory
    message: str
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "type": self.category.value,
            "message": self.message,
            "timestamp": self.timestamp,
        }
