import logging
from datetime import datetime, timezone
from typing import Optional, Union

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return utc_now().isoformat(timespec="milliseconds")


def parse_iso(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO datetime string (a trailing 'Z' is accepted) into an aware UTC datetime.

    Returns None if parsing fails or value is None. Naive values are taken as UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("Could not parse datetime string: %s", value)
            return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def timestamp_slug(dt: Optional[datetime] = None) -> str:
    """Filesystem-safe timestamp used in crawl directory names."""
    dt = dt or utc_now()
    return dt.strftime("%Y-%m-%dT%H-%M-%S")
