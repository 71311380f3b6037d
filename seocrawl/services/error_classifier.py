"""Map failure messages onto error categories for the errors table."""
from seocrawl.domain.crawl_error import ErrorCategory

# First match wins; keywords are matched against the lowercased message.
_RULES = (
    (ErrorCategory.TIMEOUT, ("timeout", "timed out")),
    (ErrorCategory.DNS, ("enotfound", "getaddrinfo", "name resolution", "failed to resolve",
                         "name or service not known", "nodename nor servname")),
    (ErrorCategory.SSL, ("ssl", "certificate")),
    (ErrorCategory.CONNECTION, ("econnrefused", "connection refused", "connectionerror", "connect")),
    (ErrorCategory.AUTH, ("401", "403")),
    (ErrorCategory.NOT_FOUND, ("404",)),
    (ErrorCategory.RATE_LIMIT, ("429", "rate limit")),
    (ErrorCategory.SERVER_ERROR, ("500", "502", "503", "504")),
)


def categorize_error(message: str) -> ErrorCategory:
    """Categorize a failure by keywords in its message; unmatched failures are 'network'."""
    text = (message or "").lower()
    for category, keywords in _RULES:
        if any(k in text for k in keywords):
            return category
    return ErrorCategory.NETWORK
