import pytest

from seocrawl.domain.crawl_error import ErrorCategory
from seocrawl.services.error_classifier import categorize_error


@pytest.mark.parametrize("message,expected", [
    ("ReadTimeout: HTTPSConnectionPool read timed out", ErrorCategory.TIMEOUT),
    ("getaddrinfo ENOTFOUND example.invalid", ErrorCategory.DNS),
    ("Failed to resolve 'example.invalid' ([Errno -2] Name or service not known)", ErrorCategory.DNS),
    ("SSLError: certificate verify failed", ErrorCategory.SSL),
    ("ConnectionError: Connection refused", ErrorCategory.CONNECTION),
    ("HTTP 403 Forbidden", ErrorCategory.AUTH),
    ("HTTP 404 Not Found", ErrorCategory.NOT_FOUND),
    ("HTTP 429 Too Many Requests", ErrorCategory.RATE_LIMIT),
    ("HTTP 503 Service Unavailable", ErrorCategory.SERVER_ERROR),
    ("something odd happened", ErrorCategory.NETWORK),
    ("", ErrorCategory.NETWORK),
])
def test_categorize_error(message, expected):
    assert categorize_error(message) == expected


def test_first_rule_wins():
    # a timeout while connecting is a timeout, not a connection error
    assert categorize_error("ConnectTimeout: connect timed out") == ErrorCategory.TIMEOUT
