from unittest.mock import MagicMock

from seocrawl.domain.config import CrawlConfig
from seocrawl.domain.frontier import Frontier
from seocrawl.services.crawl_policy import CrawlPolicy


def _policy(robots_service=None, **overrides):
    config = CrawlConfig(start_url="https://example.com/", **overrides)
    return CrawlPolicy(config, Frontier(config.start_url), robots_service)


def test_extension_filters():
    policy = _policy()
    assert policy.should_skip_due_to_extension("https://example.com/file.pdf")
    assert policy.should_skip_due_to_extension("https://example.com/archive.tar.gz")
    assert not policy.should_skip_due_to_extension("https://example.com/index.php")
    assert not policy.should_skip_due_to_extension("https://example.com/about")


def test_empty_include_list_allows_any_non_excluded_extension():
    policy = _policy(include_extensions=[])
    assert not policy.should_skip_due_to_extension("https://example.com/feed.txt")
    assert policy.should_skip_due_to_extension("https://example.com/app.js")


def test_pattern_filters():
    policy = _policy(include_patterns=[r"/blog/"], exclude_patterns=[r"\?page=\d+"])
    assert not policy.should_skip_due_to_patterns("https://example.com/blog/post")
    assert policy.should_skip_due_to_patterns("https://example.com/shop/item")
    assert policy.should_skip_due_to_patterns("https://example.com/blog/?page=2")


def test_invalid_pattern_never_matches():
    policy = _policy(exclude_patterns=["([unclosed"])
    assert not policy.should_skip_due_to_patterns("https://example.com/([unclosed")


def test_scope():
    assert _policy().should_skip_due_to_scope("https://other.com/")
    assert not _policy().should_skip_due_to_scope("https://www.example.com/")
    assert not _policy(crawl_external=True).should_skip_due_to_scope("https://other.com/")


def test_robots_is_consulted_only_when_respected():
    robots = MagicMock()
    robots.allowed.return_value = False
    assert _policy(robots).should_skip_due_to_robots("https://example.com/private")
    assert not _policy(robots, respect_robots=False).should_skip_due_to_robots("https://example.com/private")
    assert not _policy(None).should_skip_due_to_robots("https://example.com/private")


def test_should_crawl_combines_rules():
    robots = MagicMock()
    robots.allowed.side_effect = lambda url: "private" not in url
    policy = _policy(robots)
    assert policy.should_crawl("https://example.com/page")
    assert not policy.should_crawl("https://example.com/private")
    assert not policy.should_crawl("https://example.com/logo.png")
    assert not policy.should_crawl("https://other.com/page")
