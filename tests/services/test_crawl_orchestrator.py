from unittest.mock import Mock

from conftest import FakeSite, page

from seocrawl.domain.config import CrawlConfig
from seocrawl.domain.crawl_error import ErrorCategory
from seocrawl.domain.crawl_metadata import CrawlStatus
from seocrawl.domain.frontier import Frontier
from seocrawl.services.content_extractor import ContentExtractor
from seocrawl.services.crawl_orchestrator import CrawlOrchestrator
from seocrawl.services.crawl_storage import CrawlStorage
from seocrawl.services.fetcher import RetryingFetcher
from seocrawl.services.link_extractor import LinkExtractor

ROOT = "https://example.com/"


def _orchestrator(site, tmp_path, **overrides):
    overrides.setdefault("min_concurrency", 2)
    overrides.setdefault("max_concurrency", 4)
    config = CrawlConfig(start_url=ROOT, output_path=str(tmp_path), **overrides)
    storage = CrawlStorage(tmp_path)
    orchestrator = CrawlOrchestrator(
        config=config,
        frontier=Frontier(ROOT),
        storage=storage,
        fetcher=RetryingFetcher(site, max_retries=0, sleep=lambda s: None),
        content_extractor=ContentExtractor(),
        link_extractor=LinkExtractor(ROOT),
    )
    return orchestrator, storage


def _chain_site(length):
    site = FakeSite()
    urls = [ROOT] + [f"https://example.com/level{i}" for i in range(1, length)]
    for here, nxt in zip(urls, urls[1:] + [None]):
        body = f'<a href="{nxt}">next</a>' if nxt else "end"
        site.add(here, page(title=here, body=body))
    return site


def test_crawl_stays_within_max_depth(tmp_path):
    orchestrator, storage = _orchestrator(_chain_site(6), tmp_path, max_depth=2)
    meta = orchestrator.run()
    assert meta.status == CrawlStatus.COMPLETED
    with storage:
        pages = storage.load_all_pages()
    assert [p.depth for p in pages] == [0, 1, 2]
    assert meta.stats.crawled == 3
    assert meta.stats.depth == 2
    # the link out of the deepest page is counted as skipped
    assert meta.stats.skipped == 1


def test_page_cap_limits_fetches_and_leaves_unvisited_urls(tmp_path):
    site = FakeSite()
    links = "".join(f'<a href="/p{i}">p{i}</a>' for i in range(1, 50))
    site.add(ROOT, page(title="Home", body=links))
    for i in range(1, 50):
        site.add(f"https://example.com/p{i}", page(title=f"P{i}", body='<a href="/">home</a>'))

    orchestrator, storage = _orchestrator(site, tmp_path, max_pages=5)
    meta = orchestrator.run()

    with storage:
        assert len(storage.load_all_pages()) == 5
    assert len(site.requested) == 5
    assert meta.stats.crawled == 5
    assert meta.stats.discovered == 50
    assert orchestrator.frontier.get_unvisited_urls()


def test_pages_record_sources_and_links_are_stored(tmp_path):
    site = FakeSite()
    site.add(ROOT, page(title="Home", body='<nav><a href="/a">A</a></nav><a href="/a">A again</a>'))
    site.add("https://example.com/a", page(title="A", body='<footer><a href="/">Home</a></footer>'))
    orchestrator, storage = _orchestrator(site, tmp_path)
    orchestrator.run()

    with storage:
        a = storage.load_page("https://example.com/a")
        links = storage.load_all_links()
    assert a.depth == 1
    assert a.linked_from == [ROOT]
    assert len(links) == 3
    assert sorted(l.placement for l in links) == ["body", "footer", "navigation"]
    # the start page is fetched once even though /a links back to it
    assert site.requested.count(ROOT) == 1


def test_fetch_failures_become_errors_and_stub_pages(tmp_path):
    site = FakeSite()
    site.add(ROOT, page(title="Home", body='<a href="/missing">gone</a><a href="/ok">ok</a>'))
    site.add("https://example.com/ok", page(title="OK"))
    orchestrator, storage = _orchestrator(site, tmp_path)
    meta = orchestrator.run()

    assert meta.status == CrawlStatus.COMPLETED
    assert meta.stats.failed == 1
    assert meta.stats.crawled == 2
    with storage:
        errors = storage.load_errors()
        stub = storage.load_page("https://example.com/missing")
        rows = storage.execute_query("SELECT url FROM pages WHERE status_code = 404")
    assert [(e.url, e.category) for e in errors] == [("https://example.com/missing", ErrorCategory.NOT_FOUND)]
    assert stub.error == "HTTP 404 Not Found"
    assert stub.linked_from == [ROOT]
    assert rows == [{"url": "https://example.com/missing"}]
    assert "https://example.com/missing" in orchestrator.frontier.get_unvisited_urls()


def test_non_html_responses_are_skipped(tmp_path):
    site = FakeSite()
    site.add(ROOT, page(title="Home", body='<a href="/feed">feed</a>'))
    site.add("https://example.com/feed", "{}", content_type="application/json")
    orchestrator, storage = _orchestrator(site, tmp_path)
    meta = orchestrator.run()

    assert meta.stats.crawled == 1
    assert meta.stats.skipped == 1
    with storage:
        assert storage.load_page("https://example.com/feed") is None


class _FailingExtractor(ContentExtractor):
    def __init__(self, failing_url):
        self.failing_url = failing_url

    def extract(self, soup, context, html=None):
        if context.url == self.failing_url:
            raise RecursionError("maximum recursion depth exceeded")
        return super().extract(soup, context, html=html)


def test_page_that_cannot_be_processed_is_recorded_and_crawl_continues(tmp_path):
    site = FakeSite()
    site.add(ROOT, page(title="Home", body='<a href="/broken">b</a><a href="/ok">ok</a>'))
    site.add("https://example.com/broken", page(title="Broken", body='<a href="/hidden">h</a>'))
    site.add("https://example.com/ok", page(title="OK"))
    site.add("https://example.com/hidden", page(title="Hidden"))
    orchestrator, storage = _orchestrator(site, tmp_path)
    orchestrator.content_extractor = _FailingExtractor("https://example.com/broken")
    meta = orchestrator.run()

    assert meta.status == CrawlStatus.COMPLETED
    assert meta.stats.crawled == 2
    assert meta.stats.failed == 1
    assert "https://example.com/hidden" not in site.requested
    with storage:
        errors = storage.load_errors()
        assert storage.load_page("https://example.com/broken") is None
        assert storage.load_page("https://example.com/ok") is not None
    assert [(e.url, e.category) for e in errors] == [("https://example.com/broken", ErrorCategory.PARSE)]
    assert errors[0].message.startswith("RecursionError: ")
    assert orchestrator.frontier.is_visited("https://example.com/broken")


def test_external_and_filtered_links_are_not_fetched(tmp_path):
    site = FakeSite()
    site.add(ROOT, page(title="Home", body=(
        '<a href="https://other.com/">other</a>'
        '<a href="/brochure.pdf">pdf</a>'
        '<a href="/private/x">private</a>'
    )))
    orchestrator, storage = _orchestrator(site, tmp_path, exclude_patterns=["/private/"])
    meta = orchestrator.run()
    assert site.requested == [ROOT]
    assert meta.stats.skipped == 3


def test_metadata_is_persisted_at_the_end(tmp_path):
    orchestrator, storage = _orchestrator(_chain_site(2), tmp_path)
    orchestrator.run()
    with storage:
        meta = storage.load_metadata()
    assert meta.status == CrawlStatus.COMPLETED
    assert meta.completed_at is not None
    assert meta.stats.crawled == 2


def test_storage_failure_marks_crawl_failed(tmp_path):
    orchestrator, storage = _orchestrator(_chain_site(3), tmp_path)
    storage.save_page = Mock(side_effect=RuntimeError("disk I/O error"))
    meta = orchestrator.run()

    assert meta.status == CrawlStatus.FAILED
    assert meta.completed_at is not None
    assert meta.errors[-1].url == ""
    assert "disk I/O error" in meta.errors[-1].message
    with storage:
        stored = storage.load_metadata()
    assert stored.status == CrawlStatus.FAILED
    assert any(e.url == "" for e in stored.errors)
