from seocrawl.db.models import ErrorRow
from seocrawl.domain.config import CrawlConfig
from seocrawl.domain.crawl_error import CrawlError, ErrorCategory
from seocrawl.domain.crawl_metadata import CrawlMetadata, CrawlStatus
from seocrawl.domain.link import LinkEdge, LinkPlacement
from seocrawl.repository.crawls import CrawlsRepository
from seocrawl.repository.errors import ErrorsRepository
from seocrawl.repository.links import LinksRepository


def _edge(target, placement=LinkPlacement.BODY, source="https://example.com/"):
    return LinkEdge(
        crawl_id="c1",
        source_url=source,
        target_url=target,
        anchor_text="x",
        is_internal=True,
        target_domain="example.com",
        placement=placement,
    )


def test_duplicate_links_are_kept(session_factory):
    repo = LinksRepository(session_factory)
    inserted = repo.insert_links_batch([_edge("https://example.com/x"), _edge("https://example.com/x")])
    assert inserted == 2
    assert repo.count() == 2
    assert repo.insert_links_batch([]) == 0


def test_fetch_links_filters_by_source_and_keeps_placement(session_factory):
    repo = LinksRepository(session_factory)
    repo.insert_links_batch([_edge("https://example.com/f", LinkPlacement.FOOTER)])
    links = repo.fetch_links(source_url="https://example.com/")
    assert links[0].placement == "footer"
    assert repo.fetch_links(source_url="https://example.com/other") == []


def test_fetch_links_is_ordered_by_source_then_target(session_factory):
    repo = LinksRepository(session_factory)
    repo.insert_links_batch([
        _edge("https://example.com/2", source="https://example.com/z"),
        _edge("https://example.com/9", source="https://example.com/a"),
        _edge("https://example.com/1", source="https://example.com/a"),
    ])
    pairs = [(link.source_url, link.target_url) for link in repo.fetch_links()]
    assert pairs == [
        ("https://example.com/a", "https://example.com/1"),
        ("https://example.com/a", "https://example.com/9"),
        ("https://example.com/z", "https://example.com/2"),
    ]


def test_errors_round_trip_and_unknown_types(session_factory):
    repo = ErrorsRepository(session_factory)
    repo.insert_error("c1", CrawlError("https://example.com/x", ErrorCategory.TIMEOUT, "timed out"))
    with session_factory() as session, session.begin():
        session.add(ErrorRow(crawl_id="c1", url="https://example.com/y", error_type="gremlins", error_message="?"))
    errors = repo.fetch_errors("c1")
    assert [e.category for e in errors] == [ErrorCategory.TIMEOUT, ErrorCategory.UNKNOWN]
    assert repo.count() == 2


def test_metadata_save_update_and_get(session_factory):
    repo = CrawlsRepository(session_factory)
    config = CrawlConfig(crawl_id="c1", start_url="https://www.example.com/")
    meta = CrawlMetadata(crawl_id="c1", status=CrawlStatus.RUNNING, started_at="2024-01-01T00:00:00.000+00:00")
    assert not repo.update_metadata(meta)

    repo.save_metadata(meta, config)
    meta.status = CrawlStatus.COMPLETED
    meta.stats.crawled = 12
    assert repo.update_metadata(meta)

    loaded = repo.get_metadata()
    assert loaded.crawl_id == "c1"
    assert loaded.status == CrawlStatus.COMPLETED
    assert loaded.stats.crawled == 12
    assert repo.get_metadata("missing") is None
