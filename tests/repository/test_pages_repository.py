from sqlalchemy import text

from seocrawl.domain.page import Analytics, PageRecord, Redirect, SecurityHeaders
from seocrawl.repository.pages import PagesRepository


def _page(url, **kwargs):
    return PageRecord(url=url, crawl_id="c1", status_code=200, **kwargs)


def test_upsert_replaces_by_url(session_factory):
    repo = PagesRepository(session_factory)
    repo.upsert_page(_page("https://example.com/", title="First"))
    repo.upsert_page(_page("https://example.com/", title="Second"))
    assert repo.count() == 1
    assert repo.get_page_by_url("https://example.com/").title == "Second"


def test_structured_fields_survive_storage(session_factory):
    repo = PagesRepository(session_factory)
    page = _page(
        "https://example.com/a",
        h2=["One", "Two"],
        redirects=[Redirect(from_url="http://example.com/a", to_url="https://example.com/a", status_code=301)],
        security_headers=SecurityHeaders(x_frame_options="DENY"),
        analytics=Analytics(gtm_id="GTM-ABC", google_analytics=True),
        heading_sequential_errors=["h3 after h1 (skipped levels)"],
    )
    repo.upsert_page(page)
    loaded = repo.get_page_by_url("https://example.com/a")
    assert loaded.h2 == ["One", "Two"]
    assert loaded.redirects[0].status_code == 301
    assert loaded.redirects[0].from_url == "http://example.com/a"
    assert loaded.security_headers.x_frame_options == "DENY"
    assert loaded.analytics.gtm_id == "GTM-ABC"
    assert loaded.heading_sequential_errors == ["h3 after h1 (skipped levels)"]


def test_has_gtm_column_follows_gtm_id(session_factory):
    repo = PagesRepository(session_factory)
    repo.upsert_page(_page("https://example.com/", analytics=Analytics(gtm_id="GTM-XYZ")))
    with session_factory() as session:
        assert session.execute(text("SELECT has_gtm FROM pages")).scalar_one() == 1


def test_nul_characters_are_stripped(session_factory):
    repo = PagesRepository(session_factory)
    repo.upsert_page(_page("https://example.com/bin", title="bad\x00title"))
    assert repo.get_page_by_url("https://example.com/bin").title == "badtitle"


def test_fetch_pages_orders_by_depth_then_url(session_factory):
    repo = PagesRepository(session_factory)
    repo.upsert_pages([
        _page("https://example.com/b", depth=1),
        _page("https://example.com/", depth=0),
        _page("https://example.com/a", depth=1),
    ])
    assert [p.url for p in repo.fetch_pages()] == [
        "https://example.com/",
        "https://example.com/a",
        "https://example.com/b",
    ]


def test_missing_page_is_none(session_factory):
    assert PagesRepository(session_factory).get_page_by_url("https://example.com/x") is None
