from seocrawl.domain.link import LinkPlacement
from seocrawl.services.content_extractor import default_soup_factory
from seocrawl.services.link_extractor import LinkExtractor, detect_placement


def _edges(body, page_url="https://example.com/page"):
    soup = default_soup_factory(f"<html><body>{body}</body></html>")
    return LinkExtractor("https://www.example.com").extract(soup, page_url, "c1")


def test_duplicate_anchors_produce_one_edge_each():
    edges = _edges('<a href="/x">one</a><p>text</p><a href="/x">two</a>')
    assert [e.target_url for e in edges] == ["https://example.com/x", "https://example.com/x"]
    assert [e.anchor_text for e in edges] == ["one", "two"]


def test_skips_fragments_and_non_web_links():
    edges = _edges(
        '<a href="#top">top</a><a href="mailto:a@b.c">m</a><a href="tel:1">t</a>'
        '<a href="javascript:void(0)">j</a><a href="ftp://example.com/f">f</a><a href="">e</a>'
    )
    assert edges == []


def test_internal_flag_ignores_www_and_keeps_target_host():
    edges = _edges('<a href="https://www.example.com/a/">a</a><a href="https://shop.example.com/">b</a>')
    assert edges[0].is_internal
    assert edges[0].target_url == "https://www.example.com/a/"
    assert edges[0].target_domain == "www.example.com"
    assert not edges[1].is_internal
    assert edges[1].target_domain == "shop.example.com"


def test_anchor_text_is_truncated_or_defaulted():
    edges = _edges(f'<a href="/long">{"x" * 150}</a><a href="/img"><img src="a.png"></a>')
    assert len(edges[0].anchor_text) == 100
    assert edges[1].anchor_text == "(no text)"


def test_fragment_is_removed_from_target():
    edges = _edges('<a href="/docs#install">docs</a>')
    assert edges[0].target_url == "https://example.com/docs"


def test_placement_classification():
    edges = _edges(
        '<nav><a href="/n">n</a></nav>'
        '<div class="main-menu"><a href="/m">m</a></div>'
        '<header><a href="/h">h</a></header>'
        '<article><a href="/b">b</a></article>'
        '<footer><nav><a href="/f">f</a></nav></footer>'
        '<div id="site-footer"><ul><li><a href="/f2">f2</a></li></ul></div>'
    )
    placements = {e.target_url.rsplit("/", 1)[1]: e.placement for e in edges}
    assert placements == {
        "n": "navigation",
        "m": "navigation",
        "h": "navigation",
        "b": "body",
        "f": "navigation",
        "f2": "footer",
    }


def test_detect_placement_on_a_single_anchor():
    soup = default_soup_factory('<div class="Footer-links"><ul><li><a href="/x">x</a></li></ul></div>')
    assert detect_placement(soup.find("a")) == LinkPlacement.FOOTER


def test_nearest_matching_ancestor_decides_placement():
    soup = default_soup_factory(
        '<nav><div class="site-footer"><a href="/a">a</a></div></nav>'
        '<footer><div class="menu"><a href="/b">b</a></div></footer>'
    )
    a, b = soup.find_all("a")
    assert detect_placement(a) == LinkPlacement.FOOTER
    assert detect_placement(b) == LinkPlacement.NAVIGATION


def test_footer_is_checked_before_navigation_on_the_same_element():
    soup = default_soup_factory('<div id="nav-footer"><a href="/x">x</a></div>')
    assert detect_placement(soup.find("a")) == LinkPlacement.FOOTER
