import threading

from seocrawl.domain.frontier import Frontier


def test_depth_is_fixed_by_first_discovery():
    frontier = Frontier("https://www.example.com/")
    assert frontier.add_discovered("https://example.com/a", 2, "https://example.com/x")
    assert not frontier.add_discovered("https://www.example.com/a/", 1, "https://example.com/y")
    assert frontier.get_depth("https://example.com/a") == 2


def test_sources_accumulate_across_discoveries():
    frontier = Frontier("example.com")
    frontier.add_discovered("https://example.com/a", 1, "https://example.com/")
    frontier.add_discovered("https://example.com/a#frag", 1, "https://example.com/b")
    frontier.add_discovered("https://example.com/a", 1, "https://example.com/b")
    assert frontier.get_source_pages("https://example.com/a") == [
        "https://example.com/",
        "https://example.com/b",
    ]


def test_sources_are_stored_normalized():
    frontier = Frontier("example.com")
    frontier.add_discovered("https://example.com/a", 1, "https://www.example.com/b/#x")
    frontier.add_discovered("https://example.com/a", 1, "https://example.com/b")
    assert frontier.get_source_pages("https://example.com/a") == ["https://example.com/b"]


def test_unknown_url_has_depth_zero_and_no_sources():
    frontier = Frontier("example.com")
    assert frontier.get_depth("https://example.com/nope") == 0
    assert frontier.get_source_pages("https://example.com/nope") == []


def test_unvisited_follows_discovery_order():
    frontier = Frontier("example.com")
    for path in ("/", "/b", "/a"):
        frontier.add_discovered(f"https://example.com{path}", 1)
    frontier.mark_visited("https://www.example.com/b/")
    assert frontier.is_visited("https://example.com/b")
    assert frontier.get_unvisited_urls() == ["https://example.com/", "https://example.com/a"]
    assert frontier.total_discovered() == 3
    assert frontier.total_visited() == 1


def test_is_internal_uses_base_domain_without_www():
    frontier = Frontier("https://www.example.com")
    assert frontier.base_domain == "example.com"
    assert frontier.is_internal("https://example.com/page")
    assert not frontier.is_internal("https://other.com/page")


def test_max_depth_tracks_deepest_discovery():
    frontier = Frontier("example.com")
    assert frontier.max_depth() == 0
    frontier.add_discovered("https://example.com/a", 1)
    frontier.add_discovered("https://example.com/b", 3)
    assert frontier.max_depth() == 3


def test_concurrent_discoveries_report_exactly_one_first():
    frontier = Frontier("example.com")
    results = []
    barrier = threading.Barrier(8)

    def worker(i):
        barrier.wait()
        results.append(frontier.add_discovered("https://example.com/shared", i, f"https://example.com/s{i}"))

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert len(frontier.get_source_pages("https://example.com/shared")) == 8
