from unittest.mock import Mock

import pytest

from seocrawl.domain.link import LinkEdge
from seocrawl.services.link_buffer import LinkBuffer


def _edge(i):
    return LinkEdge(
        crawl_id="c1",
        source_url="https://example.com/",
        target_url=f"https://example.com/{i}",
        anchor_text=str(i),
        is_internal=True,
        target_domain="example.com",
    )


def test_flushes_when_threshold_reached():
    batches = []
    buf = LinkBuffer(batches.append, max_size=3)
    assert buf.add([_edge(1), _edge(2)]) == 0
    assert batches == []
    assert buf.add([_edge(3)]) == 3
    assert len(batches) == 1 and len(batches[0]) == 3
    assert len(buf) == 0


def test_explicit_flush_writes_remainder_once():
    flush_fn = Mock()
    buf = LinkBuffer(flush_fn, max_size=100)
    buf.add([_edge(1)])
    assert buf.flush() == 1
    assert buf.flush() == 0
    flush_fn.assert_called_once()


def test_failed_flush_keeps_links_buffered():
    flush_fn = Mock(side_effect=[RuntimeError("disk full"), None])
    buf = LinkBuffer(flush_fn, max_size=1)
    with pytest.raises(RuntimeError):
        buf.add([_edge(1)])
    assert len(buf) == 1
    assert buf.flush() == 1
