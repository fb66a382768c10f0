# File: tests/test_frontier.py
import pytest

from site_harvest.crawler.frontier import CrawlFrontier, FrontierEntry, FrontierState


def seeded(max_pages: int = 10, scope: str = "registrable_domain") -> CrawlFrontier:
    frontier = CrawlFrontier(max_pages, scope)
    frontier.seed("http://Example.com")
    return frontier


def test_seed_is_normalized_and_indexed():
    frontier = CrawlFrontier(5)
    assert frontier.state is FrontierState.EMPTY
    entry = frontier.seed("http://Example.com")
    assert entry == FrontierEntry("http://example.com/", 0, 0, None)
    assert frontier.state is FrontierState.SEEDED
    assert frontier.accepted == 1
    assert frontier.pending == 1


def test_offer_dedupes_normalized_urls():
    frontier = seeded()
    assert frontier.offer("http://example.com/a", depth=1, discovered_from=0).index == 1
    assert frontier.offer("http://EXAMPLE.com/a#frag", depth=1, discovered_from=0) is None
    assert frontier.offer("http://example.com/", depth=1, discovered_from=0) is None
    assert frontier.visited == {"http://example.com/", "http://example.com/a"}


def test_offer_respects_scope():
    frontier = seeded()
    assert frontier.offer("https://blog.example.com/", depth=1, discovered_from=0) is not None
    assert frontier.offer("http://example.org/", depth=1, discovered_from=0) is None

    strict = seeded(scope="origin")
    assert strict.offer("https://example.com/x", depth=1, discovered_from=0) is None


def test_budget_caps_the_crawl():
    frontier = seeded(max_pages=2)
    accepted = frontier.offer_all(
        ["http://example.com/a", "http://example.com/b", "http://example.com/c"],
        depth=1,
        discovered_from=0,
    )
    assert [e.url for e in accepted] == ["http://example.com/a"]
    assert frontier.budget_reached
    assert frontier.accepted == 2
    frontier.next_level()
    frontier.next_level()
    assert frontier.next_level() == []
    assert frontier.finish() is FrontierState.CAPPED


def test_exhausted_when_nothing_left():
    frontier = seeded(max_pages=5)
    frontier.offer("http://example.com/a", depth=1, discovered_from=0)
    assert frontier.next().index == 0
    assert frontier.state is FrontierState.DRAINING
    assert frontier.next().index == 1
    assert frontier.next() is None
    assert frontier.state is FrontierState.EXHAUSTED


def test_single_page_budget_with_only_known_links_is_exhausted():
    frontier = seeded(max_pages=1)
    assert frontier.offer("http://example.com/#top", depth=1, discovered_from=0) is None
    frontier.next()
    assert frontier.finish() is FrontierState.EXHAUSTED


def test_next_level_groups_by_depth():
    frontier = seeded()
    frontier.next_level()
    frontier.offer_all(["http://example.com/a", "http://example.com/b"], depth=1, discovered_from=0)
    level = frontier.next_level()
    assert [(e.index, e.depth) for e in level] == [(1, 1), (2, 1)]
    frontier.offer("http://example.com/c", depth=2, discovered_from=1)
    assert [e.url for e in frontier.next_level()] == ["http://example.com/c"]


def test_misuse():
    with pytest.raises(ValueError):
        CrawlFrontier(0)
    frontier = CrawlFrontier(3)
    with pytest.raises(RuntimeError):
        frontier.offer("http://example.com/", depth=0, discovered_from=None)
    frontier.seed("http://example.com/")
    with pytest.raises(RuntimeError):
        frontier.seed("http://example.com/")
