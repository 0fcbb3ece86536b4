import asyncio
from typing import Dict, List

from fsm.state_manager import BrowserStateManager
from fsm.states import ERROR, IDLE, LOADING, READY, VIEW_CURATED, VIEW_SEARCH
from models.catalog import CuratedSections, SearchFilters, SortKey, SourceKind, TypeScope, VirtualPage
from search.coordinator import SearchCoordinator
from fakes import ManualClock, SlowSource, drain, items


class FakeCoordinator:
    def __init__(self):
        self.searches: List = []
        self.curated_calls = 0
        self.gates: Dict[str, asyncio.Event] = {}
        self.fail = False

    async def search(self, filters: SearchFilters, scope=TypeScope.ALL, app_page=1) -> VirtualPage:
        self.searches.append((filters, scope, app_page))
        gate = self.gates.get(filters.genre or "")
        if gate is not None:
            await gate.wait()
        if self.fail:
            raise RuntimeError("boom")
        found = items(SourceKind.ANIME, (len(self.searches), 8.0), (100, 6.0))
        return VirtualPage(items=found, grand_total=120, current_page=app_page, last_page=3,
                           anime_total=120)

    async def get_curated_sections(self) -> CuratedSections:
        self.curated_calls += 1
        return CuratedSections(
            top_anime=items(SourceKind.ANIME, (1, 9.0)),
            trending=items(SourceKind.ANIME, (1, 9.0), (2, 7.0)),
            season="summer",
            year=2026,
            top_manga=items(SourceKind.MANGA, (1, 8.0)),
        )


def manager_with(coordinator, clock=None):
    clock = clock or ManualClock()
    manager = BrowserStateManager(coordinator, debounce_delay=0.5, sleep=clock.sleep)
    seen = []
    manager.subscribe(seen.append)
    return manager, seen


def test_curated_view_loads_once():
    async def scenario():
        coord = FakeCoordinator()
        manager, seen = manager_with(coord)
        assert manager.state == IDLE

        manager.start()
        await manager.settle()
        manager.set_filters(genre="Action")
        await manager.settle()
        manager.clear_filters()
        await manager.settle()
        return coord, manager, seen

    coord, manager, seen = asyncio.run(scenario())
    assert coord.curated_calls == 1

    loading, ready = seen[0], seen[1]
    assert (loading.state, loading.view, loading.placeholders) == (LOADING, VIEW_CURATED, 10)
    assert (ready.state, ready.view) == (READY, VIEW_CURATED)
    assert ready.stats.count == 3
    assert [c["value"] for c in ready.cards] == ["3", "2", "1", "8.0"]
    assert ready.description == "Summer 2026 Anime"

    final = seen[-1]
    assert (final.state, final.view, final.result) == (READY, VIEW_CURATED, None)
    assert manager.filters == SearchFilters()


def test_search_snapshot():
    async def scenario():
        coord = FakeCoordinator()
        manager, seen = manager_with(coord)
        manager.set_scope(TypeScope.ANIME)
        await manager.settle()
        return seen

    seen = asyncio.run(scenario())
    assert [s.state for s in seen] == [LOADING, READY]
    assert seen[0].placeholders == 10
    assert seen[0].result is None

    ready = seen[-1]
    assert ready.view == VIEW_SEARCH
    assert ready.placeholders == 0
    assert len(ready.result.items) == 2
    assert ready.stats.average_rating == 7.0
    assert ready.description == "Showing 1–2 of 120 results"
    assert ready.pager == [1, 2, 3]
    assert [c["value"] for c in ready.cards] == ["120", "120", "0", "7.0"]
    assert ready.cards[0]["label"] == "Total Results Found"
    assert seen[0].cards == []


def test_typing_is_debounced():
    async def scenario():
        clock = ManualClock()
        coord = FakeCoordinator()
        manager, seen = manager_with(coord, clock)
        for text in ("n", "na", "nar"):
            manager.set_query(text)
            await clock.advance(0.2)
        assert coord.searches == []
        assert seen == []

        await clock.advance(0.5)
        await manager.settle()
        return coord, seen

    coord, seen = asyncio.run(scenario())
    assert len(coord.searches) == 1
    assert coord.searches[0][0].query == "nar"
    assert seen[-1].state == READY


def test_year_range_is_debounced_but_dropdowns_are_not():
    async def scenario():
        clock = ManualClock()
        coord = FakeCoordinator()
        manager, _ = manager_with(coord, clock)
        manager.set_year_range(2000, None)
        await clock.advance(0.1)
        # a dropdown change fires at once and absorbs the pending range edit
        manager.set_filters(genre="Drama")
        await manager.settle()
        await clock.advance(1)
        return coord

    coord = asyncio.run(scenario())
    assert len(coord.searches) == 1
    filters = coord.searches[0][0]
    assert (filters.year_min, filters.genre) == (2000, "Drama")


def test_newest_request_wins():
    async def scenario():
        coord = FakeCoordinator()
        coord.gates["Action"] = asyncio.Event()
        manager, seen = manager_with(coord)

        manager.set_filters(genre="Action")
        await drain()
        manager.set_filters(genre="Drama")
        await manager.settle()
        coord.gates["Action"].set()
        await drain()
        return coord, manager, seen

    coord, manager, seen = asyncio.run(scenario())
    assert [f.genre for f, _, _ in coord.searches] == ["Action", "Drama"]
    assert [s.state for s in seen] == [LOADING, LOADING, READY]
    assert seen[-1].filters.genre == "Drama"
    # second search produced item id 2
    assert manager.result.items[0].native_id == 2


def test_page_changes():
    async def scenario():
        coord = FakeCoordinator()
        manager, _ = manager_with(coord)
        manager.set_filters(genre="Action")
        await manager.settle()
        manager.go_to_page(2)
        await manager.settle()
        manager.go_to_page(2)
        manager.go_to_page(9)
        manager.go_to_page(0)
        await manager.settle()
        manager.set_filters(sort=SortKey.TITLE_ASC)
        await manager.settle()
        return coord

    coord = asyncio.run(scenario())
    assert [page for _, _, page in coord.searches] == [1, 2, 1]


def test_crashing_search_ends_in_error_and_recovers():
    async def scenario():
        coord = FakeCoordinator()
        coord.fail = True
        manager, seen = manager_with(coord)
        manager.set_filters(genre="Action")
        await manager.settle()
        failed = manager.state

        coord.fail = False
        manager.apply()
        await manager.settle()
        return failed, manager.state, seen

    failed, final, seen = asyncio.run(scenario())
    assert failed == ERROR
    assert final == READY
    assert [s.state for s in seen] == [LOADING, ERROR, LOADING, READY]


def test_unsubscribe():
    async def scenario():
        manager, seen = manager_with(FakeCoordinator())
        extra = []
        unsubscribe = manager.subscribe(extra.append)
        unsubscribe()
        manager.set_filters(genre="Action")
        await manager.settle()
        return seen, extra

    seen, extra = asyncio.run(scenario())
    assert len(seen) == 2
    assert extra == []


def test_search_waits_for_curated_calls_in_flight():
    meter = {"now": 0, "max": 0}
    anime = SlowSource(SourceKind.ANIME, meter, top=items(SourceKind.ANIME, (1, 9.0)))
    manga = SlowSource(SourceKind.MANGA, meter)
    coord = SearchCoordinator(anime, manga, call_delay=0)

    async def scenario():
        manager, seen = manager_with(coord)
        manager.start()
        await drain(3)
        manager.set_filters(genre="Action")
        await manager.settle()
        return seen

    seen = asyncio.run(scenario())
    assert meter["max"] == 1
    # curated: three anime lists + top manga; search: page 1 of each catalog
    assert (len(anime.calls), len(manga.calls)) == (4, 2)
    assert seen[-1].state == READY
    assert seen[-1].view == VIEW_SEARCH
