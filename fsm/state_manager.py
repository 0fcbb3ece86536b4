"""
Browser State Manager — single source of truth for what the UI shows.

Holds the current filters / scope / page, runs searches through the
coordinator and notifies subscribers with an immutable Snapshot on every
transition. Only the most recently requested search may land: a newer
request cancels the one in flight, and a stale completion is dropped.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Union

from config import CURATED_LIMIT, DEBOUNCE_DELAY, SKELETON_COUNT
from formatter.engine import FormatEngine
from fsm.states import (
    IDLE, LOADING, READY, ERROR, VIEW_CURATED, VIEW_SEARCH, TRANSITIONS,
)
from models.catalog import CuratedSections, SearchFilters, TypeScope, VirtualPage
from search.coordinator import SearchCoordinator
from search.pagination import page_numbers
from search.stats import Stats, get_stats
from utils.debounce import Debouncer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    state: str
    view: str
    filters: SearchFilters
    scope: TypeScope
    page: int
    result: Optional[VirtualPage] = None
    sections: Optional[CuratedSections] = None
    stats: Stats = field(default_factory=Stats)
    cards: List[Dict[str, str]] = field(default_factory=list)
    # Skeleton cards to draw per grid while loading
    placeholders: int = 0
    description: str = ""
    pager: List[Union[int, str]] = field(default_factory=list)


Listener = Callable[[Snapshot], None]


class BrowserStateManager:
    def __init__(
        self,
        coordinator: SearchCoordinator,
        debounce_delay: float = DEBOUNCE_DELAY,
        sleep=asyncio.sleep,
        fmt: Optional[FormatEngine] = None,
    ):
        self.coordinator = coordinator
        self.fmt = fmt or FormatEngine()

        self.state = IDLE
        self.view = VIEW_CURATED
        self.filters = SearchFilters()
        self.scope = TypeScope.ALL
        self.page = 1
        self.result: Optional[VirtualPage] = None
        self.sections: Optional[CuratedSections] = None

        self._listeners: List[Listener] = []
        self._generation = 0
        self._search_task: Optional[asyncio.Task] = None
        self._curated_task: Optional[asyncio.Task] = None
        self._debouncer = Debouncer(debounce_delay, self.refresh, sleep)

    # ── Observers ──────────────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def snapshot(self) -> Snapshot:
        stats = Stats()
        cards: List[Dict[str, str]] = []
        description = ""
        pager: List[Union[int, str]] = []
        placeholders = 0

        if self.state == LOADING:
            placeholders = CURATED_LIMIT if self.view == VIEW_CURATED else SKELETON_COUNT
        elif self.view == VIEW_SEARCH and self.result is not None:
            stats = get_stats(self.result.items)
            cards = self.fmt.stat_cards(stats, self.result)
            description = self.fmt.describe_results(self.result)
            if self.result.last_page > 1:
                pager = page_numbers(self.result.current_page, self.result.last_page)
        elif self.view == VIEW_CURATED and self.sections is not None:
            stats = get_stats(self.sections.all_items)
            cards = self.fmt.stat_cards(stats)
            description = self.fmt.season_title(self.sections.season, self.sections.year)

        return Snapshot(
            state=self.state,
            view=self.view,
            filters=self.filters,
            scope=self.scope,
            page=self.page,
            result=self.result if self.view == VIEW_SEARCH else None,
            sections=self.sections,
            stats=stats,
            cards=cards,
            placeholders=placeholders,
            description=description,
            pager=pager,
        )

    def _enter(self, state: str):
        if state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal state transition {self.state} → {state}")
        self.state = state
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    # ── User input ─────────────────────────────────────────────────────────────

    def start(self):
        """Show the curated default view, fetching it on first use."""
        self.refresh()

    def set_query(self, text: str):
        """Typed text: debounced."""
        self.filters = replace(self.filters, query=text)
        self.page = 1
        self._debouncer.trigger()

    def set_year_range(self, year_min: int = 0, year_max: Optional[int] = None):
        """Numeric range edits: debounced like typing."""
        self.filters = replace(self.filters, year_min=year_min or 0, year_max=year_max or None)
        self.page = 1
        self._debouncer.trigger()

    def set_filters(self, **changes):
        """Dropdown changes (status, genre, rating_min, sort): immediate."""
        self.filters = replace(self.filters, **changes)
        self.page = 1
        self.refresh()

    def set_scope(self, scope: TypeScope):
        self.scope = TypeScope(scope)
        self.page = 1
        self.refresh()

    def apply(self):
        self.page = 1
        self.refresh()

    def go_to_page(self, page: int):
        if page < 1 or page == self.page:
            return
        if self.result is not None and page > self.result.last_page:
            return
        self.page = page
        self.refresh()

    def clear_filters(self):
        self.filters = SearchFilters()
        self.scope = TypeScope.ALL
        self.page = 1
        self.refresh()

    # ── Dispatch ───────────────────────────────────────────────────────────────

    def refresh(self):
        self._debouncer.cancel()
        if self.filters.has_active(self.scope):
            self._start_search()
        else:
            self._show_curated()

    def _supersede(self):
        self._generation += 1
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        self._search_task = None
        self.result = None

    def _start_search(self):
        self._supersede()
        self.view = VIEW_SEARCH
        self._enter(LOADING)
        self._search_task = asyncio.get_running_loop().create_task(
            self._run_search(self._generation, self.filters, self.scope, self.page)
        )

    async def _run_search(self, generation: int, filters: SearchFilters,
                          scope: TypeScope, page: int):
        try:
            result = await self.coordinator.search(filters, scope, page)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Search page {page} crashed")
            if generation == self._generation:
                self._enter(ERROR)
            return

        if generation != self._generation:
            logger.debug(f"Dropping superseded result for page {page}")
            return
        self.result = result
        self._enter(READY)

    def _show_curated(self):
        self._supersede()
        self.view = VIEW_CURATED
        self._enter(LOADING)
        if self.sections is not None:
            self._enter(READY)
        elif self._curated_task is None or self._curated_task.done():
            self._curated_task = asyncio.get_running_loop().create_task(self._load_curated())

    async def _load_curated(self):
        try:
            sections = await self.coordinator.get_curated_sections()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Loading curated sections crashed")
            if self.view == VIEW_CURATED and self.state == LOADING:
                self._enter(ERROR)
            return

        self.sections = sections
        if self.view == VIEW_CURATED and self.state == LOADING:
            self._enter(READY)

    async def settle(self):
        """Wait until no search or curated load is running."""
        while True:
            running = [t for t in (self._search_task, self._curated_task)
                       if t is not None and not t.done()]
            if not running:
                return
            await asyncio.wait(running)
