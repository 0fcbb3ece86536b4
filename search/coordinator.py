"""
Merge-Paginate Coordinator
━━━━━━━━━━━━━━━━━━━━━━━━━━
Builds one application page (50 items) out of two Jikan pages (25 each)
per catalog, merges anime and manga, drops duplicates and re-sorts the
combined set with the requested order.

All upstream calls, from searches and the default view alike, go through
one queue per coordinator: one call in flight at a time, with CALL_DELAY
seconds between consecutive calls, since Jikan is shared and rate limited.
"""

import asyncio
import logging
import time
import unicodedata
from typing import Any, Awaitable, Callable, Dict, List, Optional
from datetime import date

from config import APP_PAGE_SIZE, CALL_DELAY, CURATED_LIMIT, UPSTREAM_PAGE_LIMIT
from fetchers.jikan import JikanFetcher
from models.catalog import (
    CatalogItem, CuratedSections, SearchFilters, SortKey, SourceKind,
    TypeScope, VirtualPage, dedupe,
)
from search.pagination import app_last_page, upstream_pages

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def _title_key(item: CatalogItem) -> str:
    decomposed = unicodedata.normalize("NFKD", item.title)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


_SORTS = {
    SortKey.RATING_DESC: (lambda i: i.rating, True),
    SortKey.RATING_ASC:  (lambda i: i.rating, False),
    SortKey.TITLE_ASC:   (_title_key, False),
    SortKey.TITLE_DESC:  (_title_key, True),
    SortKey.YEAR_DESC:   (lambda i: i.year, True),
    SortKey.YEAR_ASC:    (lambda i: i.year, False),
}


def sort_items(items: List[CatalogItem], key: SortKey) -> List[CatalogItem]:
    """Stable in-place sort; equal keys keep their upstream order."""
    sort_key, reverse = _SORTS.get(key, _SORTS[SortKey.RATING_DESC])
    items.sort(key=sort_key, reverse=reverse)
    return items


class _Spacer:
    """Waits `delay` seconds before a call that follows another one closely."""

    def __init__(self, delay: float, sleep: Sleep):
        self.delay = delay
        self.sleep = sleep
        self.last: Optional[float] = None

    async def wait(self):
        if self.last is not None and self.delay > 0 and time.monotonic() - self.last < self.delay:
            await self.sleep(self.delay)

    def done(self):
        self.last = time.monotonic()


class SearchCoordinator:
    def __init__(
        self,
        anime: Optional[JikanFetcher] = None,
        manga: Optional[JikanFetcher] = None,
        call_delay: float = CALL_DELAY,
        sleep: Sleep = asyncio.sleep,
    ):
        self.sources: Dict[SourceKind, JikanFetcher] = {
            SourceKind.ANIME: anime or JikanFetcher(SourceKind.ANIME),
            SourceKind.MANGA: manga or JikanFetcher(SourceKind.MANGA),
        }
        self.call_delay = call_delay
        self._spacer = _Spacer(call_delay, sleep)
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop = None

    def _queue(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock, self._lock_loop = asyncio.Lock(), loop
        return self._lock

    async def _call(self, fn: Callable[..., Awaitable[Any]], *args) -> Any:
        async with self._queue():
            await self._spacer.wait()
            try:
                return await fn(*args)
            finally:
                self._spacer.done()

    # ── Search ─────────────────────────────────────────────────────────────────

    async def search(
        self,
        filters: SearchFilters,
        scope: TypeScope = TypeScope.ALL,
        app_page: int = 1,
    ) -> VirtualPage:
        first_page, second_page = upstream_pages(app_page)
        calls = 0

        items: List[CatalogItem] = []
        totals = {kind: 0 for kind in SourceKind}
        last_pages = {kind: 1 for kind in SourceKind}
        unavailable = []

        for kind, source in self.sources.items():
            if not scope.includes(kind):
                continue

            first = await self._call(source.search, filters.query, filters, first_page, UPSTREAM_PAGE_LIMIT)
            calls += 1
            items.extend(first.items)
            totals[kind] = first.total
            last_pages[kind] = first.last_page
            ok = first.ok

            if second_page <= first.last_page:
                second = await self._call(source.search, filters.query, filters, second_page, UPSTREAM_PAGE_LIMIT)
                calls += 1
                items.extend(second.items)
                ok = ok and second.ok

            if not ok:
                unavailable.append(kind)

        merged = sort_items(dedupe(items), filters.sort)
        if len(merged) > APP_PAGE_SIZE:
            logger.warning(
                f"Merged page {app_page} has {len(merged)} items, dropping the "
                f"{len(merged) - APP_PAGE_SIZE} lowest-ranked to keep {APP_PAGE_SIZE}"
            )
            merged = merged[:APP_PAGE_SIZE]

        page = VirtualPage(
            items=tuple(merged),
            grand_total=sum(totals.values()),
            current_page=app_page,
            last_page=app_last_page(*last_pages.values()),
            anime_total=totals[SourceKind.ANIME],
            manga_total=totals[SourceKind.MANGA],
            unavailable=tuple(unavailable),
        )
        logger.info(
            f"Search page {app_page}/{page.last_page} [{scope.value}] q={filters.query!r}: "
            f"{len(page.items)} items, {page.grand_total} total, {calls} upstream calls"
        )
        return page

    # ── Default view ───────────────────────────────────────────────────────────

    async def get_curated_sections(
        self, limit: int = CURATED_LIMIT, today: Optional[date] = None
    ) -> CuratedSections:
        anime = self.sources[SourceKind.ANIME]
        manga = self.sources[SourceKind.MANGA]
        top_anime = await self._call(anime.fetch_top, limit)
        trending = await self._call(anime.fetch_season_now, limit)
        seasonal, season, year = await self._call(anime.fetch_seasonal, limit, today)
        top_manga = await self._call(manga.fetch_top, limit)

        sections = CuratedSections(
            top_anime=tuple(top_anime),
            trending=tuple(trending),
            seasonal=tuple(seasonal),
            season=season,
            year=year,
            top_manga=tuple(top_manga),
        )
        logger.info(f"Curated sections loaded: {len(sections.all_items)} unique items")
        return sections
