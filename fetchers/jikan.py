"""
Jikan v4 Fetcher — Anime & Manga (MyAnimeList data, no API key needed)

One instance per catalog. Every public call fails soft: transport errors
and malformed payloads are logged and come back as an empty result so a
broken catalog never blocks the other one.
"""

import aiohttp
import asyncio
import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional, List, Dict, Tuple

from config import JIKAN_BASE_URL, REQUEST_TIMEOUT, UPSTREAM_PAGE_LIMIT, CURATED_LIMIT
from fetchers.filters import translate
from models.catalog import (
    NO_DESCRIPTION, CatalogItem, ItemStatus, SearchFilters, SourceKind, SourcePage,
)

logger = logging.getLogger(__name__)

SEASONS = ("winter", "spring", "summer", "fall")


class TransportFailure(Exception):
    """Network error, timeout or non-200 answer from Jikan."""


class MalformedResponse(Exception):
    """Jikan answered, but not with the shape we expect."""


def current_season(today: Optional[date] = None) -> Tuple[str, int]:
    today = today or date.today()
    return SEASONS[(today.month - 1) // 3], today.year


class JikanFetcher:
    def __init__(self, kind: SourceKind, base_url: str = JIKAN_BASE_URL,
                 timeout: float = REQUEST_TIMEOUT):
        self.kind = kind
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def _get(self, endpoint: str, params: Optional[Dict] = None) -> Dict:
        url = f"{self.base_url}{endpoint}"
        try:
            async with aiohttp.ClientSession() as s:
                async with s.get(url, params=params or {},
                                 timeout=aiohttp.ClientTimeout(total=self.timeout)) as r:
                    if r.status != 200:
                        raise TransportFailure(f"HTTP {r.status} from {endpoint}")
                    try:
                        data = await r.json(content_type=None)
                    except ValueError as e:
                        raise MalformedResponse(f"non-JSON body from {endpoint}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportFailure(f"{endpoint}: {e!r}") from e

        if not isinstance(data, dict) or not isinstance(data.get("data"), list):
            raise MalformedResponse(f"no 'data' list in response from {endpoint}")
        return data

    async def _fetch_items(self, endpoint: str, params: Dict, what: str) -> List[CatalogItem]:
        try:
            data = await self._get(endpoint, params)
        except (TransportFailure, MalformedResponse) as e:
            logger.error(f"Jikan {what} failed: {e}")
            return []
        return self._items(data["data"])

    # ── Curated lists ──────────────────────────────────────────────────────────

    async def fetch_top(self, limit: int = CURATED_LIMIT) -> List[CatalogItem]:
        params = {"limit": str(min(limit, UPSTREAM_PAGE_LIMIT))}
        return await self._fetch_items(f"/top/{self.kind.value}", params, f"top {self.kind.value}")

    async def fetch_season_now(self, limit: int = CURATED_LIMIT) -> List[CatalogItem]:
        self._require_anime("seasons/now")
        params = {"limit": str(min(limit, UPSTREAM_PAGE_LIMIT))}
        return await self._fetch_items("/seasons/now", params, "current season")

    async def fetch_seasonal(
        self, limit: int = CURATED_LIMIT, today: Optional[date] = None
    ) -> Tuple[List[CatalogItem], str, int]:
        self._require_anime("seasons/{year}/{season}")
        season, year = current_season(today)
        params = {"limit": str(min(limit, UPSTREAM_PAGE_LIMIT))}
        items = await self._fetch_items(f"/seasons/{year}/{season}", params, f"{season} {year} season")
        return items, season, year

    def _require_anime(self, endpoint: str):
        if self.kind is not SourceKind.ANIME:
            raise ValueError(f"Jikan only serves {endpoint} for anime")

    # ── Search ─────────────────────────────────────────────────────────────────

    async def search(
        self,
        query: str,
        filters: SearchFilters,
        page: int = 1,
        limit: int = UPSTREAM_PAGE_LIMIT,
    ) -> SourcePage:
        params = translate(self.kind, replace(filters, query=query or ""))
        params["limit"] = str(min(limit, UPSTREAM_PAGE_LIMIT))
        params["page"] = str(page)

        try:
            data = await self._get(f"/{self.kind.value}", params)
        except (TransportFailure, MalformedResponse) as e:
            logger.error(f"Jikan {self.kind.value} search failed (page {page}): {e}")
            return SourcePage.failed(page)

        records = data["data"]
        pagination = _dict(data.get("pagination"))
        totals = _dict(pagination.get("items"))

        return SourcePage(
            items=tuple(self._items(records)),
            total=_as_int(totals.get("total"), len(records)),
            current_page=_as_int(pagination.get("current_page"), page),
            last_page=_as_int(pagination.get("last_visible_page"), 1),
        )

    # ── Normalization ──────────────────────────────────────────────────────────

    def _items(self, records: List) -> List[CatalogItem]:
        items = []
        for r in records:
            item = self._item(r)
            if item is None:
                logger.warning(f"Skipping {self.kind.value} record without mal_id: {r!r:.80}")
                continue
            items.append(item)
        return items

    def _item(self, r) -> Optional[CatalogItem]:
        if not isinstance(r, dict):
            return None
        mal_id = r.get("mal_id")
        if not isinstance(mal_id, int) or isinstance(mal_id, bool):
            return None

        genres = tuple(
            g["name"] for g in _list(r.get("genres"))
            if isinstance(g, dict) and isinstance(g.get("name"), str) and g["name"]
        )
        return CatalogItem(
            native_id=mal_id,
            kind=self.kind,
            title=_str(r.get("title")) or "Unknown",
            genres=genres,
            status=ItemStatus.from_upstream(_str(r.get("status"))),
            rating=_score(r.get("score")),
            year=self._year(r),
            image_url=_str(_dict(_dict(r.get("images")).get("jpg")).get("large_image_url")),
            description=_str(r.get("synopsis")) or NO_DESCRIPTION,
            external_link=_str(r.get("url")),
        )

    def _year(self, r: Dict) -> int:
        if self.kind is SourceKind.ANIME:
            year = r.get("year")
            if _as_int(year, 0) > 0:
                return year
            return _year_of(_dict(r.get("aired")).get("from"))
        return _year_of(_dict(r.get("published")).get("from"))


def _year_of(value) -> int:
    """'2019-04-07T00:00:00+00:00' → 2019, anything unparsable → 0."""
    if not isinstance(value, str):
        return 0
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").year
    except ValueError:
        return 0


def _score(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return min(max(float(value), 0.0), 10.0)


def _as_int(value, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value


def _dict(value) -> Dict:
    return value if isinstance(value, dict) else {}


def _list(value) -> List:
    return value if isinstance(value, list) else []


def _str(value) -> str:
    return value if isinstance(value, str) else ""
