"""
Catalog data model — one item shape for both anime and manga.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

NO_DESCRIPTION = "No description available."


class SourceKind(str, Enum):
    ANIME = "anime"
    MANGA = "manga"


class ItemStatus(str, Enum):
    ONGOING   = "ongoing"
    COMPLETED = "completed"
    UPCOMING  = "upcoming"
    UNKNOWN   = "unknown"

    @classmethod
    def from_upstream(cls, text: Optional[str]) -> "ItemStatus":
        """Map Jikan's free-text status ("Currently Airing", "Finished", ...)."""
        if not text:
            return cls.UNKNOWN
        s = text.lower()
        if "finished" in s:
            return cls.COMPLETED
        if "airing" in s or "publishing" in s:
            return cls.ONGOING
        if "upcoming" in s:
            return cls.UPCOMING
        return cls.ONGOING


class SortKey(str, Enum):
    RATING_DESC = "rating-desc"
    RATING_ASC  = "rating-asc"
    TITLE_ASC   = "title-asc"
    TITLE_DESC  = "title-desc"
    YEAR_DESC   = "year-desc"
    YEAR_ASC    = "year-asc"

    @classmethod
    def parse(cls, value) -> "SortKey":
        try:
            return cls(value)
        except ValueError:
            return cls.RATING_DESC


class TypeScope(str, Enum):
    ALL   = "all"
    ANIME = "anime"
    MANGA = "manga"

    def includes(self, kind: SourceKind) -> bool:
        return self is TypeScope.ALL or self.value == kind.value


@dataclass(frozen=True)
class CatalogItem:
    native_id: int
    kind: SourceKind
    title: str = "Unknown"
    genres: Tuple[str, ...] = ()
    status: ItemStatus = ItemStatus.UNKNOWN
    rating: float = 0.0
    year: int = 0
    image_url: str = ""
    description: str = NO_DESCRIPTION
    external_link: str = ""

    @property
    def id(self) -> str:
        return f"{self.kind.value}-{self.native_id}"


@dataclass(frozen=True)
class SearchFilters:
    status: Optional[ItemStatus] = None
    genre: Optional[str] = None
    year_min: int = 0
    year_max: Optional[int] = None
    rating_min: float = 0
    sort: SortKey = SortKey.RATING_DESC
    query: str = ""

    @classmethod
    def from_form(cls, form: Dict[str, str]) -> "SearchFilters":
        """
        Build filters from raw form values, where "all", "" and "0"
        mean "no constraint".
        """
        status = (form.get("status") or "all").strip().lower()
        genre = (form.get("genre") or "all").strip()
        return cls(
            status=_to_status(status),
            genre=None if genre.lower() == "all" else genre,
            year_min=_to_int(form.get("year_min")) or 0,
            year_max=_to_int(form.get("year_max")) or None,
            rating_min=_to_float(form.get("rating_min")),
            sort=SortKey.parse(form.get("sort")),
            query=(form.get("query") or "").strip(),
        )

    def has_active(self, scope: TypeScope = TypeScope.ALL) -> bool:
        """True when anything narrows the view beyond the curated defaults."""
        return bool(
            self.query.strip()
            or scope is not TypeScope.ALL
            or self.status is not None
            or self.genre
            or self.year_min
            or self.year_max
            or self.rating_min
        )


@dataclass(frozen=True)
class SourcePage:
    """One upstream page as returned by a source client."""
    items: Tuple[CatalogItem, ...] = ()
    total: int = 0
    current_page: int = 1
    last_page: int = 1
    ok: bool = True

    @classmethod
    def failed(cls, page: int) -> "SourcePage":
        return cls(current_page=page, ok=False)


@dataclass(frozen=True)
class VirtualPage:
    items: Tuple[CatalogItem, ...] = ()
    grand_total: int = 0
    current_page: int = 1
    last_page: int = 1
    anime_total: int = 0
    manga_total: int = 0
    # Kinds whose upstream calls failed; their totals read as zero
    unavailable: Tuple[SourceKind, ...] = ()


@dataclass(frozen=True)
class CuratedSections:
    top_anime: Tuple[CatalogItem, ...] = ()
    trending: Tuple[CatalogItem, ...] = ()
    seasonal: Tuple[CatalogItem, ...] = ()
    season: str = "unknown"
    year: int = 0
    top_manga: Tuple[CatalogItem, ...] = ()

    @property
    def all_items(self) -> Tuple[CatalogItem, ...]:
        return tuple(dedupe(
            self.top_anime + self.trending + self.seasonal + self.top_manga
        ))


def _to_status(value: str) -> Optional[ItemStatus]:
    try:
        status = ItemStatus(value)
    except ValueError:
        return None
    return None if status is ItemStatus.UNKNOWN else status


def _to_int(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


def _to_float(value) -> float:
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return 0.0


def dedupe(items: Iterable[CatalogItem]) -> List[CatalogItem]:
    """Drop repeated ids, keeping the first occurrence."""
    seen = set()
    unique = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    return unique
