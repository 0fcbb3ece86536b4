"""
Filter / Sort Translator
Maps the unified filter vocabulary onto Jikan query-string parameters.
Pure — no I/O.
"""

from typing import Dict, Optional, Tuple

from models.catalog import ItemStatus, SearchFilters, SortKey, SourceKind

# Jikan genre ids are shared by /anime and /manga
GENRE_IDS: Dict[str, int] = {
    "Action":        1,
    "Adventure":     2,
    "Comedy":        4,
    "Mystery":       7,
    "Drama":         8,
    "Fantasy":       10,
    "Horror":        14,
    "Mecha":         18,
    "Romance":       22,
    "Sci-Fi":        24,
    "Sports":        30,
    "Slice of Life": 36,
    "Supernatural":  37,
    "Psychological": 40,
    "Thriller":      41,
}

STATUS_PARAMS: Dict[SourceKind, Dict[ItemStatus, str]] = {
    SourceKind.ANIME: {
        ItemStatus.ONGOING:   "airing",
        ItemStatus.COMPLETED: "complete",
        ItemStatus.UPCOMING:  "upcoming",
    },
    SourceKind.MANGA: {
        ItemStatus.ONGOING:   "publishing",
        ItemStatus.COMPLETED: "complete",
        ItemStatus.UPCOMING:  "upcoming",
    },
}

SORT_PARAMS: Dict[SortKey, Tuple[str, str]] = {
    SortKey.RATING_DESC: ("score", "desc"),
    SortKey.RATING_ASC:  ("score", "asc"),
    SortKey.TITLE_ASC:   ("title", "asc"),
    SortKey.TITLE_DESC:  ("title", "desc"),
    SortKey.YEAR_DESC:   ("start_date", "desc"),
    SortKey.YEAR_ASC:    ("start_date", "asc"),
}


def genre_id(name: Optional[str]) -> Optional[int]:
    if not name:
        return None
    return GENRE_IDS.get(name)


def sort_params(key) -> Tuple[str, str]:
    return SORT_PARAMS.get(key, SORT_PARAMS[SortKey.RATING_DESC])


def translate(kind: SourceKind, filters: SearchFilters) -> Dict[str, str]:
    params: Dict[str, str] = {}

    if filters.query.strip():
        params["q"] = filters.query.strip()

    status = STATUS_PARAMS[kind].get(filters.status)
    if status:
        params["status"] = status

    gid = genre_id(filters.genre)
    if gid:
        params["genres"] = str(gid)

    if filters.year_min:
        params["start_date"] = f"{filters.year_min}-01-01"
    if filters.year_max:
        params["end_date"] = f"{filters.year_max}-12-31"

    if filters.rating_min:
        params["min_score"] = format(filters.rating_min, "g")

    params["order_by"], params["sort"] = sort_params(filters.sort)
    return params
