import dataclasses

import pytest

from models.catalog import (
    CatalogItem, ItemStatus, SearchFilters, SortKey, SourceKind, TypeScope, dedupe,
)


@pytest.mark.parametrize("text,expected", [
    ("Currently Airing", ItemStatus.ONGOING),
    ("Publishing", ItemStatus.ONGOING),
    ("Finished Airing", ItemStatus.COMPLETED),
    ("Finished", ItemStatus.COMPLETED),
    ("Upcoming", ItemStatus.UPCOMING),
    ("On Hiatus", ItemStatus.ONGOING),
    ("", ItemStatus.UNKNOWN),
    (None, ItemStatus.UNKNOWN),
])
def test_status_from_upstream(text, expected):
    assert ItemStatus.from_upstream(text) is expected


def test_item_id_combines_kind_and_native_id():
    anime = CatalogItem(native_id=1, kind=SourceKind.ANIME)
    manga = CatalogItem(native_id=1, kind=SourceKind.MANGA)
    assert anime.id == "anime-1"
    assert manga.id == "manga-1"
    assert anime.title == "Unknown"
    assert anime.genres == ()


def test_items_are_immutable():
    item = CatalogItem(native_id=1, kind=SourceKind.ANIME)
    with pytest.raises(dataclasses.FrozenInstanceError):
        item.kind = SourceKind.MANGA


def test_dedupe_keeps_first_occurrence():
    first = CatalogItem(native_id=1, kind=SourceKind.ANIME, title="first")
    again = CatalogItem(native_id=1, kind=SourceKind.ANIME, title="again")
    manga = CatalogItem(native_id=1, kind=SourceKind.MANGA)
    assert dedupe([first, manga, again]) == [first, manga]


def test_filters_from_form():
    f = SearchFilters.from_form({
        "query": "  monster ",
        "status": "completed",
        "genre": "Mystery",
        "year_min": "2000",
        "year_max": "",
        "rating_min": "7.5",
        "sort": "title-asc",
    })
    assert f == SearchFilters(
        status=ItemStatus.COMPLETED, genre="Mystery", year_min=2000, year_max=None,
        rating_min=7.5, sort=SortKey.TITLE_ASC, query="monster",
    )


def test_filters_from_form_defaults():
    f = SearchFilters.from_form({"status": "all", "genre": "all", "rating_min": "0", "sort": "bogus"})
    assert f == SearchFilters()


def test_has_active():
    assert not SearchFilters().has_active()
    assert not SearchFilters(sort=SortKey.TITLE_ASC).has_active()
    assert SearchFilters(query="x").has_active()
    assert SearchFilters(genre="Action").has_active()
    assert SearchFilters(year_max=2000).has_active()
    assert SearchFilters().has_active(TypeScope.MANGA)


def test_scope_includes():
    assert TypeScope.ALL.includes(SourceKind.ANIME)
    assert TypeScope.ANIME.includes(SourceKind.ANIME)
    assert not TypeScope.ANIME.includes(SourceKind.MANGA)
