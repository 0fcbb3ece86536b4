"""Aggregate numbers shown above the grid — same formula for every view."""

from dataclasses import dataclass, field
from typing import Dict, Iterable

from models.catalog import CatalogItem, SourceKind


@dataclass(frozen=True)
class Stats:
    count: int = 0
    by_kind: Dict[SourceKind, int] = field(default_factory=dict)
    average_rating: float = 0.0


def get_stats(items: Iterable[CatalogItem]) -> Stats:
    items = list(items)
    by_kind = {kind: 0 for kind in SourceKind}
    for item in items:
        by_kind[item.kind] += 1
    average = sum(i.rating for i in items) / len(items) if items else 0.0
    return Stats(count=len(items), by_kind=by_kind, average_rating=average)
