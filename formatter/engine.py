"""
Display Text Engine
Turns pages, sections and stats into the short strings the UI shows.
"""

import logging
from typing import Dict, List, Optional

from config import APP_PAGE_SIZE
from models.catalog import SourceKind, VirtualPage
from search.stats import Stats

logger = logging.getLogger(__name__)


class FormatEngine:
    STAT_LABELS = {
        "curated": {
            "total": "Total Items Loaded",
            "anime": "Anime Titles",
            "manga": "Manga Titles",
        },
        "search": {
            "total": "Total Results Found",
            "anime": "Anime Results",
            "manga": "Manga Results",
        },
    }

    def describe_results(self, page: VirtualPage, page_size: int = APP_PAGE_SIZE) -> str:
        if page.grand_total == 0:
            return "Found 0 items matching your filters"
        start = (page.current_page - 1) * page_size + 1
        end = min(start + len(page.items) - 1, page.grand_total)
        return f"Showing {start:,}–{end:,} of {page.grand_total:,} results"

    def season_title(self, season: str, year: int) -> str:
        return f"{season.capitalize()} {year} Anime"

    def rating(self, value: float) -> str:
        return f"{value:.1f}"

    def stat_cards(self, stats: Stats, page: Optional[VirtualPage] = None) -> List[Dict[str, str]]:
        """
        Four stat cards. In the curated view counts come from the loaded
        items; for a search page they are the upstream totals, since one
        page only shows a slice of the matches.
        """
        if page is None:
            labels = self.STAT_LABELS["curated"]
            total = stats.count
            anime = stats.by_kind.get(SourceKind.ANIME, 0)
            manga = stats.by_kind.get(SourceKind.MANGA, 0)
        else:
            labels = self.STAT_LABELS["search"]
            total, anime, manga = page.grand_total, page.anime_total, page.manga_total

        return [
            {"label": labels["total"], "value": f"{total:,}"},
            {"label": labels["anime"], "value": f"{anime:,}"},
            {"label": labels["manga"], "value": f"{manga:,}"},
            {"label": "Average Rating", "value": self.rating(stats.average_rating)},
        ]
