"""
Catalog preview runner.
Loads the curated default view, then a sample filtered browse, and logs
what a UI would render.
"""

import sys
import logging
import asyncio

from config import LOG_LEVEL
from fsm.state_manager import BrowserStateManager, Snapshot
from fsm.states import READY
from models.catalog import SortKey
from search.coordinator import SearchCoordinator

logging.basicConfig(
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def _log_snapshot(snap: Snapshot):
    if snap.state != READY:
        logger.info(f"[{snap.view}] {snap.state} — {snap.placeholders} placeholders")
        return
    cards = ", ".join(f"{c['label']}: {c['value']}" for c in snap.cards)
    logger.info(f"[{snap.view}] ready — {snap.description} | {cards}")
    items = snap.result.items if snap.result else (snap.sections.all_items if snap.sections else ())
    for item in items[:5]:
        logger.info(f"  {item.id:<14} {item.rating:>4.1f}  {item.year or 'N/A'}  {item.title}")


async def run():
    manager = BrowserStateManager(SearchCoordinator())
    manager.subscribe(_log_snapshot)

    manager.start()
    await manager.settle()

    manager.set_filters(genre="Mecha", sort=SortKey.YEAR_DESC)
    await manager.settle()


def main():
    logger.info("🚀 Catalog preview starting...")
    asyncio.run(run())


if __name__ == "__main__":
    main()
