"""
Cursor pagination driver shared by every resource fetcher.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from hunt_scraper.models import Page

logger = logging.getLogger(__name__)

T = TypeVar("T")

FetchPage = Callable[[Optional[str]], Awaitable[Page[T]]]
Sleep = Callable[[float], Awaitable[None]]


async def paginate(
    fetch_page: FetchPage[T],
    limit: Optional[int] = None,
    delay: float = 1.0,
    page_size: Optional[int] = None,
    sleep: Sleep = asyncio.sleep,
    label: str = "items",
) -> List[T]:
    """
    Fetch pages until the upstream runs out or the limit is reached.

    After each page the stop conditions are checked in this order: an empty
    page; the accumulated count reaching ``limit`` (the result is cut to
    exactly ``limit``); the page reporting no further pages, or coming back
    shorter than ``page_size`` when one is given. ``delay`` seconds are
    awaited only between two fetches that both run.

    Args:
        fetch_page: Coroutine function taking the cursor (None first) and
            returning a Page
        limit: Maximum number of items to return (None for all)
        delay: Fixed pause between requests, in seconds
        page_size: Expected full page size, if the resource has one
        sleep: Awaitable used for the pause
        label: Resource name for log messages

    Returns:
        Items of all fetched pages in upstream order

    Raises:
        Whatever ``fetch_page`` raises; nothing is salvaged at this level
    """
    items: List[T] = []
    cursor: Optional[str] = None

    while True:
        page = await fetch_page(cursor)

        if not page.items:
            break

        items.extend(page.items)
        logger.info("Fetched %d %s (total %d)", len(page.items), label, len(items))

        if limit is not None and len(items) >= limit:
            logger.info("Reached requested limit of %d %s", limit, label)
            del items[limit:]
            break

        if not page.has_more:
            break
        if page_size is not None and len(page.items) < page_size:
            break

        cursor = page.next_cursor
        if delay > 0:
            await sleep(delay)

    return items
