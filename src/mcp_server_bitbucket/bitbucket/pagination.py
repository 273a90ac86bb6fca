"""Helpers for draining Bitbucket's cursor pagination"""

import logging
import re
from typing import Awaitable, Callable, List, TypeVar

from .models import PaginatedResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_PAGELEN = 50
DEFAULT_MAX_PAGES = 10

_PAGE_PARAM = re.compile(r"[?&]page=(\d+)")

PageFetcher = Callable[[int, int], Awaitable[PaginatedResponse[T]]]


async def get_all_pages(
    fetch_page: PageFetcher,
    page: int = DEFAULT_PAGE,
    pagelen: int = DEFAULT_PAGELEN,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> List[T]:
    """Fetch pages sequentially and return every value in order.

    Stops when a page has no ``next`` cursor or comes back empty. ``max_pages``
    bounds the number of fetches even if the server keeps returning cursors.
    """
    results: List[T] = []
    current_page = page

    for _ in range(max_pages):
        response = await fetch_page(current_page, pagelen)
        results.extend(response.values)

        if not response.next or not response.values:
            break

        current_page += 1
    else:
        if max_pages > 0:
            logger.debug(f"Stopped pagination after {max_pages} pages at page {current_page}")

    return results


def extract_page_from_url(url: str) -> int:
    """Return the ``page`` query parameter of a next/previous URL, or 1"""
    match = _PAGE_PARAM.search(url)
    return int(match.group(1)) if match else 1
