"""Page-number pagination over GitHub list endpoints."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .errors import PaginationError
from .models import Page

logger = logging.getLogger(__name__)


def is_last_page(page: Page, page_size: int) -> bool:
    """Decide whether ``page`` ends the walk.

    A Link header, when present, is authoritative. Without one we fall back to
    treating a short page (fewer than ``page_size`` items) as the last one, so
    a full final page costs one extra, empty request.
    """
    if page.has_next is not None:
        return not page.has_next
    return len(page.items) < page_size


def paginate(fetch: Callable[[int], Page], page_size: int,
             max_pages: Optional[int] = None) -> list:
    """Fetch pages 1, 2, ... and return all items concatenated.

    Any error from ``fetch`` propagates and the items gathered so far are
    dropped. Exceeding ``max_pages`` raises PaginationError.
    """
    if page_size < 1:
        raise ValueError("page_size must be positive")

    items: list = []
    page_number = 1
    while True:
        if max_pages is not None and page_number > max_pages:
            raise PaginationError(
                f"Stopped after {max_pages} pages ({len(items)} items) without reaching the last page"
            )
        page = fetch(page_number)
        items.extend(page.items)
        logger.debug("Fetched page %d: %d items (total %d)", page_number, len(page.items), len(items))
        if is_last_page(page, page_size):
            return items
        page_number += 1
