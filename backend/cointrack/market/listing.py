"""Search, pagination and page-number helpers for the local asset list."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TypeVar

from .models import AssetSnapshot

T = TypeVar("T")

ELLIPSIS = "..."


def filter_assets(assets: Sequence[AssetSnapshot], text: str) -> list[AssetSnapshot]:
    """Case-insensitive substring match on name or symbol. Blank text keeps all."""
    needle = text.strip().lower()
    if not needle:
        return list(assets)
    return [a for a in assets if needle in a.name.lower() or needle in a.symbol.lower()]


def total_pages(count: int, page_size: int) -> int:
    """Number of pages needed for ``count`` rows; an empty list still has one page."""
    return max(1, math.ceil(count / page_size))


def paginate(items: Sequence[T], page: int, page_size: int) -> list[T]:
    start = (page - 1) * page_size
    return list(items[start : start + page_size])


def rescale_page(page: int, old_size: int, new_size: int) -> int:
    """Page that still shows the first row of ``page`` after a page-size change."""
    return ((page - 1) * old_size) // new_size + 1


def page_numbers(current: int, total: int) -> list[int | str]:
    """Compact pager: first, last and the neighbours of ``current``.

    >>> page_numbers(5, 10)
    [1, '...', 4, 5, 6, '...', 10]
    """
    if total <= 7:
        return list(range(1, total + 1))

    pages: list[int | str] = [1]
    if current > 3:
        pages.append(ELLIPSIS)
    pages.extend(range(max(2, current - 1), min(current + 1, total - 1) + 1))
    if current < total - 2:
        pages.append(ELLIPSIS)
    pages.append(total)
    return pages
