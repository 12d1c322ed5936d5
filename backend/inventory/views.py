"""
View Engine — search, filter, sort and paginate the analyzed catalog.

Everything here is a pure function of (products, decisions, ViewState):
nothing is mutated and inference is never re-run. The dashboard session
replaces its ViewState on every interaction and calls ``project`` again.

Empty results are a normal state: zero items and ``total_pages == 0``.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from enum import Enum

import pandas as pd

from inventory.records import Decision, ProductRecord

PAGE_SIZE = 10
SORT_KEYS = ("id", "name", "current_inventory", "avg_sales", "lead_time")
CSV_HEADER = ["Product", "Stock", "Sales/Wk", "Lead Time", "Status"]


class ViewFilter(str, Enum):
    ALL = "all"
    REORDER = "Reorder"
    SAFE = "Safe"


class SortDirection(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


@dataclass(frozen=True)
class ViewState:
    """User-controlled slice parameters. Replace, never mutate."""

    search_term: str = ""
    filter: ViewFilter = ViewFilter.ALL
    sort_key: str = "id"
    sort_direction: SortDirection = SortDirection.ASCENDING
    current_page: int = 1

    def __post_init__(self):
        object.__setattr__(self, "filter", ViewFilter(self.filter))
        object.__setattr__(self, "sort_direction", SortDirection(self.sort_direction))
        if self.sort_key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key {self.sort_key!r}; expected one of {SORT_KEYS}")
        if self.current_page < 1:
            raise ValueError("current_page must be >= 1")


@dataclass(frozen=True)
class Projection:
    page_items: list[ProductRecord]
    total_pages: int
    filtered_count: int
    current_page: int


# ─── Filtering ──────────────────────────────────────────────────────────────


def matches_search(product: ProductRecord, search_term: str) -> bool:
    """Case-insensitive substring match; an empty term matches everything."""
    return search_term.casefold() in product.name.casefold()


def matches_filter(product: ProductRecord, decisions: Mapping[int, Decision], view_filter: ViewFilter) -> bool:
    view_filter = ViewFilter(view_filter)
    if view_filter is ViewFilter.ALL:
        return True
    decision = decisions.get(product.id)
    return decision is not None and decision.label.value == view_filter.value


def search_products(products: Sequence[ProductRecord], search_term: str) -> list[ProductRecord]:
    return [p for p in products if matches_search(p, search_term)]


def filter_products(
    products: Sequence[ProductRecord],
    decisions: Mapping[int, Decision],
    view_filter: ViewFilter,
) -> list[ProductRecord]:
    return [p for p in products if matches_filter(p, decisions, view_filter)]


def apply_filters(
    products: Sequence[ProductRecord],
    decisions: Mapping[int, Decision],
    state: ViewState,
) -> list[ProductRecord]:
    """Status filter AND name search, in fetch order."""
    return [
        p for p in products if matches_filter(p, decisions, state.filter) and matches_search(p, state.search_term)
    ]


# ─── Sorting ────────────────────────────────────────────────────────────────


def _sort_value(product: ProductRecord, key: str):
    value = getattr(product, key)
    if isinstance(value, str):
        return value.casefold()
    return value


def sort_products(
    products: Sequence[ProductRecord],
    sort_key: str,
    direction: SortDirection = SortDirection.ASCENDING,
) -> list[ProductRecord]:
    """Stable sort; names compare lexically, quantities numerically."""
    if sort_key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {sort_key!r}")
    return sorted(
        products,
        key=lambda p: _sort_value(p, sort_key),
        reverse=SortDirection(direction) is SortDirection.DESCENDING,
    )


def toggle_sort(state: ViewState, sort_key: str) -> ViewState:
    """Same key flips the direction; a new key starts ascending."""
    if sort_key == state.sort_key:
        flipped = (
            SortDirection.DESCENDING if state.sort_direction is SortDirection.ASCENDING else SortDirection.ASCENDING
        )
        return replace(state, sort_direction=flipped)
    return replace(state, sort_key=sort_key, sort_direction=SortDirection.ASCENDING)


# ─── Pagination ─────────────────────────────────────────────────────────────


def total_pages(item_count: int, page_size: int = PAGE_SIZE) -> int:
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    return math.ceil(item_count / page_size)


def clamp_page(page: int, page_count: int) -> int:
    """Pull a requested page into [1, page_count] (1 when there are no pages)."""
    return min(max(page, 1), max(page_count, 1))


def paginate(items: Sequence[ProductRecord], page: int, page_size: int = PAGE_SIZE) -> list[ProductRecord]:
    page = clamp_page(page, total_pages(len(items), page_size))
    start = (page - 1) * page_size
    return list(items[start : start + page_size])


def project(
    products: Sequence[ProductRecord],
    decisions: Mapping[int, Decision],
    state: ViewState,
    page_size: int = PAGE_SIZE,
) -> Projection:
    """Filter → sort → page. Never raises for out-of-range pages."""
    visible = apply_filters(products, decisions, state)
    ordered = sort_products(visible, state.sort_key, state.sort_direction)
    pages = total_pages(len(ordered), page_size)
    page = clamp_page(state.current_page, pages)
    return Projection(
        page_items=paginate(ordered, page, page_size),
        total_pages=pages,
        filtered_count=len(ordered),
        current_page=page,
    )


# ─── Export ─────────────────────────────────────────────────────────────────


def to_csv(products: Sequence[ProductRecord], decisions: Mapping[int, Decision]) -> str:
    """
    Render products as CSV with the dashboard's column headers.

    One row per product in the order given. Names containing commas or
    quotes are quoted by the CSV writer.
    """
    rows = [
        [
            p.name,
            p.current_inventory,
            p.avg_sales,
            p.lead_time,
            decisions[p.id].label.value if p.id in decisions else "",
        ]
        for p in products
    ]
    df = pd.DataFrame(rows, columns=CSV_HEADER)
    return df.to_csv(index=False, lineterminator="\n")
