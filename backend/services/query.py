"""Parse raw HTTP query parameters into typed store filters.

Parsing is permissive: unparseable values fall back to a default (or to no
filter at all) instead of producing a client error.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from shared.models import Pagination, TransactionFilters


DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 10

_LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")


def parse_int_prefix(value: str | None) -> int | None:
    """Return the leading integer of value (``"3abc"`` -> 3), or None."""

    if value is None:
        return None
    match = _LEADING_INT_PATTERN.match(value)
    if match is None:
        return None
    return int(match.group(1))


def parse_price(search: str | None) -> Decimal | None:
    """Return search as a finite number when the whole (stripped) string is numeric."""

    if search is None or not search.strip() or "_" in search:
        return None
    try:
        value = Decimal(search.strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def parse_month(month: str | None) -> int | None:
    if not month:
        return None
    return parse_int_prefix(month)


def build_filters(search: str | None = None, month: str | None = None) -> TransactionFilters:
    """Build the list filter: exact price for numeric search, else literal text match."""

    price = parse_price(search)
    text = None
    if price is None and search:
        text = search
    return TransactionFilters(text=text, price=price, month=parse_month(month))


def build_pagination(page: str | None = None, per_page: str | None = None) -> Pagination:
    """Build the skip/limit window; no clamping is applied."""

    page_number = parse_int_prefix(page)
    if page_number is None:
        page_number = DEFAULT_PAGE
    page_size = parse_int_prefix(per_page)
    if page_size is None:
        page_size = DEFAULT_PER_PAGE
    return Pagination(offset=(page_number - 1) * page_size, limit=page_size)
