"""Repository interfaces and adapters for seeded product transactions."""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from threading import Lock
from typing import Protocol

from backend.db.supabase_client import SupabaseClient
from shared.models import Pagination, Transaction, TransactionFilters


logger = logging.getLogger(__name__)

_SELECT_COLUMNS = "id,title,description,price,category,sold,date_of_sale,month,image"
_TEXT_FIELDS = ("title", "description", "category")


def _window_bounds(pagination: Pagination) -> tuple[int, int | None]:
    """Return (offset, limit) with document-store skip/limit semantics.

    A zero limit means no limit and a negative limit is taken as its absolute
    value; a negative offset is rejected.
    """

    if pagination.offset < 0:
        raise ValueError(f"offset must be non-negative, got {pagination.offset}")
    limit = abs(pagination.limit)
    return pagination.offset, (limit or None)


class TransactionsRepository(Protocol):
    def list_transactions(
        self, filters: TransactionFilters, pagination: Pagination
    ) -> tuple[list[Transaction], int]:
        """Return one page of matching transactions plus the total match count."""

    def count_transactions(self, filters: TransactionFilters) -> int:
        """Return how many transactions match filters."""

    def sum_price(self, filters: TransactionFilters) -> Decimal:
        """Return the price total of matching transactions."""

    def get_by_external_id(self, transaction_id: int) -> Transaction | None:
        """Return the first transaction whose feed id matches, if any."""

    def replace_all(self, transactions: list[Transaction]) -> int:
        """Drop every stored transaction, insert the new set, return inserted count."""


class InMemoryTransactionsRepository:
    """In-memory repository used for local dev/tests when Supabase is not configured."""

    def __init__(self, transactions: list[Transaction] | None = None) -> None:
        self._lock = Lock()
        self._items: list[Transaction] = list(transactions or [])

    def _snapshot(self) -> list[Transaction]:
        with self._lock:
            return list(self._items)

    def _apply_filters(self, filters: TransactionFilters) -> list[Transaction]:
        items = self._snapshot()

        if filters.price is not None:
            items = [item for item in items if item.price == filters.price]
        elif filters.text:
            pattern = re.compile(re.escape(filters.text), re.IGNORECASE)
            items = [
                item
                for item in items
                if any(pattern.search(getattr(item, field_name) or "") for field_name in _TEXT_FIELDS)
            ]

        if filters.month is not None:
            items = [item for item in items if item.month == filters.month]

        if filters.price_min is not None:
            items = [item for item in items if item.price >= filters.price_min]
        if filters.price_max is not None:
            items = [item for item in items if item.price <= filters.price_max]

        if filters.sold is not None:
            items = [item for item in items if item.sold is filters.sold]

        return items

    def list_transactions(
        self, filters: TransactionFilters, pagination: Pagination
    ) -> tuple[list[Transaction], int]:
        filtered = self._apply_filters(filters)
        start, limit = _window_bounds(pagination)
        end = None if limit is None else start + limit
        return filtered[start:end], len(filtered)

    def count_transactions(self, filters: TransactionFilters) -> int:
        return len(self._apply_filters(filters))

    def sum_price(self, filters: TransactionFilters) -> Decimal:
        return sum((item.price for item in self._apply_filters(filters)), Decimal("0"))

    def get_by_external_id(self, transaction_id: int) -> Transaction | None:
        return next((item for item in self._snapshot() if item.id == transaction_id), None)

    def replace_all(self, transactions: list[Transaction]) -> int:
        with self._lock:
            self._items = list(transactions)
        return len(transactions)


_REGEX_METACHARACTERS = re.compile(r"([.^$*+?()\[\]{}|\\])")


def _escape_regex(value: str) -> str:
    """Escape POSIX regex metacharacters so the store matches value as literal text."""

    return _REGEX_METACHARACTERS.sub(r"\\\1", value)


def _quote_filter_value(value: str) -> str:
    """Quote a value for PostgREST logical trees so reserved characters stay literal."""

    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class SupabaseTransactionsRepository:
    """Supabase-backed repository for transactions."""

    def __init__(self, client: SupabaseClient, *, table: str = "transactions") -> None:
        self._client = client
        self._table = table

    def _build_query(self, filters: TransactionFilters) -> list[tuple[str, str | int]]:
        query: list[tuple[str, str | int]] = []

        if filters.price is not None:
            query.append(("price", f"eq.{filters.price}"))
        elif filters.text:
            # imatch, not ilike: PostgREST rewrites "*" to "%" in like patterns.
            pattern = _quote_filter_value(_escape_regex(filters.text))
            conditions = ",".join(f"{field_name}.imatch.{pattern}" for field_name in _TEXT_FIELDS)
            query.append(("or", f"({conditions})"))

        if filters.month is not None:
            query.append(("month", f"eq.{filters.month}"))

        if filters.price_min is not None:
            query.append(("price", f"gte.{filters.price_min}"))
        if filters.price_max is not None:
            query.append(("price", f"lte.{filters.price_max}"))

        if filters.sold is not None:
            query.append(("sold", f"is.{str(filters.sold).lower()}"))

        return query

    @staticmethod
    def _to_transaction(row: dict[str, object]) -> Transaction:
        return Transaction.model_validate(row)

    def _fetch_window(
        self, query: list[tuple[str, str | int]], *, offset: int, limit: int | None
    ) -> tuple[list[dict[str, object]], int]:
        """Fetch rows[offset:offset + limit] page by page.

        PostgREST caps each response at its ``max-rows`` setting, so requests
        continue from the last row received until the window is complete.
        """

        rows: list[dict[str, object]] = []
        total: int | None = None
        while True:
            page_query = [*query, ("order", "id.asc"), ("offset", offset + len(rows))]
            if limit is not None:
                page_query.append(("limit", limit - len(rows)))
            page, page_total = self._client.get_rows(
                table=self._table, query=page_query, with_count=total is None
            )
            if total is None:
                total = page_total if page_total is not None else offset + len(page)
            rows.extend(page)

            wanted = max(total - offset, 0)
            if limit is not None:
                wanted = min(wanted, limit)
            if not page or len(rows) >= wanted:
                return rows, total

    def list_transactions(
        self, filters: TransactionFilters, pagination: Pagination
    ) -> tuple[list[Transaction], int]:
        offset, limit = _window_bounds(pagination)
        query = [*self._build_query(filters), ("select", _SELECT_COLUMNS)]
        rows, total = self._fetch_window(query, offset=offset, limit=limit)
        return [self._to_transaction(row) for row in rows], total

    def count_transactions(self, filters: TransactionFilters) -> int:
        query = [*self._build_query(filters), ("select", "id"), ("limit", 1)]
        _, total = self._client.get_rows(table=self._table, query=query, with_count=True)
        return total or 0

    def sum_price(self, filters: TransactionFilters) -> Decimal:
        query = [*self._build_query(filters), ("select", "price")]
        rows, _ = self._fetch_window(query, offset=0, limit=None)
        return sum((Decimal(str(row.get("price") or 0)) for row in rows), Decimal("0"))

    def get_by_external_id(self, transaction_id: int) -> Transaction | None:
        rows, _ = self._client.get_rows(
            table=self._table,
            query=[("id", f"eq.{transaction_id}"), ("select", _SELECT_COLUMNS), ("limit", 1)],
            with_count=False,
        )
        if not rows:
            return None
        return self._to_transaction(rows[0])

    def replace_all(self, transactions: list[Transaction]) -> int:
        self._client.delete_rows(table=self._table, query={"id": "not.is.null"})
        logger.info("transactions_table_cleared table=%s", self._table)
        if not transactions:
            return 0
        payload = [item.model_dump(mode="json") for item in transactions]
        self._client.post_rows(table=self._table, payload=payload, prefer="return=minimal")
        return len(transactions)
