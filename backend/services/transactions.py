"""Listing and aggregate statistics over seeded transactions.

Store failures are caught at this boundary and normalized to ``ServiceError``
so the HTTP layer only has to map error codes to responses.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from backend.repositories.transactions_repository import TransactionsRepository
from backend.services.query import build_pagination
from shared.models import (
    NO_DATA_MESSAGE,
    PRICE_BANDS,
    BarChartEntry,
    CombinedData,
    MessageResult,
    Pagination,
    PieChartData,
    PriceBand,
    ServiceError,
    ServiceErrorCode,
    Transaction,
    TransactionFilters,
    TransactionListResult,
    TransactionStats,
)


logger = logging.getLogger(__name__)


def _backend_error(message: str) -> ServiceError:
    return ServiceError(code=ServiceErrorCode.BACKEND_ERROR, message=message)


@dataclass(slots=True)
class TransactionService:
    repository: TransactionsRepository

    def list_transactions(
        self, filters: TransactionFilters, pagination: Pagination
    ) -> TransactionListResult | ServiceError:
        try:
            items, total = self.repository.list_transactions(filters, pagination)
        except Exception:
            logger.exception(
                "list_transactions_failed offset=%s limit=%s", pagination.offset, pagination.limit
            )
            return _backend_error("Error fetching transactions")
        return TransactionListResult(transactions=items, total=total)

    def statistics(self, month: int | None) -> TransactionStats | ServiceError:
        """Return sale total and sold/unsold counts, or NO_DATA for an empty month."""

        if month is None:
            return ServiceError(code=ServiceErrorCode.NO_DATA, message=NO_DATA_MESSAGE)

        try:
            sold_count = self.repository.count_transactions(TransactionFilters(month=month, sold=True))
            not_sold_count = self.repository.count_transactions(TransactionFilters(month=month, sold=False))
            if sold_count + not_sold_count == 0:
                return ServiceError(code=ServiceErrorCode.NO_DATA, message=NO_DATA_MESSAGE)
            total_sale = self.repository.sum_price(TransactionFilters(month=month))
        except Exception:
            logger.exception("statistics_failed month=%s", month)
            return _backend_error("Error fetching statistics")

        return TransactionStats(
            total_sale=total_sale,
            total_sold_items=sold_count,
            total_not_sold_items=not_sold_count,
        )

    async def _count_band(self, band: PriceBand, month: int) -> BarChartEntry:
        try:
            count = await asyncio.to_thread(self.repository.count_transactions, band.as_filters(month))
        except Exception:
            logger.exception("bar_chart_band_failed range=%s month=%s", band.label, month)
            count = 0
        return BarChartEntry(range=band.label, count=count)

    async def price_histogram(self, month: int | None) -> list[BarChartEntry]:
        """Count the month's transactions per fixed price band.

        Bands are counted concurrently; a band whose count fails reports 0
        without affecting the others.
        """

        if month is None:
            return [BarChartEntry(range=band.label, count=0) for band in PRICE_BANDS]
        return list(await asyncio.gather(*(self._count_band(band, month) for band in PRICE_BANDS)))

    async def sold_split(self, month: int | None) -> PieChartData | ServiceError:
        if month is None:
            return PieChartData(sold=0, not_sold=0)

        try:
            sold_count, not_sold_count = await asyncio.gather(
                asyncio.to_thread(self.repository.count_transactions, TransactionFilters(month=month, sold=True)),
                asyncio.to_thread(self.repository.count_transactions, TransactionFilters(month=month, sold=False)),
            )
        except Exception:
            logger.exception("pie_chart_failed month=%s", month)
            return _backend_error("Error fetching pie chart data")
        return PieChartData(sold=sold_count, not_sold=not_sold_count)

    async def combined_data(self, month: int | None) -> CombinedData | ServiceError:
        """Merge list, statistics, bar chart and pie chart results for one month.

        The listing uses default search and pagination. A month without data
        embeds the statistics message; any backend failure fails the whole result.
        """

        listing, statistics, bar_chart, pie_chart = await asyncio.gather(
            asyncio.to_thread(self.list_transactions, TransactionFilters(month=month), build_pagination()),
            asyncio.to_thread(self.statistics, month),
            self.price_histogram(month),
            self.sold_split(month),
        )

        for result in (listing, statistics, pie_chart):
            if isinstance(result, ServiceError) and result.code == ServiceErrorCode.BACKEND_ERROR:
                logger.error("combined_data_failed month=%s cause=%s", month, result.message)
                return _backend_error("Internal server error while fetching combined data")

        # NO_DATA stays a 200 with the stats message embedded so the combined
        # body is the merge of the individual endpoint bodies.
        if isinstance(statistics, ServiceError):
            statistics = MessageResult(message=statistics.message)

        return CombinedData(
            transactions=listing,
            statistics=statistics,
            bar_chart_data=bar_chart,
            pie_chart_data=pie_chart,
        )

    def get_transaction(self, transaction_id: str) -> Transaction | ServiceError:
        """Look up a transaction by its feed id; a non-integer id is simply not found."""

        not_found = ServiceError(code=ServiceErrorCode.NOT_FOUND, message="Transaction not found")
        if "_" in transaction_id:
            return not_found
        try:
            external_id = int(transaction_id)
        except ValueError:
            return not_found

        try:
            transaction = self.repository.get_by_external_id(external_id)
        except Exception:
            logger.exception("get_transaction_failed id=%s", external_id)
            return _backend_error("Error fetching transaction")
        return transaction if transaction is not None else not_found
