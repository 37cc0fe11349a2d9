"""Pydantic contracts shared across backend and api."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, model_validator


def _decimal_to_number(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Decimal internally, plain JSON number on the wire.
Amount = Annotated[Decimal, PlainSerializer(_decimal_to_number, when_used="json")]


class ServiceErrorCode(str, Enum):
    """Stable error codes for service contracts across layers."""

    NOT_FOUND = "NOT_FOUND"
    NO_DATA = "NO_DATA"
    BACKEND_ERROR = "BACKEND_ERROR"


class ServiceError(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: ServiceErrorCode
    message: str


def month_of(value: datetime) -> int:
    """Return the calendar month of a sale timestamp, in UTC for aware values."""

    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.month


class Transaction(BaseModel):
    """Product sale record as served by the API."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int
    title: str = ""
    description: str = ""
    price: Amount = Field(ge=0)
    category: str = ""
    sold: bool = False
    date_of_sale: datetime = Field(alias="dateOfSale")
    month: int | None = Field(default=None, ge=1, le=12)
    image: str = ""

    @model_validator(mode="after")
    def derive_month(self) -> Transaction:
        if self.month is None:
            self.month = month_of(self.date_of_sale)
        return self


class TransactionFilters(BaseModel):
    """Store-level predicate; every field set is AND-ed."""

    model_config = ConfigDict(extra="forbid")

    text: str | None = None
    price: Decimal | None = None
    month: int | None = None
    price_min: Decimal | None = None
    price_max: Decimal | None = None
    sold: bool | None = None


class Pagination(BaseModel):
    """Skip/limit window, consumed as-is by the store."""

    model_config = ConfigDict(extra="forbid")

    offset: int = 0
    limit: int = 10


class TransactionListResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    transactions: list[Transaction]
    total: int


class TransactionStats(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    total_sale: Amount = Field(alias="totalSale")
    total_sold_items: int = Field(alias="totalSoldItems")
    total_not_sold_items: int = Field(alias="totalNotSoldItems")


class MessageResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str


class BarChartEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    range: str
    count: int


class PieChartData(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    sold: int
    not_sold: int = Field(alias="notSold")


class CombinedData(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    transactions: TransactionListResult
    statistics: TransactionStats | MessageResult
    bar_chart_data: list[BarChartEntry] = Field(alias="barChartData")
    pie_chart_data: PieChartData = Field(alias="pieChartData")


class SeedResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    inserted: int
    source_url: str


@dataclass(frozen=True, slots=True)
class PriceBand:
    label: str
    min_price: Decimal
    max_price: Decimal | None = None

    def as_filters(self, month: int) -> TransactionFilters:
        return TransactionFilters(month=month, price_min=self.min_price, price_max=self.max_price)


PRICE_BANDS: tuple[PriceBand, ...] = (
    PriceBand("0-100", Decimal("0"), Decimal("100")),
    PriceBand("101-200", Decimal("101"), Decimal("200")),
    PriceBand("201-300", Decimal("201"), Decimal("300")),
    PriceBand("301-400", Decimal("301"), Decimal("400")),
    PriceBand("401-500", Decimal("401"), Decimal("500")),
    PriceBand("501-600", Decimal("501"), Decimal("600")),
    PriceBand("601-700", Decimal("601"), Decimal("700")),
    PriceBand("701-800", Decimal("701"), Decimal("800")),
    PriceBand("801-900", Decimal("801"), Decimal("900")),
    PriceBand("901-above", Decimal("901")),
)

NO_DATA_MESSAGE = "No data found for the selected month"
