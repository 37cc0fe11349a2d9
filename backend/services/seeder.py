"""Seed the transactions store from the remote product feed."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from pydantic import ValidationError

from backend.repositories.transactions_repository import TransactionsRepository
from shared.models import SeedResult, ServiceError, ServiceErrorCode, Transaction


logger = logging.getLogger(__name__)


class SeedError(RuntimeError):
    """Raised when the feed cannot be fetched or parsed."""


def build_transaction(row: Any) -> Transaction:
    """Validate one feed row, always re-deriving month from dateOfSale."""

    if not isinstance(row, dict):
        raise SeedError(f"Feed row must be an object, got {type(row).__name__}")
    return Transaction.model_validate({**row, "month": None})


@dataclass(slots=True)
class TransactionSeeder:
    repository: TransactionsRepository
    source_url: str
    timeout_seconds: float = 30.0

    def fetch_rows(self) -> list[Any]:
        request = Request(url=self.source_url, headers={"Accept": "application/json"}, method="GET")
        try:
            with urlopen(request, timeout=self.timeout_seconds) as response:  # noqa: S310 - URL comes from trusted env config
                payload = json.loads(response.read().decode("utf-8"))
        except HTTPError as exc:
            raise SeedError(f"Seed source responded with status {exc.code}") from exc
        except (URLError, TimeoutError) as exc:
            raise SeedError(f"Seed source unreachable: {exc}") from exc
        except ValueError as exc:
            raise SeedError("Seed source returned invalid JSON") from exc

        if not isinstance(payload, list):
            raise SeedError("Seed source must return a JSON array")
        return payload

    def load_transactions(self) -> list[Transaction]:
        rows = self.fetch_rows()
        try:
            return [build_transaction(row) for row in rows]
        except ValidationError as exc:
            raise SeedError(f"Seed source returned an invalid row: {exc.error_count()} error(s)") from exc

    def seed(self) -> SeedResult | ServiceError:
        """Replace every stored transaction with the current feed content.

        Nothing is cleared unless the whole feed was fetched and validated.
        """

        try:
            transactions = self.load_transactions()
            inserted = self.repository.replace_all(transactions)
        except Exception:
            logger.exception("seed_failed source_url=%s", self.source_url)
            return ServiceError(code=ServiceErrorCode.BACKEND_ERROR, message="Error seeding database")

        logger.info("seed_completed inserted=%s source_url=%s", inserted, self.source_url)
        return SeedResult(inserted=inserted, source_url=self.source_url)
