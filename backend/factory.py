"""Composition root for backend services."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from backend.db.supabase_client import SupabaseClient, SupabaseSettings
from backend.repositories.transactions_repository import (
    InMemoryTransactionsRepository,
    SupabaseTransactionsRepository,
    TransactionsRepository,
)
from backend.services.seeder import TransactionSeeder
from backend.services.transactions import TransactionService
from shared.config import AppSettings


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BackendServices:
    transaction_service: TransactionService
    seeder: TransactionSeeder


def build_transactions_repository(settings: AppSettings) -> TransactionsRepository:
    """Return the Supabase repository when configured, else an in-memory store."""

    if settings.store_configured:
        client = SupabaseClient(
            settings=SupabaseSettings(
                url=settings.supabase_url or "",
                service_role_key=settings.supabase_service_role_key or "",
                timeout_seconds=settings.store_timeout_seconds,
            )
        )
        logger.info("transactions_store=supabase table=%s", settings.transactions_table)
        return SupabaseTransactionsRepository(client=client, table=settings.transactions_table)

    logger.info("transactions_store=in_memory")
    return InMemoryTransactionsRepository()


def build_backend_services(
    settings: AppSettings, repository: TransactionsRepository | None = None
) -> BackendServices:
    transactions_repository = repository if repository is not None else build_transactions_repository(settings)
    return BackendServices(
        transaction_service=TransactionService(repository=transactions_repository),
        seeder=TransactionSeeder(
            repository=transactions_repository,
            source_url=settings.seed_source_url,
            timeout_seconds=settings.seed_timeout_seconds,
        ),
    )
