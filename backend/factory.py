"""Composition root for backend services."""

from __future__ import annotations

import logging

from backend.db.sql import build_engine, build_session_factory, init_db
from backend.db.supabase_client import SupabaseClient, SupabaseSettings
from backend.repositories.sql_transactions_repository import SqlTransactionsRepository
from backend.repositories.transactions_repository import (
    InMemoryTransactionsRepository,
    SupabaseTransactionsRepository,
    TransactionsRepository,
)
from backend.services.transaction_service import TransactionService
from shared import config


logger = logging.getLogger(__name__)


def build_transactions_repository() -> TransactionsRepository:
    """Build the store adapter selected by `STORE_BACKEND`."""

    backend = config.store_backend()

    if backend == "memory":
        logger.info("transactions_store backend=memory")
        return InMemoryTransactionsRepository()

    if backend == "supabase":
        supabase_url = config.supabase_url()
        supabase_key = config.supabase_service_role_key()
        if not supabase_url or not supabase_key:
            raise RuntimeError("Supabase backend is not configured")
        logger.info("transactions_store backend=supabase")
        return SupabaseTransactionsRepository(
            client=SupabaseClient(
                settings=SupabaseSettings(
                    url=supabase_url,
                    service_role_key=supabase_key,
                    anon_key=config.supabase_anon_key(),
                )
            )
        )

    engine = build_engine(config.database_url(), echo=config.sql_echo())
    init_db(engine)
    logger.info("transactions_store backend=sql dialect=%s", engine.dialect.name)
    return SqlTransactionsRepository(session_factory=build_session_factory(engine))


def build_transaction_service() -> TransactionService:
    return TransactionService(transactions_repository=build_transactions_repository())
