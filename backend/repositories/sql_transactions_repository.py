"""SQLAlchemy transactions repository over a relational database."""

from __future__ import annotations

from datetime import timezone
from decimal import Decimal

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.orm import sessionmaker

from backend.db.sql import TransactionRecord
from shared.models import NewTransaction, Transaction, TransactionFilters, TransactionKind


class SqlTransactionsRepository:
    """One short-lived session per call; the engine pool is owned by the caller."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_model(record: TransactionRecord) -> Transaction:
        # SQLite drops tzinfo; stored values are always UTC.
        record_date = record.date
        if record_date.tzinfo is None:
            record_date = record_date.replace(tzinfo=timezone.utc)
        return Transaction(
            id=record.id,
            amount=Decimal(str(record.amount)),
            kind=TransactionKind(record.kind),
            category=record.category,
            date=record_date,
            note=record.note,
        )

    @staticmethod
    def _build_where(filters: TransactionFilters) -> list:
        clauses = []
        if filters.kind is not None:
            clauses.append(TransactionRecord.kind == filters.kind.value)
        if filters.category is not None:
            clauses.append(func.lower(TransactionRecord.category) == func.lower(filters.category))
        return clauses

    def insert_transaction(self, values: NewTransaction) -> Transaction:
        with self._session_factory() as session:
            record = TransactionRecord(
                amount=values.amount,
                kind=values.kind.value,
                category=values.category,
                date=values.date,
                note=values.note,
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            return self._to_model(record)

    def list_transactions(self, filters: TransactionFilters) -> list[Transaction]:
        statement = (
            select(TransactionRecord)
            .where(*self._build_where(filters))
            .order_by(TransactionRecord.id.asc())
        )
        with self._session_factory() as session:
            return [self._to_model(record) for record in session.scalars(statement)]

    def get_transaction(self, transaction_id: int) -> Transaction | None:
        with self._session_factory() as session:
            record = session.get(TransactionRecord, transaction_id)
            return self._to_model(record) if record is not None else None

    def replace_transaction(self, transaction: Transaction) -> bool:
        statement = (
            update(TransactionRecord)
            .where(TransactionRecord.id == transaction.id)
            .values(
                amount=transaction.amount,
                kind=transaction.kind.value,
                category=transaction.category,
                date=transaction.date,
                note=transaction.note,
            )
        )
        with self._session_factory() as session:
            result = session.execute(statement)
            session.commit()
            return result.rowcount > 0

    def delete_transaction(self, transaction_id: int) -> bool:
        statement = delete(TransactionRecord).where(TransactionRecord.id == transaction_id)
        with self._session_factory() as session:
            result = session.execute(statement)
            session.commit()
            return result.rowcount > 0

    def sum_by_kind(self) -> dict[TransactionKind, Decimal]:
        statement = select(TransactionRecord.kind, func.sum(TransactionRecord.amount)).group_by(
            TransactionRecord.kind
        )
        with self._session_factory() as session:
            rows = session.execute(statement).all()
        return {
            TransactionKind(kind): Decimal(str(total))
            for kind, total in rows
            if total is not None
        }

    def ping(self) -> None:
        with self._session_factory() as session:
            session.execute(text("SELECT 1"))
