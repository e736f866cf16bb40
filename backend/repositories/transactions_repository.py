"""Transactions repository adapters.

Every adapter stores one flat `transactions` table keyed by a generated integer
id. Filters arrive already normalized by the service layer.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Protocol

from backend.db.supabase_client import SupabaseClient
from shared.models import NewTransaction, Transaction, TransactionFilters, TransactionKind

_TABLE = "transactions"
_COLUMNS = "id,amount,kind,category,date,note"


class TransactionsRepository(Protocol):
    def insert_transaction(self, values: NewTransaction) -> Transaction:
        """Insert one row and return it with the store-assigned id."""

    def list_transactions(self, filters: TransactionFilters) -> list[Transaction]:
        """Return matching rows ordered by ascending id."""

    def get_transaction(self, transaction_id: int) -> Transaction | None:
        """Return one row or None when the id is unknown."""

    def replace_transaction(self, transaction: Transaction) -> bool:
        """Overwrite every column of an existing row; False when it is gone."""

    def delete_transaction(self, transaction_id: int) -> bool:
        """Remove one row and report whether it existed."""

    def sum_by_kind(self) -> dict[TransactionKind, Decimal]:
        """Return amount totals per kind; kinds without rows may be missing."""

    def ping(self) -> None:
        """Raise when the backing store cannot be reached."""


class InMemoryTransactionsRepository:
    """In-memory transactions repository used by tests/dev."""

    def __init__(self) -> None:
        self._rows: dict[int, Transaction] = {}
        self._last_id = 0

    def insert_transaction(self, values: NewTransaction) -> Transaction:
        self._last_id += 1
        row = Transaction(id=self._last_id, **values.model_dump())
        self._rows[row.id] = row
        return row.model_copy()

    def list_transactions(self, filters: TransactionFilters) -> list[Transaction]:
        rows = [self._rows[row_id] for row_id in sorted(self._rows)]
        if filters.kind is not None:
            rows = [row for row in rows if row.kind == filters.kind]
        if filters.category is not None:
            needle = filters.category.lower()
            rows = [row for row in rows if row.category.lower() == needle]
        return [row.model_copy() for row in rows]

    def get_transaction(self, transaction_id: int) -> Transaction | None:
        row = self._rows.get(transaction_id)
        return row.model_copy() if row is not None else None

    def replace_transaction(self, transaction: Transaction) -> bool:
        if transaction.id not in self._rows:
            return False
        self._rows[transaction.id] = transaction.model_copy()
        return True

    def delete_transaction(self, transaction_id: int) -> bool:
        return self._rows.pop(transaction_id, None) is not None

    def sum_by_kind(self) -> dict[TransactionKind, Decimal]:
        totals: dict[TransactionKind, Decimal] = {}
        for row in self._rows.values():
            totals[row.kind] = totals.get(row.kind, Decimal("0")) + row.amount
        return totals

    def ping(self) -> None:
        return None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SupabaseTransactionsRepository:
    """Supabase repository over the `public.transactions` table."""

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    def _build_query(self, filters: TransactionFilters) -> list[tuple[str, str | int]]:
        query: list[tuple[str, str | int]] = []

        if filters.kind is not None:
            query.append(("kind", f"eq.{filters.kind.value}"))

        if filters.category is not None:
            query.append(("category", f"ilike.{_escape_like(filters.category)}"))

        return query

    @staticmethod
    def _to_payload(values: NewTransaction | Transaction) -> dict[str, object]:
        return {
            "amount": str(values.amount),
            "kind": values.kind.value,
            "category": values.category,
            "date": values.date.isoformat(),
            "note": values.note,
        }

    @staticmethod
    def _parse_row(row: dict[str, object]) -> Transaction:
        row_id = row.get("id")
        if row_id is None:
            raise ValueError("Missing required field 'id' in transactions row")

        raw_date = row.get("date")
        if isinstance(raw_date, datetime):
            parsed_date = raw_date
        else:
            parsed_date = datetime.fromisoformat(str(raw_date).replace("Z", "+00:00"))
        if parsed_date.tzinfo is None:
            parsed_date = parsed_date.replace(tzinfo=timezone.utc)

        note = row.get("note")
        return Transaction(
            id=int(str(row_id)),
            amount=Decimal(str(row.get("amount"))),
            kind=TransactionKind(str(row.get("kind"))),
            category=str(row.get("category")),
            date=parsed_date,
            note=str(note) if note is not None else None,
        )

    def insert_transaction(self, values: NewTransaction) -> Transaction:
        rows = self._client.post_rows(
            table=_TABLE,
            payload=self._to_payload(values),
            query={"select": _COLUMNS},
        )
        if not rows:
            raise RuntimeError("Supabase did not return created transaction")
        return self._parse_row(rows[0])

    def list_transactions(self, filters: TransactionFilters) -> list[Transaction]:
        query = [
            *self._build_query(filters),
            ("select", _COLUMNS),
            ("order", "id.asc"),
        ]
        rows, _ = self._client.get_rows(table=_TABLE, query=query, with_count=False)
        parsed = [self._parse_row(row) for row in rows]
        if filters.category is not None:
            # PostgREST also expands `*` inside ilike patterns.
            needle = filters.category.lower()
            parsed = [row for row in parsed if row.category.lower() == needle]
        return parsed

    def get_transaction(self, transaction_id: int) -> Transaction | None:
        rows, _ = self._client.get_rows(
            table=_TABLE,
            query={"id": f"eq.{transaction_id}", "select": _COLUMNS, "limit": 1},
            with_count=False,
        )
        if not rows:
            return None
        return self._parse_row(rows[0])

    def replace_transaction(self, transaction: Transaction) -> bool:
        rows = self._client.patch_rows(
            table=_TABLE,
            query={"id": f"eq.{transaction.id}", "select": "id"},
            payload=self._to_payload(transaction),
        )
        return bool(rows)

    def delete_transaction(self, transaction_id: int) -> bool:
        rows = self._client.delete_rows(
            table=_TABLE,
            query={"id": f"eq.{transaction_id}", "select": "id"},
        )
        return bool(rows)

    def sum_by_kind(self) -> dict[TransactionKind, Decimal]:
        rows, _ = self._client.get_rows(
            table=_TABLE,
            query={"select": "amount,kind"},
            with_count=False,
        )

        totals: dict[TransactionKind, Decimal] = {}
        for row in rows:
            kind = TransactionKind(str(row.get("kind")))
            totals[kind] = totals.get(kind, Decimal("0")) + Decimal(str(row.get("amount")))
        return totals

    def ping(self) -> None:
        self._client.get_rows(
            table=_TABLE,
            query={"select": "id", "limit": 1},
            with_count=False,
        )
