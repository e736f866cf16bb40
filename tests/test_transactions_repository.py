"""Unit tests for the in-memory and Supabase transactions repositories."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from backend.repositories.transactions_repository import (
    InMemoryTransactionsRepository,
    SupabaseTransactionsRepository,
)
from shared.models import NewTransaction, Transaction, TransactionFilters, TransactionKind

NOW = datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc)


def _values(amount: str, kind: TransactionKind, category: str, note: str | None = None) -> NewTransaction:
    return NewTransaction(amount=Decimal(amount), kind=kind, category=category, date=NOW, note=note)


def _row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": 1,
        "amount": "100.00",
        "kind": "income",
        "category": "Salary",
        "date": "2025-01-10T12:00:00Z",
        "note": None,
    }
    row.update(overrides)
    return row


class _ClientStub:
    def __init__(self, rows: list[dict[str, object]]) -> None:
        self.rows = rows
        self.calls: list[dict[str, object]] = []

    def get_rows(self, *, table, query, with_count, use_anon_key=False):
        self.calls.append({"method": "GET", "table": table, "query": query})
        return self.rows, len(self.rows)

    def post_rows(self, *, table, payload, query=None, prefer="return=representation", use_anon_key=False):
        self.calls.append({"method": "POST", "table": table, "query": query, "payload": payload})
        return self.rows

    def patch_rows(self, *, table, query, payload, use_anon_key=False):
        self.calls.append({"method": "PATCH", "table": table, "query": query, "payload": payload})
        return self.rows

    def delete_rows(self, *, table, query, use_anon_key=False):
        self.calls.append({"method": "DELETE", "table": table, "query": query})
        return self.rows


def test_in_memory_insert_assigns_increasing_ids() -> None:
    repository = InMemoryTransactionsRepository()

    first = repository.insert_transaction(_values("10", TransactionKind.INCOME, "Salary"))
    second = repository.insert_transaction(_values("5", TransactionKind.EXPENSE, "Food"))

    assert (first.id, second.id) == (1, 2)
    assert repository.get_transaction(2) == second


def test_in_memory_never_reuses_deleted_ids() -> None:
    repository = InMemoryTransactionsRepository()
    first = repository.insert_transaction(_values("10", TransactionKind.INCOME, "Salary"))

    assert repository.delete_transaction(first.id) is True
    assert repository.delete_transaction(first.id) is False

    second = repository.insert_transaction(_values("10", TransactionKind.INCOME, "Salary"))
    assert second.id == 2


def test_in_memory_list_filters_by_kind_and_case_insensitive_category() -> None:
    repository = InMemoryTransactionsRepository()
    repository.insert_transaction(_values("10", TransactionKind.EXPENSE, "Food"))
    salary = repository.insert_transaction(_values("100", TransactionKind.INCOME, "Salary"))
    repository.insert_transaction(_values("3", TransactionKind.EXPENSE, "food"))

    by_kind = repository.list_transactions(TransactionFilters(kind=TransactionKind.INCOME))
    by_category = repository.list_transactions(TransactionFilters(category="FOOD"))

    assert by_kind == [salary]
    assert [row.id for row in by_category] == [1, 3]


def test_in_memory_returned_rows_are_copies() -> None:
    repository = InMemoryTransactionsRepository()
    created = repository.insert_transaction(_values("10", TransactionKind.INCOME, "Salary", note="x"))

    created.note = "mutated"

    assert repository.get_transaction(created.id).note == "x"


def test_in_memory_replace_missing_row_returns_false() -> None:
    repository = InMemoryTransactionsRepository()
    ghost = Transaction(id=42, amount=Decimal("1"), kind=TransactionKind.INCOME, category="X", date=NOW)

    assert repository.replace_transaction(ghost) is False


def test_in_memory_sum_by_kind_uses_exact_decimals() -> None:
    repository = InMemoryTransactionsRepository()
    for amount in ("0.10", "0.20"):
        repository.insert_transaction(_values(amount, TransactionKind.INCOME, "Gift"))

    totals = repository.sum_by_kind()

    assert totals == {TransactionKind.INCOME: Decimal("0.30")}


def test_supabase_list_builds_filter_query_and_orders_by_id() -> None:
    client = _ClientStub(rows=[_row(category="Food", kind="expense")])
    repository = SupabaseTransactionsRepository(client=client)

    rows = repository.list_transactions(
        TransactionFilters(kind=TransactionKind.EXPENSE, category="food")
    )

    assert [row.category for row in rows] == ["Food"]
    query = client.calls[0]["query"]
    assert ("kind", "eq.expense") in query
    assert ("category", "ilike.food") in query
    assert ("order", "id.asc") in query


def test_supabase_list_escapes_like_wildcards_and_keeps_exact_matches_only() -> None:
    client = _ClientStub(rows=[_row(category="50%_off"), _row(id=2, category="50% off")])
    repository = SupabaseTransactionsRepository(client=client)

    rows = repository.list_transactions(TransactionFilters(category="50%_OFF"))

    assert [row.id for row in rows] == [1]
    assert ("category", "ilike.50\\%\\_OFF") in client.calls[0]["query"]


def test_supabase_insert_serializes_decimal_and_datetime() -> None:
    client = _ClientStub(rows=[_row(id=7, note="bonus")])
    repository = SupabaseTransactionsRepository(client=client)

    created = repository.insert_transaction(
        _values("100.00", TransactionKind.INCOME, "Salary", note="bonus")
    )

    assert created.id == 7
    assert created.date == NOW
    payload = client.calls[0]["payload"]
    assert payload == {
        "amount": "100.00",
        "kind": "income",
        "category": "Salary",
        "date": "2025-01-10T12:00:00+00:00",
        "note": "bonus",
    }


def test_supabase_insert_raises_when_no_row_is_returned() -> None:
    repository = SupabaseTransactionsRepository(client=_ClientStub(rows=[]))

    with pytest.raises(RuntimeError, match="did not return created transaction"):
        repository.insert_transaction(_values("1", TransactionKind.INCOME, "Salary"))


def test_supabase_get_returns_none_for_unknown_id() -> None:
    client = _ClientStub(rows=[])
    repository = SupabaseTransactionsRepository(client=client)

    assert repository.get_transaction(99) is None
    assert client.calls[0]["query"]["id"] == "eq.99"


def test_supabase_replace_and_delete_report_whether_a_row_matched() -> None:
    repository = SupabaseTransactionsRepository(client=_ClientStub(rows=[]))
    ghost = Transaction(id=5, amount=Decimal("1"), kind=TransactionKind.INCOME, category="X", date=NOW)

    assert repository.replace_transaction(ghost) is False
    assert repository.delete_transaction(5) is False

    client = _ClientStub(rows=[{"id": 5}])
    repository = SupabaseTransactionsRepository(client=client)

    assert repository.replace_transaction(ghost) is True
    assert client.calls[0]["query"]["id"] == "eq.5"
    assert client.calls[0]["payload"]["note"] is None


def test_supabase_sum_by_kind_adds_decimals() -> None:
    client = _ClientStub(
        rows=[
            {"amount": "100.10", "kind": "income"},
            {"amount": "50.20", "kind": "income"},
            {"amount": "30.00", "kind": "expense"},
        ]
    )
    repository = SupabaseTransactionsRepository(client=client)

    totals = repository.sum_by_kind()

    assert totals == {
        TransactionKind.INCOME: Decimal("150.30"),
        TransactionKind.EXPENSE: Decimal("30.00"),
    }


def test_parse_row_raises_clear_error_when_id_missing() -> None:
    row = _row()
    row.pop("id")

    with pytest.raises(ValueError, match="Missing required field 'id'"):
        SupabaseTransactionsRepository._parse_row(row)


def test_parse_row_treats_naive_timestamps_as_utc() -> None:
    parsed = SupabaseTransactionsRepository._parse_row(_row(date="2025-01-10T12:00:00"))

    assert parsed.date == NOW
