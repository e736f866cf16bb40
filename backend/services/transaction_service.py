"""Ledger operations over a transactions store.

The service owns every business rule (positive amounts, the income/expense
enumeration, trimmed non-blank categories) and runs them before any write.
Store adapters only persist what they are given.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from backend.repositories.transactions_repository import TransactionsRepository
from shared.models import (
    Balance,
    NewTransaction,
    Transaction,
    TransactionCreateRequest,
    TransactionFilters,
    TransactionKind,
    TransactionPatch,
)


logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """Raised when a caller-supplied value breaks a ledger rule."""


def validate_kind(raw: object | None) -> TransactionKind:
    """Return the normalized kind or raise InvalidInputError."""

    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise InvalidInputError("Kind is required")
    value = raw.value if isinstance(raw, TransactionKind) else str(raw)
    try:
        return TransactionKind(value.strip().lower())
    except ValueError as exc:
        raise InvalidInputError("Kind must be 'income' or 'expense'") from exc


def validate_amount(raw: object | None) -> Decimal:
    if raw is None:
        raise InvalidInputError("Amount is required")
    try:
        amount = raw if isinstance(raw, Decimal) else Decimal(str(raw))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInputError("Amount must be a number") from exc
    if not amount.is_finite() or amount <= 0:
        raise InvalidInputError("Amount must be > 0")
    # Stores keep two decimal places; anything finer would be rounded on write.
    if amount.normalize().as_tuple().exponent < -2:
        raise InvalidInputError("Amount must have at most 2 decimal places")
    return amount


def validate_category(raw: object | None) -> str:
    if raw is None or not str(raw).strip():
        raise InvalidInputError("Category is required")
    return str(raw).strip()


def _normalize_note(raw: object | None) -> str | None:
    # A blank note is stored as no note.
    if raw is None or not str(raw).strip():
        return None
    return str(raw)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken as UTC; stores keep UTC only.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _coerce_date(raw: object) -> datetime:
    if isinstance(raw, datetime):
        return _as_utc(raw)
    try:
        return _as_utc(datetime.fromisoformat(str(raw).replace("Z", "+00:00")))
    except ValueError as exc:
        raise InvalidInputError("Date must be an ISO 8601 timestamp") from exc


@dataclass(slots=True)
class TransactionService:
    """Stateless ledger facade; the repository owns connections and pooling."""

    transactions_repository: TransactionsRepository

    def check_store(self) -> str:
        self.transactions_repository.ping()
        return "Connected to the transactions store!"

    def create_transaction(self, request: TransactionCreateRequest) -> Transaction:
        amount = validate_amount(request.amount)
        category = validate_category(request.category)
        kind = validate_kind(request.kind)
        date = _as_utc(request.date) if request.date is not None else datetime.now(timezone.utc)

        created = self.transactions_repository.insert_transaction(
            NewTransaction(
                amount=amount,
                kind=kind,
                category=category,
                date=date,
                note=_normalize_note(request.note),
            )
        )
        logger.info("transaction_created id=%s kind=%s", created.id, created.kind.value)
        return created

    def list_transactions(self, kind: str | None = None, category: str | None = None) -> list[Transaction]:
        """Return transactions matching the optional filters in ascending id order.

        Blank filter values impose no constraint.
        """

        filters = TransactionFilters(
            kind=validate_kind(kind) if kind is not None and kind.strip() else None,
            category=category.strip() if category is not None and category.strip() else None,
        )
        return self.transactions_repository.list_transactions(filters)

    def get_transaction(self, transaction_id: int) -> Transaction | None:
        return self.transactions_repository.get_transaction(transaction_id)

    def update_transaction(self, transaction_id: int, patch: TransactionPatch) -> Transaction | None:
        """Apply supplied fields on top of the stored row and persist it in one write.

        Only ``note`` can be cleared; an explicit ``None`` on any other field is
        treated as not supplied.
        """

        existing = self.transactions_repository.get_transaction(transaction_id)
        if existing is None:
            return None

        changes: dict[str, object | None] = {}
        if patch.is_supplied("amount"):
            changes["amount"] = validate_amount(patch.value("amount"))
        if patch.is_supplied("kind"):
            changes["kind"] = validate_kind(patch.value("kind"))
        if patch.is_supplied("category"):
            changes["category"] = validate_category(patch.value("category"))
        if patch.is_supplied("date"):
            changes["date"] = _coerce_date(patch.value("date"))
        if patch.is_supplied("note"):
            changes["note"] = _normalize_note(patch.value("note"))

        if not self.transactions_repository.replace_transaction(existing.model_copy(update=changes)):
            # Deleted between the read and the write.
            return None
        updated = self.transactions_repository.get_transaction(transaction_id)
        if updated is None:
            return None

        logger.info(
            "transaction_updated id=%s fields=%s",
            transaction_id,
            ",".join(sorted(changes)) or "-",
        )
        return updated

    def delete_transaction(self, transaction_id: int) -> bool:
        deleted = self.transactions_repository.delete_transaction(transaction_id)
        logger.info("transaction_deleted id=%s found=%s", transaction_id, deleted)
        return deleted

    def get_balance(self) -> Balance:
        totals = self.transactions_repository.sum_by_kind()
        income = totals.get(TransactionKind.INCOME, Decimal("0"))
        expense = totals.get(TransactionKind.EXPENSE, Decimal("0"))
        return Balance(income=income, expense=expense, balance=income - expense)
