"""Pydantic contracts shared across the ledger service, store adapters and API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransactionKind(str, Enum):
    """Direction of a ledger transaction."""

    INCOME = "income"
    EXPENSE = "expense"


TRANSACTION_PATCH_FIELDS: frozenset[str] = frozenset(
    {"amount", "kind", "category", "date", "note"}
)
TRANSACTION_CLEARABLE_FIELDS: frozenset[str] = frozenset({"note"})


class Transaction(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    amount: Decimal
    kind: TransactionKind
    category: str
    date: datetime
    note: str | None = None


class NewTransaction(BaseModel):
    """Validated row values handed to a store adapter for insertion."""

    model_config = ConfigDict(extra="forbid")

    amount: Decimal
    kind: TransactionKind
    category: str
    date: datetime
    note: str | None = None


class TransactionCreateRequest(BaseModel):
    """Raw create payload; business rules are enforced by the service."""

    model_config = ConfigDict(extra="forbid")

    amount: Decimal | None = None
    kind: str | None = None
    category: str | None = None
    date: datetime | None = None
    note: str | None = None


class TransactionUpdateRequest(BaseModel):
    """Raw update payload where every field is optional.

    Fields the client did not send stay out of ``model_fields_set``, which is
    how an omitted ``note`` is told apart from ``"note": null``.
    """

    model_config = ConfigDict(extra="forbid")

    amount: Decimal | None = None
    kind: str | None = None
    category: str | None = None
    date: datetime | None = None
    note: str | None = None

    def to_patch(self) -> TransactionPatch:
        return TransactionPatch(set=self.model_dump(exclude_unset=True))


class TransactionPatch(BaseModel):
    """Tri-state field changes for one transaction.

    A field missing from ``set`` is left untouched, a field mapped to ``None``
    is cleared, and any other value replaces the stored one.
    """

    model_config = ConfigDict(extra="forbid")

    set: dict[str, object | None] = Field(default_factory=dict)

    @field_validator("set")
    @classmethod
    def validate_set(cls, value: dict[str, object | None]) -> dict[str, object | None]:
        unsupported = sorted(name for name in value if name not in TRANSACTION_PATCH_FIELDS)
        if unsupported:
            raise ValueError(f"Unsupported transaction fields: {', '.join(unsupported)}")
        return value

    def is_supplied(self, field_name: str) -> bool:
        """Return whether the field carries a change (a set value or a clear)."""
        if field_name not in self.set:
            return False
        if self.set[field_name] is None:
            return field_name in TRANSACTION_CLEARABLE_FIELDS
        return True

    def value(self, field_name: str) -> object | None:
        return self.set.get(field_name)


class TransactionFilters(BaseModel):
    """Normalized list filters; ``None`` means no constraint."""

    model_config = ConfigDict(extra="forbid")

    kind: TransactionKind | None = None
    category: str | None = None


class Balance(BaseModel):
    model_config = ConfigDict(extra="forbid")

    income: Decimal
    expense: Decimal
    balance: Decimal
