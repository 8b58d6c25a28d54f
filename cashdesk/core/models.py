"""Pydantic models for the cash-shift ledger.

This module defines the records handed out by the services (shifts and transactions with their
category already resolved), the request bodies accepted by the API, and the shapes of the
derived statistics.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    """Payment channel of a transaction; ``xarajat`` marks an expense."""

    KASSA = "kassa"
    CLICK = "click"
    UZCARD = "uzcard"
    HUMO = "humo"
    XARAJAT = "xarajat"


PAYMENT_TYPES = (TransactionType.KASSA, TransactionType.CLICK, TransactionType.UZCARD, TransactionType.HUMO)


class ShiftStatus(str, Enum):
    """Lifecycle state of a shift."""

    OPEN = "open"
    CLOSED = "closed"


class Shift(BaseModel):
    """A bounded operating session (one register day) that transactions accumulate against."""

    id: str
    opened_at: datetime
    closed_at: datetime | None = None
    status: ShiftStatus
    starting_balance: Decimal
    ending_balance: Decimal | None = None
    name: str | None = None

    @property
    def is_open(self) -> bool:
        """Whether the shift still accepts transactions."""
        return self.status == ShiftStatus.OPEN


class Transaction(BaseModel):
    """A single payment or expense with its logical category resolved."""

    id: str
    amount: Decimal
    type: TransactionType
    category: str | None = None
    description: str = ""
    date: datetime
    shift_id: str | None = None

    @property
    def is_expense(self) -> bool:
        """Whether the transaction reduces profit."""
        return self.type == TransactionType.XARAJAT


# --- Request bodies ---


class ShiftOpen(BaseModel):
    """Body of ``POST /shifts``."""

    starting_balance: Decimal = Decimal(0)
    name: str | None = None


class ShiftClose(BaseModel):
    """Body of ``POST /shifts/{id}/close``; the balance is computed when omitted."""

    ending_balance: Decimal | None = None


class ShiftRename(BaseModel):
    name: str


class TransactionCreate(BaseModel):
    """Body of ``POST /shifts/{id}/transactions``."""

    amount: Decimal
    type: TransactionType
    description: str = ""
    category: str | None = None


class TransactionEdit(BaseModel):
    amount: Decimal
    description: str = ""


class CategoryCreate(BaseModel):
    name: str


class CategoryRename(BaseModel):
    name: str


class SalesUpdate(BaseModel):
    """Sales figure recorded against a category, optionally for one shift only."""

    amount: Decimal
    shift_id: str | None = None


class Preferences(BaseModel):
    """Device-local user preferences."""

    currency: Literal["UZS", "USD", "EUR"] = "UZS"
    theme: str = "blue"


# --- Derived shapes ---


class RenameReport(BaseModel):
    """Outcome of renaming a category: which transactions were re-tagged and which were not."""

    old_name: str
    new_name: str
    retagged: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class ProfitOrLoss(BaseModel):
    amount: Decimal
    label: Literal["profit", "loss"]


class PeriodMetrics(BaseModel):
    """Income, expenses and their difference over a set of transactions."""

    income: Decimal
    expenses: Decimal
    net: Decimal


class MonthPoint(BaseModel):
    """One calendar month of the yearly chart."""

    month: int
    name: str
    income: Decimal
    expenses: Decimal
    net: Decimal


class DashboardStats(BaseModel):
    """Headline figures for a period compared with the preceding period of equal length."""

    income: Decimal
    expenses: Decimal
    net: Decimal
    yesterday_income: Decimal
    income_change: str
    expenses_change: str
    net_change: str
    yesterday_change: str


class CategoryStats(BaseModel):
    category: str
    count: int
    total: Decimal
    average: Decimal
    sales: Decimal
    profit_or_loss: ProfitOrLoss


class ShiftSummary(BaseModel):
    """Formatter-agnostic payload handed to the receipt printer for a shift."""

    shift: Shift
    totals_by_type: dict[TransactionType, Decimal]
    income: Decimal
    expenses: Decimal
    net_profit: Decimal
    currency: str
    net_profit_display: str
    transactions: list[Transaction]
