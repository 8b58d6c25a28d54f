"""Transaction ledger: add, edit and delete transactions of a shift, and re-tag expense categories.

Rows come out of the store with their category either in the ``category`` column or as a
``[Name]`` tag in the description. ``TransactionLedger.to_transaction`` resolves both into
the logical ``Transaction.category`` and strips the tag from the description it hands out.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from cashdesk.core.db import LedgerStore
from cashdesk.core.errors import NotFoundError, ReadOnlyError, SchemaFallbackError, ValidationError
from cashdesk.core.models import RenameReport, Shift, ShiftStatus, Transaction, TransactionType
from cashdesk.core.utils import get_logger, to_decimal, utcnow
from cashdesk.services.categories import CategoryBook
from cashdesk.services.category_tags import EmbeddedCategory, category_ref, embed, extract, has_tag, retag

logger = get_logger("cashdesk.ledger")


def _positive_amount(value: Any) -> Decimal:
    amount = to_decimal(value)
    if amount is None or not amount.is_finite() or amount <= 0:
        msg = f"Amount must be a positive number, got {value!r}"
        raise ValidationError(msg)
    return amount


class TransactionLedger:
    """CRUD over transactions scoped to a shift.

    A ledger built with ``read_only=True`` (the historical view of a closed shift) rejects every
    mutation with ReadOnlyError.
    """

    def __init__(self, store: LedgerStore, categories: CategoryBook, *, read_only: bool = False) -> None:
        """Initialize the ledger over a store and the category book used for renames."""
        self.store = store
        self.categories = categories
        self.read_only = read_only

    def for_shift(self, shift: Shift | None) -> "TransactionLedger":
        """Ledger for working on ``shift``: read-only once the shift is closed."""
        closed = shift is not None and not shift.is_open
        return TransactionLedger(self.store, self.categories, read_only=self.read_only or closed)

    def _ensure_writable(self) -> None:
        if self.read_only:
            msg = "This shift is closed; its transactions are read-only"
            raise ReadOnlyError(msg)

    def to_transaction(self, row: dict[str, Any]) -> Transaction:
        """Build the logical transaction from a stored row."""
        description = row.get("description") or ""
        category = None
        if row["type"] == TransactionType.XARAJAT.value:
            ref = category_ref(row.get("category"), description)
            if ref is not None:
                category = ref.name
            if isinstance(ref, EmbeddedCategory):
                _, description = extract(description)
        return Transaction(
            id=row["id"],
            amount=row["amount"],
            type=row["type"],
            category=category,
            description=description,
            date=row["date"],
            shift_id=row.get("shift_id"),
        )

    # --- reads ---

    def get_transaction(self, transaction_id: str) -> Transaction:
        row = self.store.get_transaction(transaction_id)
        if row is None:
            msg = f"Transaction {transaction_id} not found"
            raise NotFoundError(msg)
        return self.to_transaction(row)

    def list_transactions(
        self,
        shift_id: str | None = None,
        txn_type: TransactionType | str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Transaction]:
        """Transactions filtered by shift, type and date range, newest first."""
        type_value = TransactionType(txn_type).value if txn_type is not None else None
        rows = self.store.list_transactions(shift_id=shift_id, txn_type=type_value, start=start, end=end)
        return [self.to_transaction(row) for row in rows]

    # --- mutations ---

    def add_transaction(
        self,
        shift_id: str,
        amount: Decimal | int | str,
        txn_type: TransactionType | str,
        description: str = "",
        category: str | None = None,
    ) -> Transaction:
        """Record a transaction against an open shift."""
        self._ensure_writable()
        amount = _positive_amount(amount)
        try:
            txn_type = TransactionType(txn_type)
        except ValueError as exc:
            msg = f"Unknown transaction type {txn_type!r}"
            raise ValidationError(msg) from exc
        category = (category or "").strip() or None
        if category and txn_type != TransactionType.XARAJAT:
            msg = "Only expenses (xarajat) can carry a category"
            raise ValidationError(msg)
        shift_row = self.store.get_shift(shift_id)
        if shift_row is None or shift_row["status"] != ShiftStatus.OPEN.value:
            msg = f"Shift {shift_id} is not open"
            raise ValidationError(msg)
        if category:
            category = self.categories.find(category) or category

        description = (description or "").strip()
        values = {
            "id": str(uuid.uuid4()),
            "shift_id": shift_id,
            "amount": amount,
            "type": txn_type.value,
            "description": description,
            "date": utcnow(),
        }
        if category is None:
            row = self.store.insert_transaction(values)
        else:
            try:
                row = self.store.insert_transaction({**values, "category": category})
            except SchemaFallbackError:
                logger.info(f"No category column; tagging description with [{category}]")
                row = self.store.insert_transaction({**values, "description": embed(category, description)})
        txn = self.to_transaction(row)
        logger.info(f"Transaction added: {txn.type.value} {txn.amount} shift={shift_id} category={txn.category}")
        return txn

    def edit_transaction(self, transaction_id: str, new_amount: Decimal | int | str, new_description: str = "") -> Transaction:
        """Change amount and description; type and shift are fixed, an embedded tag is kept."""
        self._ensure_writable()
        row = self.store.get_transaction(transaction_id)
        if row is None:
            msg = f"Transaction {transaction_id} not found"
            raise NotFoundError(msg)
        amount = _positive_amount(new_amount)
        description = (new_description or "").strip()
        if row["type"] == TransactionType.XARAJAT.value:
            ref = category_ref(row.get("category"), row.get("description"))
            if isinstance(ref, EmbeddedCategory) and not has_tag(description, ref.name):
                description = embed(ref.name, description)
        self.store.update_transaction(transaction_id, {"amount": amount, "description": description})
        logger.info(f"Transaction edited: {transaction_id} amount={amount}")
        return self.get_transaction(transaction_id)

    def delete_transaction(self, transaction_id: str) -> bool:
        """Delete one transaction; deleting an unknown id succeeds and returns False."""
        self._ensure_writable()
        deleted = self.store.delete_transaction(transaction_id) > 0
        logger.info(f"Transaction delete: {transaction_id} (removed={deleted})")
        return deleted

    def delete_all_expenses(self, shift_id: str) -> int:
        """Delete every expense of a shift in one statement; returns how many rows went."""
        self._ensure_writable()
        count = self.store.delete_transactions(shift_id, TransactionType.XARAJAT.value)
        logger.info(f"Deleted {count} expenses of shift {shift_id}")
        return count

    def rename_category(self, old_name: str, new_name: str) -> RenameReport:
        """Rename a category and re-tag its expenses row by row.

        Rows that fail to update are listed in the report; the category entry is renamed anyway.
        """
        self._ensure_writable()
        current, new_name = self.categories.check_rename(old_name, new_name)
        report = RenameReport(old_name=current, new_name=new_name)
        for row in self.store.list_transactions(txn_type=TransactionType.XARAJAT.value):
            values = {}
            if (row.get("category") or "").lower() == current.lower():
                values["category"] = new_name
            if has_tag(row.get("description"), current):
                values["description"] = retag(row.get("description"), current, new_name)
            if not values:
                continue
            try:
                self.store.update_transaction(row["id"], values)
            except SQLAlchemyError as exc:
                logger.warning(f"Could not re-tag transaction {row['id']} to '{new_name}': {exc}")
                report.failed.append(row["id"])
            else:
                report.retagged.append(row["id"])
        self.categories.rename(current, new_name)
        logger.info(
            f"Category '{current}' renamed to '{new_name}': {len(report.retagged)} re-tagged, {len(report.failed)} failed"
        )
        return report
