"""Shift manager: open, close, rename and remove register shifts.

At most one shift is open at a time; it is the one new transactions are recorded against.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from cashdesk.core.db import LedgerStore
from cashdesk.core.errors import ConflictError, NotFoundError, SchemaFallbackError, ValidationError
from cashdesk.core.models import Shift, ShiftStatus
from cashdesk.core.utils import get_logger, to_decimal, utcnow
from cashdesk.services.aggregation import net_profit
from cashdesk.services.ledger import TransactionLedger

logger = get_logger("cashdesk.shifts")


def default_shift_name(opened_at: datetime) -> str:
    """Label used when a shift is opened without a name, e.g. ``Smena 05.03.2025 09:30``."""
    return f"Smena {opened_at:%d.%m.%Y %H:%M}"


class ShiftManager:
    """Enforces the single-open-shift invariant and records closing balances."""

    def __init__(self, store: LedgerStore, ledger: TransactionLedger) -> None:
        """Initialize with the store and the ledger used to total a shift on close."""
        self.store = store
        self.ledger = ledger

    @staticmethod
    def _to_shift(row: dict[str, Any]) -> Shift:
        return Shift(**row)

    def get_open_shift(self) -> Shift | None:
        row = self.store.get_open_shift()
        return self._to_shift(row) if row else None

    def get_shift(self, shift_id: str) -> Shift:
        row = self.store.get_shift(shift_id)
        if row is None:
            msg = f"Shift {shift_id} not found"
            raise NotFoundError(msg)
        return self._to_shift(row)

    def list_shifts(self) -> list[Shift]:
        """All shifts, most recently opened first."""
        return [self._to_shift(row) for row in self.store.list_shifts()]

    def open_shift(self, starting_balance: Decimal | int | str = Decimal(0), name: str | None = None) -> Shift:
        """Open a new shift; fails with ConflictError while another one is open."""
        balance = to_decimal(starting_balance)
        if balance is None or not balance.is_finite() or balance < 0:
            msg = f"Starting balance must be a non-negative number, got {starting_balance!r}"
            raise ValidationError(msg)
        current = self.store.get_open_shift()
        if current is not None:
            msg = f"Shift {current['id']} is already open; close it first"
            raise ConflictError(msg)

        now = utcnow()
        values = {
            "id": str(uuid.uuid4()),
            "opened_at": now,
            "closed_at": None,
            "status": ShiftStatus.OPEN.value,
            "starting_balance": balance,
            "ending_balance": None,
        }
        label = (name or "").strip() or default_shift_name(now)
        try:
            row = self.store.insert_shift({**values, "name": label})
        except SchemaFallbackError:
            logger.warning("shifts.name missing; opening shift without a name")
            row = self.store.insert_shift(values)
        shift = self._to_shift(row)
        logger.info(f"Shift opened: {shift.id} starting_balance={balance}")
        return shift

    def close_shift(self, shift_id: str, ending_balance: Decimal | int | str | None = None) -> Shift:
        """Close the open shift, recording ``ending_balance`` (net of its transactions when omitted)."""
        current = self.store.get_open_shift()
        if current is None or current["id"] != shift_id:
            msg = f"No open shift with id {shift_id}"
            raise NotFoundError(msg)
        if ending_balance is None:
            balance = net_profit(self.ledger.list_transactions(shift_id=shift_id))
        else:
            balance = to_decimal(ending_balance)
            if balance is None or not balance.is_finite():
                msg = f"Ending balance must be a number, got {ending_balance!r}"
                raise ValidationError(msg)
        updated = self.store.update_shift(
            shift_id,
            {"status": ShiftStatus.CLOSED.value, "closed_at": utcnow(), "ending_balance": balance},
            only_if_status=ShiftStatus.OPEN.value,
        )
        if not updated:
            msg = f"No open shift with id {shift_id}"
            raise NotFoundError(msg)
        logger.info(f"Shift closed: {shift_id} ending_balance={balance}")
        return self.get_shift(shift_id)

    def rename_shift(self, shift_id: str, name: str) -> Shift:
        name = (name or "").strip()
        if not name:
            msg = "Shift name must not be empty"
            raise ValidationError(msg)
        self.get_shift(shift_id)
        try:
            self.store.update_shift(shift_id, {"name": name})
        except SchemaFallbackError as exc:
            msg = "This database has no column for shift names"
            raise ValidationError(msg) from exc
        return self.get_shift(shift_id)

    def delete_shift(self, shift_id: str) -> bool:
        """Delete a shift and its transactions; deleting an unknown shift is a no-op.

        Closed shifts can be deleted as a whole; their individual rows stay read-only in the ledger.
        """
        removed = self.store.delete_transactions(shift_id)
        deleted = self.store.delete_shift(shift_id) > 0
        logger.info(f"Shift delete: {shift_id} (removed={deleted}, transactions={removed})")
        return deleted
