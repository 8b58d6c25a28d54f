"""DB connection and the row-level store for shifts, transactions and expense categories."""

from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Any

from sqlalchemy import (
    Column,
    DateTime,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from cashdesk.core.errors import SchemaFallbackError
from cashdesk.core.utils import get_logger

logger = get_logger("cashdesk.db")

metadata = MetaData()

shifts_table = Table(
    "shifts",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("opened_at", DateTime, nullable=False, index=True),
    Column("closed_at", DateTime, nullable=True),
    Column("status", String(10), nullable=False, index=True),
    Column("starting_balance", Numeric(14, 2), nullable=False, default=0),
    Column("ending_balance", Numeric(14, 2), nullable=True),
    Column("name", String(200), nullable=True),
)

transactions_table = Table(
    "transactions",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("shift_id", String(36), nullable=True, index=True),
    Column("amount", Numeric(14, 2), nullable=False),
    Column("type", String(10), nullable=False, index=True),
    Column("category", String(200), nullable=True),
    Column("description", Text, nullable=True),
    Column("date", DateTime, nullable=False, index=True),
)

categories_table = Table(
    "expense_categories",
    metadata,
    Column("name", String(200), primary_key=True),
    Column("created_at", DateTime, nullable=False),
)


def get_engine(url: str | None = None) -> Engine:
    """Create a SQLAlchemy engine using the configured database URL."""
    if url is None:
        from cashdesk.core.settings import get_settings

        url = get_settings().database_url
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


engine = get_engine()
SessionLocal = sessionmaker(autoflush=False, bind=engine)


def init_db(bind: Engine) -> None:
    """Create any missing tables and forget previously reflected schemas."""
    metadata.create_all(bind)
    reflect_schema.cache_clear()


@dataclass(frozen=True)
class StoreSchema:
    """The tables as they exist in the live database, which may predate optional columns."""

    shifts: Table
    transactions: Table
    categories: Table | None

    @property
    def has_category_column(self) -> bool:
        return "category" in self.transactions.c

    @property
    def has_shift_name_column(self) -> bool:
        return "name" in self.shifts.c


@lru_cache(maxsize=8)
def reflect_schema(bind: Engine) -> StoreSchema:
    """Reflect the live tables once per engine."""
    live = MetaData()
    live.reflect(bind=bind)
    if "shifts" not in live.tables or "transactions" not in live.tables:
        msg = f"Database at {bind.url!r} has no shifts/transactions tables; run init_db first"
        raise RuntimeError(msg)
    schema = StoreSchema(
        shifts=live.tables["shifts"],
        transactions=live.tables["transactions"],
        categories=live.tables.get("expense_categories"),
    )
    if not schema.has_category_column:
        logger.warning("transactions.category missing: expense categories will be kept in descriptions")
    if schema.categories is None:
        logger.warning("expense_categories table missing: category names will be kept in the device cache")
    return schema


def _row(result: Any) -> dict[str, Any] | None:
    return dict(result._mapping) if result is not None else None


class LedgerStore:
    """Row-level access to the ledger tables through a SQLAlchemy session.

    Every mutating call is an independent statement followed by a commit. Writes naming a
    column the live schema lacks raise SchemaFallbackError instead of reaching the database.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the store with a SQLAlchemy session bound to an initialised database."""
        self.session = session
        self.schema = reflect_schema(session.get_bind())

    @property
    def has_category_column(self) -> bool:
        return self.schema.has_category_column

    @property
    def has_shift_name_column(self) -> bool:
        return self.schema.has_shift_name_column

    @property
    def has_categories_table(self) -> bool:
        return self.schema.categories is not None

    def _check_columns(self, table: Table, values: dict[str, Any]) -> None:
        for column in values:
            if column not in table.c:
                raise SchemaFallbackError(table.name, column)

    def _write(self, stmt: Any) -> int:
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result.rowcount

    # --- shifts ---

    def insert_shift(self, values: dict[str, Any]) -> dict[str, Any]:
        """Insert a shift row and return it as stored."""
        table = self.schema.shifts
        self._check_columns(table, values)
        self._write(insert(table).values(**values))
        return self.get_shift(values["id"])

    def get_shift(self, shift_id: str) -> dict[str, Any] | None:
        table = self.schema.shifts
        return _row(self.session.execute(select(table).where(table.c.id == shift_id)).first())

    def get_open_shift(self) -> dict[str, Any] | None:
        """Return the most recently opened shift with status ``open``."""
        table = self.schema.shifts
        stmt = select(table).where(table.c.status == "open").order_by(table.c.opened_at.desc()).limit(1)
        return _row(self.session.execute(stmt).first())

    def list_shifts(self) -> list[dict[str, Any]]:
        table = self.schema.shifts
        rows = self.session.execute(select(table).order_by(table.c.opened_at.desc())).all()
        return [dict(r._mapping) for r in rows]

    def update_shift(self, shift_id: str, values: dict[str, Any], *, only_if_status: str | None = None) -> int:
        """Update one shift; with ``only_if_status`` the row must still be in that state."""
        table = self.schema.shifts
        self._check_columns(table, values)
        stmt = update(table).where(table.c.id == shift_id)
        if only_if_status is not None:
            stmt = stmt.where(table.c.status == only_if_status)
        return self._write(stmt.values(**values))

    def delete_shift(self, shift_id: str) -> int:
        table = self.schema.shifts
        return self._write(delete(table).where(table.c.id == shift_id))

    # --- transactions ---

    def insert_transaction(self, values: dict[str, Any]) -> dict[str, Any]:
        """Insert a transaction row and return it as stored."""
        table = self.schema.transactions
        self._check_columns(table, values)
        self._write(insert(table).values(**values))
        return self.get_transaction(values["id"])

    def get_transaction(self, transaction_id: str) -> dict[str, Any] | None:
        table = self.schema.transactions
        return _row(self.session.execute(select(table).where(table.c.id == transaction_id)).first())

    def list_transactions(
        self,
        shift_id: str | None = None,
        txn_type: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """Select transactions by equality and date range, newest first."""
        table = self.schema.transactions
        stmt = select(table)
        if shift_id is not None:
            stmt = stmt.where(table.c.shift_id == shift_id)
        if txn_type is not None:
            stmt = stmt.where(table.c.type == txn_type)
        if start is not None:
            stmt = stmt.where(table.c.date >= start)
        if end is not None:
            stmt = stmt.where(table.c.date <= end)
        rows = self.session.execute(stmt.order_by(table.c.date.desc())).all()
        return [dict(r._mapping) for r in rows]

    def update_transaction(self, transaction_id: str, values: dict[str, Any]) -> int:
        table = self.schema.transactions
        self._check_columns(table, values)
        return self._write(update(table).where(table.c.id == transaction_id).values(**values))

    def delete_transaction(self, transaction_id: str) -> int:
        table = self.schema.transactions
        return self._write(delete(table).where(table.c.id == transaction_id))

    def delete_transactions(self, shift_id: str, txn_type: str | None = None) -> int:
        """Delete every transaction of a shift (optionally of one type) in a single statement."""
        table = self.schema.transactions
        stmt = delete(table).where(table.c.shift_id == shift_id)
        if txn_type is not None:
            stmt = stmt.where(table.c.type == txn_type)
        return self._write(stmt)

    # --- expense categories ---

    def _categories(self) -> Table:
        if self.schema.categories is None:
            raise SchemaFallbackError("expense_categories", "name")
        return self.schema.categories

    def list_category_names(self) -> list[str]:
        table = self._categories()
        return [r.name for r in self.session.execute(select(table.c.name).order_by(table.c.created_at)).all()]

    def insert_category(self, name: str, created_at: datetime) -> None:
        self._write(insert(self._categories()).values(name=name, created_at=created_at))

    def rename_category(self, old_name: str, new_name: str) -> int:
        table = self._categories()
        return self._write(update(table).where(table.c.name == old_name).values(name=new_name))

    def delete_category(self, name: str) -> int:
        table = self._categories()
        return self._write(delete(table).where(table.c.name == name))

    def close(self) -> None:
        """Close the SQLAlchemy session."""
        self.session.close()
