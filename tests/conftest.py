"""Shared fixtures: in-memory SQLite stores (current and legacy schema) and the services on top."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from cashdesk.api.dependencies import get_device_cache, get_store
from cashdesk.core.db import LedgerStore, init_db, reflect_schema
from cashdesk.services.categories import CategoryBook
from cashdesk.services.device_cache import DeviceCache
from cashdesk.services.ledger import TransactionLedger
from cashdesk.services.shift_manager import ShiftManager

LEGACY_DDL = (
    """CREATE TABLE shifts (
        id VARCHAR(36) PRIMARY KEY,
        opened_at DATETIME NOT NULL,
        closed_at DATETIME,
        status VARCHAR(10) NOT NULL,
        starting_balance NUMERIC(14, 2) NOT NULL,
        ending_balance NUMERIC(14, 2)
    )""",
    """CREATE TABLE transactions (
        id VARCHAR(36) PRIMARY KEY,
        shift_id VARCHAR(36),
        amount NUMERIC(14, 2) NOT NULL,
        type VARCHAR(10) NOT NULL,
        description TEXT,
        date DATETIME NOT NULL
    )""",
)


def _memory_engine() -> Engine:
    return create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


@pytest.fixture
def engine() -> Iterator[Engine]:
    """Engine on an in-memory database with the full schema."""
    eng = _memory_engine()
    init_db(eng)
    yield eng
    reflect_schema.cache_clear()
    eng.dispose()


@pytest.fixture
def legacy_engine() -> Iterator[Engine]:
    """Engine on a database predating shift names, the category column and the category table."""
    eng = _memory_engine()
    with eng.begin() as conn:
        for ddl in LEGACY_DDL:
            conn.execute(text(ddl))
    reflect_schema.cache_clear()
    yield eng
    reflect_schema.cache_clear()
    eng.dispose()


@pytest.fixture
def cache(tmp_path) -> DeviceCache:
    return DeviceCache(tmp_path / "device_cache.json")


@pytest.fixture
def store(engine: Engine) -> Iterator[LedgerStore]:
    s = LedgerStore(Session(engine))
    yield s
    s.close()


@pytest.fixture
def legacy_store(legacy_engine: Engine) -> Iterator[LedgerStore]:
    s = LedgerStore(Session(legacy_engine))
    yield s
    s.close()


@pytest.fixture
def categories(store: LedgerStore, cache: DeviceCache) -> CategoryBook:
    return CategoryBook(store, cache)


@pytest.fixture
def ledger(store: LedgerStore, categories: CategoryBook) -> TransactionLedger:
    return TransactionLedger(store, categories)


@pytest.fixture
def shifts(store: LedgerStore, ledger: TransactionLedger) -> ShiftManager:
    return ShiftManager(store, ledger)


@pytest.fixture
def legacy_categories(legacy_store: LedgerStore, cache: DeviceCache) -> CategoryBook:
    return CategoryBook(legacy_store, cache)


@pytest.fixture
def legacy_ledger(legacy_store: LedgerStore, legacy_categories: CategoryBook) -> TransactionLedger:
    return TransactionLedger(legacy_store, legacy_categories)


@pytest.fixture
def legacy_shifts(legacy_store: LedgerStore, legacy_ledger: TransactionLedger) -> ShiftManager:
    return ShiftManager(legacy_store, legacy_ledger)


@pytest.fixture
def client(engine: Engine, cache: DeviceCache) -> Iterator[TestClient]:
    """TestClient whose requests use the in-memory database and the temporary device cache."""
    from main import app

    def override_store() -> Iterator[LedgerStore]:
        s = LedgerStore(Session(engine))
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_store] = override_store
    app.dependency_overrides[get_device_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()
