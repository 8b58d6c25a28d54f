"""FastAPI dependencies for DI (store, device cache, category book, ledger, shift manager).

Every request gets its own SQLAlchemy session wrapped in a LedgerStore; the services built on
top of it share that store for the duration of the request.
"""

from collections.abc import Iterator

from fastapi import Depends

from cashdesk.core.db import LedgerStore, SessionLocal
from cashdesk.core.settings import get_settings
from cashdesk.services.categories import CategoryBook
from cashdesk.services.device_cache import DeviceCache
from cashdesk.services.ledger import TransactionLedger
from cashdesk.services.shift_manager import ShiftManager


def get_store() -> Iterator[LedgerStore]:
    """Provide a LedgerStore bound to a fresh session, closed after the request."""
    store = LedgerStore(SessionLocal())
    try:
        yield store
    finally:
        store.close()


def get_device_cache() -> DeviceCache:
    """Provide the device-local cache configured in settings."""
    settings = get_settings()
    return DeviceCache(settings.device_cache_file, settings.default_currency)


def get_category_book(
    store: LedgerStore = Depends(get_store),
    cache: DeviceCache = Depends(get_device_cache),
) -> CategoryBook:
    return CategoryBook(store, cache)


def get_ledger(
    store: LedgerStore = Depends(get_store),
    categories: CategoryBook = Depends(get_category_book),
) -> TransactionLedger:
    """Provide a writable ledger; routes narrow it with ``for_shift`` for closed shifts."""
    return TransactionLedger(store, categories)


def get_shift_manager(
    store: LedgerStore = Depends(get_store),
    ledger: TransactionLedger = Depends(get_ledger),
) -> ShiftManager:
    return ShiftManager(store, ledger)
