"""FastAPI endpoints for the cash-shift ledger.

This module defines the routes for shifts, their transactions, expense categories, statistics
and device preferences. Routes touching a closed shift's transactions go through a read-only
ledger.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from cashdesk.api.dependencies import (
    get_category_book,
    get_device_cache,
    get_ledger,
    get_shift_manager,
)
from cashdesk.core.errors import NotFoundError, ValidationError
from cashdesk.core.models import (
    CategoryCreate,
    CategoryRename,
    CategoryStats,
    DashboardStats,
    MonthPoint,
    Preferences,
    RenameReport,
    SalesUpdate,
    Shift,
    ShiftClose,
    ShiftOpen,
    ShiftRename,
    ShiftSummary,
    Transaction,
    TransactionCreate,
    TransactionEdit,
    TransactionType,
)
from cashdesk.core.utils import get_logger, utcnow
from cashdesk.services import aggregation
from cashdesk.services.categories import CategoryBook
from cashdesk.services.device_cache import DeviceCache
from cashdesk.services.export_service import stream_csv, transactions_to_csv
from cashdesk.services.ledger import TransactionLedger
from cashdesk.services.shift_manager import ShiftManager

router = APIRouter()
logger = get_logger("cashdesk.api")


def _shift_or_none(manager: ShiftManager, shift_id: str | None) -> Shift | None:
    if not shift_id:
        return None
    try:
        return manager.get_shift(shift_id)
    except NotFoundError:
        return None


@router.get(
    "/health",
    summary="Health check",
    responses={200: {"description": "API is healthy.", "content": {"application/json": {"example": {"status": "ok"}}}}},
)
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


# --- shifts ---


@router.get("/shifts", response_model=list[Shift], summary="List shifts, most recent first")
def list_shifts(manager: ShiftManager = Depends(get_shift_manager)) -> list[Shift]:
    return manager.list_shifts()


@router.post(
    "/shifts",
    response_model=Shift,
    status_code=201,
    summary="Open a shift",
    description=(
        "Open a new shift. Only one shift can be open at a time.\n\n"
        "- 201 Created: the new open shift.\n"
        "- 409 Conflict: another shift is still open."
    ),
)
def open_shift(body: ShiftOpen, manager: ShiftManager = Depends(get_shift_manager)) -> Shift:
    return manager.open_shift(body.starting_balance, body.name)


@router.get(
    "/shifts/current",
    response_model=Shift | None,
    summary="Currently open shift",
    description="Returns the open shift, or `null` when none is open.",
)
def current_shift(manager: ShiftManager = Depends(get_shift_manager)) -> Shift | None:
    return manager.get_open_shift()


@router.get("/shifts/{shift_id}", response_model=Shift, summary="Get a shift")
def get_shift(shift_id: str, manager: ShiftManager = Depends(get_shift_manager)) -> Shift:
    return manager.get_shift(shift_id)


@router.patch("/shifts/{shift_id}", response_model=Shift, summary="Rename a shift")
def rename_shift(shift_id: str, body: ShiftRename, manager: ShiftManager = Depends(get_shift_manager)) -> Shift:
    return manager.rename_shift(shift_id, body.name)


@router.post(
    "/shifts/{shift_id}/close",
    response_model=Shift,
    summary="Close the open shift",
    description=(
        "Close the open shift. When `ending_balance` is omitted it is computed as the net of the "
        "shift's transactions (payments minus expenses).\n\n"
        "- 404 Not Found: the shift is not the open one."
    ),
)
def close_shift(
    shift_id: str,
    body: ShiftClose | None = None,
    manager: ShiftManager = Depends(get_shift_manager),
) -> Shift:
    ending_balance = body.ending_balance if body else None
    return manager.close_shift(shift_id, ending_balance)


@router.delete("/shifts/{shift_id}", summary="Delete a shift and its transactions")
def delete_shift(shift_id: str, manager: ShiftManager = Depends(get_shift_manager)) -> dict:
    return {"deleted": manager.delete_shift(shift_id)}


@router.get(
    "/shifts/{shift_id}/summary",
    response_model=ShiftSummary,
    summary="Totals of a shift for receipt printing",
)
def shift_summary(
    shift_id: str,
    manager: ShiftManager = Depends(get_shift_manager),
    ledger: TransactionLedger = Depends(get_ledger),
    cache: DeviceCache = Depends(get_device_cache),
) -> ShiftSummary:
    shift = manager.get_shift(shift_id)
    transactions = ledger.list_transactions(shift_id=shift_id)
    return aggregation.shift_summary(shift, transactions, cache.preferences().currency)


# --- transactions ---


@router.get("/shifts/{shift_id}/transactions", response_model=list[Transaction], summary="Transactions of a shift")
def shift_transactions(
    shift_id: str,
    txn_type: TransactionType | None = Query(None, alias="type"),
    manager: ShiftManager = Depends(get_shift_manager),
    ledger: TransactionLedger = Depends(get_ledger),
) -> list[Transaction]:
    manager.get_shift(shift_id)
    return ledger.list_transactions(shift_id=shift_id, txn_type=txn_type)


@router.post(
    "/shifts/{shift_id}/transactions",
    response_model=Transaction,
    status_code=201,
    summary="Record a transaction",
    description=(
        "Record a payment (`kassa`, `click`, `uzcard`, `humo`) or an expense (`xarajat`, optionally "
        "with a `category`) against an open shift.\n\n"
        "- 409 Conflict: the shift is closed (read-only).\n"
        "- 422 Unprocessable Entity: non-positive amount or category on a payment."
    ),
)
def add_transaction(
    shift_id: str,
    body: TransactionCreate,
    manager: ShiftManager = Depends(get_shift_manager),
    ledger: TransactionLedger = Depends(get_ledger),
) -> Transaction:
    shift = manager.get_shift(shift_id)
    return ledger.for_shift(shift).add_transaction(
        shift_id, body.amount, body.type, body.description, body.category
    )


@router.delete("/shifts/{shift_id}/expenses", summary="Delete every expense of a shift")
def delete_all_expenses(
    shift_id: str,
    manager: ShiftManager = Depends(get_shift_manager),
    ledger: TransactionLedger = Depends(get_ledger),
) -> dict:
    shift = _shift_or_none(manager, shift_id)
    return {"deleted": ledger.for_shift(shift).delete_all_expenses(shift_id)}


@router.get("/transactions", response_model=list[Transaction], summary="Search transactions")
def list_transactions(
    start: datetime | None = None,
    end: datetime | None = None,
    txn_type: TransactionType | None = Query(None, alias="type"),
    shift_id: str | None = None,
    ledger: TransactionLedger = Depends(get_ledger),
) -> list[Transaction]:
    return ledger.list_transactions(shift_id=shift_id, txn_type=txn_type, start=start, end=end)


@router.get(
    "/transactions/export",
    response_class=StreamingResponse,
    summary="Download transactions as CSV",
    responses={200: {"description": "CSV file download."}},
)
def export_transactions(
    start: datetime | None = None,
    end: datetime | None = None,
    txn_type: TransactionType | None = Query(None, alias="type"),
    shift_id: str | None = None,
    ledger: TransactionLedger = Depends(get_ledger),
) -> StreamingResponse:
    transactions = ledger.list_transactions(shift_id=shift_id, txn_type=txn_type, start=start, end=end)
    logger.info(f"Exporting {len(transactions)} transactions as CSV")
    return stream_csv(transactions_to_csv(transactions), f"transactions_{utcnow():%Y%m%d_%H%M%S}.csv")


@router.patch("/transactions/{transaction_id}", response_model=Transaction, summary="Edit amount and description")
def edit_transaction(
    transaction_id: str,
    body: TransactionEdit,
    manager: ShiftManager = Depends(get_shift_manager),
    ledger: TransactionLedger = Depends(get_ledger),
) -> Transaction:
    txn = ledger.get_transaction(transaction_id)
    shift = _shift_or_none(manager, txn.shift_id)
    return ledger.for_shift(shift).edit_transaction(transaction_id, body.amount, body.description)


@router.delete("/transactions/{transaction_id}", summary="Delete a transaction (idempotent)")
def delete_transaction(
    transaction_id: str,
    manager: ShiftManager = Depends(get_shift_manager),
    ledger: TransactionLedger = Depends(get_ledger),
) -> dict:
    try:
        txn = ledger.get_transaction(transaction_id)
    except NotFoundError:
        return {"deleted": False}
    shift = _shift_or_none(manager, txn.shift_id)
    return {"deleted": ledger.for_shift(shift).delete_transaction(transaction_id)}


# --- categories ---


@router.get("/categories", response_model=list[str], summary="Expense categories")
def list_categories(categories: CategoryBook = Depends(get_category_book)) -> list[str]:
    return categories.list_categories()


@router.post("/categories", status_code=201, summary="Add an expense category")
def add_category(body: CategoryCreate, categories: CategoryBook = Depends(get_category_book)) -> dict:
    return {"name": categories.add_category(body.name)}


@router.patch(
    "/categories/{name}",
    response_model=RenameReport,
    summary="Rename an expense category",
    description=(
        "Rename a category and re-tag its expenses. Transactions that could not be re-tagged are "
        "listed under `failed`; the category itself is renamed regardless.\n\n"
        "- 409 Conflict: the new name is already taken; nothing is changed."
    ),
)
def rename_category(
    name: str,
    body: CategoryRename,
    ledger: TransactionLedger = Depends(get_ledger),
) -> RenameReport:
    return ledger.rename_category(name, body.name)


@router.delete("/categories/{name}", summary="Delete an expense category (idempotent)")
def delete_category(name: str, categories: CategoryBook = Depends(get_category_book)) -> dict:
    return {"deleted": categories.delete_category(name)}


@router.get("/categories/{name}/stats", response_model=CategoryStats, summary="Statistics of one category")
def category_stats(
    name: str,
    shift_id: str | None = None,
    ledger: TransactionLedger = Depends(get_ledger),
    cache: DeviceCache = Depends(get_device_cache),
) -> CategoryStats:
    expenses = ledger.list_transactions(shift_id=shift_id, txn_type=TransactionType.XARAJAT)
    return aggregation.category_stats(expenses, name, cache.get_sales(name, shift_id))


@router.put("/categories/{name}/sales", summary="Record the sales figure of a category")
def set_category_sales(
    name: str,
    body: SalesUpdate,
    cache: DeviceCache = Depends(get_device_cache),
) -> dict:
    if body.amount < 0:
        msg = "Sales must not be negative"
        raise ValidationError(msg)
    cache.set_sales(name, body.amount, body.shift_id)
    return {"category": name, "shift_id": body.shift_id, "amount": str(body.amount)}


# --- statistics ---


@router.get("/stats/dashboard", response_model=DashboardStats, summary="Headline figures with period comparison")
def dashboard(
    start: datetime | None = None,
    end: datetime | None = None,
    ledger: TransactionLedger = Depends(get_ledger),
) -> DashboardStats:
    now = utcnow()
    end = end or now
    start = start or end.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start > end:
        start, end = end, start
    prev_start, prev_end = aggregation.previous_window(start, end)
    (y_start, y_end), (d_start, d_end) = aggregation.yesterday_windows(now)
    return aggregation.dashboard_stats(
        current=ledger.list_transactions(start=start, end=end),
        previous=ledger.list_transactions(start=prev_start, end=prev_end),
        yesterday=ledger.list_transactions(start=y_start, end=y_end),
        day_before=ledger.list_transactions(start=d_start, end=d_end),
    )


@router.get("/stats/monthly", response_model=list[MonthPoint], summary="Monthly income/expenses for a year")
def monthly(year: int | None = None, ledger: TransactionLedger = Depends(get_ledger)) -> list[MonthPoint]:
    year = year or utcnow().year
    transactions = ledger.list_transactions(
        start=datetime(year, 1, 1), end=datetime(year, 12, 31, 23, 59, 59, 999999)
    )
    return aggregation.monthly_series(transactions, year)


# --- preferences ---


@router.get("/preferences", response_model=Preferences, summary="Device preferences")
def get_preferences(cache: DeviceCache = Depends(get_device_cache)) -> Preferences:
    return cache.preferences()


@router.put("/preferences", response_model=Preferences, summary="Update device preferences")
def put_preferences(body: Preferences, cache: DeviceCache = Depends(get_device_cache)) -> Preferences:
    return cache.update_preferences(body)
