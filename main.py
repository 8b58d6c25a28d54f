"""Main entrypoint and application factory for the cash-shift ledger API.

This module initializes the FastAPI application, configures logging, creates missing tables on
startup, maps ledger errors to HTTP responses, and exposes the Scalar API reference endpoint.
It also includes the main entrypoint for running the app with Uvicorn.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from scalar_fastapi import get_scalar_api_reference
from sqlalchemy.exc import SQLAlchemyError

from cashdesk.api.routes import router
from cashdesk.core import db
from cashdesk.core.errors import ConflictError, LedgerError, NotFoundError, ReadOnlyError, ValidationError
from cashdesk.core.settings import get_settings
from cashdesk.core.utils import ensure_dir, get_logger

# Most specific first: ReadOnlyError is a ValidationError.
ERROR_STATUS: tuple[tuple[type[LedgerError], int], ...] = (
    (ReadOnlyError, 409),
    (ValidationError, 422),
    (ConflictError, 409),
    (NotFoundError, 404),
)


# --- Logging Setup ---
def setup_logging() -> None:
    """Configure logging to file and console for every ``cashdesk`` logger."""
    settings = get_settings()
    ensure_dir(settings.log_dir)
    logger = get_logger("cashdesk")
    logger.setLevel(logging.INFO)
    # Add file handler for persistent logs (not colorized)
    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        file_handler = logging.FileHandler(Path(settings.log_dir) / settings.log_file)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(file_handler)
    # Module loggers do not propagate, so each one gets the file handler too
    file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    for name in list(logging.Logger.manager.loggerDict):
        if not name.startswith("cashdesk."):
            continue
        child = logging.getLogger(name)
        child.setLevel(logging.INFO)
        for handler in file_handlers:
            if handler not in child.handlers:
                child.addHandler(handler)


setup_logging()
logger = get_logger("cashdesk.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan event handler creating the shifts, transactions and expense_categories tables."""
    _ = app  # Silence unused argument warning
    try:
        db.init_db(db.engine)
    except SQLAlchemyError:
        logger.exception("Failed to create ledger tables")
        raise
    yield


app = FastAPI(
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    title="Cashdesk Ledger API",
    description="""
    The Cashdesk Ledger API keeps the register shifts of a small shop, the payments and expenses
    recorded against them, and the statistics derived from both.

    **Endpoints:**
    - `POST /shifts`, `POST /shifts/{id}/close`: open and close the single open shift.
    - `POST /shifts/{id}/transactions`: record kassa/click/uzcard/humo payments and xarajat expenses.
    - `GET /shifts/{id}/summary`: totals per payment type and net profit, ready for a receipt.
    - `PATCH /categories/{name}`: rename an expense category and re-tag its expenses.
    - `GET /stats/dashboard`, `GET /stats/monthly`: period comparison and yearly chart data.
    - `GET /scalar`: Interactive Scalar OpenAPI documentation.
    """,
    version="1.0.0",
)
app.include_router(router)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Translate ledger errors into ``{"detail": ...}`` responses."""
    status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 400)
    logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse({"detail": str(exc)}, status_code=status_code)


@app.get("/scalar", include_in_schema=False)
async def scalar_docs() -> JSONResponse:
    """Return Scalar API reference."""
    return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.server_host, port=settings.server_port, reload=True)
