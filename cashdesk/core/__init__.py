"""Core package: provides models, the database store, settings, errors and shared utilities."""

from .db import LedgerStore, init_db  # noqa: F401
from .errors import ConflictError, LedgerError, NotFoundError, ReadOnlyError, ValidationError  # noqa: F401
from .models import Shift, Transaction, TransactionType  # noqa: F401
from .settings import Settings  # noqa: F401
from .utils import get_logger  # noqa: F401
