"""API package: provides FastAPI dependencies and route definitions for the application."""

from .dependencies import get_device_cache, get_ledger, get_shift_manager, get_store  # noqa: F401
from .routes import router  # noqa: F401
