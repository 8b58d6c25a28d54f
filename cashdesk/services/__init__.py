"""Services package: shift manager, transaction ledger, categories, aggregation and the device cache."""

from .categories import CategoryBook  # noqa: F401
from .device_cache import DeviceCache  # noqa: F401
from .ledger import TransactionLedger  # noqa: F401
from .shift_manager import ShiftManager  # noqa: F401
