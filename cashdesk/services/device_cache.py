"""Device-local JSON cache: fallback category list, sales figures and user preferences.

Nothing here is authoritative ledger data. Sales figures in particular live only on the
device that entered them.
"""

import json
from decimal import Decimal
from pathlib import Path
from typing import Any

from cashdesk.core.models import Preferences
from cashdesk.core.utils import get_logger, to_decimal

logger = get_logger("cashdesk.cache")


def _default_cache(currency: str = "UZS") -> dict[str, Any]:
    return {"expense_categories": [], "sales": {}, "preferences": Preferences(currency=currency).model_dump()}


def sales_key(category: str, shift_id: str | None = None) -> str:
    """Cache key of a sales figure: the category, scoped by shift when given."""
    return f"{shift_id}:{category}" if shift_id else category


class DeviceCache:
    """JSON file holding values the remote schema has no place for."""

    def __init__(self, path: str | Path, default_currency: str = "UZS") -> None:
        """Initialize the cache at the given file path; the file is created on first save."""
        self.path = Path(path)
        self.default_currency = default_currency

    def load(self) -> dict[str, Any]:
        if not self.path.exists():
            return _default_cache(self.default_currency)
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(f"Device cache {self.path} unreadable ({exc}); starting from defaults")
            return _default_cache(self.default_currency)
        cache = _default_cache(self.default_currency)
        if isinstance(data, dict):
            cache.update({k: v for k, v in data.items() if k in cache})
        return cache

    def save(self, cache: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(cache, indent=2, ensure_ascii=False), encoding="utf-8")

    # --- categories ---

    def categories(self) -> list[str]:
        return list(self.load()["expense_categories"])

    def set_categories(self, names: list[str]) -> None:
        cache = self.load()
        cache["expense_categories"] = list(names)
        self.save(cache)

    # --- sales ---

    def get_sales(self, category: str, shift_id: str | None = None) -> Decimal:
        """Sales figure for a category; a shift-scoped figure falls back to the category-wide one."""
        sales = self.load()["sales"]
        raw = sales.get(sales_key(category, shift_id))
        if raw is None and shift_id:
            raw = sales.get(category)
        return to_decimal(raw, Decimal(0))

    def set_sales(self, category: str, amount: Decimal, shift_id: str | None = None) -> None:
        cache = self.load()
        cache["sales"][sales_key(category, shift_id)] = str(amount)
        self.save(cache)

    def rename_sales(self, old_name: str, new_name: str) -> None:
        """Move every sales figure recorded under ``old_name`` to ``new_name``."""
        cache = self.load()
        renamed = {}
        for key, value in cache["sales"].items():
            scope, sep, category = key.rpartition(":")
            if category == old_name:
                key = f"{scope}{sep}{new_name}"
            renamed[key] = value
        cache["sales"] = renamed
        self.save(cache)

    # --- preferences ---

    def preferences(self) -> Preferences:
        return Preferences(**self.load()["preferences"])

    def update_preferences(self, prefs: Preferences) -> Preferences:
        cache = self.load()
        cache["preferences"] = prefs.model_dump()
        self.save(cache)
        logger.info(f"Preferences updated: {cache['preferences']}")
        return prefs
