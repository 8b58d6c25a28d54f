"""Expense category names, kept in the store or, on older schemas, in the device cache."""

from cashdesk.core.db import LedgerStore
from cashdesk.core.errors import ConflictError, NotFoundError, ValidationError
from cashdesk.core.utils import get_logger, utcnow
from cashdesk.services.device_cache import DeviceCache

logger = get_logger("cashdesk.categories")


class CategoryBook:
    """List, add, rename and delete expense category names."""

    def __init__(self, store: LedgerStore, cache: DeviceCache) -> None:
        """Initialize with the store and the device cache used when the store has no category table."""
        self.store = store
        self.cache = cache

    @property
    def uses_cache(self) -> bool:
        return not self.store.has_categories_table

    def list_categories(self) -> list[str]:
        if self.uses_cache:
            return self.cache.categories()
        return self.store.list_category_names()

    def find(self, name: str) -> str | None:
        """Return the stored spelling of ``name`` (case-insensitive), if any."""
        wanted = name.strip().lower()
        for existing in self.list_categories():
            if existing.lower() == wanted:
                return existing
        return None

    def add_category(self, name: str) -> str:
        name = _clean(name)
        if self.find(name) is not None:
            msg = f"Category '{name}' already exists"
            raise ConflictError(msg)
        if self.uses_cache:
            self.cache.set_categories([*self.cache.categories(), name])
        else:
            self.store.insert_category(name, utcnow())
        logger.info(f"Category added: '{name}'")
        return name

    def check_rename(self, old_name: str, new_name: str) -> tuple[str, str]:
        """Validate a rename without performing it; returns the stored old spelling and the new name."""
        new_name = _clean(new_name)
        current = self.find(old_name)
        if current is None:
            msg = f"Category '{old_name}' not found"
            raise NotFoundError(msg)
        clash = self.find(new_name)
        if clash is not None and clash != current:
            msg = f"Category '{new_name}' already exists"
            raise ConflictError(msg)
        return current, new_name

    def rename(self, old_name: str, new_name: str) -> tuple[str, str]:
        """Rename the category entry and its cached sales figures."""
        current, new_name = self.check_rename(old_name, new_name)
        if self.uses_cache:
            self.cache.set_categories([new_name if n == current else n for n in self.cache.categories()])
        else:
            self.store.rename_category(current, new_name)
        self.cache.rename_sales(current, new_name)
        logger.info(f"Category renamed: '{current}' -> '{new_name}'")
        return current, new_name

    def delete_category(self, name: str) -> bool:
        """Remove a category name; unknown names are a no-op."""
        current = self.find(name)
        if current is None:
            return False
        if self.uses_cache:
            self.cache.set_categories([n for n in self.cache.categories() if n != current])
        else:
            self.store.delete_category(current)
        logger.info(f"Category deleted: '{current}'")
        return True


def _clean(name: str) -> str:
    name = (name or "").strip()
    if not name:
        msg = "Category name must not be empty"
        raise ValidationError(msg)
    if "[" in name or "]" in name:
        msg = "Category name must not contain square brackets"
        raise ValidationError(msg)
    return name
