"""Data access layer: repository interfaces and shared persistence models."""

from shared.dal.account_repository import AccountRepository
from shared.dal.errors import StorageError
from shared.dal.inventory_repository import InventoryRepository
from shared.dal.models import InventoryEntry, NewInventoryEntry

__all__ = [
    "AccountRepository",
    "InventoryEntry",
    "InventoryRepository",
    "NewInventoryEntry",
    "StorageError",
]
