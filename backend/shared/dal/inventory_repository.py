"""Abstract interface for inventory entry persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.dal.models import InventoryEntry, NewInventoryEntry


class InventoryRepository(ABC):
    """Append-only store of inventory entries.

    Entries are never updated or deleted once created.
    """

    @abstractmethod
    async def create_entry(self, entry: NewInventoryEntry) -> InventoryEntry: ...

    @abstractmethod
    async def list_entries(self) -> list[InventoryEntry]: ...
