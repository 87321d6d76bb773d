"""Persistence models for the data access layer."""

from pydantic import BaseModel, Field


class NewInventoryEntry(BaseModel, frozen=True):
    """Validated attributes of an inventory entry that has not been stored yet."""

    name: str = Field(min_length=1)
    price: float = Field(ge=0, allow_inf_nan=False)
    height: float = Field(gt=0, allow_inf_nan=False)
    width: float = Field(gt=0, allow_inf_nan=False)
    status: str = Field(min_length=1)  # free-form label, e.g. "available"
    image: str | None = None  # attachment reference (generated file name)


class InventoryEntry(NewInventoryEntry, frozen=True):
    """Inventory entry as persisted, with its store-assigned identity."""

    id: int

    def as_row(self) -> dict:
        """Field mapping with ``id`` first, as returned to clients."""
        return {"id": self.id, **self.model_dump(exclude={"id"})}
