"""HTTP endpoints for the inventory service."""

from inventory.views.auth_handlers import login, register
from inventory.views.inventory_handlers import create_entry, list_entries

__all__ = [
    "create_entry",
    "list_entries",
    "login",
    "register",
]
