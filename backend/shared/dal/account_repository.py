"""Abstract interface for account persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shared.auth.models import Account


class AccountRepository(ABC):
    """Abstract interface for account persistence.

    Username uniqueness is enforced by the store itself: ``create_account``
    raises ValueError when the username is taken instead of callers
    checking first.
    """

    @abstractmethod
    async def create_account(self, username: str, password_hash: str) -> Account: ...

    @abstractmethod
    async def get_by_username(self, username: str) -> Account | None: ...
