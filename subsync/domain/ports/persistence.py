from __future__ import annotations

from typing import Protocol

from ..models import Account


class AccountRepository(Protocol):
    """Durable mapping from email to account record."""

    def get_by_email(self, email: str, create: bool = False) -> Account:
        """Return the account, creating it when ``create`` is set.

        Raises ``AccountNotFoundError`` when absent and ``create`` is false.
        """
        ...

    def put(self, account: Account) -> None:
        """Upsert the account. Last write wins."""
        ...

    def close(self) -> None:
        ...
