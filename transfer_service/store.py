"""
Account store interface and an in-process implementation.

Every operation is an independent write or read: nothing here spans two
accounts, so callers that move money between accounts get no isolation
from concurrent requests.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from .errors import DuplicateAccountError
from .schemas import Account, Amount, utcnow


class AccountStore(ABC):

    @abstractmethod
    async def get(self, account_number: str) -> Optional[Account]:
        ...

    @abstractmethod
    async def list(self) -> list[Account]:
        ...

    @abstractmethod
    async def create(self, account: Account) -> None:
        """Insert a new account, raising DuplicateAccountError if the number is taken"""

    @abstractmethod
    async def increment_balance(
        self,
        account_number: str,
        delta: Amount,
        min_balance: Optional[Amount] = None,
    ) -> int:
        """
        Apply ``balance += delta`` and stamp ``lastTransaction``.

        With ``min_balance`` the update only applies while the current
        balance is at least that value. Returns the number of modified
        records (0 or 1).
        """

    @abstractmethod
    async def count(self) -> int:
        ...

    async def ensure_indexes(self):
        pass


class InMemoryAccountStore(AccountStore):
    """Dict-backed store; yields to the loop on each call like a network store would"""

    def __init__(self, accounts: Optional[list[Account]] = None):
        self._accounts: dict[str, dict] = {}
        for account in accounts or []:
            self._accounts[account.accountNumber] = account.model_dump()

    async def get(self, account_number):
        await asyncio.sleep(0)
        doc = self._accounts.get(account_number)
        return Account.model_validate(doc) if doc is not None else None

    async def list(self):
        await asyncio.sleep(0)
        return [Account.model_validate(doc) for doc in self._accounts.values()]

    async def create(self, account):
        await asyncio.sleep(0)
        if account.accountNumber in self._accounts:
            raise DuplicateAccountError(account.accountNumber)
        self._accounts[account.accountNumber] = account.model_dump()

    async def increment_balance(self, account_number, delta, min_balance=None):
        await asyncio.sleep(0)
        doc = self._accounts.get(account_number)
        if doc is None:
            return 0
        if min_balance is not None and doc["balance"] < min_balance:
            return 0
        doc["balance"] += delta
        doc["lastTransaction"] = utcnow()
        return 1

    async def count(self):
        await asyncio.sleep(0)
        return len(self._accounts)
