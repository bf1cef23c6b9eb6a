import logging

from .schemas import Account
from .store import AccountStore

logger = logging.getLogger(__name__)

SAMPLE_ACCOUNTS = [
    {"accountNumber": "ACC001", "accountHolder": "John Doe", "email": "john@example.com", "balance": 5000},
    {"accountNumber": "ACC002", "accountHolder": "Jane Smith", "email": "jane@example.com", "balance": 10000},
    {"accountNumber": "ACC003", "accountHolder": "Bob Wilson", "email": "bob@example.com", "balance": 2500},
    {"accountNumber": "ACC004", "accountHolder": "Alice Johnson", "email": "alice@example.com", "balance": 500},
]


async def seed_sample_accounts(store: AccountStore) -> int:
    """Insert the sample accounts when the store is empty; returns how many were added"""
    if await store.count():
        return 0

    for data in SAMPLE_ACCOUNTS:
        await store.create(Account(**data))

    logger.info("Sample accounts initialized")
    return len(SAMPLE_ACCOUNTS)
