import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import DuplicateKeyError

from .config import MONGO_URI, DB_NAME, ACCOUNTS_COLLECTION
from .errors import DuplicateAccountError
from .schemas import Account, utcnow
from .store import AccountStore

logger = logging.getLogger(__name__)


def get_accounts_collection(uri: str = MONGO_URI, db_name: str = DB_NAME):
    client = AsyncIOMotorClient(uri)
    db = client.get_database(db_name)
    return db[ACCOUNTS_COLLECTION]


class MongoAccountStore(AccountStore):
    """Account store over a motor collection, keyed by ``accountNumber``"""

    def __init__(self, collection):
        self.accounts = collection

    async def ensure_indexes(self):
        await self.accounts.create_index("accountNumber", unique=True)

    async def get(self, account_number):
        doc = await self.accounts.find_one(
            {"accountNumber": account_number}, projection={"_id": 0}
        )
        return Account.model_validate(doc) if doc else None

    async def list(self):
        result = []
        async for doc in self.accounts.find({}, projection={"_id": 0}):
            result.append(Account.model_validate(doc))
        return result

    async def create(self, account):
        if await self.accounts.find_one({"accountNumber": account.accountNumber}):
            raise DuplicateAccountError(account.accountNumber)
        try:
            await self.accounts.insert_one(account.model_dump(exclude_none=True))
        except DuplicateKeyError:
            raise DuplicateAccountError(account.accountNumber)

    async def increment_balance(self, account_number, delta, min_balance=None):
        query = {"accountNumber": account_number}
        if min_balance is not None:
            query["balance"] = {"$gte": min_balance}

        res = await self.accounts.update_one(
            query,
            {
                "$inc": {"balance": delta},
                "$set": {"lastTransaction": utcnow()},
            },
        )
        return res.modified_count

    async def count(self):
        return await self.accounts.count_documents({})
