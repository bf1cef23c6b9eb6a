"""
Pytest configuration and fixtures for transfer service tests
"""
import os

os.environ.setdefault("ACCOUNT_STORE", "memory")

import pytest
from httpx import AsyncClient, ASGITransport

from transfer_service.cache import CacheManager
from transfer_service.main import create_app
from transfer_service.publisher import EventPublisher
from transfer_service.seed import seed_sample_accounts
from transfer_service.services.banking import BankingService
from transfer_service.store import InMemoryAccountStore


class FakeRedis:
    """Minimal stand-in for the redis.asyncio client used by CacheManager"""

    def __init__(self):
        self.data = {}
        self.gets = []

    async def get(self, key):
        self.gets.append(key)
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value

    async def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)

    async def ping(self):
        return True

    async def aclose(self):
        pass


class RecordingPublisher(EventPublisher):
    """Publisher that keeps messages in memory instead of sending them to RabbitMQ"""

    def __init__(self):
        super().__init__(host="recording")
        self.messages = []

    def publish(self, message, queue):
        self.messages.append((queue, message))

    def of_type(self, event_type):
        return [m for _, m in self.messages if m.get("type") == event_type]


@pytest.fixture
async def store():
    """In-memory store holding the four sample accounts"""
    s = InMemoryAccountStore()
    await seed_sample_accounts(s)
    return s


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return CacheManager(client=fake_redis)


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def service(store, cache, publisher):
    return BankingService(store, cache=cache, publisher=publisher)


@pytest.fixture
def guarded_service(store, cache, publisher):
    return BankingService(store, cache=cache, publisher=publisher, guarded_debit=True)


def make_client(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.fixture
def app(store, cache, publisher):
    return create_app(store=store, cache=cache, publisher=publisher, seed=False, rate_limit=False)


@pytest.fixture
async def client(app):
    """Create an async HTTP client for testing the API"""
    async with make_client(app) as ac:
        yield ac


@pytest.fixture
async def guarded_client(store, cache, publisher):
    app = create_app(store=store, cache=cache, publisher=publisher,
                     guarded_debit=True, seed=False, rate_limit=False)
    async with make_client(app) as ac:
        yield ac


@pytest.fixture
def balance(store):
    """Current balance of an account, read straight from the store"""
    async def _balance(number):
        account = await store.get(number)
        return account.balance
    return _balance
