"""
Redis read-through cache for single-account lookups.

Only the account details route reads from here. Balance checks for
deposits, withdrawals and transfers always go to the store, and every
balance change invalidates the cached copy.
"""
import json
import logging
from typing import Optional, Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from .config import REDIS_HOST, REDIS_PORT, CACHE_TTL

logger = logging.getLogger(__name__)


def account_key(account_number: str) -> str:
    return f"account:number:{account_number}"


class CacheManager:
    def __init__(self, host: str = REDIS_HOST, port: int = REDIS_PORT,
                 ttl: int = CACHE_TTL, client=None):
        self.redis_host = host
        self.redis_port = port
        self.ttl = ttl
        self.redis_client = client
        if self.redis_client is None and self.redis_host:
            self._connect()

    def _connect(self):
        """Create the Redis client; the connection itself is opened on first use"""
        self.redis_client = redis.Redis(
            host=self.redis_host,
            port=self.redis_port,
            db=0,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        logger.info("Redis cache configured: %s:%s", self.redis_host, self.redis_port)

    @property
    def enabled(self) -> bool:
        return self.redis_client is not None

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        if not self.redis_client:
            return None

        try:
            value = await self.redis_client.get(key)
            if value:
                return json.loads(value)
            return None
        except (RedisError, json.JSONDecodeError) as e:
            logger.warning("Cache get error for %s: %s", key, e)
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value in cache with TTL (default from CACHE_TTL)"""
        if not self.redis_client:
            return False

        try:
            serialized = json.dumps(value, default=str)
            await self.redis_client.setex(key, ttl or self.ttl, serialized)
            return True
        except (RedisError, TypeError) as e:
            logger.warning("Cache set error for %s: %s", key, e)
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache"""
        if not self.redis_client:
            return False

        try:
            await self.redis_client.delete(key)
            return True
        except RedisError as e:
            logger.warning("Cache delete error for %s: %s", key, e)
            return False

    async def invalidate_accounts(self, *account_numbers: str):
        for number in account_numbers:
            await self.delete(account_key(number))

    async def is_connected(self) -> bool:
        """Check if Redis is reachable"""
        if not self.redis_client:
            return False
        try:
            await self.redis_client.ping()
            return True
        except RedisError:
            return False

    async def close(self):
        if self.redis_client is not None:
            await self.redis_client.aclose()
