import redis.asyncio as redis
from loguru import logger

from app.core.config import settings


class RedisService:
    def __init__(self) -> None:
        self._client: redis.Redis | None = None
        if not settings.REDIS_URL:
            logger.warning("REDIS_URL is not set. Redis operations will fail until configured.")

    async def get_client(self) -> redis.Redis:
        if self._client is None:
            logger.info("Creating Redis client for RedisService")
            self._client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                encoding="utf-8",
                socket_connect_timeout=5,
                socket_timeout=5,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                health_check_interval=30,
                socket_keepalive=True,
            )
        return self._client

    async def get(self, key: str) -> str | None:
        """Return the stored value or None when the key is missing. Backend errors propagate."""
        client = await self.get_client()
        return await client.get(key)

    async def set(self, key: str, value: str) -> bool:
        """Store a value without expiry. Returns False when the write failed."""
        try:
            client = await self.get_client()
            return bool(await client.set(key, value))
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to set key '{key}' in Redis: {exc}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete a key. Returns False when nothing was deleted or the backend failed."""
        try:
            client = await self.get_client()
            return bool(await client.delete(key))
        except (redis.RedisError, OSError) as exc:
            logger.error(f"Failed to delete key '{key}' from Redis: {exc}")
            return False

    async def ping(self) -> bool:
        try:
            client = await self.get_client()
            return bool(await client.ping())
        except (redis.RedisError, OSError) as exc:
            logger.warning(f"Redis ping failed: {exc}")
            return False

    async def close(self) -> None:
        """Close and disconnect the Redis client"""
        if self._client is not None:
            try:
                await self._client.aclose()
                logger.info("RedisService client closed")
            except Exception as exc:
                logger.warning(f"Failed to close RedisService client: {exc}")
            finally:
                self._client = None


redis_service = RedisService()
