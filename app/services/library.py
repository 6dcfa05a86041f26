from typing import Any

import redis.asyncio as redis
from loguru import logger
from pydantic import ValidationError

from app.core.config import settings
from app.core.constants import LIBRARY_KEY
from app.core.exceptions import StorageUnavailable
from app.core.security import ApiKeyCipher, redact_token
from app.models.library import UserLibrary
from app.services.redis_service import redis_service


class LibraryStore:
    """Redis-backed load/save boundary for UserLibrary state."""

    def __init__(self, backend: Any = None, cipher: ApiKeyCipher | None = None, prefix: str | None = None):
        self.backend = backend or redis_service
        self.cipher = cipher or ApiKeyCipher()
        self.prefix = prefix or settings.REDIS_LIBRARY_KEY

    def _key(self, user_id: str) -> str:
        return LIBRARY_KEY.format(prefix=self.prefix, user_id=user_id.strip())

    async def load(self, user_id: str) -> UserLibrary:
        """
        Load a user's library. Missing or undecodable data yields an empty library.

        Raises StorageUnavailable when the backend cannot be read.
        """
        try:
            raw = await self.backend.get(self._key(user_id))
        except (redis.RedisError, OSError) as e:
            logger.error(f"[{redact_token(user_id)}] Failed to read library: {e}")
            raise StorageUnavailable("Library storage is unavailable.") from e
        if not raw:
            return UserLibrary()
        try:
            return UserLibrary.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"[{redact_token(user_id)}] Discarding unreadable library: {e.error_count()} error(s)")
            return UserLibrary()

    async def save(self, user_id: str, library: UserLibrary) -> bool:
        ok = await self.backend.set(self._key(user_id), library.model_dump_json())
        if ok:
            logger.debug(
                f"[{redact_token(user_id)}] Saved library "
                f"({len(library.saved_videos)} videos, {len(library.saved_channels)} channels)"
            )
        return ok

    async def delete(self, user_id: str) -> bool:
        return await self.backend.delete(self._key(user_id))

    def set_api_key(self, library: UserLibrary, api_key: str) -> None:
        library.api_key = self.cipher.encrypt(api_key.strip())

    def get_api_key(self, library: UserLibrary) -> str | None:
        if not library.api_key:
            return None
        return self.cipher.decrypt(library.api_key)


library_store = LibraryStore()
