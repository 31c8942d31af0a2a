"""Session store: opaque tokens mapped to user ids in Redis with a fixed TTL."""

import logging
import secrets
from typing import Optional

from redis.asyncio import Redis

log = logging.getLogger(__name__)

SESSION_TTL_SECONDS = 86400


class SessionStore:
    """Create, resolve and destroy login sessions.

    Expiry is absolute (set once at creation, never extended). Unknown or
    expired tokens resolve to None rather than raising.
    """

    def __init__(self, redis_client: Redis, ttl_seconds: int = SESSION_TTL_SECONDS, key_prefix: str = "auth_"):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    async def create(self, user_id: str) -> str:
        """Issue a new token for user_id and return it."""
        token = secrets.token_urlsafe(32)
        await self.redis.set(self._key(token), user_id, ex=self.ttl_seconds)
        log.debug("session created user=%s", user_id)
        return token

    async def resolve(self, token: Optional[str]) -> Optional[str]:
        """Return the user id for token, or None if unknown or expired."""
        if not token:
            return None
        return await self.redis.get(self._key(token))

    async def destroy(self, token: str) -> None:
        """Delete the session. Destroying an unknown token is a no-op."""
        await self.redis.delete(self._key(token))
