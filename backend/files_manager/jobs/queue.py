"""Durable job queue on a Redis list.

Jobs are JSON objects. ``claim`` moves a job onto ``<name>:processing`` and
``ack`` removes it from there, so a worker crash between the two leaves the
job recoverable with ``requeue_unfinished`` (at-least-once delivery).
"""

import json
import logging
from typing import Any, Dict, Optional

from redis.asyncio import Redis

log = logging.getLogger(__name__)


class JobQueue:
    def __init__(self, redis_client: Redis, name: str):
        self.redis = redis_client
        self.name = name
        self.processing_name = f"{name}:processing"

    async def enqueue(self, payload: Dict[str, Any]) -> None:
        await self.redis.lpush(self.name, json.dumps(payload))

    async def claim(self, timeout: float = 0) -> Optional[str]:
        """Block up to timeout seconds for a job; return its raw form or None."""
        return await self.redis.blmove(self.name, self.processing_name, timeout, "RIGHT", "LEFT")

    async def ack(self, raw: str) -> None:
        """Drop a claimed job (done or permanently failed)."""
        await self.redis.lrem(self.processing_name, 1, raw)

    async def requeue_unfinished(self) -> int:
        """Move jobs left in processing (worker crash) back onto the queue."""
        moved = 0
        while await self.redis.lmove(self.processing_name, self.name, "RIGHT", "RIGHT") is not None:
            moved += 1
        if moved:
            log.warning("Requeued %d unfinished job(s) on %s", moved, self.name)
        return moved

    async def size(self) -> int:
        return await self.redis.llen(self.name)

    @staticmethod
    def decode(raw: str) -> Dict[str, Any]:
        """Parse a raw job; malformed JSON yields an empty payload."""
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            return {}
        return payload if isinstance(payload, dict) else {}
