import logging
import time
import uuid
from typing import Any, Dict, Optional

import redis.asyncio as redis
from pydantic import BaseModel, Field

from skillgov.core.config import Settings
from skillgov.core.ports import LoggingNotifier, SkillNotifier
from skillgov.models.skill import Skill

logger = logging.getLogger("skillgov.notifier")


class SkillUpdateMessage(BaseModel):
    """Envelope game servers receive when a skill definition changes."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    skill_id: str
    is_active: bool
    skill: Dict[str, Any]
    created_at: float = Field(default_factory=time.time)


class RedisNotifier:
    """
    Publishes skill updates on a Redis channel for live game servers and
    keeps the latest messages in a capped list for servers that reconnect.
    """

    HISTORY_KEY = "skills:update_history"

    def __init__(self, redis_url: str, channel: str = "skills:updates", history_length: int = 500):
        self.redis_url = redis_url
        self.channel = channel
        self.history_length = history_length
        self._client: Optional[redis.Redis] = None

    async def get_redis(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(self.redis_url, decode_responses=True)
            logger.debug(f"Created Redis client for {self.channel}")
        return self._client

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def notify(self, skill_id: str, skill: Skill) -> None:
        message = SkillUpdateMessage(skill_id=skill_id, is_active=skill.is_active, skill=skill.model_dump(mode="json"))
        payload = message.model_dump_json()
        r = await self.get_redis()
        try:
            await r.publish(self.channel, payload)
            await r.lpush(self.HISTORY_KEY, payload)
            await r.ltrim(self.HISTORY_KEY, 0, self.history_length - 1)
            logger.debug(f"Skill update published: {skill_id} ({message.id})")
        except Exception as e:
            logger.error(f"Failed to publish skill update for {skill_id}: {e}")
            raise


def build_notifier(settings: Settings) -> SkillNotifier:
    if settings.NOTIFIER_BACKEND == "redis":
        return RedisNotifier(settings.REDIS_URL, settings.NOTIFY_CHANNEL, settings.NOTIFY_HISTORY_LENGTH)
    return LoggingNotifier()
