"""
Collaborator boundaries of the governance engine.

The engine only talks to these protocols. In-process adapters live here;
the SQL store and the Redis notifier live in their own modules.
"""

import copy
import logging
from typing import Dict, Mapping, Optional, Protocol

from skillgov.models.skill import Skill

logger = logging.getLogger("skillgov.ports")


class SkillStore(Protocol):
    """Whole-collection persistence. No partial-key API."""

    async def load(self) -> Dict[str, Skill]: ...

    async def save(self, skills: Mapping[str, Skill]) -> None: ...


class SkillNotifier(Protocol):
    """Tells live game servers a skill definition changed."""

    async def notify(self, skill_id: str, skill: Skill) -> None: ...


class UsageCounter(Protocol):
    """Number of players currently holding a skill."""

    async def usage_count(self, skill_id: str) -> int: ...


class MemorySkillStore:
    def __init__(self, initial: Optional[Mapping[str, Skill]] = None):
        self.skills: Dict[str, Skill] = copy.deepcopy(dict(initial or {}))
        self.save_count = 0

    async def load(self) -> Dict[str, Skill]:
        return copy.deepcopy(self.skills)

    async def save(self, skills: Mapping[str, Skill]) -> None:
        self.skills = copy.deepcopy(dict(skills))
        self.save_count += 1


class LoggingNotifier:
    async def notify(self, skill_id: str, skill: Skill) -> None:
        logger.info(f"Skill update broadcast: {skill_id} (active={skill.is_active})")


class StaticUsageCounter:
    """Fixed usage table. Unknown skills report ``default``."""

    def __init__(self, counts: Optional[Mapping[str, int]] = None, default: int = 0):
        self.counts: Dict[str, int] = dict(counts or {})
        self.default = default

    async def usage_count(self, skill_id: str) -> int:
        return max(0, self.counts.get(skill_id, self.default))

    def set(self, skill_id: str, count: int):
        self.counts[skill_id] = count
