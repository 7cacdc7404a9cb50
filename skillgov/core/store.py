import logging
from typing import Callable, Dict, Mapping

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from skillgov.models.record import SkillRecord
from skillgov.models.skill import Skill, utcnow

logger = logging.getLogger(__name__)


class SqlSkillStore:
    """
    Skill collection persisted as one JSON document per row.

    ``save`` replaces the whole collection inside a single transaction, so a
    reader never sees half of a save.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    async def load(self) -> Dict[str, Skill]:
        async with self.session_factory() as session:
            result = await session.execute(select(SkillRecord))
            records = result.scalars().all()

        skills: Dict[str, Skill] = {}
        for record in records:
            try:
                skills[record.id] = Skill.model_validate(record.data)
            except ValueError as e:
                logger.error(f"Skipping unreadable skill record {record.id}: {e}")
        logger.info(f"Loaded {len(skills)} skills from database")
        return skills

    async def save(self, skills: Mapping[str, Skill]) -> None:
        now = utcnow()
        async with self.session_factory() as session:
            async with session.begin():
                await session.execute(delete(SkillRecord))
                session.add_all(
                    SkillRecord(id=skill_id, data=skill.model_dump(mode="json"), updated_at=now)
                    for skill_id, skill in skills.items()
                )
