from datetime import datetime
from typing import Any, Dict

from sqlmodel import JSON, Field, SQLModel

from skillgov.models.skill import utcnow


class SkillRecord(SQLModel, table=True):
    """
    Key-value row for one persisted skill.
    The whole collection is replaced per save.
    """

    __tablename__ = "skill_records"

    id: str = Field(primary_key=True)
    data: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    updated_at: datetime = Field(default_factory=utcnow)
