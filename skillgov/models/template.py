from typing import List

from pydantic import BaseModel, ConfigDict, Field

from skillgov.models.skill import (
    ElementType,
    ScalingFactor,
    SkillCategory,
    SkillEffect,
    SkillRequirement,
    SkillType,
    TargetType,
)


class SkillTemplate(BaseModel):
    """Read-only archetype a new skill can start from."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    category: SkillCategory
    skill_type: SkillType
    element: ElementType
    target_type: TargetType
    base_effects: List[SkillEffect] = Field(default_factory=list)
    scaling_factors: List[ScalingFactor] = Field(default_factory=list)
    requirements: List[SkillRequirement] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    version: str = "1.0"
    is_active: bool = True
