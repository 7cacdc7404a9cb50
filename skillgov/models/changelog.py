"""
Audit records for skill changes.

Field diffs are a tagged union keyed on ``field``: one class per mutable Skill
attribute, each with a typed old/new pair. ``entire_skill`` is the snapshot
carried by a create entry.
"""

import copy
import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field

from skillgov.models.skill import (
    ElementType,
    ScalingFactor,
    Skill,
    SkillCategory,
    SkillCost,
    SkillEffect,
    SkillRequirement,
    SkillType,
    TargetType,
    utcnow,
)


class ChangeKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ROLLBACK = "rollback"


class Severity(str, Enum):
    NONE = "none"
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    @property
    def label(self) -> str:
        return self.value.upper()


_SEVERITY_ORDER = [Severity.NONE, Severity.MINOR, Severity.MODERATE, Severity.MAJOR, Severity.CRITICAL]


class ChangeImpact(BaseModel):
    affected_players: int = 0
    severity: Severity = Severity.NONE
    compatibility_issues: List[str] = Field(default_factory=list)
    recommended_actions: List[str] = Field(default_factory=list)


class _FieldChangeBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str = ""

    def apply(self, skill: Skill) -> Skill:
        return skill.model_copy(update={self.field: copy.deepcopy(self.new_value)})

    def inverted(self, reason: str) -> "_FieldChangeBase":
        return type(self)(old_value=self.new_value, new_value=self.old_value, reason=reason)


class NameChange(_FieldChangeBase):
    field: Literal["name"] = "name"
    old_value: str
    new_value: str


class DescriptionChange(_FieldChangeBase):
    field: Literal["description"] = "description"
    old_value: str
    new_value: str


class SkillTypeChange(_FieldChangeBase):
    field: Literal["skill_type"] = "skill_type"
    old_value: SkillType
    new_value: SkillType


class CategoryChange(_FieldChangeBase):
    field: Literal["category"] = "category"
    old_value: SkillCategory
    new_value: SkillCategory


class ElementChange(_FieldChangeBase):
    field: Literal["element"] = "element"
    old_value: ElementType
    new_value: ElementType


class TargetTypeChange(_FieldChangeBase):
    field: Literal["target_type"] = "target_type"
    old_value: TargetType
    new_value: TargetType


class LevelChange(_FieldChangeBase):
    field: Literal["level"] = "level"
    old_value: int
    new_value: int


class MaxLevelChange(_FieldChangeBase):
    field: Literal["max_level"] = "max_level"
    old_value: int
    new_value: int


class CostChange(_FieldChangeBase):
    field: Literal["cost"] = "cost"
    old_value: SkillCost
    new_value: SkillCost


class CooldownChange(_FieldChangeBase):
    field: Literal["cooldown"] = "cooldown"
    old_value: float
    new_value: float


class CastTimeChange(_FieldChangeBase):
    field: Literal["cast_time"] = "cast_time"
    old_value: float
    new_value: float


class RangeChange(_FieldChangeBase):
    field: Literal["range"] = "range"
    old_value: float
    new_value: float


class EffectsChange(_FieldChangeBase):
    field: Literal["effects"] = "effects"
    old_value: List[SkillEffect]
    new_value: List[SkillEffect]


class RequirementsChange(_FieldChangeBase):
    field: Literal["requirements"] = "requirements"
    old_value: List[SkillRequirement]
    new_value: List[SkillRequirement]


class ScalingChange(_FieldChangeBase):
    field: Literal["scaling"] = "scaling"
    old_value: List[ScalingFactor]
    new_value: List[ScalingFactor]


class TreeChange(_FieldChangeBase):
    field: Literal["tree"] = "tree"
    old_value: str
    new_value: str


class ActiveFlagChange(_FieldChangeBase):
    field: Literal["is_active"] = "is_active"
    old_value: bool
    new_value: bool


class TagsChange(_FieldChangeBase):
    field: Literal["tags"] = "tags"
    old_value: List[str]
    new_value: List[str]


class SkillCreated(_FieldChangeBase):
    field: Literal["entire_skill"] = "entire_skill"
    old_value: None = None
    new_value: Skill

    def apply(self, skill: Skill) -> Skill:
        return self.new_value.model_copy(deep=True)

    def inverted(self, reason: str) -> "_FieldChangeBase":
        raise TypeError("a creation snapshot has no field-level inverse")


FieldChange = Annotated[
    Union[
        NameChange,
        DescriptionChange,
        SkillTypeChange,
        CategoryChange,
        ElementChange,
        TargetTypeChange,
        LevelChange,
        MaxLevelChange,
        CostChange,
        CooldownChange,
        CastTimeChange,
        RangeChange,
        EffectsChange,
        RequirementsChange,
        ScalingChange,
        TreeChange,
        ActiveFlagChange,
        TagsChange,
        SkillCreated,
    ],
    Field(discriminator="field"),
]

# Mutable Skill attributes, in the order diffs are itemized
FIELD_CHANGE_TYPES: Dict[str, Type[_FieldChangeBase]] = {
    "name": NameChange,
    "description": DescriptionChange,
    "skill_type": SkillTypeChange,
    "category": CategoryChange,
    "element": ElementChange,
    "target_type": TargetTypeChange,
    "level": LevelChange,
    "max_level": MaxLevelChange,
    "cost": CostChange,
    "cooldown": CooldownChange,
    "cast_time": CastTimeChange,
    "range": RangeChange,
    "effects": EffectsChange,
    "requirements": RequirementsChange,
    "scaling": ScalingChange,
    "tree": TreeChange,
    "is_active": ActiveFlagChange,
    "tags": TagsChange,
}

MUTABLE_FIELDS = tuple(FIELD_CHANGE_TYPES)


def new_change_id() -> str:
    return f"change_{uuid.uuid4().hex[:12]}"


class ChangeLogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_change_id)
    skill_id: str
    kind: ChangeKind
    timestamp: datetime = Field(default_factory=utcnow)
    author: str
    changes: List[FieldChange] = Field(default_factory=list)
    reason: str = ""
    impact: ChangeImpact = Field(default_factory=ChangeImpact)
    approved: bool = False
    approver: Optional[str] = None
    rollback_id: Optional[str] = None
