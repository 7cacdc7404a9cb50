"""
Skill content definitions.

A Skill is always fully materialized: every attribute carries a default, so
validation and diffing never branch on an absent field. Range checks (level,
cost, cooldown) are not pydantic constraints; the Validator reports them as
field-scoped validation errors.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SkillType(str, Enum):
    ACTIVE = "active"
    PASSIVE = "passive"
    TOGGLE = "toggle"
    CHANNELED = "channeled"
    INSTANT = "instant"
    CHARGED = "charged"


class SkillCategory(str, Enum):
    COMBAT = "combat"
    MAGIC = "magic"
    SUPPORT = "support"
    PASSIVE = "passive"
    CRAFTING = "crafting"
    SOCIAL = "social"
    MOVEMENT = "movement"
    UTILITY = "utility"


class ElementType(str, Enum):
    NONE = "none"
    FIRE = "fire"
    WATER = "water"
    EARTH = "earth"
    AIR = "air"
    LIGHT = "light"
    DARK = "dark"
    PHYSICAL = "physical"
    ARCANE = "arcane"


class TargetType(str, Enum):
    SELF = "self"
    ALLY = "ally"
    ENEMY = "enemy"
    AREA = "area"
    ALL_ENEMIES = "all_enemies"
    ALL_ALLIES = "all_allies"
    RANDOM = "random"


class EffectKind(str, Enum):
    DAMAGE = "damage"
    HEAL = "heal"
    BUFF = "buff"
    DEBUFF = "debuff"
    UTILITY = "utility"
    STAT_BONUS = "stat_bonus"


class RequirementKind(str, Enum):
    LEVEL = "level"
    SKILL = "skill"
    STAT = "stat"
    ITEM = "item"
    QUEST = "quest"


class ScalingCurve(str, Enum):
    LINEAR = "linear"
    QUADRATIC = "quadratic"
    LOGARITHMIC = "logarithmic"
    EXPONENTIAL = "exponential"


class SkillEffect(BaseModel):
    kind: EffectKind
    target: TargetType = TargetType.ENEMY
    value: float
    duration: Optional[float] = None  # -1 means permanent
    stat: Optional[str] = None
    is_percentage: bool = False


class SkillRequirement(BaseModel):
    kind: RequirementKind
    target_id: Optional[str] = None  # skill/item/quest id, or stat name
    threshold: float = 0
    description: Optional[str] = None


class ScalingFactor(BaseModel):
    stat: str  # "str", "int", "dex", "level", ...
    factor: float
    curve: ScalingCurve = ScalingCurve.LINEAR


class SkillCost(BaseModel):
    mp: float = 10
    hp: float = 0


class Skill(BaseModel):
    id: str
    name: str = ""
    description: str = ""

    skill_type: SkillType = SkillType.ACTIVE
    category: SkillCategory = SkillCategory.COMBAT
    element: ElementType = ElementType.NONE
    target_type: TargetType = TargetType.ENEMY

    level: int = 1
    max_level: int = 10

    cost: SkillCost = Field(default_factory=SkillCost)
    cooldown: float = 0
    cast_time: float = 0
    range: float = 1

    effects: List[SkillEffect] = Field(default_factory=list)
    requirements: List[SkillRequirement] = Field(default_factory=list)
    scaling: List[ScalingFactor] = Field(default_factory=list)

    tree: str = "general"
    is_active: bool = True
    tags: List[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def total_damage(self) -> float:
        return sum(e.value for e in self.effects if e.kind == EffectKind.DAMAGE)

    def depends_on(self, skill_id: str) -> bool:
        return any(r.kind == RequirementKind.SKILL and r.target_id == skill_id for r in self.requirements)


CATEGORY_NAMES = {
    SkillCategory.COMBAT: "Combat",
    SkillCategory.MAGIC: "Magic",
    SkillCategory.SUPPORT: "Support",
    SkillCategory.PASSIVE: "Passive",
    SkillCategory.CRAFTING: "Crafting",
    SkillCategory.SOCIAL: "Social",
    SkillCategory.MOVEMENT: "Movement",
    SkillCategory.UTILITY: "Utility",
}

ELEMENT_NAMES = {
    ElementType.NONE: "Neutral",
    ElementType.FIRE: "Fire",
    ElementType.WATER: "Water",
    ElementType.EARTH: "Earth",
    ElementType.AIR: "Air",
    ElementType.LIGHT: "Light",
    ElementType.DARK: "Dark",
    ElementType.PHYSICAL: "Physical",
    ElementType.ARCANE: "Arcane",
}


def display_label(skill: Skill) -> str:
    """Short human label used in log lines, e.g. 'Fireball (fireball, Magic/Fire)'."""
    category = CATEGORY_NAMES.get(skill.category, skill.category.value)
    element = ELEMENT_NAMES.get(skill.element, skill.element.value)
    return f"{skill.name} ({skill.id}, {category}/{element})"
