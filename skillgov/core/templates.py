"""
Template library: named archetypes new skills can be created from.

Templates are seeded once at startup and never change at runtime.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from skillgov.models.skill import (
    EffectKind,
    ElementType,
    RequirementKind,
    ScalingCurve,
    ScalingFactor,
    SkillCategory,
    SkillEffect,
    SkillRequirement,
    SkillType,
    TargetType,
)
from skillgov.models.template import SkillTemplate

logger = logging.getLogger(__name__)


DEFAULT_TEMPLATES = [
    SkillTemplate(
        id="basic_attack_template",
        name="Basic Attack",
        description="A basic physical attack.",
        category=SkillCategory.COMBAT,
        skill_type=SkillType.ACTIVE,
        element=ElementType.PHYSICAL,
        target_type=TargetType.ENEMY,
        base_effects=[SkillEffect(kind=EffectKind.DAMAGE, target=TargetType.ENEMY, value=100, duration=0)],
        scaling_factors=[ScalingFactor(stat="str", factor=1.2, curve=ScalingCurve.LINEAR)],
        requirements=[SkillRequirement(kind=RequirementKind.LEVEL, threshold=1, description="Level 1 or higher")],
        tags=["basic", "physical", "combat"],
    ),
    SkillTemplate(
        id="magic_spell_template",
        name="Arcane Spell",
        description="A basic arcane attack spell.",
        category=SkillCategory.MAGIC,
        skill_type=SkillType.ACTIVE,
        element=ElementType.ARCANE,
        target_type=TargetType.ENEMY,
        base_effects=[SkillEffect(kind=EffectKind.DAMAGE, target=TargetType.ENEMY, value=80, duration=0)],
        scaling_factors=[ScalingFactor(stat="int", factor=1.5, curve=ScalingCurve.LINEAR)],
        requirements=[
            SkillRequirement(kind=RequirementKind.LEVEL, threshold=5, description="Level 5 or higher"),
            SkillRequirement(
                kind=RequirementKind.STAT, target_id="int", threshold=10, description="Intelligence 10 or higher"
            ),
        ],
        tags=["magic", "spell", "arcane"],
    ),
    SkillTemplate(
        id="passive_buff_template",
        name="Permanent Passive",
        description="A passive skill that permanently raises a stat.",
        category=SkillCategory.PASSIVE,
        skill_type=SkillType.PASSIVE,
        element=ElementType.NONE,
        target_type=TargetType.SELF,
        base_effects=[
            SkillEffect(kind=EffectKind.STAT_BONUS, target=TargetType.SELF, value=5, duration=-1, stat="str")
        ],
        scaling_factors=[ScalingFactor(stat="level", factor=0.5, curve=ScalingCurve.LINEAR)],
        requirements=[SkillRequirement(kind=RequirementKind.LEVEL, threshold=10, description="Level 10 or higher")],
        tags=["passive", "buff", "permanent"],
    ),
]


class TemplateLibrary:
    def __init__(self, templates: Optional[Iterable[SkillTemplate]] = None):
        self._templates: Dict[str, SkillTemplate] = {}
        for template in DEFAULT_TEMPLATES if templates is None else templates:
            self._templates[template.id] = template
        logger.info(f"Template library seeded with {len(self._templates)} templates")

    def get(self, template_id: str) -> Optional[SkillTemplate]:
        return self._templates.get(template_id)

    def list(self) -> List[SkillTemplate]:
        return list(self._templates.values())

    def __contains__(self, template_id: str) -> bool:
        return template_id in self._templates

    @staticmethod
    def base_fields(template: SkillTemplate) -> Dict[str, Any]:
        """Skill fields a template pre-fills. Caller fields override these."""
        return {
            "name": template.name,
            "description": template.description,
            "skill_type": template.skill_type,
            "category": template.category,
            "element": template.element,
            "target_type": template.target_type,
            "effects": [e.model_copy() for e in template.base_effects],
            "requirements": [r.model_copy() for r in template.requirements],
            "scaling": [s.model_copy() for s in template.scaling_factors],
            "tags": list(template.tags),
            "is_active": template.is_active,
        }
