from typing import Collection, List, Optional

from pydantic import BaseModel

from skillgov.core.config import Settings
from skillgov.models.skill import EffectKind, Skill
from skillgov.models.validation import ValidationIssue, ValidationReport


class BalanceLimits(BaseModel):
    """Ceilings behind the advisory balance warnings."""

    dps_ceiling: float = 100.0
    hps_ceiling: float = 80.0
    max_buff_duration: float = 300.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "BalanceLimits":
        return cls(
            dps_ceiling=settings.DPS_CEILING,
            hps_ceiling=settings.HPS_CEILING,
            max_buff_duration=settings.MAX_BUFF_DURATION,
        )


class SkillValidator:
    def __init__(self, limits: Optional[BalanceLimits] = None):
        self.limits = limits or BalanceLimits()

    def validate(self, skill: Skill, existing_ids: Optional[Collection[str]] = None) -> ValidationReport:
        """
        Structural errors block the mutation; balance warnings do not.

        ``existing_ids`` is passed only when ``skill`` is new, to catch an id
        that already belongs to another skill.
        """
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        # Required fields
        if not skill.id.strip():
            errors.append(ValidationIssue(field="id", message="Skill id is required"))
        if not skill.name.strip():
            errors.append(ValidationIssue(field="name", message="Skill name is required"))
        if not skill.description.strip():
            errors.append(
                ValidationIssue(
                    field="description",
                    message="Skill description is required",
                    suggestion="Add a description players can understand.",
                )
            )

        if existing_ids is not None and skill.id in existing_ids:
            errors.append(ValidationIssue(field="id", message=f"Skill id '{skill.id}' already exists"))

        # Levels
        if skill.level < 1:
            errors.append(ValidationIssue(field="level", message="Skill level must be at least 1"))
        if skill.max_level < skill.level:
            errors.append(
                ValidationIssue(field="max_level", message="Max level must be greater than or equal to level")
            )

        # Costs and timings
        if skill.cost.mp < 0:
            errors.append(ValidationIssue(field="cost.mp", message="MP cost cannot be negative"))
        if skill.cost.hp < 0:
            errors.append(ValidationIssue(field="cost.hp", message="HP cost cannot be negative"))
        if skill.cooldown < 0:
            errors.append(ValidationIssue(field="cooldown", message="Cooldown cannot be negative"))
        if skill.cast_time < 0:
            errors.append(ValidationIssue(field="cast_time", message="Cast time cannot be negative"))
        if skill.range < 0:
            errors.append(ValidationIssue(field="range", message="Range cannot be negative"))

        # Effects
        if not skill.effects:
            warnings.append(
                ValidationIssue(
                    field="effects", message="Skill has no effects", suggestion="Add at least one effect."
                )
            )
        for index, effect in enumerate(skill.effects):
            if effect.value <= 0:
                warnings.append(
                    ValidationIssue(
                        field=f"effects[{index}].value",
                        message="Effect value is zero or negative",
                        suggestion="Use a positive value.",
                    )
                )

        warnings.extend(self.check_balance(skill))

        return ValidationReport(errors=errors, warnings=warnings)

    def check_balance(self, skill: Skill) -> List[ValidationIssue]:
        warnings: List[ValidationIssue] = []
        window = max(skill.cooldown, 1)

        for effect in skill.effects:
            if effect.kind == EffectKind.DAMAGE and effect.value / window > self.limits.dps_ceiling:
                warnings.append(
                    ValidationIssue(
                        field="effects.damage",
                        message=f"DPS {effect.value / window:.1f} exceeds {self.limits.dps_ceiling:g}",
                        suggestion="Lower the damage or raise the cooldown.",
                    )
                )
            elif effect.kind == EffectKind.HEAL and effect.value / window > self.limits.hps_ceiling:
                warnings.append(
                    ValidationIssue(
                        field="effects.heal",
                        message=f"HPS {effect.value / window:.1f} exceeds {self.limits.hps_ceiling:g}",
                        suggestion="Lower the heal or raise the cooldown.",
                    )
                )
            elif (
                effect.kind in (EffectKind.BUFF, EffectKind.STAT_BONUS)
                and effect.duration is not None
                and effect.duration > self.limits.max_buff_duration
            ):
                warnings.append(
                    ValidationIssue(
                        field="effects.duration",
                        message=f"Buff duration {effect.duration:g} exceeds {self.limits.max_buff_duration:g}",
                        suggestion="Shorten the duration or weaken the effect.",
                    )
                )

        return warnings
