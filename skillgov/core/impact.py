"""
Change-impact classification.

Severity drives gating, so the threshold order matters: damage ratios are
checked from the largest threshold down, and a damage increase from zero is
treated as an infinite ratio (critical).
"""

import math
from typing import Optional

from pydantic import BaseModel

from skillgov.core.config import Settings
from skillgov.core.ports import UsageCounter
from skillgov.models.changelog import ChangeImpact, ChangeKind, Severity
from skillgov.models.skill import Skill


class ImpactThresholds(BaseModel):
    critical_damage_ratio: float = 0.5
    major_damage_ratio: float = 0.2
    moderate_damage_ratio: float = 0.1
    cost_delta: float = 10.0
    cooldown_change: float = 0.3
    delete_major_players: int = 50
    player_notice: int = 100

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImpactThresholds":
        return cls(
            critical_damage_ratio=settings.CRITICAL_DAMAGE_RATIO,
            major_damage_ratio=settings.MAJOR_DAMAGE_RATIO,
            moderate_damage_ratio=settings.MODERATE_DAMAGE_RATIO,
            cost_delta=settings.COST_DELTA_THRESHOLD,
            cooldown_change=settings.COOLDOWN_CHANGE_THRESHOLD,
            delete_major_players=settings.DELETE_MAJOR_PLAYER_THRESHOLD,
            player_notice=settings.PLAYER_NOTICE_THRESHOLD,
        )


def change_ratio(old: float, new: float) -> float:
    if old == 0:
        return 0.0 if new == 0 else math.inf
    return abs(new - old) / abs(old)


class ImpactAssessor:
    def __init__(self, usage: UsageCounter, thresholds: Optional[ImpactThresholds] = None):
        self.usage = usage
        self.thresholds = thresholds or ImpactThresholds()

    def severity_for_ratio(self, ratio: float) -> Severity:
        t = self.thresholds
        if ratio > t.critical_damage_ratio:
            return Severity.CRITICAL
        if ratio > t.major_damage_ratio:
            return Severity.MAJOR
        if ratio > t.moderate_damage_ratio:
            return Severity.MODERATE
        return Severity.MINOR

    async def assess(self, kind: ChangeKind, skill: Skill, old_skill: Optional[Skill] = None) -> ChangeImpact:
        t = self.thresholds
        affected = await self.usage.usage_count(skill.id)
        impact = ChangeImpact(affected_players=affected)

        if kind == ChangeKind.CREATE:
            impact.severity = Severity.MINOR
            impact.recommended_actions.append("Run the balance test suite on the new skill")

        elif kind == ChangeKind.DELETE:
            impact.severity = Severity.MAJOR if affected > t.delete_major_players else Severity.MODERATE
            if affected > 0:
                impact.compatibility_issues.append(f"{affected} players currently have this skill")
                impact.recommended_actions.append("Consider compensating affected players")

        elif kind == ChangeKind.UPDATE and old_skill is not None:
            ratio = change_ratio(old_skill.total_damage(), skill.total_damage())
            impact.severity = self.severity_for_ratio(ratio)
            if impact.severity == Severity.CRITICAL:
                impact.compatibility_issues.append(
                    f"Damage changed by more than {t.critical_damage_ratio:.0%}"
                )
            elif impact.severity == Severity.MAJOR:
                impact.compatibility_issues.append(f"Damage changed by more than {t.major_damage_ratio:.0%}")

            if abs(skill.cost.mp - old_skill.cost.mp) > t.cost_delta:
                impact.recommended_actions.append("Balance test the MP cost change")
            if abs(skill.cost.hp - old_skill.cost.hp) > t.cost_delta:
                impact.recommended_actions.append("Balance test the HP cost change")
            if change_ratio(old_skill.cooldown, skill.cooldown) > t.cooldown_change:
                impact.recommended_actions.append("Balance test the cooldown change")

        if affected > t.player_notice:
            impact.recommended_actions.append("Publish a player-facing notice for this change")

        return impact
