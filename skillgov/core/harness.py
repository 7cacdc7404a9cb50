"""
Balance regression harness.

Runs the built-in suites against a synthetic player profile:

- damage_calculation: each damage effect's computed damage stays within a
  tolerance of its declared value, and grows when every stat doubles.
- balance_check: damage per cooldown window and damage per MP stay under
  fixed ceilings.
"""

import logging
import time
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from skillgov.core.config import Settings
from skillgov.models.skill import EffectKind, ElementType, Skill, SkillEffect
from skillgov.models.testing import (
    SkillTestCase,
    SkillTestEnvironment,
    SkillTestResult,
    SkillTestStatus,
    SkillTestType,
)

logger = logging.getLogger("skillgov.harness")

# Element -> (stat, multiplier) for the stat-derived damage bonus
ELEMENT_SCALING = {
    ElementType.PHYSICAL: ("str", 0.5),
    ElementType.ARCANE: ("int", 0.7),
}


class HarnessLimits(BaseModel):
    damage_tolerance: float = 0.1
    dps_ceiling: float = 100.0
    damage_per_mp_ceiling: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "HarnessLimits":
        return cls(
            damage_tolerance=settings.HARNESS_DAMAGE_TOLERANCE,
            dps_ceiling=settings.HARNESS_DPS_CEILING,
            damage_per_mp_ceiling=settings.HARNESS_DAMAGE_PER_MP_CEILING,
        )


def effect_damage(skill: Skill, effect: SkillEffect, stats: Mapping[str, float]) -> float:
    damage = effect.value
    scaling = ELEMENT_SCALING.get(skill.element)
    if scaling is not None:
        stat, multiplier = scaling
        damage += stats.get(stat, 0) * multiplier
    return damage


def doubled_profile(environment: SkillTestEnvironment) -> Dict[str, float]:
    return {name: value * 2 for name, value in environment.player_stats.items()}


Suite = Callable[[Skill, SkillTestEnvironment], List[SkillTestCase]]


class BalanceTestHarness:
    def __init__(self, limits: Optional[HarnessLimits] = None):
        self.limits = limits or HarnessLimits()
        self.suites: Dict[SkillTestType, Suite] = {
            SkillTestType.DAMAGE_CALCULATION: self.damage_calculation_suite,
            SkillTestType.BALANCE_CHECK: self.balance_check_suite,
        }

    def run(
        self,
        skill: Skill,
        environment: SkillTestEnvironment,
        suites: Optional[Sequence[SkillTestType]] = None,
    ) -> SkillTestResult:
        suites = list(suites or self.suites)
        result = SkillTestResult(skill_id=skill.id, suites=suites, environment=environment)
        started = time.perf_counter()

        try:
            for test_type in suites:
                suite = self.suites.get(test_type)
                if suite is None:
                    raise ValueError(f"No built-in suite for '{test_type.value}'")
                result.results.extend(
                    case.model_copy(update={"test_type": test_type}) for case in suite(skill, environment)
                )
            all_passed = all(case.passed for case in result.results)
            result.status = SkillTestStatus.PASSED if all_passed else SkillTestStatus.FAILED
        except Exception as e:
            result.status = SkillTestStatus.ERROR
            result.results.append(
                SkillTestCase(
                    test_case="execution_error",
                    expected="no_error",
                    actual=str(e),
                    passed=False,
                    error_message=str(e),
                )
            )
            logger.exception(f"Test run for {skill.id} raised")

        result.duration_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Skill test finished: {skill.id} {result.status.value} "
            f"({len(result.results)} cases, {result.duration_ms:.1f}ms)"
        )
        return result

    def damage_calculation_suite(self, skill: Skill, environment: SkillTestEnvironment) -> List[SkillTestCase]:
        cases: List[SkillTestCase] = []
        scaled_stats = doubled_profile(environment)

        for index, effect in enumerate(skill.effects):
            if effect.kind != EffectKind.DAMAGE:
                continue

            calculated = effect_damage(skill, effect, environment.player_stats)
            cases.append(
                SkillTestCase(
                    test_case=f"damage_calculation[{index}]",
                    expected=effect.value,
                    actual=calculated,
                    passed=abs(calculated - effect.value) <= effect.value * self.limits.damage_tolerance,
                )
            )

            # Scaling sanity only makes sense for elements with a stat term
            if skill.element in ELEMENT_SCALING:
                scaled = effect_damage(skill, effect, scaled_stats)
                cases.append(
                    SkillTestCase(
                        test_case=f"damage_scaling[{index}]",
                        expected=f"> {calculated:g}",
                        actual=scaled,
                        passed=scaled > calculated,
                    )
                )

        return cases

    def balance_check_suite(self, skill: Skill, environment: SkillTestEnvironment) -> List[SkillTestCase]:
        total = skill.total_damage()
        dps = total / max(skill.cooldown, 1)
        cases = [
            SkillTestCase(
                test_case="dps_balance_check",
                expected=self.limits.dps_ceiling,
                actual=dps,
                passed=dps <= self.limits.dps_ceiling,
            )
        ]

        if skill.cost.mp > 0:
            per_mp = total / skill.cost.mp
            cases.append(
                SkillTestCase(
                    test_case="mp_efficiency_check",
                    expected=self.limits.damage_per_mp_ceiling,
                    actual=per_mp,
                    passed=per_mp <= self.limits.damage_per_mp_ceiling,
                )
            )

        return cases
