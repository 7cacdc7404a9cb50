import math

import pytest

from skillgov.core.impact import ImpactAssessor, change_ratio
from skillgov.core.policy import ApprovalPolicy
from skillgov.core.ports import StaticUsageCounter
from skillgov.models.changelog import ChangeImpact, ChangeKind, Severity
from skillgov.models.skill import EffectKind, Skill, SkillCost, SkillEffect
from skillgov.models.workflow import ApprovalPriority, ApproverRole


def _skill(damage: float = 100, **fields) -> Skill:
    effects = [SkillEffect(kind=EffectKind.DAMAGE, value=damage)] if damage else []
    return Skill(id="s1", name="Slash", description="Strike.", cooldown=5, effects=effects, **fields)


def test_change_ratio_edges():
    assert change_ratio(100, 160) == pytest.approx(0.6)
    assert change_ratio(100, 40) == pytest.approx(0.6)
    assert change_ratio(0, 0) == 0
    assert math.isinf(change_ratio(0, 10))


@pytest.mark.parametrize(
    "new_damage, expected",
    [
        (100, Severity.MINOR),
        (110, Severity.MINOR),
        (115, Severity.MODERATE),
        (125, Severity.MAJOR),
        (150, Severity.MAJOR),
        (160, Severity.CRITICAL),
        (30, Severity.CRITICAL),
    ],
)
@pytest.mark.asyncio
async def test_update_severity_follows_damage_ratio(new_damage, expected):
    assessor = ImpactAssessor(StaticUsageCounter())
    impact = await assessor.assess(ChangeKind.UPDATE, _skill(new_damage), _skill(100))

    assert impact.severity == expected


@pytest.mark.asyncio
async def test_severity_is_monotonic_in_ratio():
    assessor = ImpactAssessor(StaticUsageCounter())
    ranks = []
    for new_damage in range(100, 301, 5):
        impact = await assessor.assess(ChangeKind.UPDATE, _skill(new_damage), _skill(100))
        ranks.append(impact.severity.rank)

    assert ranks == sorted(ranks)


@pytest.mark.asyncio
async def test_damage_from_zero_is_critical():
    assessor = ImpactAssessor(StaticUsageCounter())
    impact = await assessor.assess(ChangeKind.UPDATE, _skill(50), _skill(0))

    assert impact.severity == Severity.CRITICAL
    assert impact.compatibility_issues


@pytest.mark.asyncio
async def test_cost_and_cooldown_recommendations():
    assessor = ImpactAssessor(StaticUsageCounter())
    old = _skill(100)
    new = _skill(100, cost=SkillCost(mp=25, hp=0)).model_copy(update={"cooldown": 10})

    impact = await assessor.assess(ChangeKind.UPDATE, new, old)

    assert impact.severity == Severity.MINOR
    assert "Balance test the MP cost change" in impact.recommended_actions
    assert "Balance test the cooldown change" in impact.recommended_actions
    assert "Balance test the HP cost change" not in impact.recommended_actions


@pytest.mark.asyncio
async def test_create_is_minor():
    impact = await ImpactAssessor(StaticUsageCounter()).assess(ChangeKind.CREATE, _skill())

    assert impact.severity == Severity.MINOR
    assert impact.affected_players == 0


@pytest.mark.asyncio
async def test_delete_severity_depends_on_usage():
    usage = StaticUsageCounter({"s1": 75})
    assessor = ImpactAssessor(usage)

    major = await assessor.assess(ChangeKind.DELETE, _skill())
    assert major.severity == Severity.MAJOR
    assert major.affected_players == 75
    assert "75 players currently have this skill" in major.compatibility_issues

    usage.set("s1", 50)
    moderate = await assessor.assess(ChangeKind.DELETE, _skill())
    assert moderate.severity == Severity.MODERATE


@pytest.mark.asyncio
async def test_wide_usage_adds_player_notice():
    assessor = ImpactAssessor(StaticUsageCounter(default=150))
    impact = await assessor.assess(ChangeKind.UPDATE, _skill(105), _skill(100))

    assert "Publish a player-facing notice for this change" in impact.recommended_actions


def test_policy_quorums():
    assert ApprovalPolicy.required_approvers(Severity.CRITICAL) == [
        ApproverRole.LEAD_DESIGNER,
        ApproverRole.GAME_DIRECTOR,
        ApproverRole.BALANCE_TEAM,
    ]
    assert ApprovalPolicy.required_approvers(Severity.MAJOR) == [ApproverRole.LEAD_DESIGNER, ApproverRole.BALANCE_TEAM]
    assert ApprovalPolicy.required_approvers(Severity.MINOR) == [ApproverRole.DESIGNER]
    assert ApprovalPolicy.priority(Severity.CRITICAL) == ApprovalPriority.EMERGENCY
    assert ApprovalPolicy.priority(Severity.MINOR) == ApprovalPriority.NORMAL


def test_policy_gating():
    major = ChangeImpact(severity=Severity.MAJOR)
    moderate = ChangeImpact(severity=Severity.MODERATE)

    assert ApprovalPolicy.requires_approval(ChangeKind.UPDATE, major)
    assert not ApprovalPolicy.requires_approval(ChangeKind.UPDATE, moderate)
    assert ApprovalPolicy.requires_approval(ChangeKind.DELETE, major)
    assert not ApprovalPolicy.requires_approval(ChangeKind.ROLLBACK, ChangeImpact(severity=Severity.CRITICAL))
    assert not ApprovalPolicy.requires_approval(ChangeKind.CREATE, major)
