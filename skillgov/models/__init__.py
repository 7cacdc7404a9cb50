from .changelog import ChangeImpact, ChangeKind, ChangeLogEntry, FieldChange, Severity
from .mutation import MutationResult, MutationStatus, SystemStatus
from .record import SkillRecord
from .skill import (
    EffectKind,
    ElementType,
    RequirementKind,
    ScalingFactor,
    Skill,
    SkillCategory,
    SkillCost,
    SkillEffect,
    SkillRequirement,
    SkillType,
    TargetType,
)
from .template import SkillTemplate
from .testing import SkillTestCase, SkillTestEnvironment, SkillTestResult, SkillTestStatus, SkillTestType
from .validation import ValidationIssue, ValidationReport
from .workflow import ApprovalPriority, ApprovalStatus, ApprovalWorkflow, ApproverRole

__all__ = [
    "Skill",
    "SkillCost",
    "SkillEffect",
    "SkillRequirement",
    "ScalingFactor",
    "SkillType",
    "SkillCategory",
    "ElementType",
    "TargetType",
    "EffectKind",
    "RequirementKind",
    "SkillTemplate",
    "SkillRecord",
    "ChangeKind",
    "ChangeImpact",
    "ChangeLogEntry",
    "FieldChange",
    "Severity",
    "ApprovalWorkflow",
    "ApprovalStatus",
    "ApprovalPriority",
    "ApproverRole",
    "SkillTestEnvironment",
    "SkillTestResult",
    "SkillTestCase",
    "SkillTestStatus",
    "SkillTestType",
    "ValidationIssue",
    "ValidationReport",
    "MutationResult",
    "MutationStatus",
    "SystemStatus",
]
