"""
Error taxonomy for governed skill mutations.

Every error is raised straight to the immediate caller. None of them are
retried: governance actions are not safe to replay blindly.
"""

from typing import Any, Dict, List, Optional

from skillgov.models.validation import ValidationIssue


class SkillGovernanceError(Exception):
    code = "governance_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


class SkillValidationError(SkillGovernanceError):
    """Blocking, field-scoped problems. The registry is left untouched."""

    code = "validation_error"

    def __init__(self, errors: List[ValidationIssue], message: str = "Skill failed validation"):
        super().__init__(message, {"errors": [e.model_dump() for e in errors]})
        self.errors = errors


class AuthorizationError(SkillGovernanceError):
    """Approver role not in the required set, or role already signed off."""

    code = "authorization_error"


class ConflictError(SkillGovernanceError):
    """No-op update, duplicate id, or an open workflow already exists."""

    code = "conflict"


class NotFoundError(SkillGovernanceError):
    code = "not_found"


class DependencyError(SkillGovernanceError):
    """Delete blocked by dependent skills or by live usage."""

    code = "dependency_error"

    def __init__(self, message: str, dependents: Optional[List[str]] = None, usage_count: Optional[int] = None):
        details: Dict[str, Any] = {"dependents": dependents or []}
        if usage_count is not None:
            details["usage_count"] = usage_count
        super().__init__(message, details)
        self.dependents = dependents or []
        self.usage_count = usage_count
