from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from skillgov.models.changelog import ChangeImpact
from skillgov.models.validation import ValidationIssue


class MutationStatus(str, Enum):
    APPLIED = "applied"
    PENDING_APPROVAL = "pending_approval"


class MutationResult(BaseModel):
    """Successful outcome of a governed create/update/delete/rollback."""

    skill_id: str
    status: MutationStatus
    change_log_id: str
    workflow_id: Optional[str] = None
    impact: ChangeImpact
    warnings: List[ValidationIssue] = Field(default_factory=list)

    @property
    def applied(self) -> bool:
        return self.status == MutationStatus.APPLIED


class SystemStatus(BaseModel):
    total_skills: int
    active_skills: int
    pending_approvals: int
    recent_changes: int
    overdue_approvals: int = 0
    unsaved_changes: bool = False
