import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from skillgov.models.skill import utcnow


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    REVIEWING = "reviewing"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


OPEN_STATUSES = (ApprovalStatus.PENDING, ApprovalStatus.REVIEWING)


class ApprovalPriority(str, Enum):
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class ApproverRole(str, Enum):
    DESIGNER = "designer"
    LEAD_DESIGNER = "lead_designer"
    BALANCE_TEAM = "balance_team"
    GAME_DIRECTOR = "game_director"


def new_workflow_id() -> str:
    return f"workflow_{uuid.uuid4().hex[:12]}"


class ApprovalWorkflow(BaseModel):
    id: str = Field(default_factory=new_workflow_id)
    skill_id: str
    change_log_id: str
    status: ApprovalStatus = ApprovalStatus.PENDING
    required_approvers: List[ApproverRole]
    current_approvers: List[ApproverRole] = Field(default_factory=list)
    rejection_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    resolved_at: Optional[datetime] = None
    deadline: Optional[datetime] = None  # advisory, never enforced
    priority: ApprovalPriority = ApprovalPriority.NORMAL

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    @property
    def is_overdue(self) -> bool:
        return self.is_open and self.deadline is not None and utcnow() > self.deadline

    @property
    def missing_approvers(self) -> List[ApproverRole]:
        return [r for r in self.required_approvers if r not in self.current_approvers]
