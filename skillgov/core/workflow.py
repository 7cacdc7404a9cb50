"""
Approval workflow state machine.

    pending --approve--> reviewing --approve (quorum)--> approved
       |                     |
       +------reject---------+--> rejected
       +------cancel---------+--> cancelled

This module only moves workflows between states. Applying the approved
change to the registry is the engine's job, so the engine can hold the skill
lock while it does so.
"""

import logging
from datetime import timedelta
from typing import List, Optional, Union

from skillgov.core.bounded import BoundedLog
from skillgov.core.errors import AuthorizationError, ConflictError, NotFoundError
from skillgov.core.policy import ApprovalPolicy
from skillgov.models.changelog import ChangeLogEntry
from skillgov.models.skill import utcnow
from skillgov.models.workflow import ApprovalStatus, ApprovalWorkflow, ApproverRole

logger = logging.getLogger("skillgov.workflow")


def as_role(role: Union[str, ApproverRole]) -> ApproverRole:
    try:
        return ApproverRole(role)
    except ValueError:
        raise AuthorizationError(f"Unknown approver role '{role}'", {"role": str(role)}) from None


class WorkflowBook:
    """Table of approval workflows. At most one open workflow per skill id."""

    def __init__(self, capacity: int = 1000, deadline_hours: Optional[int] = 72):
        # Open workflows are never evicted
        self._workflows: BoundedLog[ApprovalWorkflow] = BoundedLog(
            capacity, key=lambda w: w.id, evictable=lambda w: not w.is_open
        )
        self.deadline_hours = deadline_hours

    def open(self, entry: ChangeLogEntry) -> ApprovalWorkflow:
        existing = self.open_for(entry.skill_id)
        if existing is not None:
            raise ConflictError(
                f"Skill '{entry.skill_id}' already has an open workflow {existing.id}",
                {"workflow_id": existing.id, "status": existing.status.value},
            )

        severity = entry.impact.severity
        workflow = ApprovalWorkflow(
            skill_id=entry.skill_id,
            change_log_id=entry.id,
            required_approvers=ApprovalPolicy.required_approvers(severity),
            priority=ApprovalPolicy.priority(severity),
        )
        if self.deadline_hours:
            workflow.deadline = workflow.created_at + timedelta(hours=self.deadline_hours)

        self._workflows.append(workflow)
        logger.info(
            f"Approval requested: {workflow.id} for {workflow.skill_id} "
            f"[{severity.label}, {workflow.priority.value}] "
            f"needs {', '.join(r.value for r in workflow.required_approvers)}"
        )
        return workflow

    def get(self, workflow_id: str) -> ApprovalWorkflow:
        workflow = self._workflows.get(workflow_id)
        if workflow is None:
            raise NotFoundError(f"Workflow '{workflow_id}' not found", {"workflow_id": workflow_id})
        return workflow

    def open_for(self, skill_id: str) -> Optional[ApprovalWorkflow]:
        for workflow in self._workflows:
            if workflow.skill_id == skill_id and workflow.is_open:
                return workflow
        return None

    def list(self, status: Optional[ApprovalStatus] = None) -> List[ApprovalWorkflow]:
        workflows = self._workflows.newest_first()
        if status is not None:
            workflows = [w for w in workflows if w.status == status]
        return workflows

    def check_approval(self, workflow: ApprovalWorkflow, role: Union[str, ApproverRole]) -> ApproverRole:
        """Raise unless ``role`` may approve ``workflow`` right now."""
        role = as_role(role)
        self._require_open(workflow, "approve")
        if role not in workflow.required_approvers:
            raise AuthorizationError(
                f"Role '{role.value}' is not a required approver for {workflow.id}",
                {"required": [r.value for r in workflow.required_approvers]},
            )
        if role in workflow.current_approvers:
            raise AuthorizationError(f"Role '{role.value}' already approved {workflow.id}")
        return role

    def record_approval(self, workflow: ApprovalWorkflow, role: ApproverRole) -> bool:
        """Add a sign-off. Returns True when the quorum is now complete."""
        workflow.current_approvers.append(role)
        if workflow.missing_approvers:
            workflow.status = ApprovalStatus.REVIEWING
            return False
        workflow.status = ApprovalStatus.APPROVED
        workflow.resolved_at = utcnow()
        return True

    def reject(self, workflow_id: str, role: Union[str, ApproverRole], reason: str) -> ApprovalWorkflow:
        workflow = self.get(workflow_id)
        role = as_role(role)
        self._require_open(workflow, "reject")
        if role not in workflow.required_approvers:
            raise AuthorizationError(
                f"Role '{role.value}' may not reject {workflow.id}",
                {"required": [r.value for r in workflow.required_approvers]},
            )
        workflow.status = ApprovalStatus.REJECTED
        workflow.rejection_reason = reason
        workflow.resolved_at = utcnow()
        logger.info(f"Workflow rejected: {workflow.id} by {role.value} - {reason}")
        return workflow

    def cancel(self, workflow_id: str, author: str, reason: str = "") -> ApprovalWorkflow:
        workflow = self.get(workflow_id)
        self._require_open(workflow, "cancel")
        workflow.status = ApprovalStatus.CANCELLED
        workflow.cancelled_by = author
        workflow.rejection_reason = reason or None
        workflow.resolved_at = utcnow()
        logger.info(f"Workflow cancelled: {workflow.id} by {author}")
        return workflow

    def has_open_entry(self, change_log_id: str) -> bool:
        return any(w.change_log_id == change_log_id and w.is_open for w in self._workflows)

    def pending_count(self) -> int:
        return sum(1 for w in self._workflows if w.is_open)

    def overdue_count(self) -> int:
        return sum(1 for w in self._workflows if w.is_overdue)

    @staticmethod
    def _require_open(workflow: ApprovalWorkflow, action: str):
        if not workflow.is_open:
            raise ConflictError(
                f"Cannot {action} workflow {workflow.id} in status '{workflow.status.value}'",
                {"workflow_id": workflow.id, "status": workflow.status.value},
            )
