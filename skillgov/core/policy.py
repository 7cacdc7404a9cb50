from typing import List

from skillgov.models.changelog import ChangeImpact, ChangeKind, Severity
from skillgov.models.workflow import ApprovalPriority, ApproverRole

# Approval Policy
# Which roles must sign off a change, and which changes need sign-off at all.


class ApprovalPolicy:
    # Quorum per severity. Anything not listed falls back to a single designer.
    REQUIRED_APPROVERS = {
        Severity.CRITICAL: [ApproverRole.LEAD_DESIGNER, ApproverRole.GAME_DIRECTOR, ApproverRole.BALANCE_TEAM],
        Severity.MAJOR: [ApproverRole.LEAD_DESIGNER, ApproverRole.BALANCE_TEAM],
        Severity.MODERATE: [ApproverRole.BALANCE_TEAM],
    }
    DEFAULT_APPROVERS = [ApproverRole.DESIGNER]

    PRIORITIES = {
        Severity.CRITICAL: ApprovalPriority.EMERGENCY,
        Severity.MAJOR: ApprovalPriority.URGENT,
        Severity.MODERATE: ApprovalPriority.HIGH,
    }

    # Severities that gate an update / a delete behind a workflow
    GATED_UPDATE = (Severity.MAJOR, Severity.CRITICAL)
    GATED_DELETE = (Severity.MAJOR, Severity.CRITICAL)

    @staticmethod
    def required_approvers(severity: Severity) -> List[ApproverRole]:
        return list(ApprovalPolicy.REQUIRED_APPROVERS.get(severity, ApprovalPolicy.DEFAULT_APPROVERS))

    @staticmethod
    def priority(severity: Severity) -> ApprovalPriority:
        return ApprovalPolicy.PRIORITIES.get(severity, ApprovalPriority.NORMAL)

    @staticmethod
    def requires_approval(kind: ChangeKind, impact: ChangeImpact) -> bool:
        """
        Create and rollback always apply immediately. Updates and deletes are
        gated only at the severities listed above.
        """
        if kind == ChangeKind.UPDATE:
            return impact.severity in ApprovalPolicy.GATED_UPDATE
        if kind == ChangeKind.DELETE:
            return impact.severity in ApprovalPolicy.GATED_DELETE
        return False
