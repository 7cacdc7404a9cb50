from datetime import timedelta

import pytest

from skillgov.core.errors import AuthorizationError, ConflictError, NotFoundError
from skillgov.core.workflow import WorkflowBook
from skillgov.models.changelog import ChangeImpact, ChangeKind, ChangeLogEntry, Severity
from skillgov.models.skill import utcnow
from skillgov.models.workflow import ApprovalPriority, ApprovalStatus, ApproverRole


def _entry(skill_id: str = "s1", severity: Severity = Severity.CRITICAL) -> ChangeLogEntry:
    return ChangeLogEntry(
        skill_id=skill_id, kind=ChangeKind.UPDATE, author="alice", impact=ChangeImpact(severity=severity)
    )


def test_open_sets_quorum_priority_and_deadline():
    book = WorkflowBook(deadline_hours=72)
    entry = _entry()

    workflow = book.open(entry)

    assert workflow.status == ApprovalStatus.PENDING
    assert workflow.change_log_id == entry.id
    assert set(workflow.required_approvers) == {
        ApproverRole.LEAD_DESIGNER,
        ApproverRole.GAME_DIRECTOR,
        ApproverRole.BALANCE_TEAM,
    }
    assert workflow.priority == ApprovalPriority.EMERGENCY
    assert workflow.deadline - workflow.created_at == timedelta(hours=72)
    assert book.has_open_entry(entry.id)


def test_one_open_workflow_per_skill():
    book = WorkflowBook()
    first = book.open(_entry())

    with pytest.raises(ConflictError):
        book.open(_entry())

    book.cancel(first.id, "alice", "superseded")
    assert book.open(_entry()).is_open
    # Other skills are unaffected
    assert book.open(_entry("s2")).is_open


def test_approvals_accumulate_until_quorum():
    book = WorkflowBook()
    workflow = book.open(_entry(severity=Severity.MAJOR))

    role = book.check_approval(workflow, "lead_designer")
    assert book.record_approval(workflow, role) is False
    assert workflow.status == ApprovalStatus.REVIEWING
    assert workflow.missing_approvers == [ApproverRole.BALANCE_TEAM]

    role = book.check_approval(workflow, ApproverRole.BALANCE_TEAM)
    assert book.record_approval(workflow, role) is True
    assert workflow.status == ApprovalStatus.APPROVED
    assert workflow.resolved_at is not None
    assert book.pending_count() == 0


def test_check_approval_rejects_bad_roles():
    book = WorkflowBook()
    workflow = book.open(_entry(severity=Severity.MAJOR))

    with pytest.raises(AuthorizationError):
        book.check_approval(workflow, "intern")
    with pytest.raises(AuthorizationError):
        book.check_approval(workflow, ApproverRole.GAME_DIRECTOR)

    book.record_approval(workflow, book.check_approval(workflow, ApproverRole.LEAD_DESIGNER))
    with pytest.raises(AuthorizationError):
        book.check_approval(workflow, ApproverRole.LEAD_DESIGNER)


def test_reject_is_terminal():
    book = WorkflowBook()
    workflow = book.open(_entry(severity=Severity.MAJOR))

    rejected = book.reject(workflow.id, ApproverRole.BALANCE_TEAM, "too strong")

    assert rejected.status == ApprovalStatus.REJECTED
    assert rejected.rejection_reason == "too strong"
    assert not book.has_open_entry(workflow.change_log_id)
    with pytest.raises(ConflictError):
        book.check_approval(rejected, ApproverRole.LEAD_DESIGNER)
    with pytest.raises(ConflictError):
        book.cancel(workflow.id, "alice")


def test_reject_requires_listed_role():
    book = WorkflowBook()
    workflow = book.open(_entry(severity=Severity.MODERATE))

    with pytest.raises(AuthorizationError):
        book.reject(workflow.id, ApproverRole.DESIGNER, "no")
    assert workflow.is_open


def test_cancel_records_author():
    book = WorkflowBook()
    workflow = book.open(_entry())

    cancelled = book.cancel(workflow.id, "alice")

    assert cancelled.status == ApprovalStatus.CANCELLED
    assert cancelled.cancelled_by == "alice"
    assert cancelled.rejection_reason is None


def test_unknown_workflow():
    with pytest.raises(NotFoundError):
        WorkflowBook().get("workflow_missing")


def test_list_filters_by_status():
    book = WorkflowBook()
    a = book.open(_entry("a"))
    b = book.open(_entry("b"))
    book.cancel(a.id, "alice")

    assert [w.id for w in book.list()] == [b.id, a.id]
    assert [w.id for w in book.list(ApprovalStatus.PENDING)] == [b.id]


def test_deadline_is_advisory():
    book = WorkflowBook(deadline_hours=1)
    workflow = book.open(_entry())
    workflow.deadline = utcnow() - timedelta(minutes=1)

    assert workflow.is_overdue
    assert book.overdue_count() == 1
    # Still approvable after the deadline
    book.check_approval(workflow, ApproverRole.LEAD_DESIGNER)


def test_no_deadline_when_disabled():
    workflow = WorkflowBook(deadline_hours=None).open(_entry())

    assert workflow.deadline is None
    assert not workflow.is_overdue


def test_open_workflows_survive_capacity():
    book = WorkflowBook(capacity=1)
    open_one = book.open(_entry("a"))
    closed = book.open(_entry("b"))
    book.cancel(closed.id, "alice")

    book.open(_entry("c"))

    assert book.get(open_one.id).is_open
    with pytest.raises(NotFoundError):
        book.get(closed.id)
