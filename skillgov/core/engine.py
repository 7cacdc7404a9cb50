"""
Skill content governance engine.

One instance owns the live skill registry. Every mutation runs inside a
per-skill critical section:

    diff -> validate -> assess -> (apply + log | open workflow) -> persist

and the live game servers are notified in the background once the critical
section has committed. Approvals lock the workflow first and, for the final
sign-off, the skill second; no path takes them in the opposite order.
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Union

from skillgov.core.bounded import BoundedLog
from skillgov.core.builder import SkillBuilder
from skillgov.core.changelog import ChangeLog, apply_changes, diff_skills, inverse_changes, stale_fields
from skillgov.core.config import Settings
from skillgov.core.config import settings as default_settings
from skillgov.core.errors import ConflictError, DependencyError, NotFoundError, SkillValidationError
from skillgov.core.harness import BalanceTestHarness, HarnessLimits
from skillgov.core.impact import ImpactAssessor, ImpactThresholds
from skillgov.core.locks import KeyedLock
from skillgov.core.policy import ApprovalPolicy
from skillgov.core.ports import LoggingNotifier, SkillNotifier, SkillStore, StaticUsageCounter, UsageCounter
from skillgov.core.templates import TemplateLibrary
from skillgov.core.validator import BalanceLimits, SkillValidator
from skillgov.core.workflow import WorkflowBook
from skillgov.models.changelog import (
    ActiveFlagChange,
    ChangeImpact,
    ChangeKind,
    ChangeLogEntry,
    FieldChange,
    SkillCreated,
)
from skillgov.models.mutation import MutationResult, MutationStatus, SystemStatus
from skillgov.models.skill import Skill, SkillCategory, display_label
from skillgov.models.template import SkillTemplate
from skillgov.models.testing import SkillTestEnvironment, SkillTestResult, SkillTestType
from skillgov.models.validation import ValidationIssue, ValidationReport
from skillgov.models.workflow import ApprovalStatus, ApprovalWorkflow, ApproverRole

logger = logging.getLogger("skillgov.engine")


class SkillContentEngine:
    def __init__(
        self,
        store: SkillStore,
        notifier: Optional[SkillNotifier] = None,
        usage: Optional[UsageCounter] = None,
        templates: Optional[TemplateLibrary] = None,
        validator: Optional[SkillValidator] = None,
        assessor: Optional[ImpactAssessor] = None,
        harness: Optional[BalanceTestHarness] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or default_settings
        self.store = store
        self.notifier = notifier or LoggingNotifier()
        self.usage = usage or StaticUsageCounter()
        self.templates = templates or TemplateLibrary()
        self.builder = SkillBuilder(self.templates)
        self.validator = validator or SkillValidator(BalanceLimits.from_settings(settings))
        self.assessor = assessor or ImpactAssessor(self.usage, ImpactThresholds.from_settings(settings))
        self.harness = harness or BalanceTestHarness(HarnessLimits.from_settings(settings))
        self.workflows = WorkflowBook(settings.WORKFLOW_CAPACITY, settings.WORKFLOW_DEADLINE_HOURS)
        self.change_log = ChangeLog(
            settings.CHANGE_LOG_CAPACITY, pinned=lambda entry: self.workflows.has_open_entry(entry.id)
        )
        self.test_results: BoundedLog[SkillTestResult] = BoundedLog(
            settings.TEST_RESULT_CAPACITY, key=lambda r: r.test_id
        )
        self.delete_usage_limit = settings.DELETE_USAGE_BLOCK_THRESHOLD

        self._skills: Dict[str, Skill] = {}
        self._skill_locks = KeyedLock()
        self._workflow_locks = KeyedLock()
        self._save_lock = asyncio.Lock()
        self._background: Set[asyncio.Task] = set()
        self._dirty = False

    async def start(self):
        """Populate the registry from the store. An empty store is fine."""
        self._skills = dict(await self.store.load())
        logger.info(f"Skill registry loaded: {len(self._skills)} skills")

    async def stop(self):
        await self.drain()
        if self._dirty:
            await self.reconcile()

    # ------------------------------------------------------------------
    # Governed mutations
    # ------------------------------------------------------------------

    async def create(
        self, data: Mapping[str, Any], template_id: Optional[str] = None, author: str = "admin"
    ) -> MutationResult:
        skill = self.builder.build(data, template_id)

        async with self._skill_locks.hold(skill.id):
            if skill.id in self._skills:
                raise ConflictError(f"Skill id '{skill.id}' already exists", {"skill_id": skill.id})

            report = self._check(skill)
            impact = await self.assessor.assess(ChangeKind.CREATE, skill)
            reason = "New skill created"
            changes: List[FieldChange] = [SkillCreated(new_value=skill, reason=reason)]
            return await self._commit(ChangeKind.CREATE, skill, changes, author, reason, impact, report)

    async def update(
        self,
        skill_id: str,
        fields: Mapping[str, Any],
        author: str = "admin",
        reason: str = "Skill update",
        force_review: bool = False,
    ) -> MutationResult:
        async with self._skill_locks.hold(skill_id):
            current = self._require_skill(skill_id)
            candidate = self.builder.apply_fields(current, fields)

            changes = diff_skills(current, candidate, reason)
            if not changes:
                raise ConflictError("Update changes nothing", {"skill_id": skill_id})
            if any(isinstance(c, ActiveFlagChange) and not c.new_value for c in changes):
                raise SkillValidationError(
                    [ValidationIssue(field="is_active", message="Use delete to deactivate a skill")]
                )

            report = self._check(candidate)
            impact = await self.assessor.assess(ChangeKind.UPDATE, candidate, current)

            if force_review or ApprovalPolicy.requires_approval(ChangeKind.UPDATE, impact):
                return self._request_approval(ChangeKind.UPDATE, skill_id, changes, author, reason, impact, report)

            updated = apply_changes(current, changes)
            return await self._commit(ChangeKind.UPDATE, updated, changes, author, reason, impact, report)

    async def delete(self, skill_id: str, author: str = "admin", reason: str = "Skill deleted") -> MutationResult:
        """Deactivate a skill. Skills are never removed from the registry."""
        async with self._skill_locks.hold(skill_id):
            current = self._require_skill(skill_id)
            if not current.is_active:
                raise ConflictError(f"Skill '{skill_id}' is already inactive", {"skill_id": skill_id})

            dependents = sorted(
                s.id for s in self._skills.values() if s.id != skill_id and s.is_active and s.depends_on(skill_id)
            )
            if dependents:
                raise DependencyError(
                    f"Other skills require '{skill_id}': {', '.join(dependents)}", dependents=dependents
                )

            impact = await self.assessor.assess(ChangeKind.DELETE, current)
            if self.delete_usage_limit is not None and impact.affected_players > self.delete_usage_limit:
                raise DependencyError(
                    f"Skill '{skill_id}' is held by {impact.affected_players} players, "
                    f"above the safety limit of {self.delete_usage_limit}",
                    usage_count=impact.affected_players,
                )

            changes: List[FieldChange] = [ActiveFlagChange(old_value=True, new_value=False, reason=reason)]
            if ApprovalPolicy.requires_approval(ChangeKind.DELETE, impact):
                return self._request_approval(ChangeKind.DELETE, skill_id, changes, author, reason, impact)

            updated = apply_changes(current, changes)
            return await self._commit(ChangeKind.DELETE, updated, changes, author, reason, impact)

    async def rollback(self, skill_id: str, change_log_id: str, author: str = "admin") -> MutationResult:
        """Apply the inverse of a logged change. Never gated by approval."""
        async with self._skill_locks.hold(skill_id):
            entry = self.change_log.get(change_log_id)
            if entry is None:
                raise NotFoundError(f"Change log entry '{change_log_id}' not found", {"change_log_id": change_log_id})
            current = self._require_skill(skill_id)

            if entry.skill_id != skill_id:
                raise ConflictError(
                    f"Change log entry '{change_log_id}' belongs to skill '{entry.skill_id}'",
                    {"change_log_id": change_log_id, "skill_id": entry.skill_id},
                )
            if not entry.approved:
                raise ConflictError(
                    f"Change log entry '{change_log_id}' was never applied", {"change_log_id": change_log_id}
                )

            changes = inverse_changes(entry, current, reason=f"Rollback: {entry.reason}")
            restored = apply_changes(current, changes)
            if not diff_skills(current, restored):
                raise ConflictError(
                    f"Skill '{skill_id}' already matches the state before {change_log_id}",
                    {"change_log_id": change_log_id},
                )

            report = self._check(restored)
            impact = await self.assessor.assess(ChangeKind.ROLLBACK, restored, current)
            return await self._commit(
                ChangeKind.ROLLBACK,
                restored,
                changes,
                author,
                f"Rollback of change {change_log_id}",
                impact,
                report,
                rollback_id=change_log_id,
            )

    # ------------------------------------------------------------------
    # Approval workflow actions
    # ------------------------------------------------------------------

    async def approve(
        self, workflow_id: str, approver_role: Union[str, ApproverRole], approver: Optional[str] = None
    ) -> ApprovalWorkflow:
        async with self._workflow_locks.hold(workflow_id):
            workflow = self.workflows.get(workflow_id)
            role = self.workflows.check_approval(workflow, approver_role)

            if workflow.missing_approvers != [role]:
                self.workflows.record_approval(workflow, role)
                logger.info(
                    f"Workflow {workflow.id} approved by {role.value}, "
                    f"waiting on {', '.join(r.value for r in workflow.missing_approvers)}"
                )
                return workflow.model_copy(deep=True)

            # Last sign-off: apply the change in the same critical section as ordinary mutations
            async with self._skill_locks.hold(workflow.skill_id):
                entry = self.change_log.get(workflow.change_log_id)
                if entry is None:
                    raise NotFoundError(
                        f"Change log entry '{workflow.change_log_id}' not found",
                        {"change_log_id": workflow.change_log_id},
                    )
                current = self._require_skill(workflow.skill_id)
                stale = stale_fields(current, entry.changes)
                if stale:
                    raise ConflictError(
                        f"Skill '{workflow.skill_id}' changed since {workflow.id} was opened: {', '.join(stale)}",
                        {"workflow_id": workflow.id, "fields": stale},
                    )
                updated = apply_changes(current, entry.changes)
                self._check(updated)

                self.workflows.record_approval(workflow, role)
                self._skills[updated.id] = updated
                self.change_log.mark_approved(entry.id, approver or role.value)
                await self._persist()
                self._notify(updated)

            logger.info(f"Workflow {workflow.id} approved, {entry.kind.value} applied to {display_label(updated)}")
            return workflow.model_copy(deep=True)

    async def reject(
        self, workflow_id: str, approver_role: Union[str, ApproverRole], reason: str
    ) -> ApprovalWorkflow:
        async with self._workflow_locks.hold(workflow_id):
            return self.workflows.reject(workflow_id, approver_role, reason).model_copy(deep=True)

    async def cancel_workflow(self, workflow_id: str, author: str = "admin", reason: str = "") -> ApprovalWorkflow:
        async with self._workflow_locks.hold(workflow_id):
            return self.workflows.cancel(workflow_id, author, reason).model_copy(deep=True)

    # ------------------------------------------------------------------
    # Balance testing
    # ------------------------------------------------------------------

    async def run_tests(
        self,
        skill_id: str,
        environment: SkillTestEnvironment,
        suites: Optional[Sequence[SkillTestType]] = None,
    ) -> SkillTestResult:
        skill = self._require_skill(skill_id).model_copy(deep=True)
        result = self.harness.run(skill, environment, suites)
        self.test_results.append(result)
        return result

    def get_test_results(self, skill_id: Optional[str] = None, limit: int = 50) -> List[SkillTestResult]:
        results = self.test_results.newest_first()
        if skill_id is not None:
            results = [r for r in results if r.skill_id == skill_id]
        return results[:limit]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, skill_id: str) -> Optional[Skill]:
        skill = self._skills.get(skill_id)
        return skill.model_copy(deep=True) if skill else None

    def list_skills(
        self,
        category: Optional[Union[str, SkillCategory]] = None,
        tree: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> List[Skill]:
        skills = list(self._skills.values())
        if category is not None:
            skills = [s for s in skills if s.category == SkillCategory(category)]
        if tree is not None:
            skills = [s for s in skills if s.tree == tree]
        if active is not None:
            skills = [s for s in skills if s.is_active == active]
        return [s.model_copy(deep=True) for s in sorted(skills, key=lambda s: s.id)]

    def list_templates(self) -> List[SkillTemplate]:
        return self.templates.list()

    def get_template(self, template_id: str) -> SkillTemplate:
        template = self.templates.get(template_id)
        if template is None:
            raise NotFoundError(f"Template '{template_id}' not found", {"template_id": template_id})
        return template

    def get_change_logs(self, skill_id: Optional[str] = None, limit: int = 50) -> List[ChangeLogEntry]:
        return self.change_log.list(skill_id, limit)

    def get_change_log(self, change_log_id: str) -> ChangeLogEntry:
        entry = self.change_log.get(change_log_id)
        if entry is None:
            raise NotFoundError(f"Change log entry '{change_log_id}' not found", {"change_log_id": change_log_id})
        return entry

    def get_workflows(self, status: Optional[Union[str, ApprovalStatus]] = None) -> List[ApprovalWorkflow]:
        status = ApprovalStatus(status) if status is not None else None
        return [w.model_copy(deep=True) for w in self.workflows.list(status)]

    def get_workflow(self, workflow_id: str) -> ApprovalWorkflow:
        return self.workflows.get(workflow_id).model_copy(deep=True)

    def validate(self, data: Mapping[str, Any], template_id: Optional[str] = None) -> ValidationReport:
        """Dry run of create-time validation. Nothing is stored."""
        try:
            skill = self.builder.build(data, template_id)
        except SkillValidationError as e:
            return ValidationReport(errors=e.errors)
        return self.validator.validate(skill, existing_ids=self._skills.keys())

    def system_status(self) -> SystemStatus:
        return SystemStatus(
            total_skills=len(self._skills),
            active_skills=sum(1 for s in self._skills.values() if s.is_active),
            pending_approvals=self.workflows.pending_count(),
            recent_changes=self.change_log.recent_count(),
            overdue_approvals=self.workflows.overdue_count(),
            unsaved_changes=self._dirty,
        )

    # ------------------------------------------------------------------
    # Persistence and notification
    # ------------------------------------------------------------------

    async def reconcile(self) -> bool:
        """Retry a failed save. Returns True when the store is up to date."""
        if self._dirty:
            logger.info("Reconciling unsaved skill changes")
            await self._persist()
        return not self._dirty

    async def drain(self):
        """Wait for in-flight notifications."""
        if self._background:
            await asyncio.gather(*list(self._background))

    async def _persist(self):
        # Saves are serialized and always write the newest snapshot
        async with self._save_lock:
            try:
                await self.store.save(dict(self._skills))
                self._dirty = False
            except Exception as e:
                self._dirty = True
                logger.error(f"Failed to save skills, queued for reconciliation: {e}")

    def _notify(self, skill: Skill):
        task = asyncio.create_task(self._deliver(skill.model_copy(deep=True)))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _deliver(self, skill: Skill):
        try:
            await self.notifier.notify(skill.id, skill)
        except Exception as e:
            logger.error(f"Skill update notification failed for {skill.id}: {e}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_skill(self, skill_id: str) -> Skill:
        skill = self._skills.get(skill_id)
        if skill is None:
            raise NotFoundError(f"Skill '{skill_id}' not found", {"skill_id": skill_id})
        return skill

    def _check(self, skill: Skill) -> ValidationReport:
        report = self.validator.validate(skill)
        if not report.is_valid:
            raise SkillValidationError(report.errors)
        return report

    def _request_approval(
        self,
        kind: ChangeKind,
        skill_id: str,
        changes: List[FieldChange],
        author: str,
        reason: str,
        impact: ChangeImpact,
        report: Optional[ValidationReport] = None,
    ) -> MutationResult:
        entry = ChangeLogEntry(
            skill_id=skill_id, kind=kind, author=author, changes=changes, reason=reason, impact=impact
        )
        workflow = self.workflows.open(entry)
        self.change_log.append(entry)
        return MutationResult(
            skill_id=skill_id,
            status=MutationStatus.PENDING_APPROVAL,
            change_log_id=entry.id,
            workflow_id=workflow.id,
            impact=impact,
            warnings=report.warnings if report else [],
        )

    async def _commit(
        self,
        kind: ChangeKind,
        skill: Skill,
        changes: List[FieldChange],
        author: str,
        reason: str,
        impact: ChangeImpact,
        report: Optional[ValidationReport] = None,
        rollback_id: Optional[str] = None,
    ) -> MutationResult:
        entry = ChangeLogEntry(
            skill_id=skill.id,
            kind=kind,
            author=author,
            changes=changes,
            reason=reason,
            impact=impact,
            approved=True,
            rollback_id=rollback_id,
        )
        self._skills[skill.id] = skill
        self.change_log.append(entry)
        await self._persist()
        self._notify(skill)

        logger.info(f"Skill {kind.value}: {display_label(skill)} by {author} [{impact.severity.label}]")
        return MutationResult(
            skill_id=skill.id,
            status=MutationStatus.APPLIED,
            change_log_id=entry.id,
            impact=impact,
            warnings=report.warnings if report else [],
        )
