import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from skillgov.core.bounded import BoundedLog
from skillgov.models.changelog import (
    FIELD_CHANGE_TYPES,
    ActiveFlagChange,
    ChangeKind,
    ChangeLogEntry,
    FieldChange,
)
from skillgov.models.skill import Skill, utcnow

logger = logging.getLogger(__name__)


def diff_skills(old: Skill, new: Skill, reason: str = "") -> List[FieldChange]:
    """Itemize every mutable field whose value differs between two skills."""
    changes: List[FieldChange] = []
    for field, change_type in FIELD_CHANGE_TYPES.items():
        old_value = getattr(old, field)
        new_value = getattr(new, field)
        if old_value != new_value:
            changes.append(change_type(old_value=old_value, new_value=new_value, reason=reason))
    return changes


def apply_changes(skill: Skill, changes: Sequence[FieldChange]) -> Skill:
    for change in changes:
        skill = change.apply(skill)
    return skill.model_copy(update={"updated_at": utcnow()})


def stale_fields(skill: Skill, changes: Sequence[FieldChange]) -> List[str]:
    """Fields whose live value no longer matches the recorded old value."""
    return [
        c.field for c in changes if c.field in FIELD_CHANGE_TYPES and getattr(skill, c.field) != c.old_value
    ]


def inverse_changes(entry: ChangeLogEntry, current: Skill, reason: str) -> List[FieldChange]:
    """
    Build the diff that undoes ``entry``. A create has no prior state to
    restore (skills are never hard-deleted), so its inverse deactivates.
    """
    if entry.kind == ChangeKind.CREATE:
        return [ActiveFlagChange(old_value=current.is_active, new_value=False, reason=reason)]
    return [change.inverted(reason) for change in reversed(entry.changes)]


class ChangeLog:
    """Append-only, size-bounded audit history ordered by timestamp."""

    def __init__(self, capacity: int = 1000, pinned: Optional[Callable[[ChangeLogEntry], bool]] = None):
        # Entries still awaiting approval are pinned and never evicted
        pinned = pinned or (lambda entry: False)
        self._entries: BoundedLog[ChangeLogEntry] = BoundedLog(
            capacity, key=lambda e: e.id, evictable=lambda e: not pinned(e)
        )

    def append(self, entry: ChangeLogEntry) -> ChangeLogEntry:
        for old in self._entries.append(entry):
            logger.debug(f"Change log full, evicted {old.id} ({old.kind.value} {old.skill_id})")
        return entry

    def mark_approved(self, entry_id: str, approver: str) -> ChangeLogEntry:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise KeyError(entry_id)
        approved = entry.model_copy(update={"approved": True, "approver": approver})
        self._entries.replace(approved)
        return approved

    def get(self, entry_id: str) -> Optional[ChangeLogEntry]:
        return self._entries.get(entry_id)

    def list(self, skill_id: Optional[str] = None, limit: int = 50) -> List[ChangeLogEntry]:
        entries = self._entries.newest_first()
        if skill_id is not None:
            entries = [e for e in entries if e.skill_id == skill_id]
        return entries[:limit]

    def recent_count(self, window: timedelta = timedelta(hours=24), now: Optional[datetime] = None) -> int:
        cutoff = (now or utcnow()) - window
        return sum(1 for e in self._entries if e.timestamp >= cutoff)

    def __len__(self) -> int:
        return len(self._entries)
