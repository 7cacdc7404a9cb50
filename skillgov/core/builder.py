import uuid
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from skillgov.core.errors import SkillValidationError
from skillgov.core.templates import TemplateLibrary
from skillgov.models.changelog import MUTABLE_FIELDS
from skillgov.models.skill import Skill, utcnow
from skillgov.models.validation import ValidationIssue

CREATABLE_FIELDS = frozenset(("id",) + MUTABLE_FIELDS)
DEFAULT_SKILL_NAME = "New Skill"


def new_skill_id() -> str:
    return f"skill_{uuid.uuid4().hex[:12]}"


class SkillBuilder:
    """
    Materializes fully-defaulted Skill values from loose caller payloads.

    Merge priority on create: explicit caller fields > template fields >
    Skill defaults. Type problems (e.g. a string level) surface as
    SkillValidationError, same as range problems found by the Validator.
    """

    def __init__(self, templates: TemplateLibrary):
        self.templates = templates

    def build(self, data: Mapping[str, Any], template_id: Optional[str] = None) -> Skill:
        self._reject_unknown(data, CREATABLE_FIELDS)

        merged: Dict[str, Any] = {}
        if template_id is not None:
            template = self.templates.get(template_id)
            if template is None:
                raise SkillValidationError(
                    [ValidationIssue(field="template_id", message=f"Unknown template '{template_id}'")]
                )
            merged.update(TemplateLibrary.base_fields(template))

        merged.update({k: v for k, v in data.items() if v is not None})
        if not merged.get("id"):
            merged["id"] = new_skill_id()
        merged.setdefault("name", DEFAULT_SKILL_NAME)

        now = utcnow()
        merged["created_at"] = now
        merged["updated_at"] = now
        return self._materialize(merged)

    def apply_fields(self, skill: Skill, fields: Mapping[str, Any]) -> Skill:
        """Return a new Skill with ``fields`` overlaid on ``skill``."""
        self._reject_unknown(fields, CREATABLE_FIELDS)
        if "id" in fields and fields["id"] != skill.id:
            raise SkillValidationError([ValidationIssue(field="id", message="Skill id is immutable")])

        data = skill.model_dump()
        data.update({k: v for k, v in fields.items() if k != "id"})
        return self._materialize(data)

    @staticmethod
    def _reject_unknown(data: Mapping[str, Any], allowed: frozenset):
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise SkillValidationError(
                [ValidationIssue(field=name, message="Unknown or read-only skill field") for name in unknown]
            )

    @staticmethod
    def _materialize(data: Mapping[str, Any]) -> Skill:
        try:
            return Skill.model_validate(data)
        except ValidationError as e:
            issues: List[ValidationIssue] = []
            for err in e.errors():
                field = ".".join(str(part) for part in err["loc"]) or "skill"
                issues.append(ValidationIssue(field=field, message=err["msg"]))
            raise SkillValidationError(issues) from e
