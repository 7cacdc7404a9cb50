"""
Skill API endpoints: registry queries and governed mutations.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from skillgov.core.auth import get_engine, require_admin
from skillgov.core.engine import SkillContentEngine
from skillgov.models.mutation import MutationResult
from skillgov.models.skill import Skill, SkillCategory
from skillgov.models.template import SkillTemplate
from skillgov.models.testing import SkillTestEnvironment, SkillTestResult, SkillTestType
from skillgov.models.validation import ValidationReport

router = APIRouter(prefix="/skills", tags=["skills"], dependencies=[Depends(require_admin)])


class CreateSkillRequest(BaseModel):
    skill: Dict[str, Any] = Field(default_factory=dict)
    template_id: Optional[str] = None
    author: str = "admin"


class UpdateSkillRequest(BaseModel):
    fields: Dict[str, Any]
    author: str = "admin"
    reason: str = "Skill update"
    force_review: bool = False


class RollbackRequest(BaseModel):
    change_log_id: str
    author: str = "admin"


class RunTestsRequest(BaseModel):
    environment: SkillTestEnvironment = Field(default_factory=SkillTestEnvironment)
    suites: Optional[List[SkillTestType]] = None


@router.get("", response_model=List[Skill])
async def list_skills(
    category: Optional[SkillCategory] = None,
    tree: Optional[str] = None,
    active: Optional[bool] = None,
    engine: SkillContentEngine = Depends(get_engine),
):
    """List skills, optionally filtered by category, tree and active flag."""
    return engine.list_skills(category=category, tree=tree, active=active)


@router.get("/templates", response_model=List[SkillTemplate])
async def list_templates(engine: SkillContentEngine = Depends(get_engine)):
    return engine.list_templates()


@router.get("/templates/{template_id}", response_model=SkillTemplate)
async def get_template(template_id: str, engine: SkillContentEngine = Depends(get_engine)):
    return engine.get_template(template_id)


@router.post("/validate", response_model=ValidationReport)
async def validate_skill(request: CreateSkillRequest, engine: SkillContentEngine = Depends(get_engine)):
    """Run create-time validation without storing anything."""
    return engine.validate(request.skill, request.template_id)


@router.get("/{skill_id}", response_model=Skill)
async def get_skill(skill_id: str, engine: SkillContentEngine = Depends(get_engine)):
    skill = engine.get(skill_id)
    if skill is None:
        raise HTTPException(status_code=404, detail=f"Skill '{skill_id}' not found")
    return skill


@router.post("", response_model=MutationResult, status_code=status.HTTP_201_CREATED)
async def create_skill(request: CreateSkillRequest, engine: SkillContentEngine = Depends(get_engine)):
    return await engine.create(request.skill, request.template_id, request.author)


@router.patch("/{skill_id}", response_model=MutationResult)
async def update_skill(
    skill_id: str, request: UpdateSkillRequest, engine: SkillContentEngine = Depends(get_engine)
):
    """
    Update a skill. Low-risk changes apply at once; balance-critical ones
    come back as pending_approval with the workflow id.
    """
    return await engine.update(
        skill_id, request.fields, request.author, request.reason, force_review=request.force_review
    )


@router.delete("/{skill_id}", response_model=MutationResult)
async def delete_skill(
    skill_id: str,
    author: str = Query("admin"),
    reason: str = Query("Skill deleted"),
    engine: SkillContentEngine = Depends(get_engine),
):
    """Deactivate a skill (skills are never hard-deleted)."""
    return await engine.delete(skill_id, author, reason)


@router.post("/{skill_id}/rollback", response_model=MutationResult)
async def rollback_skill(skill_id: str, request: RollbackRequest, engine: SkillContentEngine = Depends(get_engine)):
    return await engine.rollback(skill_id, request.change_log_id, request.author)


@router.post("/{skill_id}/tests", response_model=SkillTestResult)
async def run_skill_tests(
    skill_id: str, request: RunTestsRequest, engine: SkillContentEngine = Depends(get_engine)
):
    return await engine.run_tests(skill_id, request.environment, request.suites)


@router.get("/{skill_id}/tests", response_model=List[SkillTestResult])
async def list_skill_tests(
    skill_id: str, limit: int = Query(50, ge=1, le=500), engine: SkillContentEngine = Depends(get_engine)
):
    return engine.get_test_results(skill_id, limit)
