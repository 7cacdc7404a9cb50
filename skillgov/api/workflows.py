from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from skillgov.core.auth import get_engine, require_admin
from skillgov.core.engine import SkillContentEngine
from skillgov.models.workflow import ApprovalStatus, ApprovalWorkflow, ApproverRole

router = APIRouter(prefix="/workflows", tags=["workflows"], dependencies=[Depends(require_admin)])


class ApproveRequest(BaseModel):
    role: ApproverRole
    approver: Optional[str] = None


class RejectRequest(BaseModel):
    role: ApproverRole
    reason: str


class CancelRequest(BaseModel):
    author: str = "admin"
    reason: str = ""


@router.get("", response_model=List[ApprovalWorkflow])
async def list_workflows(status: Optional[ApprovalStatus] = None, engine: SkillContentEngine = Depends(get_engine)):
    return engine.get_workflows(status)


@router.get("/{workflow_id}", response_model=ApprovalWorkflow)
async def get_workflow(workflow_id: str, engine: SkillContentEngine = Depends(get_engine)):
    return engine.get_workflow(workflow_id)


@router.post("/{workflow_id}/approve", response_model=ApprovalWorkflow)
async def approve_workflow(
    workflow_id: str, request: ApproveRequest, engine: SkillContentEngine = Depends(get_engine)
):
    return await engine.approve(workflow_id, request.role, request.approver)


@router.post("/{workflow_id}/reject", response_model=ApprovalWorkflow)
async def reject_workflow(workflow_id: str, request: RejectRequest, engine: SkillContentEngine = Depends(get_engine)):
    return await engine.reject(workflow_id, request.role, request.reason)


@router.post("/{workflow_id}/cancel", response_model=ApprovalWorkflow)
async def cancel_workflow(workflow_id: str, request: CancelRequest, engine: SkillContentEngine = Depends(get_engine)):
    return await engine.cancel_workflow(workflow_id, request.author, request.reason)
