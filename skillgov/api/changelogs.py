from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from skillgov.core.auth import get_engine, require_admin
from skillgov.core.engine import SkillContentEngine
from skillgov.models.changelog import ChangeLogEntry

router = APIRouter(prefix="/changelogs", tags=["changelogs"], dependencies=[Depends(require_admin)])


@router.get("", response_model=List[ChangeLogEntry])
async def list_changelogs(
    skill_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=1000),
    engine: SkillContentEngine = Depends(get_engine),
):
    """Newest entries first."""
    return engine.get_change_logs(skill_id, limit)


@router.get("/{change_log_id}", response_model=ChangeLogEntry)
async def get_changelog(change_log_id: str, engine: SkillContentEngine = Depends(get_engine)):
    return engine.get_change_log(change_log_id)
