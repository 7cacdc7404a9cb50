import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from skillgov.core.auth import get_engine, require_admin
from skillgov.core.engine import SkillContentEngine
from skillgov.core.logging_config import recent_logs
from skillgov.models.mutation import SystemStatus

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


@router.get("/status", response_model=SystemStatus)
async def get_status(engine: SkillContentEngine = Depends(get_engine)):
    return engine.system_status()


@router.get("/log")
async def get_logs(
    limit: int = Query(100, ge=1, le=1000),
    level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None,
):
    """Recent log records from the in-memory buffer, optionally at or above `level`."""
    return {"logs": recent_logs(limit, level)}


@router.post("/reconcile")
async def reconcile(engine: SkillContentEngine = Depends(get_engine)):
    """Retry persisting changes whose save failed earlier."""
    saved = await engine.reconcile()
    logger.info(f"Admin requested reconciliation, store up to date: {saved}")
    return {"saved": saved}
