import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

import skillgov.core.logging_config  # noqa: F401  centralized logging (must be first)
from skillgov.api.admin import router as admin_router
from skillgov.api.changelogs import router as changelogs_router
from skillgov.api.skills import router as skills_router
from skillgov.api.workflows import router as workflows_router
from skillgov.core.config import settings
from skillgov.core.db import AsyncSessionLocal, init_db
from skillgov.core.engine import SkillContentEngine
from skillgov.core.errors import SkillGovernanceError
from skillgov.core.notifier import RedisNotifier, build_notifier
from skillgov.core.ports import StaticUsageCounter
from skillgov.core.store import SqlSkillStore

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    "validation_error": 422,
    "authorization_error": 403,
    "not_found": 404,
    "conflict": 409,
    "dependency_error": 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup logic
    await init_db()

    notifier = build_notifier(settings)
    engine = SkillContentEngine(
        store=SqlSkillStore(AsyncSessionLocal),
        notifier=notifier,
        usage=StaticUsageCounter(),
        settings=settings,
    )
    await engine.start()
    app.state.engine = engine
    logger.info(f"Skill governance engine ready (notifier={settings.NOTIFIER_BACKEND})")

    yield

    # Shutdown logic
    await engine.stop()
    if isinstance(notifier, RedisNotifier):
        await notifier.close()


app = FastAPI(title="Skill Governance API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(SkillGovernanceError)
async def governance_error_handler(request: Request, exc: SkillGovernanceError):
    status_code = ERROR_STATUS.get(exc.code, 400)
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Register API routers
app.include_router(skills_router)
app.include_router(workflows_router)
app.include_router(changelogs_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    return {"message": "Skill governance service is running"}
