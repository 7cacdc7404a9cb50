import secrets
from typing import Optional

from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from skillgov.core.config import settings
from skillgov.core.engine import SkillContentEngine

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_admin(api_key: Optional[str] = Security(api_key_header)):
    """
    Admin endpoints are open when no ADMIN_API_KEY is configured.
    Identities are not authenticated beyond this shared key; approver roles
    are only checked against a workflow's required set.
    """
    if settings.ADMIN_API_KEY is None:
        return

    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API Key",
        )

    if not secrets.compare_digest(api_key, settings.ADMIN_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API Key",
        )


def get_engine(request: Request) -> SkillContentEngine:
    return request.app.state.engine
