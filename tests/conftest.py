"""
Shared test fixtures and configuration for the skill governance test suite.
"""

# noqa: E402 (Standard for test configuration)
import os
import shutil
from typing import Any, AsyncGenerator, Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

import tests.test_env_setup as env_setup  # noqa: F401
from skillgov.core.engine import SkillContentEngine
from skillgov.core.ports import MemorySkillStore, StaticUsageCounter
from skillgov.main import app as fastapi_app
from skillgov.models.record import SkillRecord  # noqa: F401
from skillgov.models.skill import Skill
from tests.test_env_setup import TEST_DB_DIR

# ============================================================================
# Collaborator Fakes
# ============================================================================


class RecordingNotifier:
    """Captures every broadcast instead of talking to game servers."""

    def __init__(self):
        self.sent: List[Tuple[str, Skill]] = []
        self.fail = False

    async def notify(self, skill_id: str, skill: Skill) -> None:
        if self.fail:
            raise ConnectionError("game servers unreachable")
        self.sent.append((skill_id, skill))


class FlakyStore(MemorySkillStore):
    """In-memory store whose saves can be switched off."""

    def __init__(self):
        super().__init__()
        self.fail = False

    async def save(self, skills) -> None:
        if self.fail:
            raise OSError("disk full")
        await super().save(skills)


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def usage() -> StaticUsageCounter:
    return StaticUsageCounter()


@pytest.fixture
def engine(store, notifier, usage) -> SkillContentEngine:
    """Governance engine wired to in-memory collaborators."""
    return SkillContentEngine(store=store, notifier=notifier, usage=usage)


@pytest.fixture
def skill_payload():
    """Factory for a valid create payload; keyword arguments override fields."""

    def _make(skill_id: str = "s1", damage: float = 100, **overrides: Any) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": skill_id,
            "name": "Slash",
            "description": "A quick blade strike.",
            "cooldown": 5,
            "effects": [{"kind": "damage", "value": damage}],
        }
        data.update(overrides)
        return data

    return _make


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
async def test_db() -> AsyncGenerator[sessionmaker, None]:
    """Provide a session factory over a fresh file-based SQLite database."""
    db_path = os.path.join(TEST_DB_DIR, "store.db")
    if os.path.exists(db_path):
        os.remove(db_path)

    db_engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", echo=False)
    async with db_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    await db_engine.dispose()


# ============================================================================
# API Client Fixtures
# ============================================================================


@pytest.fixture
def api_client(engine: SkillContentEngine) -> TestClient:
    """FastAPI test client whose governance engine uses in-memory collaborators."""
    with TestClient(fastapi_app) as client:
        fastapi_app.state.engine = engine
        yield client


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def test_env():
    """Cleanup test directories after session."""
    yield
    if os.path.exists(TEST_DB_DIR):
        shutil.rmtree(TEST_DB_DIR, ignore_errors=True)
