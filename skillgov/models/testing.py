import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from skillgov.models.skill import utcnow


class SkillTestType(str, Enum):
    DAMAGE_CALCULATION = "damage_calculation"
    BALANCE_CHECK = "balance_check"
    PERFORMANCE = "performance"
    INTEGRATION = "integration"


class SkillTestStatus(str, Enum):
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"


class DeploymentTier(str, Enum):
    SANDBOX = "sandbox"
    STAGING = "staging"
    PRODUCTION = "production"


class SkillTestEnvironment(BaseModel):
    """Synthetic player profile a skill is exercised against."""

    environment: DeploymentTier = DeploymentTier.SANDBOX
    player_level: int = 1
    player_stats: Dict[str, float] = Field(default_factory=dict)
    target_level: Optional[int] = None
    conditions: List[str] = Field(default_factory=list)


class SkillTestCase(BaseModel):
    test_case: str
    test_type: Optional[SkillTestType] = None
    expected: Any = None
    actual: Any = None
    passed: bool
    error_message: Optional[str] = None


def new_test_id() -> str:
    return f"test_{uuid.uuid4().hex[:12]}"


class SkillTestResult(BaseModel):
    skill_id: str
    test_id: str = Field(default_factory=new_test_id)
    suites: List[SkillTestType] = Field(default_factory=list)
    status: SkillTestStatus = SkillTestStatus.RUNNING
    results: List[SkillTestCase] = Field(default_factory=list)
    executed_at: datetime = Field(default_factory=utcnow)
    duration_ms: float = 0.0
    environment: SkillTestEnvironment
