from typing import List, Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    field: str
    message: str
    suggestion: Optional[str] = None


class ValidationReport(BaseModel):
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors
