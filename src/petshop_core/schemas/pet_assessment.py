"""
Pet assessment Pydantic schemas.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.pet_assessment import AssessmentStatus

AnswerValue = Union[bool, str, None]


class PetAssessmentSubmit(BaseModel):
    """Questionnaire filled in for a pet before daycare or boarding."""

    answers: Dict[str, AnswerValue] = Field(default_factory=dict)
    owner_declaration_accepted: bool = Field(...)

    @field_validator("answers")
    @classmethod
    def strip_answers(cls, v: Dict[str, AnswerValue]) -> Dict[str, AnswerValue]:
        """Blank text answers are stored as null."""
        cleaned: Dict[str, AnswerValue] = {}
        for key, value in v.items():
            if isinstance(value, str):
                value = value.strip() or None
            cleaned[key] = value
        return cleaned

    @field_validator("owner_declaration_accepted")
    @classmethod
    def declaration_must_be_accepted(cls, v: bool) -> bool:
        if not v:
            raise ValueError("The owner declaration must be accepted")
        return v


class PetAssessmentReview(BaseModel):
    """Outcome of reviewing an assessment."""

    model_config = ConfigDict(str_strip_whitespace=True)

    status: AssessmentStatus
    review_notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("status")
    @classmethod
    def status_must_be_final(cls, v: AssessmentStatus) -> AssessmentStatus:
        if v == AssessmentStatus.PENDING:
            raise ValueError("A review must approve or reject the assessment")
        return v


class PetAssessmentResponse(BaseModel):
    """Schema for assessment responses."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: UUID
    organization_id: UUID
    pet_id: UUID
    status: AssessmentStatus
    answers: Dict[str, Any] = Field(default_factory=dict)
    owner_declaration_accepted: bool
    declaration_accepted_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
