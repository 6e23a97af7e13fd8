"""
Pet assessment model for the petshop-core package.

A pet must have an approved behaviour and health assessment before it can
be booked for daycare or boarding. Each pet has at most one assessment;
the questionnaire answers are kept as a JSON document.
"""

import enum
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, ForeignKey, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from ..database.types import JSONType, UTCDateTime, value_enum
from .base import BaseModel


class AssessmentStatus(enum.Enum):
    """Review state of an assessment."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PetAssessment(BaseModel):
    """Behaviour and health questionnaire of a pet, with its review outcome."""

    __tablename__ = "pet_assessments"

    def __init__(self, **kwargs):
        """Initialize PetAssessment with default values."""
        kwargs.setdefault("status", AssessmentStatus.PENDING)
        kwargs.setdefault("answers", {})
        kwargs.setdefault("owner_declaration_accepted", False)

        super().__init__(**kwargs)

    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    pet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pets.id", ondelete="CASCADE"),
        nullable=False,
    )

    status: Mapped[AssessmentStatus] = mapped_column(
        value_enum(AssessmentStatus, "assessment_status"),
        nullable=False,
        default=AssessmentStatus.PENDING,
    )

    answers: Mapped[Dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
        comment="Socialization, routine, health and care answers",
    )

    owner_declaration_accepted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    declaration_accepted_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    review_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (UniqueConstraint("pet_id", name="uq_pet_assessments_pet"),)

    def __repr__(self) -> str:
        return (
            f"<PetAssessment(id={self.id}, pet_id={self.pet_id}, "
            f"status='{self.status.value}')>"
        )

    @property
    def is_approved(self) -> bool:
        return self.status == AssessmentStatus.APPROVED
