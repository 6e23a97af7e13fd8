"""
Appointment Pydantic schemas for input validation and serialization.

This module contains the schemas for appointment creation, rescheduling,
status updates and checklist replacement, plus the response schema.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from ..models.appointment import AppointmentStatus
from ..models.service import ServiceCategory

LEGACY_CHECKLIST_KEYS = ("text", "label", "item", "completed", "checked")


class AppointmentCreate(BaseModel):
    """
    Schema for creating an appointment.

    ``scheduled_at`` may be omitted for boarding stays that give both
    calendar dates; the lifecycle manager derives it from the check-in date.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    pet_id: UUID = Field(..., description="Pet receiving the service")
    service_id: UUID = Field(..., description="Service being booked")
    scheduled_at: Optional[datetime] = Field(
        None, description="Booked instant; naive values use the deployment offset"
    )
    staff_id: Optional[UUID] = Field(None, description="Assigned staff member")
    notes: Optional[str] = Field(None, max_length=2000)
    check_in_date: Optional[date] = Field(None, description="Boarding check-in day")
    check_out_date: Optional[date] = Field(None, description="Boarding check-out day")

    @field_validator("notes")
    @classmethod
    def blank_notes_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v:
            return None
        return v

    @model_validator(mode="after")
    def validate_boarding_dates(self) -> "AppointmentCreate":
        """Check-out cannot precede check-in."""
        if (
            self.check_in_date is not None
            and self.check_out_date is not None
            and self.check_out_date < self.check_in_date
        ):
            raise ValueError("Check-out date cannot be before check-in date")
        return self


class AppointmentReschedule(BaseModel):
    """Schema for moving an appointment to a new time or service."""

    model_config = ConfigDict(str_strip_whitespace=True)

    scheduled_at: datetime = Field(..., description="New booked instant")
    service_id: Optional[UUID] = Field(None, description="Replacement service")
    notes: Optional[str] = Field(None, max_length=2000)


class AppointmentStatusUpdate(BaseModel):
    """Schema for a free-form status update."""

    status: AppointmentStatus = Field(..., description="New appointment status")

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        """Accept the British spelling and any letter case."""
        if isinstance(v, str):
            v = v.strip().lower()
            if v == "cancelled":
                return AppointmentStatus.CANCELLED.value
        return v


class ChecklistItem(BaseModel):
    """
    One checklist task.

    Older clients send ``text``, ``label`` or ``item`` for the task and
    ``completed`` or ``checked`` for the flag; all spellings are accepted
    and stored as ``task``/``done``. Any other key is stored as given.
    """

    model_config = ConfigDict(extra="allow")

    task: str = Field(
        ..., validation_alias=AliasChoices("task", "text", "label", "item")
    )
    done: bool = Field(
        False, validation_alias=AliasChoices("done", "completed", "checked")
    )
    completed_at: Optional[datetime] = None

    def to_storage(self) -> Dict[str, Any]:
        """Dictionary form persisted in the appointment's checklist column."""
        stored = self.model_dump(mode="json")
        if "completed_at" not in self.model_fields_set:
            stored.pop("completed_at")
        for key in LEGACY_CHECKLIST_KEYS:
            stored.pop(key, None)
        return stored


class ChecklistUpdate(BaseModel):
    """Whole-list checklist replacement."""

    items: List[ChecklistItem] = Field(default_factory=list)


class PetAppointmentsQuery(BaseModel):
    """Recent appointments of one pet in one service category."""

    pet_id: UUID
    category: ServiceCategory
    limit: int = Field(10, ge=1, le=100)

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class AppointmentResponse(BaseModel):
    """Schema for appointment responses."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: UUID
    organization_id: UUID
    pet_id: UUID
    service_id: UUID
    customer_id: Optional[UUID] = None
    staff_id: Optional[UUID] = None
    scheduled_at: datetime
    status: AppointmentStatus
    notes: Optional[str] = None
    checklist: List[Dict[str, Any]] = Field(default_factory=list)
    actual_check_in: Optional[datetime] = None
    actual_check_out: Optional[datetime] = None
    check_in_date: Optional[date] = None
    check_out_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime
