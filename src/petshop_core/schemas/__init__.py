"""
Pydantic schemas for data validation and serialization.

This module contains Pydantic schemas validating the input of every
scheduling operation and serializing its results.
"""

from .appointment import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusUpdate,
    ChecklistItem,
    ChecklistUpdate,
    PetAppointmentsQuery,
)
from .pet import PetCreate, PetResponse, PetUpdate
from .pet_assessment import (
    PetAssessmentResponse,
    PetAssessmentReview,
    PetAssessmentSubmit,
)
from .profile import ProfileCreate, ProfileResponse
from .result import ActionResult
from .schedule_block import (
    ScheduleBlockCreate,
    ScheduleBlockQuery,
    ScheduleBlockResponse,
)

__all__ = [
    # Schedule block schemas
    "ScheduleBlockCreate",
    "ScheduleBlockQuery",
    "ScheduleBlockResponse",
    # Appointment schemas
    "AppointmentCreate",
    "AppointmentReschedule",
    "AppointmentStatusUpdate",
    "AppointmentResponse",
    "ChecklistItem",
    "ChecklistUpdate",
    "PetAppointmentsQuery",
    # Profile schemas
    "ProfileCreate",
    "ProfileResponse",
    # Pet schemas
    "PetCreate",
    "PetUpdate",
    "PetResponse",
    # Pet assessment schemas
    "PetAssessmentSubmit",
    "PetAssessmentReview",
    "PetAssessmentResponse",
    # Results
    "ActionResult",
]
