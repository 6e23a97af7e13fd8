"""
Database models for the petshop-core package.

This module contains SQLAlchemy models for the tenant-scoped entities of
the appointment lifecycle engine.
"""

from .appointment import Appointment, AppointmentStatus

# Base model will be imported by all other models
from .base import Base, BaseModel
from .customer import Customer
from .organization import Organization
from .pet import Pet, PetGender, PetSize, PetSpecies
from .pet_assessment import AssessmentStatus, PetAssessment
from .profile import Profile, UserRole
from .schedule_block import ScheduleBlock
from .service import Service, ServiceCategory

__all__ = [
    "Base",
    "BaseModel",
    "Organization",
    "Profile",
    "UserRole",
    "Customer",
    "Pet",
    "PetSpecies",
    "PetGender",
    "PetSize",
    "PetAssessment",
    "AssessmentStatus",
    "Service",
    "ServiceCategory",
    "Appointment",
    "AppointmentStatus",
    "ScheduleBlock",
]
