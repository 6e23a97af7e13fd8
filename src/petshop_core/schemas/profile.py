"""
Profile Pydantic schemas for user provisioning.

This module contains the schema validated before a new identity and its
profile are created, including the staff working-hours template.
"""

import re
from datetime import time
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from ..models.profile import UserRole


class ProfileCreate(BaseModel):
    """Schema for provisioning a user (identity plus profile)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr = Field(..., description="Login e-mail", max_length=255)
    password: str = Field(..., description="Initial password", min_length=6, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=30)
    role: UserRole = Field(UserRole.STAFF, description="Role inside the organization")

    work_start: Optional[time] = None
    lunch_start: Optional[time] = None
    lunch_end: Optional[time] = None
    work_end: Optional[time] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        """Keep digits and a leading plus sign only."""
        if v is None or not v:
            return None

        digits_only = re.sub(r"\D", "", v)
        if len(digits_only) < 8 or len(digits_only) > 15:
            raise ValueError("Phone number must be between 8 and 15 digits")
        return f"+{digits_only}" if v.startswith("+") else digits_only

    @model_validator(mode="after")
    def validate_working_hours(self) -> "ProfileCreate":
        """Working hours must be ordered and lunch must fall inside them."""
        if (self.work_start is None) != (self.work_end is None):
            raise ValueError("work_start and work_end must be given together")
        if (self.lunch_start is None) != (self.lunch_end is None):
            raise ValueError("lunch_start and lunch_end must be given together")

        if self.work_start is not None and self.work_start >= self.work_end:
            raise ValueError("work_start must be before work_end")

        if self.lunch_start is not None:
            if self.lunch_start >= self.lunch_end:
                raise ValueError("lunch_start must be before lunch_end")
            if self.work_start is not None and not (
                self.work_start <= self.lunch_start and self.lunch_end <= self.work_end
            ):
                raise ValueError("Lunch break must fall within working hours")

        return self


class ProfileResponse(BaseModel):
    """Schema for profile responses; never carries the password."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: UUID
    organization_id: Optional[UUID] = None
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole
    is_active: bool
    work_start: Optional[time] = None
    lunch_start: Optional[time] = None
    lunch_end: Optional[time] = None
    work_end: Optional[time] = None
