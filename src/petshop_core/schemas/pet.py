"""
Pet Pydantic schemas for input validation and serialization.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.pet import PetGender, PetSize, PetSpecies


class PetBase(BaseModel):
    """Fields shared by pet create and update."""

    model_config = ConfigDict(str_strip_whitespace=True)

    breed: Optional[str] = Field(None, max_length=100)
    weight_kg: Optional[Decimal] = Field(None, gt=0, le=Decimal("200"), decimal_places=2)
    birth_date: Optional[date] = None
    medical_notes: Optional[str] = Field(None, max_length=5000)
    photo_url: Optional[str] = Field(None, max_length=500)

    @field_validator("birth_date")
    @classmethod
    def validate_birth_date(cls, v: Optional[date]) -> Optional[date]:
        """Birth date cannot be in the future."""
        if v is not None and v > date.today():
            raise ValueError("Birth date cannot be in the future")
        return v


class PetCreate(PetBase):
    """Schema for registering a pet."""

    customer_id: UUID = Field(..., description="Tutor who owns the pet")
    name: str = Field(..., min_length=1, max_length=100)
    species: PetSpecies = Field(PetSpecies.DOG)
    gender: PetGender
    size: PetSize
    is_neutered: bool = False
    vaccination_up_to_date: bool = False
    perfume_allowed: bool = True
    accessories_allowed: bool = True


class PetUpdate(PetBase):
    """Schema for partial pet updates; only fields sent are applied."""

    customer_id: Optional[UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    species: Optional[PetSpecies] = None
    gender: Optional[PetGender] = None
    size: Optional[PetSize] = None
    is_neutered: Optional[bool] = None
    vaccination_up_to_date: Optional[bool] = None
    perfume_allowed: Optional[bool] = None
    accessories_allowed: Optional[bool] = None

    @model_validator(mode="after")
    def validate_at_least_one_field(self) -> "PetUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class PetResponse(BaseModel):
    """Schema for pet responses."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: UUID
    organization_id: UUID
    customer_id: UUID
    name: str
    species: PetSpecies
    breed: Optional[str] = None
    gender: PetGender
    size: PetSize
    weight_kg: Optional[Decimal] = None
    birth_date: Optional[date] = None
    is_neutered: bool
    vaccination_up_to_date: bool
    perfume_allowed: bool
    accessories_allowed: bool
