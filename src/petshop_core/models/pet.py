"""
Pet model for the petshop-core package.

This module contains the Pet SQLAlchemy model. Pets belong to a customer
and carry the organization id of that customer for tenant scoping.
"""

import enum
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean, CheckConstraint, Date, ForeignKey, Index, Numeric, String, Text, text
)
from sqlalchemy.orm import Mapped, mapped_column

from ..database.types import value_enum
from .base import BaseModel


class PetSpecies(enum.Enum):
    """Enumeration of species handled by the shop."""

    DOG = "dog"
    CAT = "cat"
    OTHER = "other"


class PetGender(enum.Enum):
    """Enumeration of pet genders."""

    MALE = "male"
    FEMALE = "female"


class PetSize(enum.Enum):
    """Enumeration of pet size categories."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    GIANT = "giant"


class Pet(BaseModel):
    """Pet registered for a customer of an organization."""

    __tablename__ = "pets"

    def __init__(self, **kwargs):
        """Initialize Pet with default values."""
        for flag in ("is_neutered", "vaccination_up_to_date"):
            kwargs.setdefault(flag, False)
        for flag in ("perfume_allowed", "accessories_allowed"):
            kwargs.setdefault(flag, True)

        super().__init__(**kwargs)

    customer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Tutor who owns the pet",
    )

    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Denormalized from the customer for tenant scoping",
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    species: Mapped[PetSpecies] = mapped_column(
        value_enum(PetSpecies, "pet_species"),
        nullable=False,
    )

    breed: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    gender: Mapped[PetGender] = mapped_column(
        value_enum(PetGender, "pet_gender"),
        nullable=False,
    )

    size: Mapped[PetSize] = mapped_column(
        value_enum(PetSize, "pet_size"),
        nullable=False,
    )

    weight_kg: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 2),
        nullable=True,
    )

    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    is_neutered: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    medical_notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Existing conditions and care notes",
    )

    vaccination_up_to_date: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    photo_url: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Reference into object storage",
    )

    # Grooming preferences
    perfume_allowed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    accessories_allowed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )

    __table_args__ = (
        CheckConstraint(
            "weight_kg IS NULL OR weight_kg > 0",
            name="ck_pets_weight_positive",
        ),
        Index("idx_pets_org_customer", "organization_id", "customer_id"),
    )

    def __repr__(self) -> str:
        return f"<Pet(id={self.id}, name='{self.name}', species='{self.species.value}')>"
