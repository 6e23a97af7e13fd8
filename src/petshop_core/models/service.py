"""
Service model for the petshop-core package.

Services are the bookable offerings of an organization. Only their
category and duration matter to the scheduling engine; pricing fields
are carried as metadata.
"""

import enum
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column

from ..database.types import value_enum
from .base import BaseModel


class ServiceCategory(enum.Enum):
    """Closed set of service categories."""

    GROOMING = "grooming"
    DAYCARE = "daycare"
    BOARDING = "boarding"
    OTHER = "other"


class Service(BaseModel):
    """Bookable service of an organization."""

    __tablename__ = "services"

    def __init__(self, **kwargs):
        """Initialize Service with default values."""
        kwargs.setdefault("category", ServiceCategory.OTHER)
        kwargs.setdefault("duration_minutes", 60)
        kwargs.setdefault("is_active", True)

        super().__init__(**kwargs)

    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    category: Mapped[ServiceCategory] = mapped_column(
        value_enum(ServiceCategory, "service_category"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    duration_minutes: Mapped[int] = mapped_column(
        nullable=False,
        default=60,
        comment="Time the service occupies on the agenda",
    )

    base_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )

    __table_args__ = (
        CheckConstraint(
            "duration_minutes > 0",
            name="ck_services_duration_positive",
        ),
    )

    @property
    def is_boarding(self) -> bool:
        return self.category == ServiceCategory.BOARDING

    @property
    def requires_assessment(self) -> bool:
        """Daycare and boarding need an approved pet assessment."""
        return self.category in (ServiceCategory.DAYCARE, ServiceCategory.BOARDING)

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, name='{self.name}', category='{self.category.value}')>"
