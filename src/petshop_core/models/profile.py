"""
Profile model for the petshop-core package.

A profile maps an authenticated identity to its organization and role.
Profiles are never deleted; they are deactivated through ``is_active``.
"""

import enum
import uuid
from datetime import datetime, time
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, String, Time, text
from sqlalchemy.orm import Mapped, mapped_column

from ..database.types import value_enum
from ..utils.datetime_utils import is_within_working_hours
from .base import BaseModel


class UserRole(enum.Enum):
    """Closed set of principal roles."""

    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    STAFF = "staff"
    CUSTOMER = "customer"


class Profile(BaseModel):
    """
    Principal profile with role and organization membership.

    The primary key equals the identity id issued by the identity provider.
    """

    __tablename__ = "profiles"

    def __init__(self, **kwargs):
        """Initialize Profile with default values."""
        if "role" not in kwargs:
            kwargs["role"] = UserRole.CUSTOMER
        if "is_active" not in kwargs:
            kwargs["is_active"] = True

        super().__init__(**kwargs)

    organization_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("organizations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Organization the principal belongs to",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Login email",
    )

    full_name: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
    )

    role: Mapped[UserRole] = mapped_column(
        value_enum(UserRole, "user_role"),
        nullable=False,
        default=UserRole.CUSTOMER,
        index=True,
        comment="Role used by the access-control allow-lists",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
        comment="Soft deactivation flag",
    )

    # Working-hours template
    work_start: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    lunch_start: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    lunch_end: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    work_end: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    __table_args__ = (
        Index("idx_profiles_org_role", "organization_id", "role"),
    )

    def __repr__(self) -> str:
        return (
            f"<Profile(id={self.id}, organization_id={self.organization_id}, "
            f"role='{self.role.value}')>"
        )

    @property
    def is_admin(self) -> bool:
        """Check if the profile administers its organization."""
        return self.role in {UserRole.SUPERADMIN, UserRole.ADMIN}

    @property
    def is_staff_member(self) -> bool:
        """Check if the profile works for the organization."""
        return self.role in {UserRole.SUPERADMIN, UserRole.ADMIN, UserRole.STAFF}

    def is_working_at(self, moment: datetime) -> bool:
        """
        Check a local datetime against the working-hours template.

        Profiles without a template are considered always available.
        """
        return is_within_working_hours(
            moment.timetz().replace(tzinfo=None),
            self.work_start,
            self.work_end,
            self.lunch_start,
            self.lunch_end,
        )

    def deactivate(self) -> None:
        """Deactivate the profile; it can no longer resolve a tenant context."""
        self.is_active = False
