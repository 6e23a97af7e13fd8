"""
Appointment model for the petshop-core package.

This module contains the Appointment SQLAlchemy model: a scheduled service
instance for one pet, with its status, checklist and the actual arrival
and departure stamps.
"""

import enum
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..database.types import JSONType, UTCDateTime, value_enum
from .base import BaseModel


class AppointmentStatus(enum.Enum):
    """Enumeration of appointment statuses, as stored."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    CANCELLED = "canceled"
    NO_SHOW = "no_show"


class Appointment(BaseModel):
    """
    Appointment with lifecycle stamps.

    ``scheduled_at`` is the booked instant. ``actual_check_in`` and
    ``actual_check_out`` record when the pet really arrived and left; a
    checked-out appointment is always ``done`` (enforced by a check
    constraint). Boarding stays additionally carry calendar dates.
    """

    __tablename__ = "appointments"

    def __init__(self, **kwargs):
        """Initialize Appointment with default values."""
        if "status" not in kwargs:
            kwargs["status"] = AppointmentStatus.PENDING
        if "checklist" not in kwargs:
            kwargs["checklist"] = []

        super().__init__(**kwargs)

    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    pet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    service_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("services.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Tutor of the pet at booking time",
    )

    staff_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Assigned staff member",
    )

    scheduled_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        index=True,
    )

    status: Mapped[AppointmentStatus] = mapped_column(
        value_enum(AppointmentStatus, "appointment_status"),
        nullable=False,
        default=AppointmentStatus.PENDING,
        index=True,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    checklist: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        comment="Ordered list of {task, done, completed_at}",
    )

    actual_check_in: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    actual_check_out: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    # Boarding stays
    check_in_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    check_out_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "actual_check_out IS NULL OR status = 'done'",
            name="ck_appointments_checked_out_is_done",
        ),
        CheckConstraint(
            "check_out_date IS NULL OR check_in_date IS NULL OR check_out_date >= check_in_date",
            name="ck_appointments_boarding_dates_ordered",
        ),
        Index("idx_appointments_org_scheduled", "organization_id", "scheduled_at"),
        Index("idx_appointments_org_status", "organization_id", "status"),
        Index("idx_appointments_staff_scheduled", "staff_id", "scheduled_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Appointment(id={self.id}, pet_id={self.pet_id}, "
            f"scheduled_at='{self.scheduled_at}', status='{self.status.value}')>"
        )

    @property
    def is_checked_in(self) -> bool:
        return self.actual_check_in is not None

    @property
    def is_checked_out(self) -> bool:
        return self.actual_check_out is not None

    @property
    def is_done(self) -> bool:
        return self.status == AppointmentStatus.DONE

    @property
    def stay_minutes(self) -> Optional[int]:
        """Minutes between actual check-in and check-out, when both are stamped."""
        if self.actual_check_in and self.actual_check_out:
            return int((self.actual_check_out - self.actual_check_in).total_seconds() // 60)
        return None

    @property
    def boarding_nights(self) -> Optional[int]:
        """Nights of a boarding stay; a same-day stay counts as one."""
        if self.check_in_date and self.check_out_date:
            return max((self.check_out_date - self.check_in_date).days, 1)
        return None

    @property
    def checklist_progress(self) -> Optional[float]:
        """Fraction of checklist tasks marked done, None for an empty checklist."""
        if not self.checklist:
            return None
        done = sum(1 for item in self.checklist if item.get("done"))
        return done / len(self.checklist)
