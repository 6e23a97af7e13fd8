"""
Appointment lifecycle management.

Creation always yields a ``pending`` appointment and checkout always
yields ``done``; every other status change is a free-form update. Booking
checks the window against the organization's schedule blocks, and daycare
or boarding bookings additionally need an approved pet assessment.

The block lookup and the insert are separate statements, so a block
created between them is not seen by a concurrent booking. That race is
accepted.
"""

import logging
import uuid
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import (
    BusinessRuleException,
    SchedulingConflictException,
    StorageException,
    ValidationException,
)
from ..models.appointment import Appointment, AppointmentStatus
from ..models.pet import Pet
from ..models.pet_assessment import AssessmentStatus, PetAssessment
from ..models.profile import Profile
from ..models.service import Service, ServiceCategory
from ..schemas.appointment import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentStatusUpdate,
    PetAppointmentsQuery,
)
from ..utils.datetime_utils import (
    TimestampInput,
    appointment_window,
    boarding_scheduled_at,
)
from .base import ScopedService, validate_input
from .invalidation import APPOINTMENT_VIEWS, PETS_VIEW
from .schedule_blocks import ScheduleBlockManager
from .tenant import Operation, TenantContext, authorize

logger = logging.getLogger(__name__)


class AppointmentLifecycleManager(ScopedService):
    """Create appointments and move them through their lifecycle."""

    @property
    def blocks(self) -> ScheduleBlockManager:
        return ScheduleBlockManager(
            self.session, self.invalidator, self.settings, self.clock
        )

    async def ensure_not_blocked(
        self, context: TenantContext, window: Tuple[datetime, datetime]
    ) -> None:
        """
        Reject a window that intersects a schedule block of the organization.

        Raises:
            SchedulingConflictException: With the ids of the intersecting blocks
        """
        conflicts = await self.blocks.query(context, window[0], window[1])
        if conflicts:
            logger.info(
                f"Booking window {window[0].isoformat()} - {window[1].isoformat()} "
                f"hits {len(conflicts)} schedule block(s)"
            )
            raise SchedulingConflictException(block_ids=[block.id for block in conflicts])

    async def ensure_assessment_approved(
        self, context: TenantContext, pet_id: uuid.UUID, service: Service
    ) -> None:
        """
        Daycare and boarding need an approved assessment of the pet.

        Raises:
            BusinessRuleException: If the assessment is missing or not approved
        """
        if not service.requires_assessment:
            return

        status = await self.session.scalar(
            select(PetAssessment.status).where(
                PetAssessment.pet_id == pet_id,
                PetAssessment.organization_id == context.organization_id,
            )
        )
        if status != AssessmentStatus.APPROVED:
            raise BusinessRuleException(
                f"This pet needs an approved assessment for {service.category.value}",
                rule_name="assessment_required",
                context={
                    "pet_id": str(pet_id),
                    "assessment_status": status.value if status else None,
                },
            )

    def booking_window(
        self, scheduled_at: datetime, service: Service
    ) -> Tuple[datetime, datetime]:
        return appointment_window(
            scheduled_at,
            service.duration_minutes,
            self.settings.default_service_duration,
        )

    async def get(self, context: TenantContext, appointment_id: uuid.UUID) -> Appointment:
        """Load one appointment of the caller's organization."""
        return await self.get_scoped(Appointment, context, appointment_id, "appointment")

    async def list_for_pet(
        self,
        context: TenantContext,
        pet_id: uuid.UUID,
        category: ServiceCategory,
        limit: int = 10,
    ) -> List[Appointment]:
        """
        Most recent appointments of a pet in one service category, newest first.

        Appointments of other organizations are never returned.
        """
        authorize(context, Operation.LIST_PET_APPOINTMENTS)
        query = validate_input(
            PetAppointmentsQuery,
            {"pet_id": pet_id, "category": category, "limit": limit},
        )

        try:
            result = await self.session.execute(
                select(Appointment)
                .join(Service, Service.id == Appointment.service_id)
                .where(
                    Appointment.pet_id == query.pet_id,
                    Appointment.organization_id == context.organization_id,
                    Service.category == query.category,
                )
                .order_by(Appointment.scheduled_at.desc(), Appointment.id.desc())
                .limit(query.limit)
            )
        except SQLAlchemyError as e:
            raise StorageException(
                "Could not load the appointments of the pet",
                operation="list_pet_appointments",
                original_error=e,
            ) from e
        return list(result.scalars().all())

    async def create(
        self,
        context: TenantContext,
        pet_id: Optional[uuid.UUID],
        service_id: Optional[uuid.UUID],
        scheduled_at: Optional[TimestampInput] = None,
        staff_id: Optional[uuid.UUID] = None,
        notes: Optional[str] = None,
        check_in_date: Optional[date] = None,
        check_out_date: Optional[date] = None,
    ) -> Appointment:
        """
        Book a service for a pet.

        Boarding bookings that give both calendar dates may omit
        ``scheduled_at``; it then defaults to noon of the check-in day.

        Raises:
            SchemaValidationException: If pet, service or a field is malformed
            ValidationException: If no scheduled time can be determined
            NotFoundException: If pet, service or staff is not in the organization
            BusinessRuleException: If daycare or boarding lacks an approved assessment
            SchedulingConflictException: If the booking window hits a schedule block
            StorageException: If the insert fails
        """
        authorize(context, Operation.CREATE_APPOINTMENT)
        data = validate_input(
            AppointmentCreate,
            {
                "pet_id": pet_id,
                "service_id": service_id,
                "scheduled_at": scheduled_at,
                "staff_id": staff_id,
                "notes": notes,
                "check_in_date": check_in_date,
                "check_out_date": check_out_date,
            },
        )

        async with self.unit_of_work("create_appointment"):
            pet = await self.find_in_organization(Pet, context, data.pet_id, "pet")
            service = await self.find_in_organization(
                Service, context, data.service_id, "service"
            )
            if data.staff_id is not None:
                await self.find_in_organization(
                    Profile, context, data.staff_id, "staff member"
                )

            await self.ensure_assessment_approved(context, pet.id, service)

            if data.scheduled_at is not None:
                when = self.normalize(data.scheduled_at)
            elif service.is_boarding and data.check_in_date and data.check_out_date:
                when = boarding_scheduled_at(
                    data.check_in_date, self.settings.default_utc_offset
                )
            else:
                raise ValidationException(
                    "Scheduled time is required", field="scheduled_at"
                )

            await self.ensure_not_blocked(context, self.booking_window(when, service))

            appointment = Appointment(
                organization_id=context.organization_id,
                pet_id=pet.id,
                service_id=service.id,
                customer_id=pet.customer_id,
                staff_id=data.staff_id,
                scheduled_at=when,
                notes=data.notes,
                check_in_date=data.check_in_date if service.is_boarding else None,
                check_out_date=data.check_out_date if service.is_boarding else None,
            )
            self.session.add(appointment)

        logger.info(
            f"Appointment {appointment.id} booked for pet {pet.id} at {when.isoformat()}"
        )
        self.invalidate(context, APPOINTMENT_VIEWS + (PETS_VIEW,))
        return appointment

    async def set_status(
        self,
        context: TenantContext,
        appointment_id: uuid.UUID,
        new_status: AppointmentStatus,
    ) -> None:
        """
        Write any status, except moving a checked-out appointment away from ``done``.

        Raises:
            SchemaValidationException: If the status is not a known value
            BusinessRuleException: If a checked-out appointment would leave done
            NotFoundException: If the appointment does not exist
            ForbiddenException: If it belongs to another organization
        """
        authorize(context, Operation.SET_APPOINTMENT_STATUS)
        data = validate_input(AppointmentStatusUpdate, {"status": new_status})

        guards = []
        if data.status != AppointmentStatus.DONE:
            guards.append(Appointment.actual_check_out.is_(None))

        async with self.unit_of_work("set_appointment_status"):
            updated = await self.scoped_update(
                Appointment,
                context,
                appointment_id,
                {"status": data.status},
                "appointment",
                *guards,
            )
            if not updated:
                raise BusinessRuleException(
                    "A checked-out appointment must remain done",
                    rule_name="checked_out_is_done",
                    context={"requested_status": data.status.value},
                )

        logger.info(f"Appointment {appointment_id} status set to {data.status.value}")
        self.invalidate(context, APPOINTMENT_VIEWS)

    async def check_in(self, context: TenantContext, appointment_id: uuid.UUID) -> None:
        """Stamp the actual arrival; calling again overwrites the stamp."""
        authorize(context, Operation.CHECK_IN)
        now = self.clock()

        async with self.unit_of_work("check_in"):
            await self.scoped_update(
                Appointment,
                context,
                appointment_id,
                {"actual_check_in": now},
                "appointment",
            )

        logger.info(f"Appointment {appointment_id} checked in")
        self.invalidate(context, APPOINTMENT_VIEWS)

    async def check_out(self, context: TenantContext, appointment_id: uuid.UUID) -> None:
        """Stamp the actual departure and mark the appointment done in one write."""
        authorize(context, Operation.CHECK_OUT)
        now = self.clock()

        async with self.unit_of_work("check_out"):
            await self.scoped_update(
                Appointment,
                context,
                appointment_id,
                {"actual_check_out": now, "status": AppointmentStatus.DONE},
                "appointment",
            )

        logger.info(f"Appointment {appointment_id} checked out")
        self.invalidate(context, APPOINTMENT_VIEWS)

    async def reschedule(
        self,
        context: TenantContext,
        appointment_id: uuid.UUID,
        scheduled_at: TimestampInput,
        service_id: Optional[uuid.UUID] = None,
        notes: Optional[str] = None,
    ) -> None:
        """
        Move an appointment, optionally to another service.

        The new window is checked against schedule blocks like a new booking.

        Raises:
            BusinessRuleException: If the appointment was already checked out, or a
                new daycare or boarding service lacks an approved assessment
            NotFoundException: If the appointment or service is missing
            ForbiddenException: If the appointment belongs to another organization
            SchedulingConflictException: If the new window hits a schedule block
        """
        authorize(context, Operation.RESCHEDULE_APPOINTMENT)
        data = validate_input(
            AppointmentReschedule,
            {"scheduled_at": scheduled_at, "service_id": service_id, "notes": notes},
        )

        async with self.unit_of_work("reschedule_appointment"):
            appointment = await self.get(context, appointment_id)
            if appointment.is_checked_out:
                raise BusinessRuleException(
                    "A checked-out appointment cannot be rescheduled",
                    rule_name="checked_out_is_final",
                )

            service = await self.find_in_organization(
                Service, context, data.service_id or appointment.service_id, "service"
            )
            if service.id != appointment.service_id:
                await self.ensure_assessment_approved(
                    context, appointment.pet_id, service
                )
            when = self.normalize(data.scheduled_at)
            await self.ensure_not_blocked(context, self.booking_window(when, service))

            values = {"scheduled_at": when, "service_id": service.id}
            if data.notes is not None:
                values["notes"] = data.notes
            await self.scoped_update(
                Appointment, context, appointment_id, values, "appointment"
            )

        logger.info(f"Appointment {appointment_id} moved to {when.isoformat()}")
        self.invalidate(context, APPOINTMENT_VIEWS)

    async def delete(self, context: TenantContext, appointment_id: uuid.UUID) -> None:
        """
        Remove an appointment permanently.

        Raises:
            NotFoundException: If the appointment does not exist
            ForbiddenException: If it belongs to another organization
        """
        authorize(context, Operation.DELETE_APPOINTMENT)

        async with self.unit_of_work("delete_appointment"):
            result = await self.session.execute(
                delete(Appointment).where(
                    Appointment.id == appointment_id,
                    Appointment.organization_id == context.organization_id,
                )
            )
            if result.rowcount == 0:
                await self.raise_missing(Appointment, context, appointment_id, "appointment")

        logger.info(f"Appointment {appointment_id} deleted")
        self.invalidate(context, APPOINTMENT_VIEWS + (PETS_VIEW,))
