"""
Action facade.

Each coroutine resolves the current principal, runs one operation and
reports the outcome as an :class:`ActionResult`. Domain errors become
``success=False`` results carrying the error's message and code; they are
logged on the way.
"""

import logging
import uuid
from datetime import date
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import PetShopCoreException, StorageException
from ..models.appointment import AppointmentStatus
from ..models.pet_assessment import AssessmentStatus
from ..models.service import ServiceCategory
from ..schemas.appointment import AppointmentResponse
from ..schemas.pet import PetResponse
from ..schemas.pet_assessment import PetAssessmentResponse
from ..schemas.profile import ProfileResponse
from ..schemas.result import ActionResult
from ..schemas.schedule_block import ScheduleBlockResponse
from ..utils.config import PetShopSettings
from ..utils.datetime_utils import TimestampInput
from .appointments import AppointmentLifecycleManager
from .assessments import PetAssessmentService
from .base import Clock
from .checklist import ChecklistStore
from .identity import IdentityProvider
from .invalidation import LoggingViewInvalidator, ViewInvalidator
from .pets import PetRegistry
from .schedule_blocks import ScheduleBlockManager
from .tenant import TenantContext, TenantContextResolver
from .users import UserProvisioningService

logger = logging.getLogger(__name__)


class PetShopActions:
    """Entry points for callers that expect a success flag and a message."""

    def __init__(
        self,
        session: AsyncSession,
        identity: IdentityProvider,
        invalidator: Optional[ViewInvalidator] = None,
        settings: Optional[PetShopSettings] = None,
        clock: Optional[Clock] = None,
    ):
        self.session = session
        self.identity = identity
        invalidator = invalidator or LoggingViewInvalidator()
        settings = settings or PetShopSettings()

        self.resolver = TenantContextResolver(session)
        self.blocks = ScheduleBlockManager(session, invalidator, settings, clock)
        self.appointments = AppointmentLifecycleManager(session, invalidator, settings, clock)
        self.checklists = ChecklistStore(session, invalidator, settings, clock)
        self.pets = PetRegistry(session, invalidator, settings, clock)
        self.assessments = PetAssessmentService(session, invalidator, settings, clock)
        self.users = UserProvisioningService(
            session, identity, invalidator, settings, clock
        )

    async def _run(
        self,
        action: str,
        operation: Callable[[TenantContext], Awaitable[Any]],
        success_message: str,
    ) -> ActionResult:
        try:
            context = await self.resolver.resolve(await self.identity.current_principal())
            data = await operation(context)
        except PetShopCoreException as e:
            level = logging.ERROR if isinstance(e, StorageException) else logging.WARNING
            e.log_error(logger, level=level)
            return ActionResult.from_exception(e)

        logger.debug(f"Action '{action}' completed for organization {context.organization_id}")
        return ActionResult.ok(success_message, data)

    # Schedule blocks

    async def create_schedule_block(
        self, start_at: TimestampInput, end_at: TimestampInput, reason: str
    ) -> ActionResult:
        async def operation(context: TenantContext) -> ScheduleBlockResponse:
            block = await self.blocks.create(context, start_at, end_at, reason)
            return ScheduleBlockResponse.model_validate(block)

        return await self._run("create_schedule_block", operation, "Schedule block created")

    async def delete_schedule_block(self, block_id: uuid.UUID) -> ActionResult:
        async def operation(context: TenantContext) -> None:
            await self.blocks.delete(context, block_id)

        return await self._run("delete_schedule_block", operation, "Schedule block removed")

    async def query_schedule_blocks(
        self, window_start: TimestampInput, window_end: TimestampInput
    ) -> ActionResult:
        async def operation(context: TenantContext) -> list:
            blocks = await self.blocks.query(context, window_start, window_end)
            return [ScheduleBlockResponse.model_validate(block) for block in blocks]

        return await self._run("query_schedule_blocks", operation, "Schedule blocks loaded")

    # Appointments

    async def create_appointment(
        self,
        pet_id: Optional[uuid.UUID],
        service_id: Optional[uuid.UUID],
        scheduled_at: Optional[TimestampInput] = None,
        staff_id: Optional[uuid.UUID] = None,
        notes: Optional[str] = None,
        check_in_date: Optional[date] = None,
        check_out_date: Optional[date] = None,
    ) -> ActionResult:
        async def operation(context: TenantContext) -> AppointmentResponse:
            appointment = await self.appointments.create(
                context,
                pet_id,
                service_id,
                scheduled_at=scheduled_at,
                staff_id=staff_id,
                notes=notes,
                check_in_date=check_in_date,
                check_out_date=check_out_date,
            )
            return AppointmentResponse.model_validate(appointment)

        return await self._run("create_appointment", operation, "Appointment created")

    async def set_appointment_status(
        self, appointment_id: uuid.UUID, new_status: AppointmentStatus
    ) -> ActionResult:
        async def operation(context: TenantContext) -> None:
            await self.appointments.set_status(context, appointment_id, new_status)

        return await self._run("set_appointment_status", operation, "Status updated")

    async def check_in(self, appointment_id: uuid.UUID) -> ActionResult:
        async def operation(context: TenantContext) -> None:
            await self.appointments.check_in(context, appointment_id)

        return await self._run("check_in", operation, "Check-in registered")

    async def check_out(self, appointment_id: uuid.UUID) -> ActionResult:
        async def operation(context: TenantContext) -> None:
            await self.appointments.check_out(context, appointment_id)

        return await self._run("check_out", operation, "Check-out registered")

    async def reschedule_appointment(
        self,
        appointment_id: uuid.UUID,
        scheduled_at: TimestampInput,
        service_id: Optional[uuid.UUID] = None,
        notes: Optional[str] = None,
    ) -> ActionResult:
        async def operation(context: TenantContext) -> None:
            await self.appointments.reschedule(
                context, appointment_id, scheduled_at, service_id=service_id, notes=notes
            )

        return await self._run("reschedule_appointment", operation, "Appointment rescheduled")

    async def delete_appointment(self, appointment_id: uuid.UUID) -> ActionResult:
        async def operation(context: TenantContext) -> None:
            await self.appointments.delete(context, appointment_id)

        return await self._run("delete_appointment", operation, "Appointment deleted")

    async def list_pet_appointments(
        self, pet_id: uuid.UUID, category: ServiceCategory, limit: int = 10
    ) -> ActionResult:
        async def operation(context: TenantContext) -> list:
            appointments = await self.appointments.list_for_pet(
                context, pet_id, category, limit=limit
            )
            return [AppointmentResponse.model_validate(a) for a in appointments]

        return await self._run("list_pet_appointments", operation, "Appointments loaded")

    async def update_checklist(
        self, appointment_id: uuid.UUID, items: Iterable[Mapping[str, Any]]
    ) -> ActionResult:
        async def operation(context: TenantContext) -> None:
            await self.checklists.update_checklist(context, appointment_id, items)

        return await self._run("update_checklist", operation, "Checklist saved")

    # Users and pets

    async def create_user(self, data: Mapping[str, Any]) -> ActionResult:
        async def operation(context: TenantContext) -> ProfileResponse:
            profile = await self.users.create_user(context, data)
            return ProfileResponse.model_validate(profile)

        return await self._run("create_user", operation, "User created")

    async def create_pet(self, data: Mapping[str, Any]) -> ActionResult:
        async def operation(context: TenantContext) -> PetResponse:
            pet = await self.pets.create(context, data)
            return PetResponse.model_validate(pet)

        return await self._run("create_pet", operation, "Pet registered")

    async def update_pet(self, pet_id: uuid.UUID, data: Mapping[str, Any]) -> ActionResult:
        async def operation(context: TenantContext) -> PetResponse:
            pet = await self.pets.update(context, pet_id, data)
            return PetResponse.model_validate(pet)

        return await self._run("update_pet", operation, "Pet updated")

    async def delete_pet(self, pet_id: uuid.UUID) -> ActionResult:
        async def operation(context: TenantContext) -> None:
            await self.pets.delete(context, pet_id)

        return await self._run("delete_pet", operation, "Pet removed")

    async def submit_pet_assessment(
        self, pet_id: uuid.UUID, data: Mapping[str, Any]
    ) -> ActionResult:
        async def operation(context: TenantContext) -> PetAssessmentResponse:
            assessment = await self.assessments.submit(context, pet_id, data)
            return PetAssessmentResponse.model_validate(assessment)

        return await self._run("submit_pet_assessment", operation, "Assessment saved")

    async def review_pet_assessment(
        self,
        pet_id: uuid.UUID,
        status: AssessmentStatus,
        review_notes: Optional[str] = None,
    ) -> ActionResult:
        async def operation(context: TenantContext) -> PetAssessmentResponse:
            assessment = await self.assessments.review(context, pet_id, status, review_notes)
            return PetAssessmentResponse.model_validate(assessment)

        return await self._run("review_pet_assessment", operation, "Assessment reviewed")
