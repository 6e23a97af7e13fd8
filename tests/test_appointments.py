"""
Tests for the appointment lifecycle: booking against schedule blocks,
status updates, check-in/check-out stamping, rescheduling and deletion.
"""

import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy import update

from petshop_core.exceptions import (
    BusinessRuleException,
    ForbiddenException,
    NotFoundException,
    SchedulingConflictException,
    SchemaValidationException,
    StorageException,
    ValidationException,
)
from petshop_core.models import (
    Appointment,
    AppointmentStatus,
    AssessmentStatus,
    ServiceCategory,
    UserRole,
)

UTC = timezone.utc
BRT = timezone(timedelta(hours=-3))

APPOINTMENT_VIEWS = ["agenda", "daycare", "grooming", "boarding"]

pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def holiday(block_manager, tenant_a, invalidator):
    """Organization A is closed all of 2024-06-01."""
    block = await block_manager.create(
        tenant_a.context,
        "2024-06-01T00:00:00-03:00",
        "2024-06-02T00:00:00-03:00",
        "Feriado",
    )
    invalidator.clear()
    return block.id


@pytest_asyncio.fixture
async def appointment_id(async_session, tenant_a, appointment_factory):
    appointment = await appointment_factory.create(
        async_session, tenant_a.organization_id, tenant_a.pet_id, tenant_a.service_id
    )
    return appointment.id


@pytest_asyncio.fixture
async def unassessed_pet_id(async_session, tenant_a, pet_factory):
    """A pet of organization A that has never been assessed."""
    pet = await pet_factory.create(
        async_session, tenant_a.organization_id, tenant_a.customer_id, name="Bolinha"
    )
    return pet.id


class TestCreateAppointment:
    """Test booking."""

    async def test_create(self, appointment_manager, tenant_a, invalidator):
        appointment = await appointment_manager.create(
            tenant_a.context,
            tenant_a.pet_id,
            tenant_a.service_id,
            scheduled_at="2024-06-03T10:00",
            staff_id=tenant_a.staff_id,
            notes="Usar shampoo hipoalergênico",
        )

        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.organization_id == tenant_a.organization_id
        assert appointment.customer_id == tenant_a.customer_id
        assert appointment.staff_id == tenant_a.staff_id
        assert appointment.scheduled_at == datetime(2024, 6, 3, 10, 0, tzinfo=BRT)
        assert appointment.checklist == []
        assert appointment.actual_check_in is None
        assert invalidator.views() == APPOINTMENT_VIEWS + ["pets"]

    async def test_blocked_for_one_organization_only(
        self, appointment_manager, tenant_a, tenant_b, holiday, invalidator
    ):
        with pytest.raises(SchedulingConflictException) as exc_info:
            await appointment_manager.create(
                tenant_a.context,
                tenant_a.pet_id,
                tenant_a.service_id,
                scheduled_at="2024-06-01T10:00:00-03:00",
            )
        assert exc_info.value.details["context"] == {"block_ids": [str(holiday)]}
        assert invalidator.events == []

        appointment = await appointment_manager.create(
            tenant_b.context,
            tenant_b.pet_id,
            tenant_b.service_id,
            scheduled_at="2024-06-01T10:00:00-03:00",
        )
        assert appointment.organization_id == tenant_b.organization_id

    async def test_conflict_persists_nothing(
        self, async_session, appointment_manager, tenant_a, holiday, count_rows
    ):
        with pytest.raises(SchedulingConflictException):
            await appointment_manager.create(
                tenant_a.context, tenant_a.pet_id, tenant_a.service_id, "2024-06-01T15:00"
            )
        assert await count_rows(async_session, Appointment) == 0

    async def test_service_duration_defines_the_window(
        self, appointment_manager, block_manager, tenant_a
    ):
        await block_manager.create(
            tenant_a.context, "2024-06-03T10:00", "2024-06-03T11:00", "Dedetização"
        )

        # 09:30 + 60 minutes runs into the block
        with pytest.raises(SchedulingConflictException):
            await appointment_manager.create(
                tenant_a.context, tenant_a.pet_id, tenant_a.service_id, "2024-06-03T09:30"
            )

        # Ending exactly when the block starts, or starting when it ends, is fine
        before = await appointment_manager.create(
            tenant_a.context, tenant_a.pet_id, tenant_a.service_id, "2024-06-03T09:00"
        )
        after = await appointment_manager.create(
            tenant_a.context, tenant_a.pet_id, tenant_a.service_id, "2024-06-03T11:00"
        )
        assert before.id != after.id

    async def test_boarding_defaults_to_noon_of_check_in(
        self, appointment_manager, tenant_a
    ):
        appointment = await appointment_manager.create(
            tenant_a.context,
            tenant_a.pet_id,
            tenant_a.boarding_service_id,
            check_in_date=date(2024, 6, 10),
            check_out_date=date(2024, 6, 12),
        )
        assert appointment.scheduled_at == datetime(2024, 6, 10, 15, 0, tzinfo=UTC)
        assert appointment.boarding_nights == 2

    async def test_boarding_dates_dropped_for_other_services(
        self, appointment_manager, tenant_a
    ):
        appointment = await appointment_manager.create(
            tenant_a.context,
            tenant_a.pet_id,
            tenant_a.service_id,
            scheduled_at="2024-06-10T10:00",
            check_in_date=date(2024, 6, 10),
            check_out_date=date(2024, 6, 12),
        )
        assert appointment.check_in_date is None
        assert appointment.check_out_date is None

    async def test_scheduled_time_required(self, appointment_manager, tenant_a):
        with pytest.raises(ValidationException) as exc_info:
            await appointment_manager.create(
                tenant_a.context, tenant_a.pet_id, tenant_a.service_id
            )
        assert exc_info.value.error_code == "VALIDATION_ERROR"
        assert exc_info.value.details["field"] == "scheduled_at"

    async def test_missing_pet(self, appointment_manager, tenant_a):
        with pytest.raises(SchemaValidationException):
            await appointment_manager.create(
                tenant_a.context, None, tenant_a.service_id, "2024-06-03T10:00"
            )

    async def test_pet_of_another_organization(self, appointment_manager, tenant_a, tenant_b):
        with pytest.raises(NotFoundException) as exc_info:
            await appointment_manager.create(
                tenant_a.context, tenant_b.pet_id, tenant_a.service_id, "2024-06-03T10:00"
            )
        assert exc_info.value.details["resource"] == "pet"

    async def test_service_of_another_organization(
        self, appointment_manager, tenant_a, tenant_b
    ):
        with pytest.raises(NotFoundException):
            await appointment_manager.create(
                tenant_a.context, tenant_a.pet_id, tenant_b.service_id, "2024-06-03T10:00"
            )

    async def test_staff_of_another_organization(
        self, appointment_manager, tenant_a, tenant_b
    ):
        with pytest.raises(NotFoundException):
            await appointment_manager.create(
                tenant_a.context,
                tenant_a.pet_id,
                tenant_a.service_id,
                "2024-06-03T10:00",
                staff_id=tenant_b.staff_id,
            )

    async def test_customers_may_book(
        self, async_session, appointment_manager, tenant_a, profile_factory
    ):
        tutor = await profile_factory.create(
            async_session, tenant_a.organization_id, role=UserRole.CUSTOMER
        )
        context = tenant_a.context_as(UserRole.CUSTOMER, tutor.id)
        appointment = await appointment_manager.create(
            context, tenant_a.pet_id, tenant_a.service_id, "2024-06-03T10:00"
        )
        assert appointment.status == AppointmentStatus.PENDING


class TestAssessmentRequirement:
    """Daycare and boarding need an approved assessment of the pet."""

    async def test_approved_pet_books_daycare(self, appointment_manager, tenant_a):
        appointment = await appointment_manager.create(
            tenant_a.context, tenant_a.pet_id, tenant_a.daycare_service_id, "2024-06-03T08:00"
        )
        assert appointment.service_id == tenant_a.daycare_service_id

    @pytest.mark.parametrize("service", ["daycare_service_id", "boarding_service_id"])
    async def test_unassessed_pet_is_rejected(
        self,
        async_session,
        appointment_manager,
        tenant_a,
        unassessed_pet_id,
        invalidator,
        count_rows,
        service,
    ):
        with pytest.raises(BusinessRuleException) as exc_info:
            await appointment_manager.create(
                tenant_a.context,
                unassessed_pet_id,
                getattr(tenant_a, service),
                "2024-06-03T08:00",
            )

        details = exc_info.value.details
        assert details["rule_name"] == "assessment_required"
        assert details["context"]["assessment_status"] is None
        assert await count_rows(async_session, Appointment) == 0
        assert invalidator.events == []

    @pytest.mark.parametrize(
        "status", [AssessmentStatus.PENDING, AssessmentStatus.REJECTED]
    )
    async def test_assessment_must_be_approved(
        self,
        async_session,
        appointment_manager,
        tenant_a,
        unassessed_pet_id,
        assessment_factory,
        status,
    ):
        await assessment_factory.create(
            async_session, tenant_a.organization_id, unassessed_pet_id, status=status
        )

        with pytest.raises(BusinessRuleException) as exc_info:
            await appointment_manager.create(
                tenant_a.context,
                unassessed_pet_id,
                tenant_a.daycare_service_id,
                "2024-06-03T08:00",
            )
        assert exc_info.value.details["context"]["assessment_status"] == status.value

    async def test_grooming_needs_no_assessment(
        self, appointment_manager, tenant_a, unassessed_pet_id
    ):
        appointment = await appointment_manager.create(
            tenant_a.context, unassessed_pet_id, tenant_a.service_id, "2024-06-03T08:00"
        )
        assert appointment.pet_id == unassessed_pet_id

    async def test_reschedule_into_daycare(
        self,
        async_session,
        appointment_manager,
        tenant_a,
        unassessed_pet_id,
        appointment_factory,
        reload,
    ):
        appointment = await appointment_factory.create(
            async_session, tenant_a.organization_id, unassessed_pet_id, tenant_a.service_id
        )
        appointment_id = appointment.id

        with pytest.raises(BusinessRuleException):
            await appointment_manager.reschedule(
                tenant_a.context,
                appointment_id,
                "2024-06-04T08:00",
                service_id=tenant_a.daycare_service_id,
            )
        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.service_id == tenant_a.service_id


class TestListForPet:
    """Test the per-pet appointment history."""

    async def test_newest_first_in_one_category(
        self, async_session, appointment_manager, tenant_a, appointment_factory
    ):
        for day, service_id in (
            (3, tenant_a.daycare_service_id),
            (5, tenant_a.daycare_service_id),
            (4, tenant_a.service_id),
            (1, tenant_a.daycare_service_id),
        ):
            await appointment_factory.create(
                async_session,
                tenant_a.organization_id,
                tenant_a.pet_id,
                service_id,
                scheduled_at=datetime(2024, 6, day, 8, 0, tzinfo=BRT),
            )

        appointments = await appointment_manager.list_for_pet(
            tenant_a.context, tenant_a.pet_id, ServiceCategory.DAYCARE
        )
        assert [a.scheduled_at.day for a in appointments] == [5, 3, 1]

    async def test_limit(self, async_session, appointment_manager, tenant_a, appointment_factory):
        for day in range(1, 13):
            await appointment_factory.create(
                async_session,
                tenant_a.organization_id,
                tenant_a.pet_id,
                tenant_a.service_id,
                scheduled_at=datetime(2024, 6, day, 10, 0, tzinfo=BRT),
            )

        latest = await appointment_manager.list_for_pet(
            tenant_a.context, tenant_a.pet_id, "grooming"
        )
        assert len(latest) == 10
        assert latest[0].scheduled_at.day == 12

        three = await appointment_manager.list_for_pet(
            tenant_a.context, tenant_a.pet_id, "Grooming", limit=3
        )
        assert [a.scheduled_at.day for a in three] == [12, 11, 10]

    async def test_other_organization_sees_nothing(
        self, appointment_manager, tenant_a, tenant_b, appointment_id
    ):
        assert (
            await appointment_manager.list_for_pet(
                tenant_b.context, tenant_a.pet_id, ServiceCategory.GROOMING
            )
            == []
        )

    async def test_unknown_category(self, appointment_manager, tenant_a):
        with pytest.raises(SchemaValidationException):
            await appointment_manager.list_for_pet(
                tenant_a.context, tenant_a.pet_id, "spa"
            )


class TestSetStatus:
    """Test free-form status updates."""

    async def test_any_transition(
        self, async_session, appointment_manager, tenant_a, appointment_id, reload
    ):
        for status in (
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.DONE,
            AppointmentStatus.PENDING,
            AppointmentStatus.NO_SHOW,
        ):
            await appointment_manager.set_status(tenant_a.context, appointment_id, status)
            stored = await reload(async_session, Appointment, appointment_id)
            assert stored.status == status

    async def test_accepts_string_spellings(
        self, async_session, appointment_manager, tenant_a, appointment_id, reload
    ):
        await appointment_manager.set_status(tenant_a.context, appointment_id, "Cancelled")
        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.status == AppointmentStatus.CANCELLED

    async def test_unknown_status(self, appointment_manager, tenant_a, appointment_id):
        with pytest.raises(SchemaValidationException):
            await appointment_manager.set_status(tenant_a.context, appointment_id, "archived")

    async def test_updates_timestamp(
        self, async_session, appointment_manager, tenant_a, appointment_id, clock, reload
    ):
        expected = clock.now
        await appointment_manager.set_status(
            tenant_a.context, appointment_id, AppointmentStatus.CONFIRMED
        )
        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.updated_at == expected

    async def test_checked_out_stays_done(
        self, async_session, appointment_manager, tenant_a, appointment_id, reload
    ):
        await appointment_manager.check_out(tenant_a.context, appointment_id)

        with pytest.raises(BusinessRuleException) as exc_info:
            await appointment_manager.set_status(
                tenant_a.context, appointment_id, AppointmentStatus.PENDING
            )
        assert exc_info.value.details["rule_name"] == "checked_out_is_done"

        await appointment_manager.set_status(
            tenant_a.context, appointment_id, AppointmentStatus.DONE
        )
        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.status == AppointmentStatus.DONE
        assert stored.actual_check_out is not None

    async def test_checkout_by_another_writer_is_seen(
        self, async_session, appointment_manager, tenant_a, appointment_id, reload, invalidator
    ):
        loaded = await appointment_manager.get(tenant_a.context, appointment_id)

        # Check the appointment out behind the session's back
        await async_session.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id)
            .values(
                actual_check_out=datetime(2024, 6, 3, 14, 0, tzinfo=UTC),
                status=AppointmentStatus.DONE,
            )
            .execution_options(synchronize_session=False)
        )
        await async_session.commit()
        assert loaded.actual_check_out is None

        with pytest.raises(BusinessRuleException) as exc_info:
            await appointment_manager.set_status(
                tenant_a.context, appointment_id, AppointmentStatus.CONFIRMED
            )
        assert exc_info.value.details["rule_name"] == "checked_out_is_done"

        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.status == AppointmentStatus.DONE
        assert invalidator.events == []

    async def test_unknown_appointment(self, appointment_manager, tenant_a):
        with pytest.raises(NotFoundException):
            await appointment_manager.set_status(
                tenant_a.context, uuid.uuid4(), AppointmentStatus.CONFIRMED
            )

    async def test_appointment_of_another_organization(
        self, async_session, appointment_manager, tenant_b, appointment_id, invalidator, reload
    ):
        with pytest.raises(ForbiddenException):
            await appointment_manager.set_status(
                tenant_b.context, appointment_id, AppointmentStatus.CANCELLED
            )
        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.status == AppointmentStatus.PENDING
        assert invalidator.events == []

    async def test_invalidates_appointment_views(
        self, appointment_manager, tenant_a, appointment_id, invalidator
    ):
        await appointment_manager.set_status(
            tenant_a.context, appointment_id, AppointmentStatus.CONFIRMED
        )
        assert invalidator.events == [
            (tenant_a.organization_id, view) for view in APPOINTMENT_VIEWS
        ]


class TestCheckInCheckOut:
    """Test arrival and departure stamps."""

    async def test_check_in_then_check_out(
        self, async_session, appointment_manager, tenant_a, appointment_id, reload
    ):
        await appointment_manager.check_in(tenant_a.context, appointment_id)
        await appointment_manager.check_out(tenant_a.context, appointment_id)

        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.actual_check_in is not None
        assert stored.actual_check_out is not None
        assert stored.actual_check_in < stored.actual_check_out
        assert stored.status == AppointmentStatus.DONE

    async def test_check_in_keeps_status(
        self, async_session, appointment_manager, tenant_a, appointment_id, clock, reload
    ):
        expected = clock.now
        await appointment_manager.check_in(tenant_a.context, appointment_id)

        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.actual_check_in == expected
        assert stored.status == AppointmentStatus.PENDING

    async def test_repeated_check_in_overwrites(
        self, async_session, appointment_manager, tenant_a, appointment_id, reload
    ):
        await appointment_manager.check_in(tenant_a.context, appointment_id)
        first = (await reload(async_session, Appointment, appointment_id)).actual_check_in

        await appointment_manager.check_in(tenant_a.context, appointment_id)
        second = (await reload(async_session, Appointment, appointment_id)).actual_check_in
        assert second > first

    async def test_check_out_without_check_in(
        self, async_session, appointment_manager, tenant_a, appointment_id, reload
    ):
        await appointment_manager.check_out(tenant_a.context, appointment_id)

        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.actual_check_in is None
        assert stored.is_checked_out
        assert stored.is_done

    async def test_cross_organization(
        self, async_session, appointment_manager, tenant_b, appointment_id, reload
    ):
        with pytest.raises(ForbiddenException):
            await appointment_manager.check_out(tenant_b.context, appointment_id)

        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.actual_check_out is None

    async def test_unknown_appointment(self, appointment_manager, tenant_a):
        with pytest.raises(NotFoundException):
            await appointment_manager.check_in(tenant_a.context, uuid.uuid4())


class TestStorageFailures:
    """A write the store rejects is rolled back and invalidates nothing."""

    @pytest.mark.parametrize(
        "operation,args,label",
        [
            ("set_status", (AppointmentStatus.CONFIRMED,), "set_appointment_status"),
            ("check_in", (), "check_in"),
            ("check_out", (), "check_out"),
        ],
    )
    async def test_rejected_update(
        self,
        async_session,
        appointment_manager,
        tenant_a,
        appointment_id,
        invalidator,
        reject_writes,
        reload,
        operation,
        args,
        label,
    ):
        await reject_writes("appointments")

        with pytest.raises(StorageException) as exc_info:
            await getattr(appointment_manager, operation)(
                tenant_a.context, appointment_id, *args
            )

        exc = exc_info.value
        assert exc.error_code == "STORAGE_ERROR"
        assert exc.details["operation"] == label
        assert "store rejected the write" in exc.details["original_error"]
        assert exc.original_error is not None

        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.status == AppointmentStatus.PENDING
        assert stored.actual_check_in is None
        assert stored.actual_check_out is None
        assert invalidator.events == []

    async def test_rejected_insert(
        self, async_session, appointment_manager, tenant_a, invalidator, reject_writes, count_rows
    ):
        await reject_writes("appointments", "INSERT")

        with pytest.raises(StorageException) as exc_info:
            await appointment_manager.create(
                tenant_a.context, tenant_a.pet_id, tenant_a.service_id, "2024-06-03T10:00"
            )

        assert exc_info.value.details["operation"] == "create_appointment"
        assert await count_rows(async_session, Appointment) == 0
        assert invalidator.events == []


class TestReschedule:
    """Test moving appointments."""

    async def test_reschedule(
        self, async_session, appointment_manager, tenant_a, appointment_id, invalidator, reload
    ):
        await appointment_manager.reschedule(
            tenant_a.context, appointment_id, "2024-06-04T15:00", notes="Remarcado"
        )

        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.scheduled_at == datetime(2024, 6, 4, 15, 0, tzinfo=BRT)
        assert stored.notes == "Remarcado"
        assert invalidator.views() == APPOINTMENT_VIEWS

    async def test_change_service(
        self, async_session, appointment_manager, tenant_a, appointment_id, reload
    ):
        await appointment_manager.reschedule(
            tenant_a.context,
            appointment_id,
            "2024-06-04T15:00",
            service_id=tenant_a.boarding_service_id,
        )
        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.service_id == tenant_a.boarding_service_id

    async def test_into_a_block(
        self, async_session, appointment_manager, tenant_a, appointment_id, holiday, reload
    ):
        with pytest.raises(SchedulingConflictException):
            await appointment_manager.reschedule(
                tenant_a.context, appointment_id, "2024-06-01T09:00"
            )
        stored = await reload(async_session, Appointment, appointment_id)
        assert stored.scheduled_at == datetime(2024, 6, 3, 10, 0, tzinfo=BRT)

    async def test_checked_out_is_final(self, appointment_manager, tenant_a, appointment_id):
        await appointment_manager.check_out(tenant_a.context, appointment_id)
        with pytest.raises(BusinessRuleException) as exc_info:
            await appointment_manager.reschedule(
                tenant_a.context, appointment_id, "2024-06-04T15:00"
            )
        assert exc_info.value.details["rule_name"] == "checked_out_is_final"

    async def test_customers_may_not_reschedule(
        self, appointment_manager, tenant_a, appointment_id
    ):
        with pytest.raises(ForbiddenException):
            await appointment_manager.reschedule(
                tenant_a.context_as(UserRole.CUSTOMER), appointment_id, "2024-06-04T15:00"
            )


class TestDeleteAppointment:
    """Test deletion."""

    async def test_admin_deletes(
        self, async_session, appointment_manager, tenant_a, appointment_id, invalidator, count_rows
    ):
        await appointment_manager.delete(tenant_a.context, appointment_id)

        assert await count_rows(async_session, Appointment) == 0
        assert invalidator.views() == APPOINTMENT_VIEWS + ["pets"]

    async def test_staff_may_not_delete(
        self, async_session, appointment_manager, tenant_a, appointment_id, count_rows
    ):
        with pytest.raises(ForbiddenException):
            await appointment_manager.delete(
                tenant_a.context_as(UserRole.STAFF, tenant_a.staff_id), appointment_id
            )
        assert await count_rows(async_session, Appointment) == 1

    async def test_other_organization(
        self, async_session, appointment_manager, tenant_b, appointment_id, count_rows
    ):
        with pytest.raises(ForbiddenException):
            await appointment_manager.delete(tenant_b.context, appointment_id)
        assert await count_rows(async_session, Appointment, id=appointment_id) == 1

    async def test_unknown(self, appointment_manager, tenant_a):
        with pytest.raises(NotFoundException):
            await appointment_manager.delete(tenant_a.context, uuid.uuid4())
