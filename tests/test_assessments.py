"""
Tests for pet assessment submission and review.
"""

import uuid

import pytest
import pytest_asyncio

from petshop_core.exceptions import (
    ForbiddenException,
    NotFoundException,
    SchemaValidationException,
)
from petshop_core.models import AssessmentStatus, PetAssessment, UserRole
from petshop_core.services import PetAssessmentService

pytestmark = pytest.mark.integration

ANSWERS = {
    "sociable_with_dogs": True,
    "separation_anxiety": False,
    "medication": "  ",
    "feeding_routine": "Ração duas vezes ao dia",
}


@pytest.fixture
def assessment_service(async_session, invalidator, settings, clock) -> PetAssessmentService:
    return PetAssessmentService(async_session, invalidator, settings, clock)


@pytest_asyncio.fixture
async def pet_id(async_session, tenant_a, pet_factory):
    """A pet of organization A without an assessment."""
    pet = await pet_factory.create(
        async_session, tenant_a.organization_id, tenant_a.customer_id, name="Bolinha"
    )
    return pet.id


def submission(**overrides):
    data = {"answers": dict(ANSWERS), "owner_declaration_accepted": True}
    data.update(overrides)
    return data


class TestSubmitAssessment:
    """Test questionnaire submission."""

    async def test_submit_creates_pending_assessment(
        self, async_session, assessment_service, tenant_a, pet_id, clock, invalidator, reload
    ):
        expected = clock.now
        assessment = await assessment_service.submit(tenant_a.context, pet_id, submission())

        stored = await reload(async_session, PetAssessment, assessment.id)
        assert stored.status == AssessmentStatus.PENDING
        assert stored.organization_id == tenant_a.organization_id
        assert stored.answers["medication"] is None
        assert stored.answers["feeding_routine"] == "Ração duas vezes ao dia"
        assert stored.owner_declaration_accepted is True
        assert stored.declaration_accepted_at == expected
        assert invalidator.views() == ["pets"]

    async def test_resubmission_keeps_review_outcome(
        self, async_session, assessment_service, tenant_a, count_rows, reload
    ):
        first = await assessment_service.submit(
            tenant_a.context, tenant_a.pet_id, submission(answers={"sociable_with_dogs": False})
        )

        stored = await reload(async_session, PetAssessment, first.id)
        assert stored.status == AssessmentStatus.APPROVED
        assert stored.answers == {"sociable_with_dogs": False}
        assert await count_rows(async_session, PetAssessment, pet_id=tenant_a.pet_id) == 1

    async def test_declaration_is_required(
        self, async_session, assessment_service, tenant_a, pet_id, invalidator, count_rows
    ):
        with pytest.raises(SchemaValidationException) as exc_info:
            await assessment_service.submit(
                tenant_a.context, pet_id, submission(owner_declaration_accepted=False)
            )

        assert "owner_declaration_accepted" in exc_info.value.details["validation_errors"]
        assert await count_rows(async_session, PetAssessment, pet_id=pet_id) == 0
        assert invalidator.events == []

    async def test_pet_of_another_organization(
        self, async_session, assessment_service, tenant_b, pet_id, count_rows
    ):
        with pytest.raises(NotFoundException) as exc_info:
            await assessment_service.submit(tenant_b.context, pet_id, submission())

        assert exc_info.value.details["resource"] == "pet"
        assert await count_rows(async_session, PetAssessment, pet_id=pet_id) == 0

    async def test_customers_may_submit(self, assessment_service, tenant_a, pet_id):
        assessment = await assessment_service.submit(
            tenant_a.context_as(UserRole.CUSTOMER), pet_id, submission()
        )
        assert assessment.status == AssessmentStatus.PENDING


class TestReviewAssessment:
    """Test approval and rejection."""

    @pytest_asyncio.fixture
    async def submitted(self, assessment_service, tenant_a, pet_id, invalidator):
        await assessment_service.submit(tenant_a.context, pet_id, submission())
        invalidator.clear()

    async def test_staff_approves(
        self, async_session, assessment_service, tenant_a, pet_id, submitted, invalidator, reload
    ):
        context = tenant_a.context_as(UserRole.STAFF, tenant_a.staff_id)
        assessment = await assessment_service.review(
            context, pet_id, "Approved", review_notes="  Convive bem  "
        )

        stored = await reload(async_session, PetAssessment, assessment.id)
        assert stored.is_approved
        assert stored.reviewed_by == tenant_a.staff_id
        assert stored.reviewed_at is not None
        assert stored.review_notes == "Convive bem"
        assert invalidator.views() == ["pets"]

    async def test_reject(self, assessment_service, tenant_a, pet_id, submitted):
        assessment = await assessment_service.review(
            tenant_a.context, pet_id, AssessmentStatus.REJECTED
        )
        assert assessment.status == AssessmentStatus.REJECTED

    async def test_customers_may_not_review(
        self, async_session, assessment_service, tenant_a, pet_id, submitted, reload
    ):
        with pytest.raises(ForbiddenException):
            await assessment_service.review(
                tenant_a.context_as(UserRole.CUSTOMER), pet_id, AssessmentStatus.APPROVED
            )

        assessment = await assessment_service.find(tenant_a.context, pet_id)
        stored = await reload(async_session, PetAssessment, assessment.id)
        assert stored.status == AssessmentStatus.PENDING

    async def test_review_must_decide(self, assessment_service, tenant_a, pet_id, submitted):
        with pytest.raises(SchemaValidationException):
            await assessment_service.review(tenant_a.context, pet_id, "pending")

    async def test_missing_assessment(self, assessment_service, tenant_a, pet_id, invalidator):
        with pytest.raises(NotFoundException) as exc_info:
            await assessment_service.review(tenant_a.context, pet_id, "approved")

        assert exc_info.value.details["resource"] == "assessment"
        assert invalidator.events == []

    async def test_other_organization_cannot_see_it(
        self, assessment_service, tenant_a, tenant_b, pet_id, submitted
    ):
        assert await assessment_service.find(tenant_b.context, pet_id) is None
        with pytest.raises(NotFoundException):
            await assessment_service.review(tenant_b.context, pet_id, "approved")

    async def test_approval_unlocks_daycare(
        self, assessment_service, appointment_manager, tenant_a, pet_id, submitted
    ):
        await assessment_service.review(tenant_a.context, pet_id, AssessmentStatus.APPROVED)

        appointment = await appointment_manager.create(
            tenant_a.context, pet_id, tenant_a.daycare_service_id, "2024-06-03T08:00"
        )
        assert appointment.pet_id == pet_id

    async def test_unknown_pet(self, assessment_service, tenant_a):
        with pytest.raises(NotFoundException):
            await assessment_service.review(tenant_a.context, uuid.uuid4(), "approved")
