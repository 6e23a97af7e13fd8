"""
Pet assessments.

Tutors or staff submit the questionnaire; staff approve or reject it.
Only a pet with an approved assessment can be booked for daycare or
boarding (see :meth:`AppointmentLifecycleManager.create`).
"""

import logging
import uuid
from typing import Any, Mapping, Optional

from sqlalchemy import select

from ..exceptions import NotFoundException
from ..models.pet import Pet
from ..models.pet_assessment import AssessmentStatus, PetAssessment
from ..schemas.pet_assessment import PetAssessmentReview, PetAssessmentSubmit
from .base import ScopedService, validate_input
from .invalidation import PETS_VIEW
from .tenant import Operation, TenantContext, authorize

logger = logging.getLogger(__name__)


class PetAssessmentService(ScopedService):
    """Submit and review pet assessments."""

    async def find(
        self, context: TenantContext, pet_id: uuid.UUID
    ) -> Optional[PetAssessment]:
        """The assessment of a pet of the caller's organization, if any."""
        result = await self.session.execute(
            select(PetAssessment).where(
                PetAssessment.pet_id == pet_id,
                PetAssessment.organization_id == context.organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def submit(
        self, context: TenantContext, pet_id: uuid.UUID, data: Mapping[str, Any]
    ) -> PetAssessment:
        """
        Store the questionnaire of a pet.

        A second submission replaces the answers and keeps the review
        outcome.

        Raises:
            SchemaValidationException: If the declaration is not accepted
            NotFoundException: If the pet is not in the organization
        """
        authorize(context, Operation.SUBMIT_PET_ASSESSMENT)
        payload = validate_input(PetAssessmentSubmit, dict(data))
        now = self.clock()

        async with self.unit_of_work("submit_pet_assessment"):
            await self.find_in_organization(Pet, context, pet_id, "pet")
            assessment = await self.find(context, pet_id)
            if assessment is None:
                assessment = PetAssessment(
                    organization_id=context.organization_id, pet_id=pet_id
                )
                self.session.add(assessment)

            assessment.update_fields(
                answers=payload.answers,
                owner_declaration_accepted=payload.owner_declaration_accepted,
                declaration_accepted_at=now,
            )

        logger.info(f"Assessment of pet {pet_id} submitted")
        self.invalidate(context, [PETS_VIEW])
        return assessment

    async def review(
        self,
        context: TenantContext,
        pet_id: uuid.UUID,
        status: AssessmentStatus,
        review_notes: Optional[str] = None,
    ) -> PetAssessment:
        """
        Approve or reject the assessment of a pet.

        Raises:
            ForbiddenException: If the role may not review assessments
            SchemaValidationException: If the status is not approved or rejected
            NotFoundException: If the pet has no assessment in the organization
        """
        authorize(context, Operation.REVIEW_PET_ASSESSMENT)
        payload = validate_input(
            PetAssessmentReview, {"status": status, "review_notes": review_notes}
        )

        async with self.unit_of_work("review_pet_assessment"):
            assessment = await self.find(context, pet_id)
            if assessment is None:
                raise NotFoundException(
                    "Assessment not found", resource="assessment", resource_id=pet_id
                )
            assessment.update_fields(
                status=payload.status,
                review_notes=payload.review_notes,
                reviewed_by=context.principal_id,
                reviewed_at=self.clock(),
            )

        logger.info(f"Assessment of pet {pet_id} {payload.status.value}")
        self.invalidate(context, [PETS_VIEW])
        return assessment
