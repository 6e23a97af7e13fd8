"""
Pet registry.

Pets are registered for a customer of the caller's organization; a
customer of any other organization is reported as not found.
"""

import logging
import uuid
from typing import Any, Mapping

from sqlalchemy import delete

from ..models.customer import Customer
from ..models.pet import Pet
from ..schemas.pet import PetCreate, PetUpdate
from .base import ScopedService, validate_input
from .invalidation import APPOINTMENT_VIEWS, PETS_VIEW
from .tenant import Operation, TenantContext, authorize

logger = logging.getLogger(__name__)

# Columns that may be cleared by an update
_NULLABLE_FIELDS = {"breed", "weight_kg", "birth_date", "medical_notes", "photo_url"}


class PetRegistry(ScopedService):
    """Create, update and delete pets."""

    async def create(self, context: TenantContext, data: Mapping[str, Any]) -> Pet:
        """
        Register a pet.

        Raises:
            ForbiddenException: If the role may not register pets
            SchemaValidationException: If the data is invalid
            NotFoundException: If the customer is not in the organization
        """
        authorize(context, Operation.CREATE_PET)
        payload = validate_input(PetCreate, dict(data))

        async with self.unit_of_work("create_pet"):
            await self.find_in_organization(
                Customer, context, payload.customer_id, "customer"
            )
            pet = Pet(organization_id=context.organization_id, **payload.model_dump())
            self.session.add(pet)

        logger.info(f"Pet {pet.id} registered for customer {pet.customer_id}")
        self.invalidate(context, [PETS_VIEW])
        return pet

    async def update(
        self, context: TenantContext, pet_id: uuid.UUID, data: Mapping[str, Any]
    ) -> Pet:
        """
        Apply the fields present in ``data`` to a pet.

        Raises:
            NotFoundException: If the pet or a new customer is missing
            ForbiddenException: If the pet belongs to another organization
        """
        authorize(context, Operation.UPDATE_PET)
        payload = validate_input(PetUpdate, dict(data))
        changes = {
            field: value
            for field, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or field in _NULLABLE_FIELDS
        }

        async with self.unit_of_work("update_pet"):
            pet = await self.get_scoped(Pet, context, pet_id, "pet")
            if "customer_id" in changes:
                await self.find_in_organization(
                    Customer, context, changes["customer_id"], "customer"
                )
            pet.update_fields(**changes)

        logger.info(f"Pet {pet_id} updated: {sorted(changes)}")
        self.invalidate(context, [PETS_VIEW])
        return pet

    async def delete(self, context: TenantContext, pet_id: uuid.UUID) -> None:
        """
        Delete a pet and, through the foreign key, its appointments.

        Raises:
            NotFoundException: If the pet does not exist
            ForbiddenException: If it belongs to another organization
        """
        authorize(context, Operation.DELETE_PET)

        async with self.unit_of_work("delete_pet"):
            result = await self.session.execute(
                delete(Pet).where(
                    Pet.id == pet_id,
                    Pet.organization_id == context.organization_id,
                )
            )
            if result.rowcount == 0:
                await self.raise_missing(Pet, context, pet_id, "pet")

        logger.info(f"Pet {pet_id} deleted")
        self.invalidate(context, (PETS_VIEW,) + APPOINTMENT_VIEWS)
