"""
User provisioning.

Creating a user takes two writes in two systems: the login identity in the
identity provider, then the profile in the database. When the profile
write fails the identity is deleted again. That compensating delete is
retried with exponential backoff, and a compensation that still fails is
logged so the orphaned identity can be cleaned up by hand.
"""

import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import ForbiddenException, StorageException, handle_database_retry
from ..models.customer import Customer
from ..models.profile import Profile, UserRole
from ..schemas.profile import ProfileCreate
from ..utils.config import PetShopSettings
from .base import Clock, ScopedService, validate_input
from .identity import IdentityProvider
from .invalidation import ViewInvalidator
from .tenant import Operation, TenantContext, authorize

logger = logging.getLogger(__name__)

USERS_VIEW = "users"


class UserProvisioningService(ScopedService):
    """Create users inside the caller's organization."""

    def __init__(
        self,
        session: AsyncSession,
        identity: IdentityProvider,
        invalidator: Optional[ViewInvalidator] = None,
        settings: Optional[PetShopSettings] = None,
        clock: Optional[Clock] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        super().__init__(session, invalidator, settings, clock)
        self.identity = identity
        self.sleep = sleep

    async def create_user(
        self, context: TenantContext, data: Mapping[str, Any]
    ) -> Profile:
        """
        Create an identity and its profile.

        Args:
            context: Resolved caller, which must be an admin
            data: Fields of :class:`ProfileCreate`

        Returns:
            The stored profile, whose id is the identity id

        Raises:
            ForbiddenException: If the caller may not create users or grant the role
            SchemaValidationException: If the data is invalid
            StorageException: If either write fails; details report whether
                the identity was removed again
        """
        authorize(context, Operation.CREATE_USER)
        payload = validate_input(ProfileCreate, dict(data))

        if payload.role == UserRole.SUPERADMIN and context.role != UserRole.SUPERADMIN:
            raise ForbiddenException(
                "Only a superadmin can grant the superadmin role",
                operation=Operation.CREATE_USER.value,
                role=context.role.value,
            )

        try:
            identity_id = await self.identity.create_identity(
                payload.email, payload.password, payload.full_name
            )
        except Exception as e:
            logger.error(f"Identity creation failed for {payload.email}: {e}")
            raise StorageException(
                "Could not create the login identity",
                operation="create_identity",
                original_error=e,
            ) from e

        try:
            profile = await self._upsert_profile(context, identity_id, payload)
        except StorageException as e:
            compensated = await self.compensate(identity_id)
            raise StorageException(
                "Could not create the user profile",
                operation="create_user",
                original_error=e.original_error or e,
                details={
                    "identity_id": str(identity_id),
                    "identity_removed": compensated,
                },
            ) from e

        logger.info(
            f"User {identity_id} created with role {payload.role.value} "
            f"in organization {context.organization_id}"
        )
        self.invalidate(context, [USERS_VIEW])
        return profile

    async def _upsert_profile(
        self, context: TenantContext, identity_id: uuid.UUID, payload: ProfileCreate
    ) -> Profile:
        async with self.unit_of_work("create_profile"):
            profile = await self.session.get(Profile, identity_id)
            if profile is None:
                profile = Profile(id=identity_id, email=payload.email)
                self.session.add(profile)

            profile.update_fields(
                organization_id=context.organization_id,
                email=payload.email,
                full_name=payload.full_name,
                phone=payload.phone,
                role=payload.role,
                is_active=True,
                work_start=payload.work_start,
                lunch_start=payload.lunch_start,
                lunch_end=payload.lunch_end,
                work_end=payload.work_end,
            )

            if payload.role == UserRole.CUSTOMER:
                await self.session.flush()
                self.session.add(
                    Customer(
                        organization_id=context.organization_id,
                        profile_id=identity_id,
                        name=payload.full_name,
                        phone=payload.phone,
                        email=payload.email,
                    )
                )
        return profile

    async def compensate(self, identity_id: uuid.UUID) -> bool:
        """
        Delete an identity whose profile could not be written.

        Returns:
            True when the identity was deleted, False when every attempt failed
        """

        @handle_database_retry(
            "delete_identity",
            max_retries=self.settings.compensation_retries,
            base_delay=self.settings.compensation_retry_delay,
            logger=logger,
            sleep=self.sleep,
        )
        async def delete_identity() -> None:
            try:
                await self.identity.delete_identity(identity_id)
            except Exception as e:
                raise StorageException(
                    "Could not delete the login identity",
                    operation="delete_identity",
                    original_error=e,
                ) from e

        try:
            await delete_identity()
        except StorageException as e:
            logger.error(
                f"Compensation failed: identity {identity_id} could not be deleted "
                f"after {e.details['attempts']} attempts: {e.original_error}",
                extra={"identity_id": str(identity_id)},
            )
            return False

        logger.info(f"Identity {identity_id} removed after failed profile write")
        return True
