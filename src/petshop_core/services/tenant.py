"""
Tenant context resolution and role authorization.

Every scoped operation starts by resolving the caller's principal into a
:class:`TenantContext` and checking the role against the central
allow-list in :data:`ROLE_POLICY`.
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import (
    ForbiddenException,
    ProfileNotFoundException,
    StorageException,
    UnauthenticatedException,
)
from ..models.profile import Profile, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated identity as reported by the identity provider."""

    id: uuid.UUID
    email: Optional[str] = None


@dataclass(frozen=True)
class TenantContext:
    """Resolved caller: who they are, which organization, which role."""

    principal_id: uuid.UUID
    organization_id: uuid.UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role in (UserRole.SUPERADMIN, UserRole.ADMIN)


class Operation(enum.Enum):
    """Operations subject to role authorization."""

    CREATE_USER = "create_user"
    CREATE_PET = "create_pet"
    UPDATE_PET = "update_pet"
    DELETE_PET = "delete_pet"
    SUBMIT_PET_ASSESSMENT = "submit_pet_assessment"
    REVIEW_PET_ASSESSMENT = "review_pet_assessment"
    CREATE_SCHEDULE_BLOCK = "create_schedule_block"
    DELETE_SCHEDULE_BLOCK = "delete_schedule_block"
    QUERY_SCHEDULE_BLOCKS = "query_schedule_blocks"
    CREATE_APPOINTMENT = "create_appointment"
    SET_APPOINTMENT_STATUS = "set_appointment_status"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    UPDATE_CHECKLIST = "update_checklist"
    RESCHEDULE_APPOINTMENT = "reschedule_appointment"
    DELETE_APPOINTMENT = "delete_appointment"
    LIST_PET_APPOINTMENTS = "list_pet_appointments"


_ADMINS = frozenset({UserRole.SUPERADMIN, UserRole.ADMIN})
_STAFF = _ADMINS | {UserRole.STAFF}
_EVERYONE = frozenset(UserRole)

ROLE_POLICY: Dict[Operation, FrozenSet[UserRole]] = {
    Operation.CREATE_USER: _ADMINS,
    Operation.CREATE_PET: _STAFF,
    Operation.UPDATE_PET: _STAFF,
    Operation.DELETE_PET: _ADMINS,
    Operation.SUBMIT_PET_ASSESSMENT: _EVERYONE,
    Operation.REVIEW_PET_ASSESSMENT: _STAFF,
    Operation.CREATE_SCHEDULE_BLOCK: _STAFF,
    Operation.DELETE_SCHEDULE_BLOCK: _STAFF,
    Operation.QUERY_SCHEDULE_BLOCKS: _EVERYONE,
    Operation.CREATE_APPOINTMENT: _EVERYONE,
    Operation.SET_APPOINTMENT_STATUS: _EVERYONE,
    Operation.CHECK_IN: _EVERYONE,
    Operation.CHECK_OUT: _EVERYONE,
    Operation.UPDATE_CHECKLIST: _EVERYONE,
    Operation.RESCHEDULE_APPOINTMENT: _STAFF,
    Operation.DELETE_APPOINTMENT: _ADMINS,
    Operation.LIST_PET_APPOINTMENTS: _EVERYONE,
}


def authorize(context: TenantContext, operation: Operation) -> None:
    """
    Check the caller's role against the allow-list of an operation.

    Raises:
        ForbiddenException: If the role is not allowed
    """
    allowed = ROLE_POLICY.get(operation, frozenset())
    if context.role not in allowed:
        logger.info(
            f"Role '{context.role.value}' denied for '{operation.value}'",
            extra={"principal_id": str(context.principal_id)},
        )
        raise ForbiddenException(
            "You do not have permission to perform this action",
            operation=operation.value,
            role=context.role.value,
        )


class TenantContextResolver:
    """Maps a principal onto its organization and role."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve(self, principal: Optional[Principal]) -> TenantContext:
        """
        Resolve the tenant context of a principal.

        Raises:
            UnauthenticatedException: If there is no principal
            ProfileNotFoundException: If the principal has no profile or organization
            ForbiddenException: If the profile is deactivated
            StorageException: If the profile lookup fails
        """
        if principal is None:
            raise UnauthenticatedException()

        try:
            result = await self.session.execute(
                select(Profile).where(Profile.id == principal.id)
            )
            profile = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageException(
                "Failed to load profile", operation="resolve_tenant", original_error=e
            ) from e

        if profile is None or profile.organization_id is None:
            raise ProfileNotFoundException(principal_id=principal.id)

        if not profile.is_active:
            raise ForbiddenException("Profile is deactivated", role=profile.role.value)

        return TenantContext(
            principal_id=profile.id,
            organization_id=profile.organization_id,
            role=profile.role,
        )
