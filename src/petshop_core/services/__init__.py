"""
Tenant-scoped services of the appointment lifecycle engine.

Services receive an ``AsyncSession`` and a resolved :class:`TenantContext`
explicitly; none of them keeps global state.
"""

from .actions import PetShopActions
from .appointments import AppointmentLifecycleManager
from .assessments import PetAssessmentService
from .base import Clock, ScopedService, validate_input
from .checklist import ChecklistStore
from .identity import IdentityProvider
from .invalidation import (
    AGENDA_VIEW,
    APPOINTMENT_VIEWS,
    BOARDING_VIEW,
    DAYCARE_VIEW,
    GROOMING_VIEW,
    PETS_VIEW,
    LoggingViewInvalidator,
    RecordingViewInvalidator,
    ViewInvalidator,
)
from .pets import PetRegistry
from .schedule_blocks import ScheduleBlockManager, overlap_condition
from .tenant import (
    ROLE_POLICY,
    Operation,
    Principal,
    TenantContext,
    TenantContextResolver,
    authorize,
)
from .users import USERS_VIEW, UserProvisioningService

__all__ = [
    # Tenant context
    "Principal",
    "TenantContext",
    "TenantContextResolver",
    "Operation",
    "ROLE_POLICY",
    "authorize",
    # Collaborators
    "IdentityProvider",
    "ViewInvalidator",
    "LoggingViewInvalidator",
    "RecordingViewInvalidator",
    "AGENDA_VIEW",
    "DAYCARE_VIEW",
    "GROOMING_VIEW",
    "BOARDING_VIEW",
    "PETS_VIEW",
    "USERS_VIEW",
    "APPOINTMENT_VIEWS",
    # Services
    "Clock",
    "ScopedService",
    "validate_input",
    "ScheduleBlockManager",
    "overlap_condition",
    "AppointmentLifecycleManager",
    "ChecklistStore",
    "UserProvisioningService",
    "PetRegistry",
    "PetAssessmentService",
    "PetShopActions",
]
