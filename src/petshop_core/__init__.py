"""
Petshop Core Package

The appointment lifecycle and schedule-conflict engine of a multi-tenant
pet-shop manager: boarding, daycare and grooming bookings, the
administrative blocks that forbid scheduling, and the tenant and role
checks around them.

It includes:

- SQLAlchemy models for the tenant-scoped entities (Organizations, Profiles,
  Customers, Pets, Services, Appointments, Schedule Blocks)
- Pydantic schemas validating the input of every operation
- Async services for block management, appointment lifecycle, checklists,
  pet registration and user provisioning
- An action facade reporting outcomes as success/message results
- Database utilities with async SQLAlchemy engine configuration
- Migration support through Alembic integration

Quick Start:
    >>> from petshop_core.database import SessionManager, create_engine
    >>> from petshop_core.services import PetShopActions

    >>> engine = create_engine("postgresql+asyncpg://localhost/petshop")
    >>> manager = SessionManager(engine)
    >>> async with manager.get_session() as session:
    ...     actions = PetShopActions(session, identity_provider)
    ...     result = await actions.create_schedule_block(
    ...         "2024-06-01T00:00", "2024-06-02T00:00", "Feriado"
    ...     )
    ...     assert result.success, result.message

Requirements:
    - Python 3.11+
    - PostgreSQL 13+
    - SQLAlchemy 2.0+
    - Pydantic 2.5+
"""

__version__ = "0.1.0"
__author__ = "Petshop Platform Team"
__license__ = "MIT"

from . import database, exceptions, models, schemas, services, utils
from .database import SessionManager, create_engine
from .exceptions import PetShopCoreException, StorageException, ValidationException
from .models import Appointment, AppointmentStatus, ScheduleBlock
from .services import PetShopActions

__all__ = [
    # Version and metadata
    "__version__",
    "__author__",
    "__license__",
    # Core modules
    "database",
    "exceptions",
    "models",
    "schemas",
    "services",
    "utils",
    # Convenience imports
    "SessionManager",
    "create_engine",
    "PetShopCoreException",
    "ValidationException",
    "StorageException",
    "Appointment",
    "AppointmentStatus",
    "ScheduleBlock",
    "PetShopActions",
]
