"""
Pytest configuration and fixtures for petshop-core tests.

This module provides common fixtures for all tests in the petshop-core
package: an in-memory database with a fresh schema per test, factory
classes, tenants with their reference data, and test doubles for the
identity provider, the view invalidator and the clock.

Fixtures hand out ids rather than ORM instances where a test may trigger a
rollback, since a rollback expires every instance held by the session.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Dict, Optional, Type, TypeVar

import pytest
import pytest_asyncio
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from petshop_core.database.connection import create_engine
from petshop_core.database.session import SessionManager
from petshop_core.models import (
    Appointment,
    AppointmentStatus,
    Customer,
    Organization,
    AssessmentStatus,
    Pet,
    PetAssessment,
    PetGender,
    PetSize,
    PetSpecies,
    Profile,
    Service,
    ServiceCategory,
    UserRole,
)
from petshop_core.models.base import Base, BaseModel
from petshop_core.services import (
    AppointmentLifecycleManager,
    ChecklistStore,
    PetRegistry,
    Principal,
    RecordingViewInvalidator,
    ScheduleBlockManager,
    TenantContext,
    UserProvisioningService,
)
from petshop_core.utils.config import PetShopSettings

TEST_DATABASE_URL = "sqlite+aiosqlite://"

BRT = timezone(timedelta(hours=-3))

T = TypeVar("T", bound=BaseModel)


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with the full schema created."""
    engine = create_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_manager(test_engine: AsyncEngine) -> AsyncGenerator[SessionManager, None]:
    manager = SessionManager(test_engine)
    yield manager
    await manager.close_all_sessions()


@pytest_asyncio.fixture
async def async_session(session_manager: SessionManager) -> AsyncGenerator[AsyncSession, None]:
    """Session shared by the services and the assertions of a test."""
    async with session_manager.get_session() as session:
        yield session


# Test doubles


class FakeClock:
    """Clock that advances by a fixed step on every reading."""

    def __init__(
        self,
        start: datetime = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
        step: timedelta = timedelta(seconds=1),
    ):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.now
        self.now += self.step
        return value


class InMemoryIdentityProvider:
    """Identity provider keeping identities in a dict."""

    def __init__(self, principal: Optional[Principal] = None):
        self.principal = principal
        self.identities: Dict[uuid.UUID, str] = {}
        self.delete_calls = 0
        self.failing_deletes = 0
        self.fail_create = False

    async def current_principal(self) -> Optional[Principal]:
        return self.principal

    async def create_identity(
        self, email: str, password: str, full_name: Optional[str] = None
    ) -> uuid.UUID:
        if self.fail_create:
            raise ConnectionError("identity provider unavailable")
        identity_id = uuid.uuid4()
        self.identities[identity_id] = email
        return identity_id

    async def delete_identity(self, identity_id: uuid.UUID) -> None:
        self.delete_calls += 1
        if self.failing_deletes > 0:
            self.failing_deletes -= 1
            raise ConnectionError("identity provider unavailable")
        self.identities.pop(identity_id, None)


class RecordingSleep:
    """Replacement for ``asyncio.sleep`` that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


# Factory classes for creating test entities


class OrganizationFactory:
    """Factory for creating test Organization instances."""

    @staticmethod
    def build(**kwargs) -> Organization:
        defaults = {"name": f"Pet Shop {uuid.uuid4().hex[:6]}", "is_active": True}
        defaults.update(kwargs)
        return Organization(**defaults)

    @staticmethod
    async def create(session: AsyncSession, **kwargs) -> Organization:
        organization = OrganizationFactory.build(**kwargs)
        session.add(organization)
        await session.commit()
        return organization


class ProfileFactory:
    """Factory for creating test Profile instances."""

    @staticmethod
    def build(organization_id: Optional[uuid.UUID] = None, **kwargs) -> Profile:
        defaults = {
            "organization_id": organization_id,
            "email": f"user_{uuid.uuid4().hex[:8]}@example.com",
            "full_name": "Test User",
            "role": UserRole.STAFF,
        }
        defaults.update(kwargs)
        return Profile(**defaults)

    @staticmethod
    async def create(
        session: AsyncSession, organization_id: Optional[uuid.UUID] = None, **kwargs
    ) -> Profile:
        profile = ProfileFactory.build(organization_id, **kwargs)
        session.add(profile)
        await session.commit()
        return profile


class CustomerFactory:
    """Factory for creating test Customer instances."""

    @staticmethod
    def build(organization_id: uuid.UUID, **kwargs) -> Customer:
        defaults = {
            "organization_id": organization_id,
            "name": "Maria Tutor",
            "phone": "11999990000",
        }
        defaults.update(kwargs)
        return Customer(**defaults)

    @staticmethod
    async def create(session: AsyncSession, organization_id: uuid.UUID, **kwargs) -> Customer:
        customer = CustomerFactory.build(organization_id, **kwargs)
        session.add(customer)
        await session.commit()
        return customer


class PetFactory:
    """Factory for creating test Pet instances."""

    @staticmethod
    def build(organization_id: uuid.UUID, customer_id: uuid.UUID, **kwargs) -> Pet:
        defaults = {
            "organization_id": organization_id,
            "customer_id": customer_id,
            "name": f"Rex_{uuid.uuid4().hex[:6]}",
            "species": PetSpecies.DOG,
            "breed": "Shih Tzu",
            "gender": PetGender.MALE,
            "size": PetSize.SMALL,
            "weight_kg": Decimal("6.50"),
        }
        defaults.update(kwargs)
        return Pet(**defaults)

    @staticmethod
    async def create(
        session: AsyncSession, organization_id: uuid.UUID, customer_id: uuid.UUID, **kwargs
    ) -> Pet:
        pet = PetFactory.build(organization_id, customer_id, **kwargs)
        session.add(pet)
        await session.commit()
        return pet


class ServiceFactory:
    """Factory for creating test Service instances."""

    @staticmethod
    def build(organization_id: uuid.UUID, **kwargs) -> Service:
        defaults = {
            "organization_id": organization_id,
            "name": "Banho e Tosa",
            "category": ServiceCategory.GROOMING,
            "duration_minutes": 60,
        }
        defaults.update(kwargs)
        return Service(**defaults)

    @staticmethod
    async def create(session: AsyncSession, organization_id: uuid.UUID, **kwargs) -> Service:
        service = ServiceFactory.build(organization_id, **kwargs)
        session.add(service)
        await session.commit()
        return service


class AssessmentFactory:
    """Factory for creating test PetAssessment instances."""

    @staticmethod
    def build(organization_id: uuid.UUID, pet_id: uuid.UUID, **kwargs) -> PetAssessment:
        defaults = {
            "organization_id": organization_id,
            "pet_id": pet_id,
            "status": AssessmentStatus.APPROVED,
            "answers": {"sociable_with_dogs": True, "separation_anxiety": False},
            "owner_declaration_accepted": True,
        }
        defaults.update(kwargs)
        return PetAssessment(**defaults)

    @staticmethod
    async def create(
        session: AsyncSession, organization_id: uuid.UUID, pet_id: uuid.UUID, **kwargs
    ) -> PetAssessment:
        assessment = AssessmentFactory.build(organization_id, pet_id, **kwargs)
        session.add(assessment)
        await session.commit()
        return assessment


class AppointmentFactory:
    """Factory for creating test Appointment instances."""

    @staticmethod
    def build(organization_id: uuid.UUID, pet_id: uuid.UUID, service_id: uuid.UUID, **kwargs) -> Appointment:
        defaults = {
            "organization_id": organization_id,
            "pet_id": pet_id,
            "service_id": service_id,
            "scheduled_at": datetime(2024, 6, 3, 10, 0, tzinfo=BRT),
            "status": AppointmentStatus.PENDING,
        }
        defaults.update(kwargs)
        return Appointment(**defaults)

    @staticmethod
    async def create(
        session: AsyncSession,
        organization_id: uuid.UUID,
        pet_id: uuid.UUID,
        service_id: uuid.UUID,
        **kwargs,
    ) -> Appointment:
        appointment = AppointmentFactory.build(organization_id, pet_id, service_id, **kwargs)
        session.add(appointment)
        await session.commit()
        return appointment


@dataclass(frozen=True)
class TenantData:
    """Ids of an organization and its reference data, plus an admin context."""

    organization_id: uuid.UUID
    admin_id: uuid.UUID
    staff_id: uuid.UUID
    customer_id: uuid.UUID
    pet_id: uuid.UUID
    service_id: uuid.UUID
    daycare_service_id: uuid.UUID
    boarding_service_id: uuid.UUID
    context: TenantContext

    def context_as(self, role: UserRole, principal_id: Optional[uuid.UUID] = None) -> TenantContext:
        return TenantContext(
            principal_id=principal_id or self.admin_id,
            organization_id=self.organization_id,
            role=role,
        )


async def create_tenant(session: AsyncSession, name: str) -> TenantData:
    """
    Create an organization with an admin, a staff member, a tutor, services and
    a pet whose assessment is approved.
    """
    organization = await OrganizationFactory.create(session, name=name)
    admin = await ProfileFactory.create(
        session, organization.id, role=UserRole.ADMIN, full_name=f"{name} Admin"
    )
    staff = await ProfileFactory.create(session, organization.id, role=UserRole.STAFF)
    customer = await CustomerFactory.create(session, organization.id)
    pet = await PetFactory.create(session, organization.id, customer.id)
    await AssessmentFactory.create(session, organization.id, pet.id)
    service = await ServiceFactory.create(session, organization.id)
    daycare = await ServiceFactory.create(
        session,
        organization.id,
        name="Creche",
        category=ServiceCategory.DAYCARE,
        duration_minutes=480,
    )
    boarding = await ServiceFactory.create(
        session,
        organization.id,
        name="Hotel",
        category=ServiceCategory.BOARDING,
        duration_minutes=60,
    )

    return TenantData(
        organization_id=organization.id,
        admin_id=admin.id,
        staff_id=staff.id,
        customer_id=customer.id,
        pet_id=pet.id,
        service_id=service.id,
        daycare_service_id=daycare.id,
        boarding_service_id=boarding.id,
        context=TenantContext(
            principal_id=admin.id,
            organization_id=organization.id,
            role=UserRole.ADMIN,
        ),
    )


@pytest_asyncio.fixture
async def tenant_a(async_session: AsyncSession) -> TenantData:
    return await create_tenant(async_session, "Pet Shop A")


@pytest_asyncio.fixture
async def tenant_b(async_session: AsyncSession) -> TenantData:
    return await create_tenant(async_session, "Pet Shop B")


# Collaborators and services


@pytest.fixture
def invalidator() -> RecordingViewInvalidator:
    return RecordingViewInvalidator()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> PetShopSettings:
    return PetShopSettings(compensation_retries=2, compensation_retry_delay=0.5)


@pytest.fixture
def identity() -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def block_manager(async_session, invalidator, settings, clock) -> ScheduleBlockManager:
    return ScheduleBlockManager(async_session, invalidator, settings, clock)


@pytest.fixture
def appointment_manager(async_session, invalidator, settings, clock) -> AppointmentLifecycleManager:
    return AppointmentLifecycleManager(async_session, invalidator, settings, clock)


@pytest.fixture
def checklist_store(async_session, invalidator, settings, clock) -> ChecklistStore:
    return ChecklistStore(async_session, invalidator, settings, clock)


@pytest.fixture
def pet_registry(async_session, invalidator, settings, clock) -> PetRegistry:
    return PetRegistry(async_session, invalidator, settings, clock)


@pytest.fixture
def user_service(
    async_session, identity, invalidator, settings, clock, sleep
) -> UserProvisioningService:
    return UserProvisioningService(
        async_session, identity, invalidator, settings, clock, sleep=sleep
    )


# Assertion helpers


async def reload_record(session: AsyncSession, model_class: Type[T], record_id: uuid.UUID) -> Optional[T]:
    """Fetch a row from the database, overwriting any state held by the session."""
    result = await session.execute(
        select(model_class)
        .where(model_class.id == record_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def count_records(session: AsyncSession, model_class: Type[T], **filters) -> int:
    query = select(func.count()).select_from(model_class)
    for field, value in filters.items():
        query = query.where(getattr(model_class, field) == value)
    return await session.scalar(query)


@pytest.fixture
def reload():
    """Re-read a row, discarding what the session holds for it."""
    return reload_record


@pytest.fixture
def count_rows():
    """Count the rows of a model matching equality filters."""
    return count_records


# Fixture factories


@pytest.fixture
def organization_factory() -> Type[OrganizationFactory]:
    return OrganizationFactory


@pytest.fixture
def profile_factory() -> Type[ProfileFactory]:
    return ProfileFactory


@pytest.fixture
def pet_factory() -> Type[PetFactory]:
    return PetFactory


@pytest.fixture
def service_factory() -> Type[ServiceFactory]:
    return ServiceFactory


@pytest.fixture
def appointment_factory() -> Type[AppointmentFactory]:
    return AppointmentFactory


@pytest.fixture
def assessment_factory() -> Type[AssessmentFactory]:
    return AssessmentFactory


@pytest.fixture
def identity_factory() -> Type[InMemoryIdentityProvider]:
    """Identity provider class, for tests that need one per principal."""
    return InMemoryIdentityProvider


@pytest.fixture
def reject_writes(async_session: AsyncSession):
    """Make the store itself reject INSERT or UPDATE statements on a table."""

    async def install(table: str, statement: str = "UPDATE") -> None:
        await async_session.execute(
            text(
                f"CREATE TRIGGER reject_{statement.lower()}_{table} "
                f"BEFORE {statement} ON {table} "
                "BEGIN SELECT RAISE(ABORT, 'store rejected the write'); END"
            )
        )
        await async_session.commit()

    return install
