"""
Shared plumbing for the tenant-scoped services.

Services receive their collaborators explicitly: the ``AsyncSession``,
the view invalidator, deployment settings and a clock. Writes run inside
:meth:`ScopedService.unit_of_work`, which commits once and converts
storage failures into :class:`StorageException`.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncGenerator, Callable, Dict, Iterable, Optional, Type, TypeVar

from pydantic import BaseModel as PydanticModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import (
    ForbiddenException,
    NotFoundException,
    SchemaValidationException,
    StorageException,
    format_validation_errors,
)
from ..models.base import BaseModel
from ..utils.config import PetShopSettings
from ..utils.datetime_utils import TimestampInput, get_current_utc, parse_timestamp
from .invalidation import LoggingViewInvalidator, ViewInvalidator
from .tenant import TenantContext

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

S = TypeVar("S", bound=PydanticModel)
M = TypeVar("M", bound=BaseModel)


def validate_input(schema: Type[S], data: Dict[str, Any]) -> S:
    """
    Validate raw input against a Pydantic schema.

    Raises:
        SchemaValidationException: With a field -> messages map of every error
    """
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = format_validation_errors(e.errors())
        field, messages = next(iter(errors.items()))
        raise SchemaValidationException(
            f"Invalid {field}: {messages[0]}",
            schema_name=schema.__name__,
            validation_errors=errors,
        ) from e


class ScopedService:
    """Base class for services acting inside one organization."""

    def __init__(
        self,
        session: AsyncSession,
        invalidator: Optional[ViewInvalidator] = None,
        settings: Optional[PetShopSettings] = None,
        clock: Optional[Clock] = None,
    ):
        self.session = session
        self.invalidator = invalidator or LoggingViewInvalidator()
        self.settings = settings or PetShopSettings()
        self.clock = clock or get_current_utc

    def normalize(self, value: TimestampInput) -> datetime:
        """Interpret a timestamp with the deployment offset when it carries none."""
        return parse_timestamp(value, self.settings.default_utc_offset)

    def invalidate(self, context: TenantContext, views: Iterable[str]) -> None:
        for view in views:
            self.invalidator.invalidate(context.organization_id, view)

    @asynccontextmanager
    async def unit_of_work(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        """
        Run a write and commit it, rolling back on any failure.

        Raises:
            StorageException: If the store rejects the write or the commit
        """
        try:
            yield self.session
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Storage failure during {operation}: {e}")
            raise StorageException(
                f"Could not complete {operation.replace('_', ' ')}",
                operation=operation,
                original_error=e,
            ) from e
        except Exception:
            await self.session.rollback()
            raise

    async def find_in_organization(
        self,
        model: Type[M],
        context: TenantContext,
        entity_id: uuid.UUID,
        resource: str,
    ) -> M:
        """
        Load a referenced entity of the caller's organization.

        Entities of other organizations are reported as missing.

        Raises:
            NotFoundException: If no such entity exists in the organization
        """
        result = await self.session.execute(
            select(model).where(
                model.id == entity_id,
                model.organization_id == context.organization_id,
            )
        )
        entity = result.scalar_one_or_none()
        if entity is None:
            raise NotFoundException(
                f"{resource.capitalize()} not found",
                resource=resource,
                resource_id=entity_id,
            )
        return entity

    async def get_scoped(
        self,
        model: Type[M],
        context: TenantContext,
        entity_id: uuid.UUID,
        resource: str,
    ) -> M:
        """
        Load the target of a mutation.

        Raises:
            NotFoundException: If the id does not exist
            ForbiddenException: If it belongs to another organization
        """
        entity = await self.session.get(model, entity_id, populate_existing=True)
        if entity is None:
            raise NotFoundException(
                f"{resource.capitalize()} not found",
                resource=resource,
                resource_id=entity_id,
            )
        if entity.organization_id != context.organization_id:
            raise ForbiddenException(
                f"{resource.capitalize()} belongs to another organization",
                role=context.role.value,
            )
        return entity

    async def raise_missing(
        self,
        model: Type[M],
        context: TenantContext,
        entity_id: uuid.UUID,
        resource: str,
    ) -> None:
        """
        Explain why a scoped statement touched no row.

        Returns normally when the row does exist in the caller's organization.
        """
        owner = await self.session.scalar(
            select(model.organization_id).where(model.id == entity_id)
        )
        if owner == context.organization_id:
            return
        if owner is None:
            raise NotFoundException(
                f"{resource.capitalize()} not found",
                resource=resource,
                resource_id=entity_id,
            )
        raise ForbiddenException(
            f"{resource.capitalize()} belongs to another organization",
            role=context.role.value,
        )

    async def scoped_update(
        self,
        model: Type[M],
        context: TenantContext,
        entity_id: uuid.UUID,
        values: Dict[str, Any],
        resource: str,
        *conditions: Any,
    ) -> bool:
        """
        Apply one ``UPDATE ... WHERE id = ? AND organization_id = ?``.

        Runs inside the caller's :meth:`unit_of_work`, which commits it.
        Extra ``conditions`` guard the row; when the row exists in the
        organization but a guard rejects it, nothing is written and False
        is returned.

        Raises:
            NotFoundException: If the id does not exist
            ForbiddenException: If it belongs to another organization
        """
        values = dict(values)
        values.setdefault("updated_at", self.clock())

        result = await self.session.execute(
            update(model)
            .where(
                model.id == entity_id,
                model.organization_id == context.organization_id,
                *conditions,
            )
            .values(**values)
        )
        if result.rowcount == 0:
            await self.raise_missing(model, context, entity_id, resource)
            return False
        return True
