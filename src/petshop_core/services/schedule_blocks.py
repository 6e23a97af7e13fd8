"""
Schedule block management.

Blocks are organization-wide intervals during which nothing may be
booked. They are created and deleted, never edited, and looked up by
half-open window overlap.
"""

import logging
import uuid
from datetime import datetime
from typing import List

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.elements import ColumnElement

from ..exceptions import InvalidRangeException, StorageException
from ..models.schedule_block import ScheduleBlock
from ..schemas.schedule_block import ScheduleBlockCreate, ScheduleBlockQuery
from ..utils.datetime_utils import TimestampInput
from .base import ScopedService, validate_input
from .invalidation import AGENDA_VIEW
from .tenant import Operation, TenantContext, authorize

logger = logging.getLogger(__name__)


def overlap_condition(
    start_column, end_column, window_start: datetime, window_end: datetime
) -> ColumnElement[bool]:
    """
    SQL form of the half-open overlap predicate.

    A stored ``[start, end)`` overlaps the window when it starts before the
    window ends and ends after the window starts.
    """
    return and_(start_column < window_end, end_column > window_start)


class ScheduleBlockManager(ScopedService):
    """Create, delete and query schedule blocks of the caller's organization."""

    async def create(
        self,
        context: TenantContext,
        start_at: TimestampInput,
        end_at: TimestampInput,
        reason: str,
    ) -> ScheduleBlock:
        """
        Create a block.

        Naive timestamps are interpreted with the deployment offset before
        the range is checked.

        Raises:
            ForbiddenException: If the role may not manage blocks
            SchemaValidationException: If a field is missing or malformed
            InvalidRangeException: If the block does not start before it ends
            StorageException: If the insert fails
        """
        authorize(context, Operation.CREATE_SCHEDULE_BLOCK)
        data = validate_input(
            ScheduleBlockCreate,
            {"start_at": start_at, "end_at": end_at, "reason": reason},
        )

        start = self.normalize(data.start_at)
        end = self.normalize(data.end_at)
        if start >= end:
            raise InvalidRangeException(start=start, end=end)

        block = ScheduleBlock(
            organization_id=context.organization_id,
            start_at=start,
            end_at=end,
            reason=data.reason,
            created_by=context.principal_id,
        )

        async with self.unit_of_work("create_schedule_block"):
            self.session.add(block)

        logger.info(
            f"Schedule block {block.id} created for organization {context.organization_id}"
        )
        self.invalidate(context, [AGENDA_VIEW])
        return block

    async def delete(self, context: TenantContext, block_id: uuid.UUID) -> None:
        """
        Delete a block of the caller's organization.

        Raises:
            NotFoundException: If the block does not exist
            ForbiddenException: If it belongs to another organization
            StorageException: If the delete fails
        """
        authorize(context, Operation.DELETE_SCHEDULE_BLOCK)

        async with self.unit_of_work("delete_schedule_block"):
            result = await self.session.execute(
                delete(ScheduleBlock).where(
                    ScheduleBlock.id == block_id,
                    ScheduleBlock.organization_id == context.organization_id,
                )
            )
            if result.rowcount == 0:
                await self.raise_missing(ScheduleBlock, context, block_id, "schedule block")

        logger.info(f"Schedule block {block_id} deleted")
        self.invalidate(context, [AGENDA_VIEW])

    async def query(
        self,
        context: TenantContext,
        window_start: TimestampInput,
        window_end: TimestampInput,
    ) -> List[ScheduleBlock]:
        """Blocks of the organization overlapping ``[window_start, window_end)``, by start."""
        authorize(context, Operation.QUERY_SCHEDULE_BLOCKS)
        window = validate_input(
            ScheduleBlockQuery,
            {"window_start": window_start, "window_end": window_end},
        )

        start = self.normalize(window.window_start)
        end = self.normalize(window.window_end)
        if start >= end:
            return []

        try:
            result = await self.session.execute(
                select(ScheduleBlock)
                .where(
                    ScheduleBlock.organization_id == context.organization_id,
                    overlap_condition(ScheduleBlock.start_at, ScheduleBlock.end_at, start, end),
                )
                .order_by(ScheduleBlock.start_at, ScheduleBlock.id)
            )
        except SQLAlchemyError as e:
            raise StorageException(
                "Could not load schedule blocks",
                operation="query_schedule_blocks",
                original_error=e,
            ) from e
        return list(result.scalars().all())
