"""
Schedule block model for the petshop-core package.

A schedule block is an organization-wide "do not book" interval
``[start_at, end_at)`` such as a holiday closure or a staff absence.
Blocks are never edited in place; an edit is a delete plus a create.
"""

import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ..database.types import UTCDateTime
from ..utils.datetime_utils import intervals_overlap
from .base import BaseModel


class ScheduleBlock(BaseModel):
    """Interval during which no appointment may be scheduled."""

    __tablename__ = "schedule_blocks"

    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    start_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        comment="Inclusive start of the block",
    )

    end_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        comment="Exclusive end of the block",
    )

    reason: Mapped[str] = mapped_column(String(500), nullable=False)

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint("start_at < end_at", name="ck_schedule_blocks_range"),
        Index("idx_schedule_blocks_org_range", "organization_id", "start_at", "end_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<ScheduleBlock(id={self.id}, start_at='{self.start_at}', "
            f"end_at='{self.end_at}')>"
        )

    @property
    def duration(self) -> timedelta:
        return self.end_at - self.start_at

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Check whether the block intersects the half-open window ``[start, end)``."""
        return intervals_overlap(self.start_at, self.end_at, start, end)

    def contains(self, moment: datetime) -> bool:
        return self.start_at <= moment < self.end_at
