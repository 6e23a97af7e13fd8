"""
ScheduleBlock Pydantic schemas for input validation and serialization.

Timestamps are accepted as ISO-8601 strings or datetimes. Naive values are
left naive here; the block manager applies the deployment offset so the
schema stays independent of configuration.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScheduleBlockCreate(BaseModel):
    """Schema for creating a schedule block."""

    model_config = ConfigDict(str_strip_whitespace=True)

    start_at: datetime = Field(..., description="Inclusive start of the block")
    end_at: datetime = Field(..., description="Exclusive end of the block")
    reason: str = Field(
        ..., description="Why the schedule is blocked", min_length=1, max_length=500
    )

    @field_validator("start_at", "end_at", mode="before")
    @classmethod
    def reject_blank_timestamp(cls, v):
        """Blank strings are reported as missing rather than unparseable."""
        if isinstance(v, str) and not v.strip():
            raise ValueError("Timestamp is required")
        return v


class ScheduleBlockQuery(BaseModel):
    """Window used to look up blocks; an empty window is valid and matches nothing."""

    window_start: datetime
    window_end: datetime


class ScheduleBlockResponse(BaseModel):
    """Schema for schedule block responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    start_at: datetime
    end_at: datetime
    reason: str
    created_by: Optional[UUID] = None
    created_at: datetime
