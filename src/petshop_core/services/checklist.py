"""
Appointment checklist storage.
"""

import logging
import uuid
from typing import Any, Iterable, Mapping

from ..models.appointment import Appointment
from ..schemas.appointment import ChecklistUpdate
from .base import ScopedService, validate_input
from .invalidation import APPOINTMENT_VIEWS
from .tenant import Operation, TenantContext, authorize

logger = logging.getLogger(__name__)


class ChecklistStore(ScopedService):
    """Whole-list replacement of appointment checklists."""

    async def update_checklist(
        self,
        context: TenantContext,
        appointment_id: uuid.UUID,
        items: Iterable[Mapping[str, Any]],
    ) -> None:
        """
        Replace the checklist of an appointment.

        The list is stored as given, in order, after mapping legacy key
        spellings onto ``task``/``done``. Callers read, modify and write
        back the full list.
        """
        authorize(context, Operation.UPDATE_CHECKLIST)
        data = validate_input(ChecklistUpdate, {"items": list(items)})
        checklist = [item.to_storage() for item in data.items]

        async with self.unit_of_work("update_checklist"):
            await self.scoped_update(
                Appointment,
                context,
                appointment_id,
                {"checklist": checklist},
                "appointment",
            )

        logger.debug(f"Checklist of appointment {appointment_id} replaced ({len(checklist)} items)")
        self.invalidate(context, APPOINTMENT_VIEWS)
