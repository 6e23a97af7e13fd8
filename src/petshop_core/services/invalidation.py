"""
View invalidation signals.

After a successful mutation the services tell the invalidator which
logical read surfaces of an organization are stale. What "invalidate"
means (cache eviction, path revalidation) is up to the implementation.
"""

import logging
import uuid
from typing import List, Protocol, Tuple

logger = logging.getLogger(__name__)

AGENDA_VIEW = "agenda"
DAYCARE_VIEW = "daycare"
GROOMING_VIEW = "grooming"
BOARDING_VIEW = "boarding"
PETS_VIEW = "pets"

APPOINTMENT_VIEWS: Tuple[str, ...] = (
    AGENDA_VIEW,
    DAYCARE_VIEW,
    GROOMING_VIEW,
    BOARDING_VIEW,
)


class ViewInvalidator(Protocol):
    def invalidate(self, organization_id: uuid.UUID, view: str) -> None:
        ...


class LoggingViewInvalidator:
    """Invalidator that only logs; the default when no cache layer is wired."""

    def invalidate(self, organization_id: uuid.UUID, view: str) -> None:
        logger.debug(f"View '{view}' invalidated for organization {organization_id}")


class RecordingViewInvalidator:
    """Invalidator that remembers every signal, in order."""

    def __init__(self) -> None:
        self.events: List[Tuple[uuid.UUID, str]] = []

    def invalidate(self, organization_id: uuid.UUID, view: str) -> None:
        self.events.append((organization_id, view))

    def views(self) -> List[str]:
        return [view for _, view in self.events]

    def clear(self) -> None:
        self.events.clear()
