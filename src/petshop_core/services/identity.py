"""
Identity provider interface.

The identity provider owns authentication. The core only asks it who the
current principal is and creates or deletes identities while provisioning
users.
"""

import uuid
from typing import Optional, Protocol

from .tenant import Principal


class IdentityProvider(Protocol):
    async def current_principal(self) -> Optional[Principal]:
        """Principal of the current request, or None when unauthenticated."""
        ...

    async def create_identity(
        self, email: str, password: str, full_name: Optional[str] = None
    ) -> uuid.UUID:
        """Create a login identity and return its id."""
        ...

    async def delete_identity(self, identity_id: uuid.UUID) -> None:
        """Remove a login identity."""
        ...
