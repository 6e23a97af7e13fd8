"""
Result schema returned by every mutating action.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from ..exceptions import PetShopCoreException, create_error_response


class ActionResult(BaseModel):
    """Outcome of an action: callers check ``success`` instead of catching."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    message: str
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    data: Optional[Any] = None

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "ActionResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def from_exception(cls, exc: PetShopCoreException) -> "ActionResult":
        error = create_error_response(exc)["error"]
        return cls(
            success=False,
            message=error["message"],
            error_code=error["code"],
            details=error.get("details"),
        )
