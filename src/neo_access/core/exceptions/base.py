"""Base exception for neo-access.

Every error carries a machine-readable code, a details mapping and the
family it belongs to. Families are fatal (a broken authorization model that
retrying cannot fix) or local to one call.
"""

from typing import Any, Dict, Optional


class NeoAccessError(Exception):
    """Base exception for all neo-access errors.

    Subclasses set ``category`` to their family name and ``fatal`` when the
    error means the configured model itself is unusable.
    """

    category: str = "internal"
    fatal: bool = False

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "code": self.error_code,
            "category": self.category,
            "fatal": self.fatal,
            "message": self.message,
            "details": self.details,
        }
        entity_type = getattr(self, "entity_type", None)
        if entity_type:
            data["entity_type"] = entity_type
        return data


def create_error_response(exception: NeoAccessError) -> Dict[str, Any]:
    """Render an error as the ``{"error": {...}}`` envelope.

    The envelope names the error family so callers can tell a broken model
    (``fatal``) from a failed lookup or a denied authorization.
    """
    return {"error": exception.to_dict()}
