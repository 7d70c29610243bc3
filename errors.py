"""
Error types raised by the content and product services.

Each carries the HTTP status it maps to; `main.py` turns them into the
`{"success": false, "error": ..., "details": ...}` envelope.
"""

from typing import Any, Dict, Optional

from pydantic import ValidationError


class ContentError(Exception):
    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class DocumentValidationError(ContentError):
    status_code = 422
    default_message = "Validation failed"

    @classmethod
    def from_pydantic(cls, exc: ValidationError, message: Optional[str] = None) -> "DocumentValidationError":
        return cls(message, details=validation_details(exc.errors()))


class NotFoundError(ContentError):
    status_code = 404
    default_message = "Not found"


class StoreUnavailableError(ContentError):
    status_code = 500
    default_message = "Database not available"


def validation_details(errors, skip_prefix=()) -> Dict[str, str]:
    """Flatten pydantic error dicts into {"sliders.0.title": "message"}."""
    details: Dict[str, str] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in skip_prefix:
            loc = loc[1:]
        key = ".".join(loc) or "__root__"
        details.setdefault(key, err.get("msg", "Invalid value"))
    return details
