# errors.py — API error taxonomy
# Every error is rendered as JSON {"error": message, **extra} by the handler in main.py
from typing import Any, Dict, Optional


class GadgetAPIError(Exception):
    status_code = 500
    default_message = "Server error"

    # message is positional-only so extra body fields may include "message"
    def __init__(self, message: Optional[str] = None, /, **extra: Any):
        self.message = message or self.default_message
        self.extra: Dict[str, Any] = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


class BadRequestError(GadgetAPIError):
    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(GadgetAPIError):
    status_code = 401
    default_message = "Invalid credentials"


class ForbiddenError(GadgetAPIError):
    status_code = 403
    default_message = "Access forbidden"


class NotFoundError(GadgetAPIError):
    status_code = 404
    default_message = "Not found"


class ConflictError(GadgetAPIError):
    # Duplicate usernames are reported as 400, matching the published API
    status_code = 400
    default_message = "Username already exists"


class InternalError(GadgetAPIError):
    status_code = 500
    default_message = "Server error"
