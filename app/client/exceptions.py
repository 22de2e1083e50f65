"""
Errors raised by the booking service client and the workflows built on it
"""
from typing import Any, Optional


class BookingServiceError(Exception):
    """A request to the booking service failed"""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class ValidationFailed(BookingServiceError):
    """Malformed input or an invalid state transition"""


class NotAuthorized(BookingServiceError):
    """Missing credentials or an action the caller's role may not perform"""


class NotFound(BookingServiceError):
    pass


class Conflict(BookingServiceError):
    pass


class ServiceUnavailable(BookingServiceError):
    """Network failure or a server-side error; the action can be retried"""


def _format_detail(detail: Any) -> str:
    # FastAPI validation errors arrive as a list of {loc, msg, type}
    if isinstance(detail, list):
        parts = []
        for item in detail:
            if isinstance(item, dict):
                loc = ".".join(str(p) for p in item.get("loc", []) if p != "body")
                msg = item.get("msg", "")
                parts.append(f"{loc}: {msg}" if loc else msg)
            else:
                parts.append(str(item))
        return "; ".join(parts)
    return str(detail)


def error_for_status(status_code: int, detail: Any) -> BookingServiceError:
    message = _format_detail(detail)
    if status_code in (400, 422):
        return ValidationFailed(message, status_code)
    if status_code in (401, 403):
        return NotAuthorized(message, status_code)
    if status_code == 404:
        return NotFound(message, status_code)
    if status_code == 409:
        return Conflict(message, status_code)
    if status_code >= 500:
        return ServiceUnavailable(message, status_code)
    return BookingServiceError(message, status_code)
