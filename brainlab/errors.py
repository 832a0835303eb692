"""
errors.py — Client-facing failure taxonomy
===========================================
Every failure the service reports on purpose derives from ServiceError and
carries a message that is safe to show to the client. Anything else that
escapes a route is treated as an internal error by the handlers in main.py.
"""
from __future__ import annotations


class ServiceError(Exception):
    status_code = 500
    default_message = "An internal error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(ServiceError):
    status_code = 404
    default_message = "Not found."


class ValidationError(ServiceError):
    status_code = 400
    default_message = "Invalid request."


class RateLimitError(ServiceError):
    status_code = 429
    default_message = "Too many requests."
