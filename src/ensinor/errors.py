"""Typed errors raised by write paths and listing helpers.

Every error carries the HTTP status attached at raise time; they propagate
unmodified to ``ensinor.api.handlers.handle_error``.
"""

from http import HTTPStatus


class ApiError(Exception):
    """Base error carrying an HTTP status code and a human-readable message."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ApiError):
    """Referenced or target row is missing."""
    status_code = HTTPStatus.NOT_FOUND


class BadRequestError(ApiError):
    """A precondition on the payload or referenced rows failed."""
    status_code = HTTPStatus.BAD_REQUEST


class ForbiddenError(ApiError):
    """Caller may not act on this row."""
    status_code = HTTPStatus.FORBIDDEN


class OperationFailedError(ApiError):
    """The store returned an empty/falsy result for a write."""
    status_code = HTTPStatus.BAD_REQUEST
