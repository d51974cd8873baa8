"""Domain errors raised by services and routes.

Each error carries the HTTP status it maps to; the global handlers in
``main.py`` render them as ``{"status": "error", "message": ...}``.
"""


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Malformed or semantically invalid request."""

    status_code = 400


class Unauthorized(AppError):
    """Missing, expired or invalid session."""

    status_code = 401


class NotFound(AppError):
    """Resource absent, or owned by somebody else."""

    status_code = 404


class UpstreamServiceError(Exception):
    """The external classifier failed, timed out or answered garbage.

    Never reaches the client: recording creation absorbs it into a
    fallback analysis result.
    """

    pass
