"""Error taxonomy shared by the service layer and the HTTP handlers.

Every error carries the message returned to clients as ``{"error": message}``.
Not-found and visibility denials share ``NotFoundError`` so responses never
reveal whether a private file exists.
"""

from fastapi import status


class FilesManagerError(Exception):
    """Base class for errors reported to API clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(FilesManagerError):
    """Missing, invalid or expired token, or bad credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class ValidationError(FilesManagerError):
    """Missing or invalid request field."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class NotFoundError(FilesManagerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(FilesManagerError):
    """Unique value already taken (duplicate email)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Already exist"


class ServiceUnavailableError(FilesManagerError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service unavailable"


class JobError(Exception):
    """Permanent background job failure. The job is dropped, never retried."""
