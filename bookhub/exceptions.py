"""
Error kinds raised by the submission store and the moderation service.

The HTTP layer maps each kind to a status code in ``bookhub.main``.
"""


class BookHubError(Exception):
    """Base class for every error the core raises on purpose."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(BookHubError):
    """Malformed input: blank field, score out of range, partial file."""

    status_code = 400


class NotFoundError(BookHubError):
    """Unknown submission, or one the caller is not allowed to see."""

    status_code = 404


class ForbiddenError(BookHubError):
    status_code = 403


class AuthenticationError(ForbiddenError):
    """An anonymous caller reached an operation that needs an identity."""

    status_code = 401


class ConflictError(BookHubError):
    """The submission's current state does not allow the operation."""

    status_code = 409


class StorageError(BookHubError):
    status_code = 500
