class LibraryError(Exception):
    """Base class for errors raised by the service and auth layers."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(LibraryError):
    """An id-based operation referenced an entity that does not exist."""


class ValidationError(LibraryError):
    """Input violated a business rule (rating range, id mismatch, unknown role...)."""


class AuthenticationError(LibraryError):
    """Credentials or tokens were rejected."""
