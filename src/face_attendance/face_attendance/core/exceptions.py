class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is missing, malformed or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a member or event id does not exist."""


class ConflictError(DomainError):
    """Raised when a write would duplicate an existing record."""


class ResourceUnavailableError(DomainError):
    """Raised when a camera or recognition model cannot be acquired."""


class TransientStoreError(DomainError):
    """Raised when the backing store fails in a way that may succeed on retry."""
