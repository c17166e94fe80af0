class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or a lifecycle transition is out of sequence."""


class NotFoundError(DomainError):
    """Raised when operating on a record that does not exist."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class DependencyError(DomainError):
    """Raised when a downstream collaborator (email, push) fails."""
