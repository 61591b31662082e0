"""Domain-specific exceptions — framework-independent."""


class LifecycleError(Exception):
    """Base class for every error raised by the content lifecycle engine."""


class EntityNotFoundError(LifecycleError):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class InvalidStateTransitionError(LifecycleError):
    """Raised when a transition is attempted from a status that does not allow it."""

    def __init__(self, transition: str, status: str):
        self.transition = transition
        self.status = status
        super().__init__(f"Cannot {transition} an article in status '{status}'")


class AccessDeniedError(LifecycleError):
    """Raised when a principal lacks the role or ownership a transition requires."""

    def __init__(self, transition: str, principal_id: int | None):
        self.transition = transition
        self.principal_id = principal_id
        super().__init__(f"Principal '{principal_id}' may not {transition} this article")


class UnauthenticatedError(LifecycleError):
    """Raised when a bearer credential is missing, malformed or expired."""


class ValidationError(LifecycleError):
    """Raised on malformed input (missing field, bad enum value, bad attachment)."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class DependencyFailureError(LifecycleError):
    """Raised when an external collaborator (blob store, notifier) fails."""

    def __init__(self, dependency: str, message: str):
        self.dependency = dependency
        self.message = message
        super().__init__(f"[{dependency}] {message}")


class StorageError(LifecycleError):
    """Raised when the relational store fails (connection loss, constraint violation)."""


class ConcurrencyConflictError(StorageError):
    """Raised when two writers raced for the same article version number."""
