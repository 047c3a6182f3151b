"""Record-keeping services shared by the routes."""


class ServiceError(RuntimeError):
    """Base error for service-layer failures."""


class RecordNotFound(ServiceError):
    """Raised when a referenced record does not exist."""


class DuplicateReference(ServiceError):
    """Raised when a natural key is already taken."""
