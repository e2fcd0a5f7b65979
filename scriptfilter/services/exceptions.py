"""Domain-specific exceptions."""


class ServiceError(Exception):
    pass


class ConfigurationError(ServiceError):
    pass


class BackendError(ServiceError):
    """Raised by search backends; the message is shown through ``format_error``."""


class StorageError(ServiceError):
    """Coordination or cache files could not be read or written."""
