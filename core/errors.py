"""Error taxonomy shared by the catalog, the booking engine and both transports.

Each error carries a ``kind`` so that the HTTP and RPC transports can report the
same failure identically even though their envelopes differ.
"""
from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNSUPPORTED_CAPABILITY = "UNSUPPORTED_CAPABILITY"
    INVALID_STATE = "INVALID_STATE"
    NOT_FOUND = "NOT_FOUND"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    # Request could not be decoded into typed inputs (raised by transports only)
    INVALID_REQUEST = "INVALID_REQUEST"


class PluginError(Exception):
    """Base class for every error surfaced to the Inventory Server."""

    kind: ErrorKind
    retryable: bool = False


class ConfigurationError(PluginError):
    """Connection parameters are missing or cannot be parsed."""

    kind = ErrorKind.CONFIGURATION_ERROR


class UnsupportedCapability(PluginError):
    """Operation is not part of the declared capability set."""

    kind = ErrorKind.UNSUPPORTED_CAPABILITY

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation '{operation}' is not supported by this plugin")


class InvalidState(PluginError):
    """Lifecycle transition is not legal from the current state."""

    kind = ErrorKind.INVALID_STATE


class NotFound(PluginError):
    kind = ErrorKind.NOT_FOUND


class BackendUnavailable(PluginError):
    """I/O failure or timeout while talking to the booking backend. Safe to retry with backoff."""

    kind = ErrorKind.BACKEND_UNAVAILABLE
    retryable = True
