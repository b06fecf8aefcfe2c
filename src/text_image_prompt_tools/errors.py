"""Exception hierarchy shared by adapters, services and stores."""

from typing import Optional


class PromptToolsError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(PromptToolsError):
    """A request cannot be served because of missing or invalid configuration.

    Raised before any network call: blank model key, unknown model
    configuration, invalid connection fields, empty input.
    """


class TemplateNotFoundError(ConfigurationError):
    pass


class CapabilityError(ConfigurationError):
    """The selected model lacks a capability the request needs (e.g. vision)."""


class AdapterNotFoundError(PromptToolsError, LookupError):
    pass


class ModelDiscoveryUnsupportedError(PromptToolsError):
    """Live model listing was requested from a vendor that has no such endpoint."""


class ProviderError(PromptToolsError):
    """A vendor call failed or returned something unusable."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NoResponseError(ProviderError):
    pass


class MalformedResponseError(ProviderError):
    pass


class BuiltinTemplateError(PromptToolsError):
    pass


class StorageError(PromptToolsError):
    pass


class StorageQuotaExceededError(StorageError):
    pass
