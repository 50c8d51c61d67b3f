"""Custom exceptions for Azure login."""

from typing import Optional


class AzureLoginError(Exception):
    """Base exception for Azure login errors."""


class ConfigurationError(AzureLoginError):
    """Raised when explicit authentication configuration is invalid."""


class LoginFailureError(AzureLoginError):
    """Raised when a login or token exchange fails."""

    def __init__(
        self,
        message: str,
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ):
        super().__init__(message)
        self.error = error
        self.error_description = error_description


class ProviderError(LoginFailureError):
    """Raised when the identity provider answers with an OAuth error body."""


class LoginTimeoutError(LoginFailureError):
    """Raised when a login did not complete in time."""


class DesktopNotSupportedError(LoginFailureError):
    """Raised when no browser can be launched for an interactive login."""


class CredentialStoreError(AzureLoginError):
    """Raised when the persisted credential file cannot be read or written."""
