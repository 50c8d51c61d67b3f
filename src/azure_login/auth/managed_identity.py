"""Managed identity credential for Azure Cloud Shell and other hosted contexts."""

import logging
from typing import Any, Callable, Optional

import msal
import requests

from ..models.environment import AzureEnvironment, get_environment
from ..utils.exceptions import LoginFailureError
from .base import TokenCredential

logger = logging.getLogger(__name__)


def _default_client() -> Any:
    return msal.ManagedIdentityClient(
        msal.SystemAssignedManagedIdentity(),
        http_client=requests.Session(),
    )


class ManagedIdentityCredential(TokenCredential):
    """Tokens for the ambient system-assigned managed identity."""

    auth_method = "managed_identity"

    def __init__(
        self,
        environment=AzureEnvironment.AZURE,
        default_subscription: Optional[str] = None,
        client_factory: Callable[[], Any] = _default_client,
    ):
        self._environment = get_environment(environment)
        self._default_subscription = default_subscription
        self._client_factory = client_factory
        self._client = None

    @property
    def environment(self) -> str:
        return self._environment.value

    @property
    def default_subscription(self) -> Optional[str]:
        return self._default_subscription

    def get_token(self, resource: Optional[str] = None) -> str:
        if self._client is None:
            self._client = self._client_factory()
        result = self._client.acquire_token_for_client(
            resource=resource or self._environment.management_endpoint
        )
        if result and "access_token" in result:
            return result["access_token"]
        result = result or {}
        raise LoginFailureError(
            f"Managed identity authentication failed: {result.get('error_description', 'Unknown error')}",
            error=result.get("error"),
            error_description=result.get("error_description"),
        )
