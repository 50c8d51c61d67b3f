"""Refresh-token exchange."""

import logging
from typing import Optional

from ..models.credential import AzureCredential
from ..utils.exceptions import LoginTimeoutError
from .base import TokenAcquirer
from .executor import AcquisitionContext, AuthExecutor

logger = logging.getLogger(__name__)


class RefreshTokenAcquirer(TokenAcquirer):
    """Redeems a refresh token at the token endpoint."""

    def __init__(self, refresh_token: str, resource: Optional[str] = None):
        self.refresh_token = refresh_token
        self.resource = resource

    def acquire(self, context: AcquisitionContext) -> AzureCredential:
        return context.client.acquire_token_by_refresh_token(
            self.refresh_token, resource=self.resource
        )


class TokenRefresher:
    """Exchanges a refresh token for a new access token."""

    def __init__(self, executor: Optional[AuthExecutor] = None):
        self.executor = executor or AuthExecutor()

    def refresh(self, environment, refresh_token: str) -> Optional[AzureCredential]:
        """
        Refresh an Azure credential using a refresh token.

        Args:
            environment: AzureEnvironment or environment name
            refresh_token: The refresh token

        Returns:
            The new credential

        Raises:
            ValueError: If either argument is empty
            LoginFailureError: If the identity provider rejects the refresh token
        """
        if environment is None or (isinstance(environment, str) and not environment.strip()):
            raise ValueError("Parameter 'environment' cannot be empty.")
        if not refresh_token or not refresh_token.strip():
            raise ValueError("Parameter 'refresh_token' cannot be empty.")

        try:
            return self.executor.execute(RefreshTokenAcquirer(refresh_token), environment)
        except LoginTimeoutError:
            # A single refresh request never waits on the user
            logger.debug("Unexpected timeout while refreshing token", exc_info=True)
            return None
