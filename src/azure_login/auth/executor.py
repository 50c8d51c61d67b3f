"""Shared executor for the token acquisition strategies."""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from ..config import LoginSettings
from ..models.credential import AzureCredential
from ..models.environment import AzureEnvironment, get_environment
from ..utils.exceptions import LoginFailureError
from .base import TokenAcquirer
from .token_client import TokenEndpointClient

logger = logging.getLogger(__name__)


@dataclass
class AcquisitionContext:
    """Everything a single acquisition attempt needs."""

    environment: AzureEnvironment
    client: TokenEndpointClient
    settings: LoginSettings


class AuthExecutor:
    """
    Runs a ``TokenAcquirer`` against one environment.

    Owns the token endpoint client for the duration of the attempt, checks that
    the result carries an access token and stamps it with the environment's
    short name.
    """

    def __init__(
        self,
        settings: Optional[LoginSettings] = None,
        session: Optional[requests.Session] = None,
        quiet: bool = False,
    ):
        self.settings = settings or LoginSettings()
        self._session = session
        self.quiet = quiet

    def create_client(self, environment: AzureEnvironment) -> TokenEndpointClient:
        return TokenEndpointClient(
            environment,
            client_id=self.settings.client_id,
            session=self._session,
            timeout=self.settings.http_timeout,
            quiet=self.quiet,
        )

    def execute(self, acquirer: TokenAcquirer, environment) -> AzureCredential:
        """
        Acquire a credential.

        Args:
            acquirer: The strategy to run
            environment: AzureEnvironment or any accepted environment name

        Raises:
            LoginFailureError: If acquisition fails or returns no access token
        """
        env = get_environment(environment)
        client = self.create_client(env)
        try:
            credential = acquirer.acquire(AcquisitionContext(env, client, self.settings))
        finally:
            # Injected sessions belong to the caller
            if self._session is None:
                client.close()

        if credential is None or not credential.access_token:
            raise LoginFailureError("The identity provider returned no access token.")
        credential.environment = env.value
        logger.debug(f"Acquired token with {type(acquirer).__name__} for {env.value}")
        return credential
