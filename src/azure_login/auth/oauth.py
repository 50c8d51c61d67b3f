"""Browser-based OAuth 2.0 authorization code login."""

import logging
import webbrowser
from typing import Callable, Optional
from urllib.parse import urlencode

from ..models.credential import AzureCredential
from ..models.environment import AzureEnvironment, get_environment
from ..utils.exceptions import DesktopNotSupportedError, LoginFailureError
from .base import TokenAcquirer
from .executor import AcquisitionContext, AuthExecutor
from .local_server import LocalAuthServer

logger = logging.getLogger(__name__)

AUTH_WITH_OAUTH = "Authenticate with OAuth"


def authorization_url(environment, redirect_url: str, client_id: str) -> str:
    """
    Build the ``/oauth2/authorize`` URL for the given environment.

    Raises:
        ValueError: If environment is None or redirect_url is blank
    """
    if environment is None:
        raise ValueError("Parameter 'environment' cannot be None.")
    if not redirect_url or not redirect_url.strip():
        raise ValueError("Parameter 'redirect_url' cannot be empty.")

    env = get_environment(environment)
    query = urlencode(
        {
            "client_id": client_id,
            "response_type": "code",
            "redirect_uri": redirect_url,
            "prompt": "select_account",
            "resource": env.management_endpoint,
        }
    )
    return f"{env.authorize_endpoint}?{query}"


class AuthorizationCodeFlow(TokenAcquirer):
    """Logs the user in through the system browser and a loopback redirect."""

    def __init__(
        self,
        executor: Optional[AuthExecutor] = None,
        browser_factory: Callable[[], webbrowser.BaseBrowser] = webbrowser.get,
        server_factory: Callable[[], LocalAuthServer] = LocalAuthServer,
        timeout_minutes: Optional[float] = None,
    ):
        """
        Initialize the flow.

        Args:
            executor: Executor owning the token endpoint client
            browser_factory: Returns the browser to open; raises ``webbrowser.Error``
                when none is usable
            server_factory: Creates the callback listener
            timeout_minutes: How long to wait for the redirect (settings default)
        """
        self.executor = executor or AuthExecutor()
        self.browser_factory = browser_factory
        self.server_factory = server_factory
        self.timeout_minutes = (
            timeout_minutes
            if timeout_minutes is not None
            else self.executor.settings.oauth_timeout_minutes
        )

    def run(self, environment=AzureEnvironment.AZURE) -> AzureCredential:
        """
        Perform an OAuth 2.0 login.

        Raises:
            DesktopNotSupportedError: If no browser can be launched
            LoginFailureError: If the provider returned an error
            LoginTimeoutError: If the redirect never arrived
        """
        return self.executor.execute(self, environment)

    def acquire(self, context: AcquisitionContext) -> AzureCredential:
        try:
            browser = self.browser_factory()
        except webbrowser.Error as e:
            raise DesktopNotSupportedError(
                f"Not able to launch a browser to log you in: {e}"
            ) from e

        server = self.server_factory()
        try:
            server.start()
        except OSError as e:
            raise LoginFailureError(f"Cannot start local auth server: {e}") from e

        try:
            redirect_uri = server.uri
            url = authorization_url(context.environment, redirect_uri, context.client.client_id)
            print(AUTH_WITH_OAUTH)
            logger.debug(f"Opening browser at {url}")
            if not browser.open(url):
                raise DesktopNotSupportedError("Not able to launch a browser to log you in.")
            code = server.wait_for_code(self.timeout_minutes * 60)
        finally:
            server.stop()

        return context.client.acquire_token_by_authorization_code(code, redirect_uri)
