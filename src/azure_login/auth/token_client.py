"""HTTP client for the Azure Active Directory v1 OAuth2 endpoints."""

import logging
from typing import Any, Optional

import requests

from ..models.credential import AzureCredential, DeviceCodeInfo
from ..models.environment import AzureEnvironment
from ..utils.exceptions import LoginFailureError, ProviderError
from .expiry import user_info_from_id_token

logger = logging.getLogger(__name__)

AUTHORIZATION_PENDING = "authorization_pending"


class TokenEndpointClient:
    """Performs token requests against one environment's ``common`` authority."""

    def __init__(
        self,
        environment: AzureEnvironment,
        client_id: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
        quiet: bool = False,
    ):
        """
        Initialize the token endpoint client.

        Args:
            environment: Target Azure cloud
            client_id: Public client id used for every grant
            session: HTTP session to use (a new one is created when omitted)
            timeout: Per-request timeout in seconds
            quiet: Log expected "authorization pending" answers at DEBUG only
        """
        self.environment = environment
        self.client_id = client_id
        self.session = session or requests.Session()
        self.timeout = timeout
        self.quiet = quiet

    def close(self) -> None:
        self.session.close()

    def acquire_token_by_authorization_code(
        self, code: str, redirect_uri: str, resource: Optional[str] = None
    ) -> AzureCredential:
        return self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
                "resource": resource or self.environment.management_endpoint,
            }
        )

    def acquire_token_by_refresh_token(
        self, refresh_token: str, resource: Optional[str] = None
    ) -> AzureCredential:
        return self._token_request(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "resource": resource or self.environment.management_endpoint,
            }
        )

    def acquire_device_code(self, resource: Optional[str] = None) -> DeviceCodeInfo:
        body = self._post(
            self.environment.device_code_endpoint,
            {
                "client_id": self.client_id,
                "resource": resource or self.environment.management_endpoint,
            },
        )
        try:
            return DeviceCodeInfo.from_response(body)
        except (KeyError, TypeError, ValueError) as e:
            raise LoginFailureError(f"Invalid device code response: {e}") from e

    def acquire_token_by_device_code(
        self, device_code: DeviceCodeInfo, resource: Optional[str] = None
    ) -> AzureCredential:
        """
        Redeem a device code once.

        Raises:
            ProviderError: With ``error == "authorization_pending"`` while the user
                has not yet approved the code
        """
        return self._token_request(
            {
                "grant_type": "device_code",
                "code": device_code.device_code,
                "resource": resource or self.environment.management_endpoint,
            }
        )

    def _token_request(self, data: dict[str, str]) -> AzureCredential:
        data = {"client_id": self.client_id, **data}
        body = self._post(self.environment.token_endpoint, data)
        if not body.get("access_token"):
            raise LoginFailureError("Token response does not contain an access token.")
        return AzureCredential.from_token_response(
            body, user_info=user_info_from_id_token(body.get("id_token"))
        )

    def _post(self, url: str, data: dict[str, str]) -> dict[str, Any]:
        try:
            resp = self.session.post(
                url,
                data=data,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise LoginFailureError(f"Failed to connect to {url}: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("error"):
            error = body["error"]
            description = body.get("error_description")
            if error == AUTHORIZATION_PENDING and self.quiet:
                logger.debug("Authorization pending")
            else:
                logger.info(f"Identity provider returned error: {error}")
            message = f"{error}\nReason: {description}" if description else error
            raise ProviderError(message, error=error, error_description=description)

        if not resp.ok:
            raise LoginFailureError(
                f"Request to {url} failed with HTTP {resp.status_code}: {resp.text[:500]}"
            )
        if not isinstance(body, dict):
            raise LoginFailureError(f"Unexpected response from {url}: {resp.text[:500]}")
        return body
