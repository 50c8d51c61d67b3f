"""Service principal credentials backed by MSAL's confidential client."""

import logging
import re
from pathlib import Path
from typing import Any, Callable, Optional, Union

import msal
from cryptography import x509
from cryptography.hazmat.primitives import hashes

from ..config import AuthConfiguration
from ..models.environment import AzureEnvironment, get_environment
from ..utils.exceptions import ConfigurationError, LoginFailureError
from .base import TokenCredential

logger = logging.getLogger(__name__)

_PRIVATE_KEY_PEM = re.compile(
    r"-----BEGIN ((?:RSA |EC |ENCRYPTED )?PRIVATE KEY)-----.+?-----END \1-----", re.DOTALL
)
_CERTIFICATE_PEM = re.compile(
    r"-----BEGIN CERTIFICATE-----.+?-----END CERTIFICATE-----", re.DOTALL
)


def resource_to_scopes(resource: str) -> list[str]:
    """MSAL scope for a v1 resource, e.g. ``https://management.core.windows.net//.default``."""
    return [f"{resource}/.default"]


def load_certificate_credential(
    certificate: Union[str, Path], password: Optional[str] = None
) -> dict[str, Any]:
    """
    Build an MSAL client credential from a certificate file.

    PFX/P12 files are passed to MSAL as a path. PEM files must contain both the
    certificate and its private key; the thumbprint is computed from the
    certificate.

    Raises:
        OSError: If the file cannot be read
        ValueError: If a PEM file lacks a certificate or a private key
    """
    path = Path(certificate)
    if path.suffix.lower() in (".pfx", ".p12"):
        if not path.is_file():
            raise FileNotFoundError(f"Certificate file not found: {path}")
        return {"private_key_pfx_path": str(path), "passphrase": password}

    content = path.read_text(encoding="utf-8")
    key_match = _PRIVATE_KEY_PEM.search(content)
    cert_match = _CERTIFICATE_PEM.search(content)
    if not key_match or not cert_match:
        raise ValueError(f"{path} must contain both a certificate and a private key.")

    cert = x509.load_pem_x509_certificate(cert_match.group(0).encode("ascii"))
    credential: dict[str, Any] = {
        "private_key": key_match.group(0),
        "thumbprint": cert.fingerprint(hashes.SHA1()).hex(),
        "public_certificate": cert_match.group(0),
    }
    if password:
        credential["passphrase"] = password
    return credential


class ServicePrincipalCredential(TokenCredential):
    """Client-credentials tokens for a service principal (key or certificate)."""

    auth_method = "service_principal"

    def __init__(
        self,
        client_id: str,
        tenant_id: str,
        client_credential: Union[str, dict[str, Any]],
        environment=AzureEnvironment.AZURE,
        default_subscription: Optional[str] = None,
        proxy_url: Optional[str] = None,
        app_factory: Callable[..., Any] = msal.ConfidentialClientApplication,
    ):
        self.client_id = client_id
        self.tenant_id = tenant_id
        self._client_credential = client_credential
        self._environment = get_environment(environment)
        self._default_subscription = default_subscription
        self.proxy_url = proxy_url
        self._app_factory = app_factory
        self._app = None

    @classmethod
    def from_configuration(cls, config: AuthConfiguration) -> "ServicePrincipalCredential":
        """
        Build a credential from explicit configuration.

        Raises:
            ConfigurationError: If required fields are missing or the certificate
                cannot be read
        """
        config.ensure_valid()
        if config.key and config.key.strip():
            logger.debug("Use key to get Azure authentication token")
            client_credential: Union[str, dict[str, Any]] = config.key
        else:
            try:
                client_credential = load_certificate_credential(
                    config.certificate, config.certificate_password
                )
            except (OSError, ValueError) as e:
                raise ConfigurationError(
                    f"Failed to read certificate file: {config.certificate} ({e})"
                ) from e
            logger.debug(f"Use certificate to get Azure authentication token: {config.certificate}")

        return cls(
            client_id=config.client,
            tenant_id=config.tenant,
            client_credential=client_credential,
            environment=config.environment,
            proxy_url=config.proxy_url,
        )

    @property
    def environment(self) -> str:
        return self._environment.value

    @property
    def default_subscription(self) -> Optional[str]:
        return self._default_subscription

    @property
    def app(self):
        """Lazy-load the MSAL application (it contacts the authority on creation)."""
        if self._app is None:
            proxies = {"http": self.proxy_url, "https": self.proxy_url} if self.proxy_url else None
            self._app = self._app_factory(
                client_id=self.client_id,
                client_credential=self._client_credential,
                authority=self._environment.authority(self.tenant_id),
                proxies=proxies,
            )
        return self._app

    def get_token(self, resource: Optional[str] = None) -> str:
        # MSAL returns a cached token while it is valid
        result = self.app.acquire_token_for_client(
            scopes=resource_to_scopes(resource or self._environment.management_endpoint)
        )
        if result and "access_token" in result:
            logger.debug("Token acquired for service principal")
            return result["access_token"]
        result = result or {}
        error_desc = result.get("error_description", "Unknown error")
        raise LoginFailureError(
            f"Service principal authentication failed: {error_desc}",
            error=result.get("error"),
            error_description=result.get("error_description"),
        )
