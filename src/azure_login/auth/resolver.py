"""Pick the credential to use from the sources available on this machine."""

import logging
from typing import Callable, Optional

from ..config import AuthConfiguration, LoginSettings
from ..utils.exceptions import CredentialStoreError
from .azure_cli import credential_from_azure_cli, get_default_subscription
from .base import TokenCredential
from .credential_store import CredentialStore
from .lazy_credential import LazyTokenCredential
from .managed_identity import ManagedIdentityCredential
from .refresh import TokenRefresher
from .service_principal import ServicePrincipalCredential

logger = logging.getLogger(__name__)

# Failures of an implicit source mean "not available here", never a hard error
_PROBE_ERRORS = (OSError, ValueError, KeyError, TypeError, CredentialStoreError)


class CredentialResolver:
    """
    Resolve a credential in order of precedence:

    1. explicit service principal configuration
    2. the persisted ``azure-secret.json``
    3. managed identity, inside Azure Cloud Shell
    4. the Azure CLI profile and token cache
    """

    def __init__(
        self,
        settings: Optional[LoginSettings] = None,
        store: Optional[CredentialStore] = None,
        refresher: Optional[TokenRefresher] = None,
        managed_identity_factory: Callable[..., TokenCredential] = ManagedIdentityCredential,
    ):
        self.settings = settings or LoginSettings()
        self.store = store or CredentialStore(self.settings.secret_file)
        self.refresher = refresher or TokenRefresher()
        self.managed_identity_factory = managed_identity_factory

    def resolve(self, explicit_config: Optional[AuthConfiguration] = None) -> Optional[TokenCredential]:
        """
        Resolve the credential to use.

        Args:
            explicit_config: Service principal configuration; when given, no other
                source is consulted

        Returns:
            The first available credential, or None if no source yields one

        Raises:
            ConfigurationError: If explicit configuration is given but invalid
        """
        if explicit_config is not None:
            logger.info("Authenticate with service principal configuration")
            return ServicePrincipalCredential.from_configuration(explicit_config)

        for name, probe in (
            ("azure secret file", self._from_secret_file),
            ("managed identity", self._from_managed_identity),
            ("Azure CLI", self._from_azure_cli),
        ):
            try:
                credential = probe()
            except _PROBE_ERRORS as e:
                logger.debug(f"Cannot get credential from {name}: {e}")
                continue
            if credential is not None:
                return credential

        logger.info("No available Azure credential was found")
        return None

    def _from_secret_file(self) -> Optional[TokenCredential]:
        if not self.store.exists():
            return None
        credential = self.store.load()
        logger.info(f"Authenticate with file: {self.store.path}")
        return LazyTokenCredential(credential, store=self.store, refresher=self.refresher)

    def _from_managed_identity(self) -> Optional[TokenCredential]:
        if not self.settings.in_cloud_shell:
            return None
        logger.info("Authenticate with managed identity")
        return self.managed_identity_factory(default_subscription=self._cli_default_subscription())

    def _from_azure_cli(self) -> Optional[TokenCredential]:
        return credential_from_azure_cli(self.settings.config_folder, refresher=self.refresher)

    def _cli_default_subscription(self) -> Optional[str]:
        try:
            subscription = get_default_subscription(self.settings.config_folder)
        except (OSError, ValueError) as e:
            logger.debug(f"Cannot read Azure CLI profile: {e}")
            return None
        return subscription.get("id") if subscription else None
