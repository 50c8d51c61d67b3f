"""Expiry-aware credential that refreshes its access token on demand."""

import logging
import threading
from typing import Optional

from ..models.credential import AzureCredential
from ..models.environment import get_environment
from ..utils.exceptions import LoginFailureError
from .base import TokenCredential
from .credential_store import CredentialStore
from .expiry import TokenExpiryChecker
from .refresh import TokenRefresher

logger = logging.getLogger(__name__)


class LazyTokenCredential(TokenCredential):
    """
    Wraps a persisted ``AzureCredential`` behind ``get_token``.

    The cached access token is returned while it has more than a minute left;
    otherwise it is refreshed with the refresh token and, when a store is
    attached, the updated credential is written back. The check, refresh and
    write happen under one lock so concurrent callers trigger a single refresh.
    """

    def __init__(
        self,
        credential: AzureCredential,
        store: Optional[CredentialStore] = None,
        refresher: Optional[TokenRefresher] = None,
        checker: Optional[TokenExpiryChecker] = None,
        auth_method: str = "azure_secret_file",
    ):
        self.credential = credential
        self.store = store
        self.refresher = refresher or TokenRefresher()
        self.checker = checker or TokenExpiryChecker()
        self.auth_method = auth_method
        self._lock = threading.Lock()

    @property
    def environment(self) -> str:
        return get_environment(self.credential.environment).value

    @property
    def default_subscription(self) -> Optional[str]:
        return self.credential.default_subscription

    def get_token(self, resource: Optional[str] = None) -> str:
        """
        Return a valid access token, refreshing it if it is about to expire.

        Raises:
            LoginFailureError: If the refresh fails; the credential should then be
                considered unusable
        """
        with self._lock:
            if not self.checker.needs_refresh(self.credential.access_token):
                return self.credential.access_token

            if not self.credential.refresh_token:
                raise LoginFailureError(
                    "The access token has expired and there is no refresh token, please login again."
                )
            logger.info("Access token expired or about to expire, refreshing")
            refreshed = self.refresher.refresh(self.environment, self.credential.refresh_token)
            if refreshed is None or not refreshed.access_token:
                raise LoginFailureError("Failed to refresh the access token.")

            self.credential.access_token = refreshed.access_token
            if refreshed.refresh_token:
                self.credential.refresh_token = refreshed.refresh_token
            if refreshed.access_token_type:
                self.credential.access_token_type = refreshed.access_token_type
            if refreshed.id_token:
                self.credential.id_token = refreshed.id_token

            if self.store is not None:
                self.store.save(self.credential)
            return self.credential.access_token
