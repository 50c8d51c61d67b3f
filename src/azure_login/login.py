"""Interactive login, logout and subscription selection against the persisted credential."""

import logging
from typing import Optional

from .auth.credential_store import CredentialStore
from .auth.device_code import DeviceCodeFlow
from .auth.oauth import AuthorizationCodeFlow
from .auth.refresh import TokenRefresher
from .models.credential import AzureCredential
from .models.environment import get_environment
from .utils.exceptions import CredentialStoreError, DesktopNotSupportedError, LoginFailureError

logger = logging.getLogger(__name__)


def login(
    environment=None,
    device_code: bool = False,
    store: Optional[CredentialStore] = None,
    refresher: Optional[TokenRefresher] = None,
    oauth_flow: Optional[AuthorizationCodeFlow] = None,
    device_flow: Optional[DeviceCodeFlow] = None,
) -> AzureCredential:
    """
    Log in and persist the resulting credential.

    An existing credential is refreshed when possible. Otherwise the browser
    login runs, falling back to device login when no browser is available.

    Args:
        environment: Cloud to log in to (defaults to the public cloud)
        device_code: Skip the browser and use device login directly
        store: Credential store (defaults to ``azure-secret.json``)

    Returns:
        The saved credential

    Raises:
        LoginFailureError: If the interactive login fails
        CredentialStoreError: If the credential cannot be saved
    """
    store = store or CredentialStore()
    env = get_environment(environment)

    credential = _try_refresh(store, environment, refresher or TokenRefresher())
    if credential is None:
        if device_code:
            credential = (device_flow or DeviceCodeFlow()).run(env)
        else:
            try:
                credential = (oauth_flow or AuthorizationCodeFlow()).run(env)
            except DesktopNotSupportedError as e:
                logger.warning(f"{e} Falling back to device login.")
                credential = (device_flow or DeviceCodeFlow()).run(env)

    store.save(credential)
    logger.info(f"Azure credentials saved to {store.path}")
    return credential


def _try_refresh(store: CredentialStore, environment, refresher: TokenRefresher) -> Optional[AzureCredential]:
    if not store.exists():
        return None
    try:
        existing = store.load()
    except CredentialStoreError as e:
        logger.warning(f"Ignoring unreadable credential file: {e}")
        return None
    if not existing.refresh_token:
        return None
    # Without an explicit cloud, stay on the one the credential was issued by
    env = get_environment(environment if environment else existing.environment)
    try:
        refreshed = refresher.refresh(env, existing.refresh_token)
    except LoginFailureError as e:
        logger.info(f"Cannot refresh existing credential, login again: {e}")
        return None
    if refreshed is None:
        return None
    if env == get_environment(existing.environment):
        refreshed.default_subscription = existing.default_subscription
    return refreshed


def logout(store: Optional[CredentialStore] = None) -> bool:
    """
    Remove the persisted credential.

    Returns:
        True if a credential file was removed
    """
    store = store or CredentialStore()
    removed = store.delete()
    if not removed:
        logger.info(f"No azure credentials found at {store.path}")
    return removed


def select_subscription(subscription_id: str, store: Optional[CredentialStore] = None) -> AzureCredential:
    """
    Set the default subscription on the persisted credential.

    Raises:
        ValueError: If subscription_id is blank
        CredentialStoreError: If there is no persisted credential
    """
    if not subscription_id or not subscription_id.strip():
        raise ValueError("Parameter 'subscription_id' cannot be empty.")
    store = store or CredentialStore()
    credential = store.load()
    credential.default_subscription = subscription_id.strip()
    store.save(credential)
    logger.info(f"Default subscription is set to {credential.default_subscription}")
    return credential
