"""Credentials read from the Azure CLI profile and token cache."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from ..config import AZURE_PROFILE_NAME, AZURE_TOKEN_NAME
from ..models.credential import AzureCredential
from ..models.environment import get_environment
from .base import TokenCredential
from .lazy_credential import LazyTokenCredential
from .refresh import TokenRefresher
from .service_principal import ServicePrincipalCredential, load_certificate_credential

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    # The CLI writes these files with a UTF-8 BOM on Windows
    return json.loads(path.read_text(encoding="utf-8-sig"))


def get_default_subscription(config_folder: Path) -> Optional[dict[str, Any]]:
    """
    Default subscription entry of ``azureProfile.json``.

    Returns:
        The entry with ``isDefault == true``, or None if there is none

    Raises:
        OSError: If the profile cannot be read
        ValueError: If the profile is not valid JSON or not shaped like a CLI profile
    """
    profile = _read_json(config_folder / AZURE_PROFILE_NAME)
    if not isinstance(profile, dict):
        raise ValueError(f"{AZURE_PROFILE_NAME} does not contain an object")
    subscriptions = profile.get("subscriptions") or []
    if not isinstance(subscriptions, list):
        raise ValueError(f"subscriptions in {AZURE_PROFILE_NAME} is not a list")
    for subscription in subscriptions:
        if not isinstance(subscription, dict):
            raise ValueError(f"{AZURE_PROFILE_NAME} contains a malformed subscription entry")
        if subscription.get("isDefault") is True:
            return subscription
    return None


def get_token_list(config_folder: Path) -> list[dict[str, Any]]:
    """Entries of ``accessTokens.json``."""
    tokens = _read_json(config_folder / AZURE_TOKEN_NAME)
    if not isinstance(tokens, list) or not all(isinstance(entry, dict) for entry in tokens):
        raise ValueError(f"{AZURE_TOKEN_NAME} does not contain a list of entries")
    return tokens


def credential_from_azure_cli(
    config_folder: Path,
    refresher: Optional[TokenRefresher] = None,
) -> Optional[TokenCredential]:
    """
    Build a credential for the account of the CLI's default subscription.

    Service principal entries become a ``ServicePrincipalCredential`` (cached key
    or certificate file); user entries are wrapped as they are, refreshable but
    never written back to the CLI cache.

    Returns:
        The credential, or None if the CLI has no matching entry

    Raises:
        OSError, ValueError, KeyError: If the CLI files are missing or malformed
    """
    subscription = get_default_subscription(config_folder)
    if subscription is None:
        logger.debug("Failed to get default subscription of Azure CLI, please login Azure CLI first.")
        return None

    user = subscription.get("user") or {}
    if not isinstance(user, dict):
        raise ValueError(f"Malformed user of the default subscription in {AZURE_PROFILE_NAME}")
    account = user.get("name")
    if not account:
        logger.debug("Default subscription of Azure CLI has no account name.")
        return None
    environment_name = subscription.get("environmentName")
    if environment_name is not None and not isinstance(environment_name, str):
        raise ValueError(f"Malformed environmentName in {AZURE_PROFILE_NAME}")
    environment = get_environment(environment_name)
    subscription_id = subscription.get("id")

    for entry in get_token_list(config_folder):
        if account not in (entry.get("servicePrincipalId"), entry.get("userId")):
            continue

        client_id = entry.get("servicePrincipalId")
        if client_id:
            if entry.get("certificateFile"):
                client_credential = load_certificate_credential(entry["certificateFile"])
            else:
                client_credential = entry["accessToken"]
            logger.info("Authenticate with Azure CLI 2.0 service principal")
            credential = ServicePrincipalCredential(
                client_id=client_id,
                tenant_id=entry["servicePrincipalTenant"],
                client_credential=client_credential,
                environment=environment,
                default_subscription=subscription_id,
            )
            credential.auth_method = "azure_cli"
            return credential

        logger.info("Authenticate with Azure CLI 2.0")
        cached = AzureCredential(
            access_token_type=entry.get("tokenType", "Bearer"),
            access_token=entry["accessToken"],
            refresh_token=entry.get("refreshToken"),
            user_info={"displayableId": entry.get("userId")},
            is_multiple_resource_refresh_token=bool(entry.get("isMRRT", False)),
            default_subscription=subscription_id,
            environment=environment.value,
        )
        return LazyTokenCredential(cached, store=None, refresher=refresher, auth_method="azure_cli")

    logger.debug(f"No Azure CLI token found for {account}")
    return None
