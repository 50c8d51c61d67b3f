"""Persistence of the Azure credential file (``azure-secret.json``)."""

import json
import logging
from pathlib import Path
from typing import Optional

from msal_extensions import CrossPlatLock, FilePersistence
from pydantic import ValidationError

from ..config import LoginSettings
from ..models.credential import AzureCredential
from ..utils.exceptions import CredentialStoreError

logger = logging.getLogger(__name__)


def default_secret_file() -> Path:
    """
    Location of the credential file.

    ``$AZURE_CONFIG_DIR/azure-secret.json`` if the variable is set, otherwise
    ``$HOME/.azure/azure-secret.json``.
    """
    return LoginSettings().secret_file


class CredentialStore:
    """Reads and writes the persisted credential as a single JSON document."""

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize the credential store.

        Args:
            path: Credential file location. Resolved from the environment on
                each call when omitted.
        """
        self._path = Path(path) if path else None

    @property
    def path(self) -> Path:
        return self._path or default_secret_file()

    def _resolve(self, path: Optional[Path]) -> Path:
        return Path(path) if path else self.path

    def exists(self, path: Optional[Path] = None) -> bool:
        return self._resolve(path).is_file()

    def load(self, path: Optional[Path] = None) -> AzureCredential:
        """
        Load the persisted credential.

        Raises:
            CredentialStoreError: If the file is missing, unreadable or malformed
        """
        target = self._resolve(path)
        if not target.is_file():
            raise CredentialStoreError(f"Credential file not found: {target}")

        try:
            data = json.loads(_read_content(target))
            if not isinstance(data, dict):
                raise CredentialStoreError(f"Credential file is not a JSON object: {target}")
            return AzureCredential.model_validate(data)
        except CredentialStoreError:
            raise
        except (OSError, ValueError, ValidationError) as e:
            raise CredentialStoreError(
                f"Cannot read azure credentials from file '{target}': {e}"
            ) from e

    def save(self, credential: AzureCredential, path: Optional[Path] = None) -> None:
        """
        Persist the credential, creating the parent directory if needed.

        Raises:
            CredentialStoreError: If the file cannot be written
        """
        target = self._resolve(path)
        try:
            # FilePersistence creates the parent directory and writes with mode 0600
            persistence = FilePersistence(str(target))
            with CrossPlatLock(_lock_path(target)):
                persistence.save(json.dumps(credential.to_json_dict(), indent=4))
            logger.debug(f"Saved azure credentials to {target}")
        except OSError as e:
            raise CredentialStoreError(f"Failed to save azure credentials to '{target}': {e}") from e

    def delete(self, path: Optional[Path] = None) -> bool:
        """
        Delete the persisted credential (logout).

        Returns:
            True if a file was removed
        """
        target = self._resolve(path)
        if not target.exists():
            return False
        try:
            with CrossPlatLock(_lock_path(target)):
                target.unlink()
        except OSError as e:
            raise CredentialStoreError(f"Failed to delete '{target}': {e}") from e
        logger.info(f"Removed azure credentials at {target}")
        return True


def _read_content(target: Path) -> str:
    persistence = FilePersistence(str(target))
    try:
        lock = CrossPlatLock(_lock_path(target))
        lock.__enter__()
    except OSError as e:
        # Read-only config directories cannot hold the lock file
        logger.debug(f"Cannot lock {target}, reading without lock: {e}")
        return persistence.load()
    try:
        return persistence.load()
    finally:
        lock.__exit__(None, None, None)


def _lock_path(target: Path) -> str:
    return str(target) + ".lockfile"
