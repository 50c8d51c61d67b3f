"""Configuration management for Azure login."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Protocol

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.environment import is_known_environment
from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

load_dotenv()

# Public client id of the Azure CLI, also used by the Azure build plugins
CLIENT_ID = "04b07795-8ddb-461a-bbee-02f9e1bf7b46"

AZURE_FOLDER = ".azure"
AZURE_SECRET_FILE = "azure-secret.json"
AZURE_PROFILE_NAME = "azureProfile.json"
AZURE_TOKEN_NAME = "accessTokens.json"

# Landing page the browser is sent to after the login page is shown
LOGIN_LANDING_PAGE = "https://aka.ms/maven_getting_started"


class LoginSettings(BaseSettings):
    """Process-level settings, read from the environment and ``.env``."""

    azure_config_dir: Optional[str] = Field(None, validation_alias="AZURE_CONFIG_DIR")
    # Only its presence matters: Azure Cloud Shell sets it
    cloud_shell: Optional[str] = Field(None, validation_alias="ACC_CLOUD")

    client_id: str = Field(default=CLIENT_ID, validation_alias="AZURE_LOGIN_CLIENT_ID")
    oauth_timeout_minutes: int = Field(
        default=5, validation_alias="AZURE_LOGIN_OAUTH_TIMEOUT_MINUTES"
    )
    http_timeout: float = Field(default=30, validation_alias="AZURE_LOGIN_HTTP_TIMEOUT")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @property
    def config_folder(self) -> Path:
        """``$AZURE_CONFIG_DIR`` when set and not blank, else ``~/.azure``."""
        if self.azure_config_dir and self.azure_config_dir.strip():
            return Path(self.azure_config_dir.strip())
        return Path.home() / AZURE_FOLDER

    @property
    def secret_file(self) -> Path:
        return self.config_folder / AZURE_SECRET_FILE

    @property
    def in_cloud_shell(self) -> bool:
        return self.cloud_shell is not None


class Severity(str, Enum):
    """Severity of a configuration problem."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ConfigurationProblem:
    """A single problem found while validating an ``AuthConfiguration``."""

    key: Optional[str]
    value: Optional[str]
    message: str
    severity: Severity


class AuthConfiguration(BaseModel):
    """Explicit service principal configuration."""

    client: Optional[str] = None
    tenant: Optional[str] = None
    key: Optional[str] = None
    certificate: Optional[str] = None
    certificate_password: Optional[str] = None
    environment: Optional[str] = None
    server_id: Optional[str] = None
    http_proxy_host: Optional[str] = None
    http_proxy_port: Optional[str] = None

    @property
    def proxy_url(self) -> Optional[str]:
        if _is_blank(self.http_proxy_host) or _is_blank(self.http_proxy_port):
            return None
        return f"http://{self.http_proxy_host}:{self.http_proxy_port}"

    def problems(self) -> list[ConfigurationProblem]:
        """Validate the configuration and return every problem found."""
        results: list[ConfigurationProblem] = []
        postfix = (
            f"server: {self.server_id} in settings file."
            if not _is_blank(self.server_id)
            else "<auth> configuration."
        )
        # The server id itself is checked by whoever loads the settings file
        if _is_blank(self.tenant):
            results.append(
                ConfigurationProblem(
                    "tenant", self.tenant, f"Cannot find 'tenant' in {postfix}", Severity.ERROR
                )
            )
        if _is_blank(self.client):
            results.append(
                ConfigurationProblem(
                    "client", self.client, f"Cannot find 'client' in {postfix}", Severity.ERROR
                )
            )
        if _is_blank(self.key) and _is_blank(self.certificate):
            results.append(
                ConfigurationProblem(
                    "key",
                    None,
                    f"Cannot find either 'key' or 'certificate' in {postfix}",
                    Severity.ERROR,
                )
            )
        if not _is_blank(self.key) and not _is_blank(self.certificate):
            results.append(
                ConfigurationProblem(
                    None,
                    None,
                    f"It is illegal to specify both 'key' and 'certificate' in {postfix}",
                    Severity.WARNING,
                )
            )
        if not _is_blank(self.environment) and not is_known_environment(self.environment):
            results.append(
                ConfigurationProblem(
                    "environment",
                    self.environment,
                    f"Invalid environment string '{self.environment}' in {postfix}",
                    Severity.ERROR,
                )
            )
        if _is_blank(self.http_proxy_host) != _is_blank(self.http_proxy_port):
            results.append(
                ConfigurationProblem(
                    None,
                    None,
                    "'httpProxyHost' and 'httpProxyPort' must both be set if you want to use proxy.",
                    Severity.ERROR,
                )
            )
        if not _is_blank(self.http_proxy_port):
            port = self.http_proxy_port.strip()
            if not port.isdigit():
                results.append(
                    ConfigurationProblem(
                        "httpProxyPort",
                        self.http_proxy_port,
                        f"Invalid integer number for httpProxyPort: '{self.http_proxy_port}'.",
                        Severity.ERROR,
                    )
                )
            elif not 0 < int(port) <= 65535:
                results.append(
                    ConfigurationProblem(
                        "httpProxyPort",
                        self.http_proxy_port,
                        f"Invalid range of httpProxyPort: '{self.http_proxy_port}', "
                        "it should be a number between 1 and 65535",
                        Severity.ERROR,
                    )
                )
        return results

    def errors(self) -> list[ConfigurationProblem]:
        return [p for p in self.problems() if p.severity == Severity.ERROR]

    def ensure_valid(self) -> None:
        """
        Log WARNING-level problems, then raise if any ERROR-level problem remains.

        Raises:
            ConfigurationError: If the configuration is missing required fields
        """
        for problem in self.problems():
            if problem.severity == Severity.WARNING:
                logger.warning(problem.message)
        errors = self.errors()
        if errors:
            raise ConfigurationError("\n".join(p.message for p in errors))


class SecretDecrypter(Protocol):
    """Decrypts values stored encrypted in the settings file."""

    def decrypt(self, value: str) -> str:
        ...


def is_value_encrypted(value: Optional[str]) -> bool:
    """Encrypted values are wrapped in braces, e.g. ``{COQLCE6DU6GtcS5P=}``."""
    return value is not None and value.startswith("{") and value.endswith("}")


def load_auth_configuration(
    server_id: str,
    settings_file: Path,
    decrypter: Optional[SecretDecrypter] = None,
) -> AuthConfiguration:
    """
    Load a service principal configuration for ``server_id`` from a YAML settings file.

    The file lists servers by id::

        servers:
          my-service-principal:
            client: <client id>
            tenant: <tenant id>
            key: "{encrypted key}"
            environment: AZURE_CHINA

    Args:
        server_id: Id of the server entry to load
        settings_file: Path to the YAML settings file
        decrypter: Decrypter for ``{...}`` values

    Returns:
        The loaded configuration

    Raises:
        ValueError: If server_id is blank
        ConfigurationError: If the server is missing, a value cannot be decrypted,
            or a required field is missing
    """
    if _is_blank(server_id):
        raise ValueError("Parameter 'server_id' cannot be empty.")

    data: dict[str, Any] = {}
    if settings_file.exists():
        with open(settings_file) as f:
            data = yaml.safe_load(f) or {}

    server = (data.get("servers") or {}).get(server_id)
    if not isinstance(server, dict):
        raise ConfigurationError(f"Cannot find {server_id} in {settings_file}.")

    def value(name: str) -> Optional[str]:
        raw = server.get(name)
        if raw is None:
            return None
        raw = str(raw)
        if not is_value_encrypted(raw):
            return raw
        if decrypter is None:
            raise ConfigurationError(
                f"Unable to decrypt '{name}' of server({server_id}): no decrypter available."
            )
        try:
            return decrypter.decrypt(raw)
        except Exception as e:
            raise ConfigurationError(
                f"Unable to decrypt server({server_id}) info from {settings_file}: {e}"
            ) from e

    conf = AuthConfiguration(
        server_id=server_id,
        tenant=value("tenant"),
        client=value("client"),
        key=value("key"),
        certificate=value("certificate"),
        certificate_password=value("certificatePassword"),
        environment=value("environment"),
        http_proxy_host=value("httpProxyHost"),
        http_proxy_port=value("httpProxyPort"),
    )

    if _is_blank(conf.tenant):
        raise ConfigurationError(
            f"Cannot find 'tenant' in {settings_file} for server: {server_id}."
        )
    if _is_blank(conf.client):
        raise ConfigurationError(
            f"Cannot find 'client' in {settings_file} for server: {server_id}."
        )
    if _is_blank(conf.key) and _is_blank(conf.certificate):
        raise ConfigurationError(
            f"Cannot find either 'key' or 'certificate' in {settings_file} for server: {server_id}."
        )
    return conf


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()
