"""Azure cloud environments and their short names."""

from enum import Enum
from typing import Optional


class AzureEnvironment(str, Enum):
    """Known Azure clouds, valued by their short name."""

    AZURE = "azure"
    AZURE_CHINA = "azure_china"
    AZURE_GERMANY = "azure_germany"
    AZURE_US_GOVERNMENT = "azure_us_government"

    @property
    def active_directory_endpoint(self) -> str:
        return _ENDPOINTS[self][0]

    @property
    def management_endpoint(self) -> str:
        return _ENDPOINTS[self][1]

    @property
    def cli_name(self) -> str:
        """Name used by the Azure CLI profile (``environmentName``)."""
        return _CLI_NAMES[self]

    @property
    def base_url(self) -> str:
        """Authority URL for the multi-tenant ``common`` endpoint."""
        return f"{self.active_directory_endpoint}common"

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.base_url}/oauth2/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.base_url}/oauth2/token"

    @property
    def device_code_endpoint(self) -> str:
        return f"{self.base_url}/oauth2/devicecode"

    def authority(self, tenant: Optional[str] = None) -> str:
        return f"{self.active_directory_endpoint}{tenant or 'common'}"


# (active directory, management)
_ENDPOINTS = {
    AzureEnvironment.AZURE: (
        "https://login.microsoftonline.com/",
        "https://management.core.windows.net/",
    ),
    AzureEnvironment.AZURE_CHINA: (
        "https://login.chinacloudapi.cn/",
        "https://management.core.chinacloudapi.cn/",
    ),
    AzureEnvironment.AZURE_GERMANY: (
        "https://login.microsoftonline.de/",
        "https://management.core.cloudapi.de/",
    ),
    AzureEnvironment.AZURE_US_GOVERNMENT: (
        "https://login.microsoftonline.us/",
        "https://management.core.usgovcloudapi.net/",
    ),
}

_CLI_NAMES = {
    AzureEnvironment.AZURE: "AzureCloud",
    AzureEnvironment.AZURE_CHINA: "AzureChinaCloud",
    AzureEnvironment.AZURE_GERMANY: "AzureGermanCloud",
    AzureEnvironment.AZURE_US_GOVERNMENT: "AzureUSGovernment",
}

# Every accepted spelling, lower-cased, mapped to its environment
_ALIASES: dict[str, AzureEnvironment] = {}
for _env in AzureEnvironment:
    _ALIASES[_env.value] = _env
    _ALIASES[_env.cli_name.lower()] = _env
_ALIASES["azure_cloud"] = AzureEnvironment.AZURE
_ALIASES["azurecloud"] = AzureEnvironment.AZURE
_ALIASES["azure_german_cloud"] = AzureEnvironment.AZURE_GERMANY
_ALIASES["azure_us_gov"] = AzureEnvironment.AZURE_US_GOVERNMENT


def is_known_environment(name: Optional[str]) -> bool:
    """True if ``name`` is a recognized spelling of one of the known clouds."""
    return bool(name) and name.strip().lower() in _ALIASES


def get_environment(name: Optional[str]) -> AzureEnvironment:
    """
    Resolve an environment by name.

    Accepts short names (``azure_china``), enum-style names (``AZURE_CHINA``) and
    Azure CLI names (``AzureChinaCloud``), case-insensitively. Blank or unknown
    input resolves to the public cloud.
    """
    if isinstance(name, AzureEnvironment):
        return name
    if not name or not name.strip():
        return AzureEnvironment.AZURE
    return _ALIASES.get(name.strip().lower(), AzureEnvironment.AZURE)


def short_name(name: Optional[str]) -> str:
    """Short name (``azure``, ``azure_china``, ...) for any accepted spelling."""
    return get_environment(name).value
