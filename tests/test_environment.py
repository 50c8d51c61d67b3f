import pytest

from azure_login.models.credential import AzureCredential
from azure_login.models.environment import (
    AzureEnvironment,
    get_environment,
    is_known_environment,
    short_name,
)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("AZURE", AzureEnvironment.AZURE),
        ("azure_china", AzureEnvironment.AZURE_CHINA),
        ("AZURE_CHINA", AzureEnvironment.AZURE_CHINA),
        ("AzureChinaCloud", AzureEnvironment.AZURE_CHINA),
        ("AzureUSGovernment", AzureEnvironment.AZURE_US_GOVERNMENT),
        (" azure_germany ", AzureEnvironment.AZURE_GERMANY),
        (AzureEnvironment.AZURE_GERMANY, AzureEnvironment.AZURE_GERMANY),
    ],
)
def test_get_environment_accepts_known_spellings(name, expected):
    assert get_environment(name) is expected


@pytest.mark.parametrize("name", [None, "", "   ", "moon_cloud"])
def test_get_environment_defaults_to_public_cloud(name):
    assert get_environment(name) is AzureEnvironment.AZURE


def test_is_known_environment():
    assert is_known_environment("azure_us_government")
    assert is_known_environment("AzureCloud")
    assert not is_known_environment("moon_cloud")
    assert not is_known_environment("")
    assert not is_known_environment(None)


def test_short_names():
    assert short_name("AZURE_US_GOVERNMENT") == "azure_us_government"
    assert short_name(None) == "azure"


def test_endpoints():
    env = AzureEnvironment.AZURE
    assert env.token_endpoint == "https://login.microsoftonline.com/common/oauth2/token"
    assert env.authorize_endpoint == "https://login.microsoftonline.com/common/oauth2/authorize"
    assert env.device_code_endpoint == "https://login.microsoftonline.com/common/oauth2/devicecode"
    assert env.authority("my-tenant") == "https://login.microsoftonline.com/my-tenant"
    assert AzureEnvironment.AZURE_CHINA.management_endpoint == "https://management.core.chinacloudapi.cn/"


def test_credential_environment_is_stored_as_short_name():
    credential = AzureCredential(access_token="token", environment="AzureChinaCloud")
    assert credential.environment == "azure_china"



@pytest.mark.parametrize("name", ["AZURE", "AzureChinaCloud", "azure_germany", "AZURE_US_GOVERNMENT", "", None])
def test_short_name_is_idempotent(name):
    assert short_name(short_name(name)) == short_name(name)
