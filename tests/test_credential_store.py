import json
import os
from pathlib import Path

import pytest

from azure_login.auth import credential_store
from azure_login.auth.credential_store import CredentialStore, default_secret_file
from azure_login.models.credential import AzureCredential
from azure_login.utils.exceptions import CredentialStoreError

from conftest import make_credential


def test_default_location_follows_azure_config_dir(config_dir):
    assert default_secret_file() == config_dir / "azure-secret.json"
    assert CredentialStore().path == config_dir / "azure-secret.json"


def test_blank_azure_config_dir_uses_home(monkeypatch, tmp_path):
    monkeypatch.setenv("AZURE_CONFIG_DIR", "  ")
    monkeypatch.setenv("HOME", str(tmp_path))
    assert default_secret_file() == Path.home() / ".azure" / "azure-secret.json"


def test_save_and_load_round_trip(tmp_path):
    store = CredentialStore(tmp_path / "nested" / "azure-secret.json")
    credential = make_credential(
        id_token="id-token",
        user_info={"displayableId": "user@contoso.com"},
        default_subscription="sub-1",
        environment="azure_china",
    )

    store.save(credential)
    loaded = store.load()

    assert loaded == credential
    assert store.exists()


def test_file_uses_camel_case_keys(tmp_path):
    path = tmp_path / "azure-secret.json"
    CredentialStore(path).save(make_credential(default_subscription="sub-1", environment="azure"))

    data = json.loads(path.read_text())
    assert set(data) == {
        "accessTokenType",
        "idToken",
        "userInfo",
        "accessToken",
        "refreshToken",
        "isMultipleResourceRefreshToken",
        "defaultSubscription",
        "environment",
    }
    assert data["defaultSubscription"] == "sub-1"


def test_load_accepts_file_written_by_other_tools(tmp_path):
    path = tmp_path / "azure-secret.json"
    path.write_text(
        json.dumps(
            {
                "accessTokenType": "Bearer",
                "accessToken": "token",
                "refreshToken": "refresh",
                "environment": "AZURE_GERMANY",
            }
        )
    )

    loaded = CredentialStore(path).load()

    assert loaded.access_token == "token"
    assert loaded.environment == "azure_germany"
    assert loaded.is_multiple_resource_refresh_token is False


def test_load_missing_file(tmp_path):
    with pytest.raises(CredentialStoreError):
        CredentialStore(tmp_path / "missing.json").load()


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"refreshToken": "x"}'])
def test_load_malformed_file(tmp_path, content):
    path = tmp_path / "azure-secret.json"
    path.write_text(content)

    with pytest.raises(CredentialStoreError):
        CredentialStore(path).load()


def test_delete(tmp_path):
    store = CredentialStore(tmp_path / "azure-secret.json")
    store.save(AzureCredential(access_token="token"))

    assert store.delete() is True
    assert not store.exists()
    assert store.delete() is False


def test_load_without_lock_when_lock_cannot_be_created(tmp_path, monkeypatch):
    store = CredentialStore(tmp_path / "azure-secret.json")
    credential = make_credential()
    store.save(credential)

    class ReadOnlyDirectoryLock:
        def __init__(self, lockfile_path):
            self.lockfile_path = lockfile_path

        def __enter__(self):
            raise PermissionError(13, "Permission denied", self.lockfile_path)

        def __exit__(self, *exc):
            return False

    monkeypatch.setattr(credential_store, "CrossPlatLock", ReadOnlyDirectoryLock)

    assert store.load() == credential


@pytest.mark.skipif(
    not hasattr(os, "geteuid") or os.geteuid() == 0,
    reason="needs a non-root POSIX user for directory permissions",
)
def test_load_from_read_only_directory(tmp_path):
    folder = tmp_path / "ro"
    store = CredentialStore(folder / "azure-secret.json")
    credential = make_credential()
    store.save(credential)
    folder.chmod(0o500)
    try:
        assert store.load() == credential
    finally:
        folder.chmod(0o700)
