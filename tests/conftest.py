"""Shared fixtures for the Azure login tests."""

import datetime
import time
from pathlib import Path
from typing import Any, Optional

import jwt
import pytest
import requests
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from azure_login.models.credential import AzureCredential

JWT_TEST_KEY = "unit-test-signing-key-0123456789abcdef"


def make_jwt(expires_in: Optional[float] = 3600, **claims: Any) -> str:
    """Signed JWT with an ``exp`` claim ``expires_in`` seconds from now (omitted if None)."""
    payload = dict(claims)
    if expires_in is not None:
        payload["exp"] = int(time.time() + expires_in)
    return jwt.encode(payload, JWT_TEST_KEY, algorithm="HS256")


def make_credential(
    expires_in: Optional[float] = 3600,
    refresh_token: Optional[str] = "refresh-token",
    **kwargs: Any,
) -> AzureCredential:
    return AzureCredential(
        access_token_type="Bearer",
        access_token=make_jwt(expires_in),
        refresh_token=refresh_token,
        **kwargs,
    )


def callback(server, query: str = "", path: str = "/") -> requests.Response:
    """Send a browser-style redirect to a running ``LocalAuthServer``."""
    session = requests.Session()
    # Never route loopback requests through a proxy from the environment
    session.trust_env = False
    try:
        url = f"{server.uri}{path}"
        if query:
            url += f"?{query}"
        return session.get(url, timeout=5)
    finally:
        session.close()


class FakeResponse:
    def __init__(self, body: Any, status_code: int = 200):
        self._body = body
        self.status_code = status_code
        self.text = str(body)

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeSession:
    """Stands in for ``requests.Session``; answers posts from a queue."""

    def __init__(self, *responses: FakeResponse):
        self.responses = list(responses)
        self.posts: list[dict[str, Any]] = []
        self.closed = False

    def post(self, url, data=None, headers=None, timeout=None):
        self.posts.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        return self.responses.pop(0)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty Azure config directory, selected through ``AZURE_CONFIG_DIR``."""
    folder = tmp_path / "azure"
    folder.mkdir()
    monkeypatch.setenv("AZURE_CONFIG_DIR", str(folder))
    monkeypatch.delenv("ACC_CLOUD", raising=False)
    return folder


@pytest.fixture
def pem_file(tmp_path: Path):
    """Self-signed certificate and its private key in a single PEM file."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "azure-login-test")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    path = tmp_path / "sp.pem"
    path.write_bytes(key_pem + cert.public_bytes(serialization.Encoding.PEM))
    return path, cert
