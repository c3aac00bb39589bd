"""Tests for GitHub App authentication."""

from datetime import datetime, timedelta, timezone

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwt

from copilot_admin.auth import (
    InstallationToken,
    authenticate,
    create_app_jwt,
    load_private_key,
)
from copilot_admin.config import Settings
from copilot_admin.errors import AuthenticationError, ConfigError, ForbiddenError

API = "https://api.github.test"
NOW = datetime(2026, 2, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="module")
def rsa_key():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture
def settings(tmp_path, rsa_key):
    key_file = tmp_path / "app.pem"
    key_file.write_text(rsa_key[0])
    return Settings(app_id="123", private_key_path=str(key_file), installation_id="456",
                    api_url=API, timeout=5)


class TestAppJwt:
    def test_claims(self, rsa_key):
        token = create_app_jwt("123", rsa_key[0], NOW)
        claims = jwt.decode(token, rsa_key[1], algorithms=["RS256"],
                            options={"verify_exp": False, "verify_iat": False})
        assert claims["iss"] == "123"
        assert claims["iat"] == int((NOW - timedelta(seconds=60)).timestamp())
        assert claims["exp"] - int(NOW.timestamp()) == 9 * 60

    def test_invalid_key(self):
        with pytest.raises(AuthenticationError):
            create_app_jwt("123", "not a key", NOW)


class TestLoadPrivateKey:
    def test_missing_file(self, tmp_path):
        with pytest.raises(AuthenticationError) as exc:
            load_private_key(tmp_path / "missing.pem")
        assert "GITHUB_PRIVATE_KEY_PATH" in exc.value.remedy


class TestInstallationToken:
    def test_expiry(self):
        token = InstallationToken("t", expires_at=NOW)
        assert token.is_expired(NOW) is True
        assert token.is_expired(NOW - timedelta(minutes=1)) is False

    def test_no_expiry(self):
        assert InstallationToken("t").is_expired(NOW) is False


class TestAuthenticate:
    def test_returns_client(self, settings, requests_mock):
        requests_mock.post(f"{API}/app/installations/456/access_tokens", status_code=201,
                           json={"token": "ghs_abc", "expires_at": "2026-02-10T13:00:00Z"})
        client = authenticate(settings, now=NOW)
        assert client.token == "ghs_abc"
        assert client.api_url == API
        assert client.expires_at == datetime(2026, 2, 10, 13, tzinfo=timezone.utc)
        assert requests_mock.last_request.headers["Authorization"].startswith("Bearer ey")

    def test_authenticates_once(self, settings, requests_mock):
        exchange = requests_mock.post(f"{API}/app/installations/456/access_tokens",
                                      json={"token": "ghs_abc"})
        requests_mock.get(f"{API}/orgs/Acme", json={"login": "Acme"})
        client = authenticate(settings, now=NOW)
        client.get_org("Acme")
        client.get_org("Acme")
        assert exchange.call_count == 1
        assert requests_mock.last_request.headers["Authorization"] == "Bearer ghs_abc"

    def test_bad_installation(self, settings, requests_mock):
        requests_mock.post(f"{API}/app/installations/456/access_tokens", status_code=404,
                           json={"message": "Not Found"})
        with pytest.raises(AuthenticationError) as exc:
            authenticate(settings, now=NOW)
        assert exc.value.status == 404

    def test_other_errors_pass_through(self, settings, requests_mock):
        requests_mock.post(f"{API}/app/installations/456/access_tokens", status_code=403,
                           json={"message": "suspended"})
        with pytest.raises(ForbiddenError):
            authenticate(settings, now=NOW)

    def test_missing_config(self):
        with pytest.raises(ConfigError):
            authenticate(Settings())
