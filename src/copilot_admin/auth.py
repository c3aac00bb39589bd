"""GitHub App authentication: App JWT and installation access tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import requests
from jose import jwt
from jose.exceptions import JOSEError

from .client import API_HEADERS, GitHubClient, parse_timestamp
from .config import Settings
from .errors import AuthenticationError, NetworkError, error_from_response

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "RS256"
# GitHub rejects App JWTs that live longer than 10 minutes.
JWT_LIFETIME = timedelta(minutes=9)
JWT_CLOCK_DRIFT = timedelta(seconds=60)


@dataclass(frozen=True)
class InstallationToken:
    token: str
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at


def load_private_key(path: str | Path) -> str:
    """Read the App's PEM private key."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise AuthenticationError(
            f"Cannot read private key at {path}: {e.strerror or e}",
            remedy="Point GITHUB_PRIVATE_KEY_PATH at the .pem file downloaded from the App settings.",
        ) from e


def create_app_jwt(app_id: str, private_key: str, now: datetime | None = None) -> str:
    """Sign a short-lived JWT identifying the GitHub App."""
    now = now or datetime.now(timezone.utc)
    claims = {
        "iat": int((now - JWT_CLOCK_DRIFT).timestamp()),
        "exp": int((now + JWT_LIFETIME).timestamp()),
        "iss": str(app_id),
    }
    try:
        return jwt.encode(claims, private_key, algorithm=JWT_ALGORITHM)
    except (JOSEError, ValueError, TypeError) as e:
        raise AuthenticationError(
            f"Cannot sign App JWT with the configured private key: {e}",
            remedy="Check that GITHUB_PRIVATE_KEY_PATH holds a valid RSA private key.",
        ) from e


def exchange_installation_token(session: requests.Session, api_url: str, app_jwt: str,
                                installation_id: str, timeout: float) -> InstallationToken:
    """Exchange an App JWT for an installation access token."""
    url = f"{api_url}/app/installations/{installation_id}/access_tokens"
    headers = dict(API_HEADERS, Authorization=f"Bearer {app_jwt}")
    try:
        response = session.post(url, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise NetworkError(f"Token exchange failed: {e}") from e

    if not response.ok:
        error = error_from_response(response)
        logger.debug("Token exchange failed: status=%s message=%s", error.status, error.message)
        if error.status in (401, 404):
            raise AuthenticationError(
                f"Installation token exchange failed: {error.message}",
                status=error.status,
                documentation_url=error.documentation_url,
            ) from error
        raise error

    data = response.json()
    return InstallationToken(
        token=data["token"],
        expires_at=parse_timestamp(data.get("expires_at")),
    )


def authenticate(settings: Settings, session: requests.Session | None = None,
                 now: datetime | None = None) -> GitHubClient:
    """Authenticate as the App installation and return a ready client.

    This is the single initialization step of every command; the token is not
    refreshed afterwards.
    """
    settings.require_app_identity()
    session = session or requests.Session()

    private_key = load_private_key(settings.private_key_path)
    app_jwt = create_app_jwt(settings.app_id, private_key, now)
    token = exchange_installation_token(
        session, settings.api_url, app_jwt, settings.installation_id, settings.timeout
    )
    logger.info("Authenticated as installation %s (token expires %s)",
                settings.installation_id, token.expires_at)
    return GitHubClient(
        session=session,
        token=token.token,
        api_url=settings.api_url,
        timeout=settings.timeout,
        expires_at=token.expires_at,
    )
