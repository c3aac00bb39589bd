"""Error taxonomy for GitHub API and configuration failures."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


class CopilotAdminError(Exception):
    """Base error. ``remedy`` is a short hint shown to the user."""

    remedy: str = ""

    def __init__(self, message: str, remedy: str | None = None):
        super().__init__(message)
        self.message = message
        if remedy is not None:
            self.remedy = remedy


class ConfigError(CopilotAdminError):
    remedy = "Set the missing value in the environment or in your .env file."


class PaginationError(CopilotAdminError):
    remedy = "Raise the page cap (max_pages) or narrow the query."


class NetworkError(CopilotAdminError):
    remedy = "Check network connectivity to the GitHub API."


class GitHubAPIError(CopilotAdminError):
    """A non-2xx response from the GitHub API."""

    def __init__(self, message: str, status: int | None = None,
                 documentation_url: str | None = None, remedy: str | None = None):
        super().__init__(message, remedy)
        self.status = status
        self.documentation_url = documentation_url

    def __str__(self) -> str:
        if self.status:
            return f"{self.message} (HTTP {self.status})"
        return self.message


class AuthenticationError(GitHubAPIError):
    remedy = ("Check GITHUB_APP_ID, GITHUB_PRIVATE_KEY_PATH and GITHUB_INSTALLATION_ID, "
              "and that the App is installed on the organization.")


class ForbiddenError(GitHubAPIError):
    remedy = ("Grant the GitHub App the required permission (e.g. 'Administration' or "
              "'Copilot Business' read) and have an owner accept the change.")


class NotFoundError(GitHubAPIError):
    remedy = ("Check the organization/repository name, that Copilot is enabled, "
              "and that the App has read access to the resource.")


class ValidationError(GitHubAPIError):
    remedy = "Check the request input (e.g. the user exists and can be assigned)."


class UnexpectedPayloadError(GitHubAPIError):
    """A 2xx response whose body does not have the documented shape."""

    remedy = ("The GitHub API returned data in an unexpected format; "
              "rerun with --verbose to see the request.")


class RateLimitedError(GitHubAPIError):
    remedy = "Wait for the rate limit window to reset and try again."

    def __init__(self, message: str, status: int | None = None,
                 documentation_url: str | None = None,
                 reset_at: Optional[datetime] = None):
        super().__init__(message, status, documentation_url)
        self.reset_at = reset_at
        if reset_at:
            self.remedy = f"Rate limit resets at {reset_at.isoformat()}; try again after that."


def _response_message(response) -> tuple[str, str | None]:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        return body.get("message") or response.reason or "GitHub API error", body.get("documentation_url")
    return response.text or response.reason or "GitHub API error", None


def error_from_response(response) -> GitHubAPIError:
    """Map a failed ``requests.Response`` to the matching error class."""
    status = response.status_code
    message, doc_url = _response_message(response)

    if status == 429 or (status == 403 and response.headers.get("X-RateLimit-Remaining") == "0"):
        reset_at = None
        reset = response.headers.get("X-RateLimit-Reset")
        if reset and reset.isdigit():
            reset_at = datetime.fromtimestamp(int(reset), tz=timezone.utc)
        return RateLimitedError(message, status, doc_url, reset_at=reset_at)
    if status == 401:
        return AuthenticationError(message, status, doc_url)
    if status == 403:
        return ForbiddenError(message, status, doc_url)
    if status == 404:
        return NotFoundError(message, status, doc_url)
    if status == 422:
        return ValidationError(message, status, doc_url)
    return GitHubAPIError(message, status, doc_url)
