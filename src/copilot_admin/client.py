"""Authenticated GitHub REST API client."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import requests

from .errors import NetworkError, error_from_response
from .models import Page

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
API_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": API_VERSION,
}


def parse_timestamp(value: str | None) -> Optional[datetime]:
    """Parse a GitHub ISO-8601 timestamp into an aware UTC datetime."""
    if not value:
        return None
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class GitHubClient:
    """An installation-authenticated client. Build it with ``auth.authenticate``."""

    session: requests.Session
    token: str
    api_url: str = "https://api.github.com"
    timeout: float = 30.0
    expires_at: Optional[datetime] = None

    def _send(self, method: str, path: str, params: dict | None = None,
              json: Any = None) -> requests.Response:
        url = f"{self.api_url}{path}"
        headers = dict(API_HEADERS, Authorization=f"Bearer {self.token}")
        logger.debug("%s %s params=%s", method, path, params)
        try:
            response = self.session.request(
                method, url, headers=headers, params=params, json=json, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e

        if not response.ok:
            error = error_from_response(response)
            logger.debug("%s %s -> %s %s (docs: %s)", method, path, error.status,
                         error.message, error.documentation_url)
            raise error
        return response

    def request(self, method: str, path: str, params: dict | None = None,
                json: Any = None) -> Any:
        """Send a request and return the decoded JSON body (None for 204)."""
        response = self._send(method, path, params=params, json=json)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def request_page(self, path: str, params: dict | None = None,
                     items_key: str | None = None) -> Page:
        """GET one page of a list endpoint; ``items_key`` selects a wrapped list."""
        response = self._send("GET", path, params=params)
        data = response.json() if response.content else []
        items = data.get(items_key, []) if items_key else data
        has_next = None
        if "Link" in response.headers:
            has_next = "next" in response.links
        return Page(items=list(items or []), has_next=has_next)

    # ── Organization ────────────────────────────────────────────────────────

    def get_org(self, org: str) -> dict:
        return self.request("GET", f"/orgs/{org}")

    def get_installation(self) -> dict:
        return self.request("GET", "/installation")

    # ── Copilot ─────────────────────────────────────────────────────────────

    def get_copilot_metrics(self, org: str, since: str | None = None,
                            until: str | None = None, per_page: int | None = None) -> list:
        params = {k: v for k, v in (("since", since), ("until", until),
                                    ("per_page", per_page)) if v}
        return self.request("GET", f"/orgs/{org}/copilot/metrics", params=params) or []

    def get_copilot_team_metrics(self, org: str, team_slug: str, since: str | None = None,
                                 until: str | None = None) -> list:
        params = {k: v for k, v in (("since", since), ("until", until)) if v}
        return self.request(
            "GET", f"/orgs/{org}/team/{team_slug}/copilot/metrics", params=params
        ) or []

    def get_copilot_seats_page(self, org: str, page: int = 1, per_page: int = 50) -> Page:
        return self.request_page(
            f"/orgs/{org}/copilot/billing/seats",
            params={"page": page, "per_page": per_page},
            items_key="seats",
        )

    def get_copilot_billing(self, org: str) -> dict:
        return self.request("GET", f"/orgs/{org}/copilot/billing")

    # ── Issues ──────────────────────────────────────────────────────────────

    def list_issues_page(self, owner: str, repo: str, params: dict) -> Page:
        return self.request_page(f"/repos/{owner}/{repo}/issues", params=params)

    def get_issue(self, owner: str, repo: str, number: int) -> dict:
        return self.request("GET", f"/repos/{owner}/{repo}/issues/{number}")

    def add_assignees(self, owner: str, repo: str, number: int, assignees: list[str]) -> dict:
        return self.request("POST", f"/repos/{owner}/{repo}/issues/{number}/assignees",
                            json={"assignees": assignees})

    def add_labels(self, owner: str, repo: str, number: int, labels: list[str]) -> list:
        return self.request("POST", f"/repos/{owner}/{repo}/issues/{number}/labels",
                            json={"labels": labels}) or []

    # ── Repositories ────────────────────────────────────────────────────────

    def get_repo(self, owner: str, repo: str) -> dict:
        return self.request("GET", f"/repos/{owner}/{repo}")

    def get_vulnerability_alerts(self, owner: str, repo: str) -> bool:
        """True when Dependabot alerts are enabled (GitHub answers 204 vs 404)."""
        self.request("GET", f"/repos/{owner}/{repo}/vulnerability-alerts")
        return True

    def set_vulnerability_alerts(self, owner: str, repo: str, enabled: bool) -> None:
        method = "PUT" if enabled else "DELETE"
        self.request(method, f"/repos/{owner}/{repo}/vulnerability-alerts")
