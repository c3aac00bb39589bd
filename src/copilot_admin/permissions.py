"""Probe the Copilot endpoints to verify the App's permissions."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from .client import GitHubClient
from .errors import CopilotAdminError, ForbiddenError, NotFoundError
from .models import PermissionCheck

logger = logging.getLogger(__name__)

REQUIRED_PERMISSIONS = {
    "copilot_business": "read",
    "organization_administration": "read",
}

COPILOT_REMEDY = "Grant the App 'Copilot Business' read permission."
ADMIN_REMEDY = "Grant the App 'Organization administration' read permission."


def _check(name: str, call, describe, remedy: str) -> PermissionCheck:
    try:
        data = call()
    except (ForbiddenError, NotFoundError) as e:
        return PermissionCheck(name=name, ok=False, detail=str(e), remedy=remedy)
    except CopilotAdminError as e:
        return PermissionCheck(name=name, ok=False, detail=str(e), remedy=e.remedy)
    return PermissionCheck(name=name, ok=True, detail=describe(data))


def verify_permissions(client: GitHubClient, org: str,
                       now: datetime | None = None) -> list[PermissionCheck]:
    """Run the permission checks; stops early if the organization is unreachable."""
    now = now or datetime.now(timezone.utc)
    checks = [
        _check(
            "organization",
            lambda: client.get_org(org),
            lambda d: f"{d.get('login', org)} ({d.get('type', 'Organization')}), "
                      f"{d.get('public_repos', 0)} public repos",
            "Check that the App is installed on this organization.",
        )
    ]
    if not checks[0].ok:
        return checks

    since = (now - timedelta(days=7)).date().isoformat()
    until = now.date().isoformat()
    checks.append(_check(
        "copilot metrics",
        lambda: client.get_copilot_metrics(org, since, until),
        lambda d: f"{len(d)} days of metrics in the last week",
        COPILOT_REMEDY,
    ))
    checks.append(_check(
        "copilot billing",
        lambda: client.get_copilot_billing(org),
        lambda d: f"plan {d.get('plan_type', 'unknown')}, "
                  f"{(d.get('seat_breakdown') or {}).get('total', 0)} seats",
        ADMIN_REMEDY,
    ))
    checks.append(_check(
        "copilot seats",
        lambda: client.get_copilot_seats_page(org, page=1, per_page=1),
        lambda page: f"{len(page.items)} seat(s) readable",
        ADMIN_REMEDY,
    ))
    checks.append(_check(
        "installation",
        client.get_installation,
        describe_installation,
        "The installation token could not read its own installation.",
    ))
    for check in checks:
        logger.debug("Permission check %s: ok=%s %s", check.name, check.ok, check.detail)
    return checks


def describe_installation(data: dict) -> str:
    permissions = data.get("permissions") or {}
    granted = ", ".join(f"{name}={level}" for name, level in sorted(permissions.items()))
    missing = [name for name in REQUIRED_PERMISSIONS if name not in permissions]
    account = (data.get("account") or {}).get("login", "?")
    detail = f"id {data.get('id')} on {account}; permissions: {granted or 'none'}"
    if missing:
        detail += f"; not granted: {', '.join(missing)}"
    return detail
