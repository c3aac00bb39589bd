"""Organization, Copilot and security policy reads."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any

from .client import GitHubClient
from .errors import CopilotAdminError, NotFoundError
from .models import OperationResult

logger = logging.getLogger(__name__)

SECURITY_FIELDS = (
    "two_factor_requirement_enabled",
    "members_can_create_repositories",
    "members_can_create_public_repositories",
    "members_can_create_private_repositories",
    "members_can_create_internal_repositories",
    "members_allowed_repository_creation_type",
    "dependency_graph_enabled_for_new_repositories",
    "dependabot_alerts_enabled_for_new_repositories",
    "dependabot_security_updates_enabled_for_new_repositories",
    "advanced_security_enabled_for_new_repositories",
)

MEMBERSHIP_FIELDS = (
    "members_can_create_repositories",
    "members_can_create_public_repositories",
    "members_can_create_private_repositories",
    "members_can_create_internal_repositories",
    "members_can_create_pages",
    "members_can_create_public_pages",
    "members_can_create_private_pages",
    "members_can_fork_private_repositories",
)

REPO_SETTINGS_FIELDS = (
    "visibility",
    "private",
    "has_issues",
    "has_projects",
    "has_wiki",
    "allow_forking",
    "allow_merge_commit",
    "allow_squash_merge",
    "allow_rebase_merge",
    "allow_auto_merge",
    "delete_branch_on_merge",
    "default_branch",
)


def _now(now: datetime | None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def _failed_section(error: CopilotAdminError) -> dict:
    return {"error": str(error), "remedy": error.remedy}


def _pick(data: dict, fields: tuple[str, ...]) -> dict[str, Any]:
    return {name: data.get(name) for name in fields}


def _policies_from_org(data: dict, org: str, now: datetime | None) -> dict:
    return {
        "organization": org,
        "fetched_at": _now(now),
        "basic_info": {
            "name": data.get("name"),
            "description": data.get("description"),
            "company": data.get("company"),
            "location": data.get("location"),
            "email": data.get("email"),
            "blog": data.get("blog"),
            "plan": (data.get("plan") or {}).get("name"),
        },
        "membership_policies": _pick(data, MEMBERSHIP_FIELDS),
        "security_policies": _pick(data, SECURITY_FIELDS),
        "repository_counts": {
            "public_repos": data.get("public_repos"),
            "private_repos": data.get("total_private_repos"),
            "owned_private_repos": data.get("owned_private_repos"),
            "disk_usage": data.get("disk_usage"),
            "collaborators": data.get("collaborators"),
            "public_members": data.get("public_members_count"),
        },
    }


def get_copilot_settings(client: GitHubClient, org: str, now: datetime | None = None) -> dict:
    """Copilot settings from the billing endpoint; 404 means Copilot is off."""
    try:
        billing = client.get_copilot_billing(org)
    except NotFoundError:
        logger.info("Copilot is not enabled for organization %s", org)
        return {
            "organization": org,
            "fetched_at": _now(now),
            "enabled": False,
            "message": "Copilot is not enabled for this organization",
        }
    return {
        "organization": org,
        "fetched_at": _now(now),
        "enabled": True,
        "plan_type": billing.get("plan_type"),
        "seat_management": billing.get("seat_management_setting"),
        "seat_breakdown": billing.get("seat_breakdown") or {},
        "public_code_suggestions": billing.get("public_code_suggestions") or "unknown",
        "ide_chat": billing.get("ide_chat"),
        "platform_chat": billing.get("platform_chat"),
        "cli": billing.get("cli"),
    }


def _security_from_org(data: dict, org: str, now: datetime | None) -> dict:
    return {"organization": org, "fetched_at": _now(now), **_pick(data, SECURITY_FIELDS)}


def get_organization_policies(client: GitHubClient, org: str,
                              now: datetime | None = None) -> dict:
    return _policies_from_org(client.get_org(org), org, now)


def get_organization_security_settings(client: GitHubClient, org: str,
                                       now: datetime | None = None) -> dict:
    return _security_from_org(client.get_org(org), org, now)


def get_repository_security_settings(client: GitHubClient, owner: str, repo: str,
                                     now: datetime | None = None) -> dict:
    """Repository settings plus Dependabot alert status (False when unknown)."""
    data = client.get_repo(owner, repo)
    try:
        alerts_enabled = client.get_vulnerability_alerts(owner, repo)
    except CopilotAdminError as e:
        logger.debug("Vulnerability alerts unavailable for %s/%s: %s", owner, repo, e)
        alerts_enabled = False
    return {
        "repository": f"{owner}/{repo}",
        "fetched_at": _now(now),
        "security_and_analysis": data.get("security_and_analysis") or {},
        "vulnerability_alerts_enabled": alerts_enabled,
        **_pick(data, REPO_SETTINGS_FIELDS),
    }


def update_dependabot_settings(client: GitHubClient, owner: str, repo: str,
                               enabled: bool) -> OperationResult:
    """Enable or disable Dependabot vulnerability alerts for a repository."""
    payload = {"repository": f"{owner}/{repo}", "dependabot_enabled": enabled}
    try:
        client.set_vulnerability_alerts(owner, repo, enabled)
    except CopilotAdminError as e:
        logger.warning("Failed to update Dependabot for %s/%s: %s", owner, repo, e)
        return OperationResult.failed(str(e), payload)
    logger.info("%s Dependabot alerts for %s/%s", "Enabled" if enabled else "Disabled", owner, repo)
    return OperationResult.ok(payload)


def get_comprehensive_policy_overview(client: GitHubClient, org: str,
                                      now: datetime | None = None) -> dict:
    """Join org policies, Copilot settings and security settings.

    The organization is read once for both the policy and the security
    section; Copilot settings are read alongside it. A failed read replaces
    the sections built from it by ``{"error": message, "remedy": hint}``
    instead of failing the overview.
    """
    overview: dict[str, Any] = {"organization": org, "fetched_at": _now(now)}
    with ThreadPoolExecutor(max_workers=2) as pool:
        org_future = pool.submit(client.get_org, org)
        copilot_future = pool.submit(get_copilot_settings, client, org, now)

        try:
            data = org_future.result()
        except CopilotAdminError as e:
            logger.warning("Organization read failed for %s: %s", org, e)
            overview["organization_policies"] = _failed_section(e)
            overview["security_settings"] = _failed_section(e)
        else:
            overview["organization_policies"] = _policies_from_org(data, org, now)
            overview["security_settings"] = _security_from_org(data, org, now)

        try:
            overview["copilot_settings"] = copilot_future.result()
        except CopilotAdminError as e:
            logger.warning("Copilot settings failed for %s: %s", org, e)
            overview["copilot_settings"] = _failed_section(e)
    return overview
