"""Tests for organization and repository policy reads."""

from datetime import datetime, timezone

import pytest

from copilot_admin.errors import ForbiddenError
from copilot_admin.policy import (
    get_comprehensive_policy_overview,
    get_copilot_settings,
    get_organization_policies,
    get_repository_security_settings,
    update_dependabot_settings,
)

API = "https://api.github.test"
NOW = datetime(2026, 2, 10, 12, 0, tzinfo=timezone.utc)

ORG = {
    "login": "Acme",
    "name": "Acme Corp",
    "plan": {"name": "enterprise"},
    "two_factor_requirement_enabled": True,
    "members_can_create_repositories": False,
    "members_can_fork_private_repositories": False,
    "public_repos": 12,
    "total_private_repos": 40,
}

BILLING = {
    "seat_breakdown": {"total": 5, "active_this_cycle": 3},
    "seat_management_setting": "assign_selected",
    "plan_type": "business",
    "public_code_suggestions": "block",
}


class TestOrganizationPolicies:
    def test_sections(self, client, requests_mock):
        requests_mock.get(f"{API}/orgs/Acme", json=ORG)
        policies = get_organization_policies(client, "Acme", NOW)
        assert policies["basic_info"]["name"] == "Acme Corp"
        assert policies["basic_info"]["plan"] == "enterprise"
        assert policies["security_policies"]["two_factor_requirement_enabled"] is True
        assert policies["membership_policies"]["members_can_fork_private_repositories"] is False
        assert policies["repository_counts"]["private_repos"] == 40
        assert policies["fetched_at"] == NOW.isoformat()

    def test_failure_propagates(self, client, requests_mock):
        requests_mock.get(f"{API}/orgs/Acme", status_code=403, json={"message": "Forbidden"})
        with pytest.raises(ForbiddenError):
            get_organization_policies(client, "Acme", NOW)


class TestCopilotSettings:
    def test_enabled(self, client, requests_mock):
        requests_mock.get(f"{API}/orgs/Acme/copilot/billing", json=BILLING)
        settings = get_copilot_settings(client, "Acme", NOW)
        assert settings["enabled"] is True
        assert settings["plan_type"] == "business"
        assert settings["seat_breakdown"]["total"] == 5
        assert settings["public_code_suggestions"] == "block"

    def test_not_found_means_disabled(self, client, requests_mock):
        requests_mock.get(f"{API}/orgs/Acme/copilot/billing", status_code=404,
                          json={"message": "Not Found"})
        settings = get_copilot_settings(client, "Acme", NOW)
        assert settings["enabled"] is False
        assert "not enabled" in settings["message"]

    def test_other_errors_propagate(self, client, requests_mock):
        requests_mock.get(f"{API}/orgs/Acme/copilot/billing", status_code=403,
                          json={"message": "Forbidden"})
        with pytest.raises(ForbiddenError):
            get_copilot_settings(client, "Acme", NOW)


class TestOverview:
    def test_all_sections(self, client, requests_mock):
        requests_mock.get(f"{API}/orgs/Acme", json=ORG)
        requests_mock.get(f"{API}/orgs/Acme/copilot/billing", json=BILLING)
        overview = get_comprehensive_policy_overview(client, "Acme", NOW)
        assert overview["organization"] == "Acme"
        assert overview["copilot_settings"]["enabled"] is True
        assert overview["security_settings"]["two_factor_requirement_enabled"] is True
        assert "error" not in overview["organization_policies"]

    def test_reads_organization_once(self, client, requests_mock):
        org = requests_mock.get(f"{API}/orgs/Acme", json=ORG)
        requests_mock.get(f"{API}/orgs/Acme/copilot/billing", json=BILLING)
        overview = get_comprehensive_policy_overview(client, "Acme", NOW)
        assert org.call_count == 1
        assert overview["organization_policies"]["basic_info"]["name"] == "Acme Corp"
        assert overview["security_settings"]["two_factor_requirement_enabled"] is True

    def test_failed_section_is_recorded(self, client, requests_mock):
        requests_mock.get(f"{API}/orgs/Acme", json=ORG)
        requests_mock.get(f"{API}/orgs/Acme/copilot/billing", status_code=403,
                          json={"message": "Resource not accessible by integration"})
        overview = get_comprehensive_policy_overview(client, "Acme", NOW)
        assert "Resource not accessible" in overview["copilot_settings"]["error"]
        assert overview["copilot_settings"]["remedy"]
        assert overview["organization_policies"]["basic_info"]["name"] == "Acme Corp"

    def test_every_section_failing_still_returns(self, client, requests_mock):
        requests_mock.get(f"{API}/orgs/Acme", status_code=500, json={"message": "boom"})
        requests_mock.get(f"{API}/orgs/Acme/copilot/billing", status_code=500,
                          json={"message": "boom"})
        overview = get_comprehensive_policy_overview(client, "Acme", NOW)
        for name in ("organization_policies", "copilot_settings", "security_settings"):
            assert "boom" in overview[name]["error"]


class TestRepositorySecurity:
    def test_alerts_enabled(self, client, requests_mock):
        requests_mock.get(f"{API}/repos/acme/app",
                          json={"visibility": "private", "default_branch": "main",
                                "security_and_analysis": {"secret_scanning": {"status": "enabled"}}})
        requests_mock.get(f"{API}/repos/acme/app/vulnerability-alerts", status_code=204)
        settings = get_repository_security_settings(client, "acme", "app", NOW)
        assert settings["repository"] == "acme/app"
        assert settings["vulnerability_alerts_enabled"] is True
        assert settings["visibility"] == "private"
        assert settings["security_and_analysis"]["secret_scanning"]["status"] == "enabled"

    def test_alerts_unavailable(self, client, requests_mock):
        requests_mock.get(f"{API}/repos/acme/app", json={"visibility": "public"})
        requests_mock.get(f"{API}/repos/acme/app/vulnerability-alerts", status_code=404,
                          json={"message": "Not Found"})
        settings = get_repository_security_settings(client, "acme", "app", NOW)
        assert settings["vulnerability_alerts_enabled"] is False
        assert settings["security_and_analysis"] == {}


class TestDependabot:
    def test_enable(self, client, requests_mock):
        matcher = requests_mock.put(f"{API}/repos/acme/app/vulnerability-alerts", status_code=204)
        result = update_dependabot_settings(client, "acme", "app", True)
        assert result.success
        assert result.data == {"repository": "acme/app", "dependabot_enabled": True}
        assert matcher.called

    def test_disable(self, client, requests_mock):
        matcher = requests_mock.delete(f"{API}/repos/acme/app/vulnerability-alerts",
                                       status_code=204)
        assert update_dependabot_settings(client, "acme", "app", False).success
        assert matcher.called

    def test_failure_is_returned(self, client, requests_mock):
        requests_mock.put(f"{API}/repos/acme/app/vulnerability-alerts", status_code=403,
                          json={"message": "Must have admin rights"})
        result = update_dependabot_settings(client, "acme", "app", True)
        assert result.success is False
        assert "admin rights" in result.error
