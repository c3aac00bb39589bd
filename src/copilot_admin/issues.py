"""Issue listing, assignment and labeling."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from itertools import cycle
from typing import Iterable, Optional

from .client import GitHubClient
from .errors import CopilotAdminError
from .models import AssignmentResult, IssueList, LabelResult, OperationResult, Page
from .pagination import paginate

logger = logging.getLogger(__name__)

ISSUE_FILTERS = ("labels", "assignee", "creator", "mentioned", "milestone", "since")


def fetch_issues(client: GitHubClient, owner: str, repo: str, state: str = "open",
                 sort: str = "created", direction: str = "desc", page: int = 1,
                 per_page: int = 100, **filters: Optional[str]) -> Page:
    """Fetch one page of issues. Pull requests are dropped from the page.

    ``filters`` accepts labels, assignee, creator, mentioned, milestone and
    since; empty values are not sent.
    """
    unknown = set(filters) - set(ISSUE_FILTERS)
    if unknown:
        raise TypeError(f"Unknown issue filters: {', '.join(sorted(unknown))}")

    params = {
        "state": state,
        "sort": sort,
        "direction": direction,
        "per_page": per_page,
        "page": page,
    }
    params.update({k: v for k, v in filters.items() if v})

    result = client.list_issues_page(owner, repo, params)
    issues = [issue for issue in result.items if "pull_request" not in issue]
    logger.debug("Page %d of %s/%s: %d items, %d issues", page, owner, repo,
                 len(result.items), len(issues))
    # Judge the last page on the unfiltered count so dropped pull requests cannot end the walk.
    return Page(items=issues, has_next=result.has_next if result.has_next is not None
                else len(result.items) >= per_page)


def get_all_issues(client: GitHubClient, owner: str, repo: str, state: str = "open",
                   page_size: int = 100, max_pages: int | None = None,
                   **filters: Optional[str]) -> IssueList:
    """Walk every page of issues matching the filters."""
    pages = 0

    def fetch(page: int) -> Page:
        nonlocal pages
        pages += 1
        return fetch_issues(client, owner, repo, state=state, page=page,
                            per_page=page_size, **filters)

    issues = paginate(fetch, page_size, max_pages)
    logger.info("Fetched %d issues from %s/%s in %d pages", len(issues), owner, repo, pages)
    return IssueList(
        repository=f"{owner}/{repo}",
        issues=issues,
        state=state,
        fetched_at=datetime.now(timezone.utc),
        pages_processed=pages,
    )


def get_issue(client: GitHubClient, owner: str, repo: str, number: int) -> OperationResult:
    try:
        issue = client.get_issue(owner, repo, number)
    except CopilotAdminError as e:
        logger.warning("Failed to fetch issue #%d: %s", number, e)
        return OperationResult.failed(str(e))
    return OperationResult.ok(issue)


def assign_issue(client: GitHubClient, owner: str, repo: str, number: int,
                 assignee: str) -> AssignmentResult:
    """Assign one user to an issue. API failures are returned, not raised."""
    try:
        issue = client.add_assignees(owner, repo, number, [assignee])
    except CopilotAdminError as e:
        logger.warning("Failed to assign issue #%d to %s: %s", number, assignee, e)
        return AssignmentResult(issue_number=number, assignee=assignee,
                                success=False, error=str(e))

    logins = [user.get("login") for user in (issue or {}).get("assignees") or []]
    if assignee not in logins:
        # GitHub silently ignores assignees without push access.
        return AssignmentResult(
            issue_number=number, assignee=assignee, success=False,
            error=f"{assignee} was not added; the user may lack access to {owner}/{repo}",
        )
    logger.info("Assigned issue #%d to %s", number, assignee)
    return AssignmentResult(issue_number=number, assignee=assignee,
                            success=True, assigned_user=assignee)


def add_labels(client: GitHubClient, owner: str, repo: str, number: int,
               labels: Iterable[str]) -> LabelResult:
    labels = tuple(labels)
    try:
        current = client.add_labels(owner, repo, number, list(labels))
    except CopilotAdminError as e:
        logger.warning("Failed to label issue #%d: %s", number, e)
        return LabelResult(issue_number=number, labels=labels, success=False, error=str(e))
    return LabelResult(
        issue_number=number,
        labels=labels,
        success=True,
        current_labels=tuple(label.get("name", "") for label in current),
    )


def assign_to_experts(client: GitHubClient, owner: str, repo: str, issues: list[dict],
                      experts: Iterable[str], dry_run: bool = False) -> list[AssignmentResult]:
    """Round-robin unassigned issues over ``experts``.

    Issues that already have assignees are skipped. One failure does not stop
    the batch.
    """
    experts = list(experts)
    if not experts:
        return []

    results: list[AssignmentResult] = []
    rotation = cycle(experts)
    for issue in issues:
        if issue.get("assignees"):
            continue
        expert = next(rotation)
        if dry_run:
            results.append(AssignmentResult(issue_number=issue["number"], assignee=expert,
                                            success=True, assigned_user=expert))
            continue
        results.append(assign_issue(client, owner, repo, issue["number"], expert))
    return results
