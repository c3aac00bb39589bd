"""CLI entry point for gh-copilot-admin."""

from __future__ import annotations

import functools
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .auth import authenticate
from .config import load_settings, validate_date
from .dashboard import (
    render_assignment_results,
    render_issues,
    render_label_result,
    render_permission_checks,
    render_policy_overview,
    render_repo_security,
    render_report,
)
from .errors import ConfigError, CopilotAdminError
from .issues import add_labels, assign_issue, assign_to_experts, get_all_issues
from .metrics import generate_metrics_report
from .permissions import verify_permissions
from .policy import (
    get_comprehensive_policy_overview,
    get_repository_security_settings,
    update_dependabot_settings,
)
from .storage import persist_report

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    """Send package logs to stderr through rich."""
    handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger("copilot_admin")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False


def handle_errors(fn):
    """Turn toolkit and I/O errors into a readable message and exit code 1."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except CopilotAdminError as e:
            logger.debug("Command failed", exc_info=True)
            err_console.print(f"[red]✗ {escape(str(e))}[/red]")
            if e.remedy:
                err_console.print(f"[yellow]💡 {escape(e.remedy)}[/yellow]")
            sys.exit(1)
        except OSError as e:
            logger.debug("Command failed", exc_info=True)
            err_console.print(f"[red]✗ I/O error: {escape(str(e))}[/red]")
            sys.exit(1)
    return wrapper


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging on stderr")
@click.pass_context
@handle_errors
def main(ctx, verbose: bool):
    """GitHub Copilot admin toolkit: metrics, issue assignment and org policies."""
    configure_logging(verbose)
    ctx.obj = load_settings()


def _client(settings):
    with console.status("[cyan]Authenticating GitHub App...[/cyan]"):
        return authenticate(settings)


# ── Metrics ─────────────────────────────────────────────────────────────────

@main.command()
@click.option("--org", help="Organization (defaults to GITHUB_ORG)")
@click.option("--since", help="Start date YYYY-MM-DD (defaults to 30 days ago)")
@click.option("--until", help="End date YYYY-MM-DD (defaults to today)")
@click.option("--cost-per-seat", type=float, help="Override the monthly price per seat")
@click.option("--team", "teams", multiple=True, help="Team slug to break down (repeatable)")
@click.option("--output-dir", type=click.Path(file_okay=False), help="Where to write the report")
@click.option("--no-export", is_flag=True, help="Print only; do not write a report file")
@click.pass_obj
@handle_errors
def metrics(settings, org, since, until, cost_per_seat, teams, output_dir, no_export):
    """Generate the Copilot usage, seat and cost report."""
    org = settings.require_org(org)
    since = validate_date(since, "--since") if since else settings.since
    until = validate_date(until, "--until") if until else settings.until
    if cost_per_seat is None:
        cost_per_seat = settings.cost_per_seat

    client = _client(settings)
    with console.status(f"[cyan]Fetching Copilot metrics for {org}...[/cyan]"):
        report = generate_metrics_report(
            client, org, since, until,
            cost_per_seat=cost_per_seat,
            teams=teams,
            page_size=settings.page_size,
            max_pages=settings.max_pages,
        )

    render_report(report)
    if not no_export:
        path = persist_report(report.to_dict(), org, output_dir or settings.reports_dir or None,
                              when=report.generated_at)
        console.print(f"[green]✓ Report exported to {path}[/green]")


# ── Issues ──────────────────────────────────────────────────────────────────

def _repo_options(fn):
    fn = click.option("--repo", help="Repository (defaults to GITHUB_REPO)")(fn)
    fn = click.option("--owner", help="Repository owner (defaults to GITHUB_OWNER)")(fn)
    return fn


@main.command()
@_repo_options
@click.option("--state", type=click.Choice(["open", "closed", "all"]), default="open",
              show_default=True)
@click.option("--labels", help="Comma-separated label filter")
@click.option("--assignee", help="Filter by assignee ('none' for unassigned)")
@click.option("--limit", type=int, default=5, show_default=True, help="Issues to display")
@click.pass_obj
@handle_errors
def issues(settings, owner, repo, state, labels, assignee, limit):
    """List repository issues (all pages)."""
    owner, repo = settings.require_repo(owner, repo)
    client = _client(settings)
    with console.status(f"[cyan]Fetching issues from {owner}/{repo}...[/cyan]"):
        issue_list = get_all_issues(client, owner, repo, state=state,
                                    page_size=settings.page_size, max_pages=settings.max_pages,
                                    labels=labels, assignee=assignee)
    render_issues(issue_list, limit)


@main.command()
@_repo_options
@click.argument("number", type=int)
@click.argument("assignee", required=False)
@click.pass_obj
@handle_errors
def assign(settings, owner, repo, number, assignee):
    """Assign issue NUMBER to ASSIGNEE (default: the first of COPILOT_EXPERTS)."""
    owner, repo = settings.require_repo(owner, repo)
    if not assignee:
        if not settings.experts:
            raise ConfigError("No assignee given. Pass ASSIGNEE or set COPILOT_EXPERTS.")
        assignee = settings.experts[0]
    result = assign_issue(_client(settings), owner, repo, number, assignee)
    render_assignment_results([result])
    if not result.success:
        sys.exit(1)


@main.command("assign-experts")
@_repo_options
@click.option("--labels", help="Only consider issues with these labels")
@click.option("--dry-run", is_flag=True, help="Show the plan without assigning")
@click.pass_obj
@handle_errors
def assign_experts(settings, owner, repo, labels, dry_run):
    """Round-robin unassigned open issues over COPILOT_EXPERTS."""
    owner, repo = settings.require_repo(owner, repo)
    if not settings.experts:
        raise ConfigError("No experts configured. Set COPILOT_EXPERTS=user1,user2.")

    client = _client(settings)
    issue_list = get_all_issues(client, owner, repo, state="open", page_size=settings.page_size,
                                max_pages=settings.max_pages, labels=labels)
    results = assign_to_experts(client, owner, repo, issue_list.issues, settings.experts,
                                dry_run=dry_run)
    if not results:
        console.print("[yellow]No unassigned open issues.[/yellow]")
        return
    if dry_run:
        console.print("[dim]Dry run: nothing was assigned.[/dim]")
    render_assignment_results(results)
    failed = sum(1 for r in results if not r.success)
    console.print(f"  {len(results) - failed} assigned, {failed} failed")


@main.command()
@_repo_options
@click.argument("number", type=int)
@click.argument("labels", nargs=-1, required=True)
@click.pass_obj
@handle_errors
def label(settings, owner, repo, number, labels):
    """Add LABELS to issue NUMBER."""
    owner, repo = settings.require_repo(owner, repo)
    result = add_labels(_client(settings), owner, repo, number, labels)
    render_label_result(result)
    if not result.success:
        sys.exit(1)


# ── Policies ────────────────────────────────────────────────────────────────

@main.command()
@click.option("--org", help="Organization (defaults to GITHUB_ORG)")
@click.option("--export", "export", is_flag=True, help="Also write the overview as JSON")
@click.option("--output-dir", type=click.Path(file_okay=False))
@click.pass_obj
@handle_errors
def policy(settings, org, export, output_dir):
    """Show the comprehensive policy overview of an organization."""
    org = settings.require_org(org)
    client = _client(settings)
    with console.status(f"[cyan]Fetching policies for {org}...[/cyan]"):
        overview = get_comprehensive_policy_overview(client, org)
    render_policy_overview(overview)
    if export:
        path = persist_report(overview, org, output_dir or settings.reports_dir or None,
                              prefix="policy-overview")
        console.print(f"[green]✓ Overview exported to {path}[/green]")


@main.command("repo-security")
@_repo_options
@click.pass_obj
@handle_errors
def repo_security(settings, owner, repo):
    """Show security and merge settings of a repository."""
    owner, repo = settings.require_repo(owner, repo)
    render_repo_security(get_repository_security_settings(_client(settings), owner, repo))


@main.command()
@_repo_options
@click.option("--enable/--disable", default=True, help="Turn Dependabot alerts on or off")
@click.pass_obj
@handle_errors
def dependabot(settings, owner, repo, enable):
    """Enable or disable Dependabot vulnerability alerts."""
    owner, repo = settings.require_repo(owner, repo)
    result = update_dependabot_settings(_client(settings), owner, repo, enable)
    if result.success:
        console.print(f"[green]✓ Dependabot alerts {'enabled' if enable else 'disabled'} "
                      f"for {owner}/{repo}[/green]")
    else:
        console.print(f"[red]✗ {escape(result.error)}[/red]")
        sys.exit(1)


# ── Auth utilities ──────────────────────────────────────────────────────────

@main.command()
@click.option("--org", help="Organization (defaults to GITHUB_ORG)")
@click.pass_obj
@handle_errors
def verify(settings, org):
    """Check the App's access to the Copilot endpoints."""
    org = settings.require_org(org)
    checks = verify_permissions(_client(settings), org)
    render_permission_checks(checks)
    if not all(c.ok for c in checks):
        sys.exit(1)


@main.command()
@click.pass_obj
@handle_errors
def token(settings):
    """Print an installation access token."""
    click.echo(authenticate(settings).token)


@main.command("test-auth")
@click.option("--org", help="Organization (defaults to GITHUB_ORG)")
@click.pass_obj
@handle_errors
def test_auth(settings, org):
    """Authenticate and read the organization."""
    org = settings.require_org(org)
    client = _client(settings)
    console.print("[green]✓ Installation token obtained[/green]")
    data = client.get_org(org)
    login = escape(data.get("login", org))
    console.print(f"[green]✓ Organization access confirmed:[/green] {login}")


if __name__ == "__main__":
    main()
