"""Rich terminal output for metrics, issues, policies and permission checks."""

from __future__ import annotations

from io import StringIO
from typing import Iterable

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .calculator import top_languages
from .metrics import MetricsReport
from .models import (
    AssignmentResult,
    IssueList,
    LabelResult,
    MetricsSummary,
    PermissionCheck,
)

console = Console()


def _yes_no(value) -> str:
    if value is None:
        return "[dim]N/A[/dim]"
    return "[green]Yes[/green]" if value else "[red]No[/red]"


def _enabled(value) -> str:
    if value is None:
        return "[dim]N/A[/dim]"
    return "[green]Enabled[/green]" if value else "[red]Disabled[/red]"


def _rate_color(pct: float) -> str:
    return "green" if pct >= 30 else "yellow" if pct >= 20 else "red"


def _summary_panel(summary: MetricsSummary) -> Panel:
    pct = summary.acceptance_percent
    color = _rate_color(pct)

    lines = []
    lines.append(f"[bold]Organization:[/bold] {escape(summary.organization)}")
    lines.append(f"[bold]Generated:[/bold] {summary.generated_at.strftime('%Y-%m-%d %H:%M %Z')}")
    lines.append(f"[bold]Days of data:[/bold] {summary.days}")
    lines.append("")
    lines.append(f"[bold]Suggestions:[/bold] {summary.total_suggestions:,}")
    lines.append(f"[bold]Acceptances:[/bold] {summary.total_acceptances:,}")
    lines.append(f"[bold]Lines accepted:[/bold] {summary.total_lines_accepted:,}")
    lines.append(f"[bold]Acceptance rate:[/bold] [{color}]{pct:.2f}%[/{color}]")

    bar_width = 40
    filled = int(bar_width * min(pct, 100) / 100)
    lines.append(f"  [{color}]{'█' * filled}{'░' * (bar_width - filled)}[/{color}]")

    lines.append(f"[bold]Peak daily active users:[/bold] {summary.peak_active_users}")
    lines.append("")
    lines.append(f"[bold]Seats:[/bold] {summary.total_seats} "
                 f"([green]{summary.active_seats} active[/green], "
                 f"[yellow]{summary.inactive_seats} inactive[/yellow] in the last 30 days)")
    lines.append(f"[bold]Monthly cost:[/bold] ${summary.total_monthly_cost:,.2f} "
                 f"({summary.total_seats} × ${summary.cost_per_seat:,.2f})")
    savings_color = "red" if summary.potential_savings > 0 else "green"
    lines.append(f"[bold]Potential savings:[/bold] "
                 f"[{savings_color}]${summary.potential_savings:,.2f}[/{savings_color}]/mo")

    return Panel(
        "\n".join(lines),
        title="[bold cyan]📊 Copilot Metrics Summary[/bold cyan]",
        border_style="cyan",
    )


def _language_table(summary: MetricsSummary) -> Table | None:
    if not summary.languages:
        return None

    table = Table(title="📋 Usage by Language", show_lines=True)
    table.add_column("Language", style="cyan")
    table.add_column("Suggestions", justify="right")
    table.add_column("Acceptances", justify="right", style="yellow")
    table.add_column("Lines", justify="right")
    table.add_column("Rate", justify="right", style="green")

    for name, counts in top_languages(summary):
        table.add_row(
            escape(name),
            f"{counts.suggestions:,}",
            f"{counts.acceptances:,}",
            f"{counts.lines:,}",
            f"{counts.acceptance_rate * 100:.1f}%",
        )
    return table


def _team_table(summary: MetricsSummary) -> Table | None:
    if not summary.teams:
        return None

    table = Table(title="👥 Usage by Team", show_lines=True)
    table.add_column("Team", style="cyan")
    table.add_column("Suggestions", justify="right")
    table.add_column("Acceptances", justify="right", style="yellow")
    table.add_column("Rate", justify="right", style="green")

    for name, counts in sorted(summary.teams.items()):
        table.add_row(
            escape(name),
            f"{counts.suggestions:,}",
            f"{counts.acceptances:,}",
            f"{counts.acceptance_rate * 100:.1f}%",
        )
    return table


def summary_renderables(summary: MetricsSummary) -> list:
    parts = [_summary_panel(summary)]
    for table in (_language_table(summary), _team_table(summary)):
        if table is not None:
            parts.append(table)
    return parts


def format_summary(summary: MetricsSummary, width: int = 100) -> str:
    """Render the summary as plain text without touching the terminal."""
    buffer = Console(file=StringIO(), width=width, color_system=None, emoji=False)
    buffer.print(Group(*summary_renderables(summary)))
    return buffer.file.getvalue()


def render_summary(summary: MetricsSummary) -> None:
    console.print()
    for part in summary_renderables(summary):
        console.print(part)
        console.print()


def render_report(report: MetricsReport) -> None:
    """Summary plus billing status of a metrics report."""
    render_summary(report.summary)
    if not report.billing_available:
        console.print(f"[yellow]⚠ Billing data unavailable:[/yellow] {escape(report.billing_error)}")
        console.print("[dim]Costs use the configured or default price per seat.[/dim]")


def render_issues(issue_list: IssueList, limit: int = 5) -> None:
    lines = []
    lines.append(f"[bold]Repository:[/bold] {escape(issue_list.repository)}")
    lines.append(f"[bold]Total issues:[/bold] {issue_list.total_count}")
    lines.append(f"[bold]State:[/bold] {issue_list.state}")
    if issue_list.fetched_at:
        lines.append(f"[bold]Fetched:[/bold] {issue_list.fetched_at.isoformat()}")
    if issue_list.pages_processed:
        lines.append(f"[bold]Pages processed:[/bold] {issue_list.pages_processed}")
    console.print(Panel("\n".join(lines), title="[bold cyan]📋 Issues Summary[/bold cyan]",
                        border_style="cyan"))

    if not issue_list.issues:
        return

    table = Table(title=f"Recent Issues (first {limit})", show_lines=True)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Title")
    table.add_column("Assignees", style="yellow")
    table.add_column("Labels", style="magenta")
    table.add_column("Created", style="dim")

    for issue in issue_list.issues[:limit]:
        assignees = ", ".join(escape(a["login"]) for a in issue.get("assignees") or [])
        labels = ", ".join(escape(label["name"]) for label in issue.get("labels") or [])
        table.add_row(
            str(issue.get("number")),
            escape(issue.get("title") or ""),
            assignees or "Unassigned",
            labels or "No labels",
            (issue.get("created_at") or "")[:10],
        )
    console.print(table)
    if issue_list.total_count > limit:
        console.print(f"  [dim]... and {issue_list.total_count - limit} more issues[/dim]")


def render_assignment_results(results: Iterable[AssignmentResult]) -> None:
    for r in results:
        if r.success:
            user = escape(r.assigned_user or r.assignee)
            console.print(f"[green]✓[/green] #{r.issue_number} → {user}")
        else:
            console.print(f"[red]✗[/red] #{r.issue_number} → {escape(r.assignee)}: {escape(r.error)}")


def render_label_result(result: LabelResult) -> None:
    if result.success:
        console.print(f"[green]✓[/green] #{result.issue_number} labels: "
                      f"{escape(', '.join(result.current_labels)) or 'none'}")
    else:
        console.print(f"[red]✗[/red] #{result.issue_number} labels "
                      f"{escape(', '.join(result.labels))}: {escape(result.error)}")


def _section_error(section: dict) -> str | None:
    if isinstance(section, dict) and "error" in section:
        return section["error"]
    return None


def render_policy_overview(overview: dict) -> None:
    """Render a comprehensive policy overview, noting unavailable sections."""
    lines = []
    lines.append(f"[bold]Organization:[/bold] {escape(overview['organization'])}")
    lines.append(f"[bold]Generated:[/bold] {overview['fetched_at']}")

    org = overview.get("organization_policies") or {}
    if _section_error(org):
        lines.append(f"\n[red]Organization policies unavailable:[/red] {escape(org['error'])}")
    elif org:
        info = org["basic_info"]
        counts = org["repository_counts"]
        membership = org["membership_policies"]
        lines.append("\n[bold]📋 Basic information[/bold]")
        lines.append(f"  Name: {escape(info.get('name') or 'N/A')}")
        lines.append(f"  Plan: {escape(info.get('plan') or 'N/A')}")
        lines.append(f"  Public repos: {counts.get('public_repos') or 0}")
        lines.append(f"  Private repos: {counts.get('private_repos') or 0}")
        lines.append(f"  Public members: {counts.get('public_members') or 0}")
        lines.append("\n[bold]👥 Membership policies[/bold]")
        lines.append(f"  Members can create repositories: "
                     f"{_yes_no(membership.get('members_can_create_repositories'))}")
        lines.append(f"  Members can create public repos: "
                     f"{_yes_no(membership.get('members_can_create_public_repositories'))}")
        lines.append(f"  Members can create private repos: "
                     f"{_yes_no(membership.get('members_can_create_private_repositories'))}")

    security = overview.get("security_settings") or {}
    if _section_error(security):
        lines.append(f"\n[red]Security settings unavailable:[/red] {escape(security['error'])}")
    elif security:
        lines.append("\n[bold]🔒 Security policies[/bold]")
        lines.append(f"  Two-factor authentication required: "
                     f"{_yes_no(security.get('two_factor_requirement_enabled'))}")
        lines.append(f"  Dependency graph for new repos: "
                     f"{_enabled(security.get('dependency_graph_enabled_for_new_repositories'))}")
        lines.append(f"  Dependabot alerts for new repos: "
                     f"{_enabled(security.get('dependabot_alerts_enabled_for_new_repositories'))}")
        lines.append(f"  Dependabot security updates: "
                     f"{_enabled(security.get('dependabot_security_updates_enabled_for_new_repositories'))}")

    copilot = overview.get("copilot_settings") or {}
    lines.append("\n[bold]🤖 GitHub Copilot[/bold]")
    if _section_error(copilot) or not copilot:
        lines.append("  Status: [yellow]Not enabled or not accessible[/yellow]")
        if _section_error(copilot):
            lines.append(f"  [dim]{escape(copilot['error'])}[/dim]")
    else:
        lines.append(f"  Status: {_enabled(copilot.get('enabled'))}")
        if copilot.get("enabled"):
            seats = copilot.get("seat_breakdown") or {}
            lines.append(f"  Seat management: {escape(copilot.get('seat_management') or 'N/A')}")
            lines.append(f"  Total seats: {seats.get('total', 0)}")
            lines.append(f"  Active this cycle: {seats.get('active_this_cycle', 0)}")
            suggestions = escape(str(copilot.get("public_code_suggestions")))
            lines.append(f"  Public code suggestions: {suggestions}")

    console.print(Panel("\n".join(lines),
                        title="[bold cyan]🏢 Organization Policy Summary[/bold cyan]",
                        border_style="cyan"))


def render_repo_security(settings: dict) -> None:
    table = Table(title=f"🔒 {escape(settings['repository'])}", show_lines=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in settings.items():
        if key in ("repository", "security_and_analysis"):
            continue
        table.add_row(key.replace("_", " "), escape(str(value)))
    for feature, state in (settings.get("security_and_analysis") or {}).items():
        table.add_row(feature.replace("_", " "), escape(str((state or {}).get("status", ""))))
    console.print(table)


def render_permission_checks(checks: list[PermissionCheck]) -> None:
    table = Table(title="🔐 GitHub App Permission Check", show_lines=True)
    table.add_column("Check", style="cyan")
    table.add_column("Result", justify="center")
    table.add_column("Detail")

    for check in checks:
        detail = escape(check.detail)
        if not check.ok and check.remedy:
            detail += f"\n[yellow]💡 {escape(check.remedy)}[/yellow]"
        table.add_row(check.name, "[green]✓[/green]" if check.ok else "[red]✗[/red]", detail)
    console.print(table)
