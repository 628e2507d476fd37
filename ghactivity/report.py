"""Plain-text rendering of installation results."""
from __future__ import annotations

from typing import Iterable, List

from .models import AuthorSummary, InstallationError, InstallationResult, InstallationStats, RepoContribution


def period_label(period_days: int) -> str:
    if period_days == 7:
        return "week"
    if period_days == 30:
        return "month"
    return f"{period_days} days"


def _counts(commits: int, opened: int, closed: int) -> str:
    return f"{commits} commits, {opened} PRs opened, {closed} PRs closed"


def _render_author(user: AuthorSummary) -> List[str]:
    user_id_info = f" (ID: {user.user_id})" if user.user_id else ""
    lines = [
        f"\n👤 {user.name}{user_id_info}:",
        f"  Total: {_counts(user.total_commits, user.total_prs_opened, user.total_prs_closed)}",
        "  Contributions by repository:",
    ]
    # sorted() is stable, ties keep first-seen order
    repos: List[RepoContribution] = sorted(user.repo_contributions, key=lambda r: r.total, reverse=True)
    for repo in repos:
        lines.append(f"    - {repo.repo_name}: {_counts(repo.commits, repo.prs_opened, repo.prs_closed)}")
    return lines


def _render_installation(installation: InstallationStats) -> List[str]:
    lines = [
        f"📊 Statistics for {installation.account} ({installation.account_type}) "
        f"- Last {period_label(installation.period_days)}:"
    ]
    if installation.user_stats:
        for user in sorted(installation.user_stats, key=lambda u: u.total, reverse=True):
            lines.extend(_render_author(user))
    else:
        lines.append("  No contributions found in the period.")
    lines.append("")
    return lines


def generate_report(results: Iterable[InstallationResult]) -> str:
    """Render installation results, in the given order, as the summary text."""
    report_lines: List[str] = []
    for installation in results:
        if isinstance(installation, InstallationError):
            report_lines.append(f"⚠️ Installation {installation.account}: {installation.error}")
            continue
        report_lines.extend(_render_installation(installation))
    return "\n".join(report_lines)
