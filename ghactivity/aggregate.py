"""Turn a finished ledger into immutable per-author summaries."""
from __future__ import annotations

from typing import List

from .models import AuthorAccumulator, AuthorLedger, AuthorSummary, Installation, InstallationStats, RepoContribution


def summarize_author(name: str, stats: AuthorAccumulator) -> AuthorSummary:
    # Repositories with commits first, then repositories only touched by PRs
    repo_names = list(dict.fromkeys([*stats.commits_by_repo, *stats.pull_requests_by_repo]))

    contributions = []
    for repo_name in repo_names:
        prs = stats.pull_requests_by_repo.get(repo_name) or {}
        contributions.append(RepoContribution(
            repo_name=repo_name,
            commits=stats.commits_by_repo.get(repo_name, 0),
            prs_opened=prs.get('opened', 0),
            prs_closed=prs.get('closed', 0),
        ))

    return AuthorSummary(
        name=name,
        user_id=stats.user_id,
        total_commits=stats.total_commits,
        total_prs_opened=stats.total_prs_opened,
        total_prs_closed=stats.total_prs_closed,
        repo_contributions=tuple(contributions),
    )


def summarize_authors(ledger: AuthorLedger) -> List[AuthorSummary]:
    """Summaries for every author in the ledger, in first-seen order."""
    return [summarize_author(name, stats) for name, stats in ledger.items()]


def build_installation_stats(installation: Installation, period_days: int, ledger: AuthorLedger) -> InstallationStats:
    return InstallationStats(
        installation_id=installation.id,
        account=installation.account_login,
        account_type=installation.account_type,
        period_days=period_days,
        account_id=installation.account_id,
        user_stats=tuple(summarize_authors(ledger)),
    )
