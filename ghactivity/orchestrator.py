"""
Run the activity report across every installation of a GitHub App.

Installations and repositories are processed one at a time. A failure inside
one installation becomes an ``InstallationError`` for it and the run moves
on; only failing to list the installations aborts the run.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .aggregate import build_installation_stats
from .commits import collect_repository_commits
from .github.app_auth import GitHubApp
from .github.client import GitHubClient
from .models import (
    ActivityReport,
    AuthorLedger,
    Installation,
    InstallationError,
    InstallationResult,
    InstallationStats,
    Repository,
)
from .pulls import RetryPolicy, collect_repository_pull_requests
from .report import generate_report
from .window import (
    DEFAULT_DAYS_TO_LOOK_BACK,
    calculate_cutoff_date,
    filter_updated_repositories,
    validate_days_to_look_back,
)

logger = logging.getLogger("ghactivity.orchestrator")


def collect_user_stats(
    client: GitHubClient,
    repos: Iterable[Repository],
    cutoff_date: datetime,
    policy: Optional[RetryPolicy] = None,
) -> AuthorLedger:
    """Collect commit and pull request activity for ``repos`` into a new ledger."""
    repos = list(repos)
    ledger = AuthorLedger()
    logger.info(f"Collecting stats for {len(repos)} repositories")

    for index, repo in enumerate(repos, start=1):
        logger.info(f"Processing repository {index}/{len(repos)}: {repo.full_name}")
        commits = collect_repository_commits(client.repositories, repo, cutoff_date, ledger)
        try:
            collect_repository_pull_requests(client, repo, cutoff_date, ledger, policy)
        except Exception as e:
            logger.error(f"Error collecting pull requests for {repo.full_name}: {e}")
        logger.info(f"Found {commits} commits in {repo.name}")

    return ledger


def process_installation(
    app: GitHubApp,
    installation: Installation,
    days_to_look_back: int,
    policy: Optional[RetryPolicy] = None,
) -> InstallationStats:
    client = app.get_installation_client(installation.id)
    try:
        repos = [Repository.from_dict(r) for r in client.list_installation_repositories()]
        logger.info(f"Has access to {len(repos)} repositories")

        cutoff_date = calculate_cutoff_date(days_to_look_back)
        updated_repos = filter_updated_repositories(repos, cutoff_date)
        logger.info(
            f"{len(updated_repos)} of {len(repos)} repositories were updated in the last {days_to_look_back} days"
        )

        ledger = collect_user_stats(client, updated_repos, cutoff_date, policy)
        return build_installation_stats(installation, days_to_look_back, ledger)
    finally:
        client.close()


def process_installations(
    app: GitHubApp,
    installations: Iterable[Dict[str, Any]],
    days_to_look_back: int = DEFAULT_DAYS_TO_LOOK_BACK,
    policy: Optional[RetryPolicy] = None,
) -> List[InstallationResult]:
    """Collect stats for each installation; failures are recorded, not raised."""
    installations = list(installations)
    results: List[InstallationResult] = []
    logger.info(f"Processing {len(installations)} installations")

    for index, raw in enumerate(installations, start=1):
        account = (raw.get('account') or {}).get('login', '')
        logger.info(f"Processing installation {index}/{len(installations)}: {account}")
        try:
            installation = Installation.from_dict(raw)
            results.append(process_installation(app, installation, days_to_look_back, policy))
            logger.info(f"Finished processing for {account}")
        except Exception as e:
            logger.error(f"Error processing installation {account}: {e}")
            results.append(InstallationError(
                id=raw.get('id'),
                account=account,
                error=str(e),
            ))

    logger.info(f"Processed all {len(installations)} installations")
    return results


def generate_github_report(
    app_id: int,
    private_key: str,
    days_to_look_back: int = DEFAULT_DAYS_TO_LOOK_BACK,
    *,
    api_base: str = "https://api.github.com",
    policy: Optional[RetryPolicy] = None,
    app: Optional[GitHubApp] = None,
) -> ActivityReport:
    """Build the activity report for every installation of a GitHub App.

    Args:
        app_id: GitHub App id
        private_key: PEM encoded app private key
        days_to_look_back: Length of the lookback window in days
        api_base: Base URL for the GitHub API
        policy: Waits used while paging pull requests
        app: Pre-built app handle, used instead of ``app_id``/``private_key``

    Returns:
        ActivityReport with the summary text and one result per installation

    Raises:
        ValueError: for a non-positive window or missing credentials
        requests.HTTPError: when the installations cannot be listed
    """
    validate_days_to_look_back(days_to_look_back)
    owns_app = app is None
    if owns_app:
        logger.info(f"Initializing GitHub App with ID: {app_id}")
        app = GitHubApp(app_id, private_key, base_url=api_base)

    try:
        try:
            installations = app.list_installations()
        except Exception as e:
            logger.error(f"Error accessing GitHub API: {e}")
            raise
        logger.info(f"Found {len(installations)} installations")

        results = process_installations(app, installations, days_to_look_back, policy)
    finally:
        if owns_app:
            app.close()

    logger.info(f"Generating report for {len(results)} installations")
    summary = generate_report(results)
    logger.info("GitHub activity report generated successfully")
    return ActivityReport(summary=summary, detailed_results=results)
