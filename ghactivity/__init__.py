"""Contributor activity reports for GitHub App installations.

This package walks every repository a GitHub App installation can access,
counts commits on all branches and opened/closed pull requests per author
over a lookback window, and renders a plain-text digest next to the
structured results.

Example usage:
    ```python
    from ghactivity import generate_github_report

    report = generate_github_report(app_id=12345, private_key=pem_text, days_to_look_back=7)
    print(report.summary)
    ```
"""
from .aggregate import build_installation_stats, summarize_authors
from .models import (
    ActivityReport,
    AuthorAccumulator,
    AuthorLedger,
    AuthorSummary,
    Installation,
    InstallationError,
    InstallationStats,
    RepoContribution,
    Repository,
)
from .orchestrator import generate_github_report, process_installations
from .pulls import RetryPolicy
from .report import generate_report
from .window import calculate_cutoff_date, filter_updated_repositories

__all__ = [
    'ActivityReport',
    'AuthorAccumulator',
    'AuthorLedger',
    'AuthorSummary',
    'Installation',
    'InstallationError',
    'InstallationStats',
    'RepoContribution',
    'Repository',
    'RetryPolicy',
    'build_installation_stats',
    'calculate_cutoff_date',
    'filter_updated_repositories',
    'generate_github_report',
    'generate_report',
    'process_installations',
    'summarize_authors',
]

__version__ = '0.1.0'
