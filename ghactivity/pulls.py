"""
Pull request collection.

The primary path asks the search API for pull requests updated since the
cutoff date. When the search fails or finds nothing, the repository's pull
request list is paged through instead, newest update first.
"""
from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from .github.client import GitHubClient, MAX_PER_PAGE
from .github.rate_limit import is_rate_limit_error
from .models import UNKNOWN_AUTHOR, AuthorLedger, Repository, UserId, parse_timestamp

logger = logging.getLogger("ghactivity.pulls")

# Wait after a rate-limited page before asking for it again
_DEFAULT_COOLDOWN_SEC = float(os.getenv("GITHUB_PR_COOLDOWN_SEC", "60"))
# Pause between pages to stay clear of secondary rate limits
_DEFAULT_PAGE_DELAY_SEC = float(os.getenv("GITHUB_PR_PAGE_DELAY_SEC", "1"))

PR_URL_RE = re.compile(r"/repos/([^/]+)/([^/]+)/pulls/\d+")


@dataclass
class RetryPolicy:
    """Waits used while paging through pull requests.

    ``max_rate_limit_retries`` of None retries a rate-limited page until the
    error changes kind.
    """
    cooldown_sec: float = _DEFAULT_COOLDOWN_SEC
    page_delay_sec: float = _DEFAULT_PAGE_DELAY_SEC
    max_rate_limit_retries: Optional[int] = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def allows_retry(self, retries_so_far: int) -> bool:
        return self.max_rate_limit_retries is None or retries_so_far < self.max_rate_limit_retries


def resolve_pull_request_author(pr: Dict[str, Any]) -> Tuple[str, Optional[UserId]]:
    """Return ``(login, user_id)``; the id comes from ``id`` and then ``node_id``."""
    user = pr.get('user')
    if not user:
        return UNKNOWN_AUTHOR, None
    user_id: Optional[UserId] = user.get('id') or user.get('node_id') or None
    return user.get('login') or UNKNOWN_AUTHOR, user_id


def record_pull_request(pr: Dict[str, Any], repo_name: str, cutoff_date: datetime, ledger: AuthorLedger) -> None:
    """Count ``pr`` as opened and/or closed within the window for its author."""
    created_at = parse_timestamp(pr['created_at'])
    closed_at = parse_timestamp(pr.get('closed_at'))
    opened = created_at is not None and created_at >= cutoff_date
    closed = closed_at is not None and closed_at >= cutoff_date

    author, user_id = resolve_pull_request_author(pr)
    ledger.record_pull_request(author, user_id, repo_name, opened, closed)

    if opened:
        logger.debug(f"PR #{pr.get('number')} by {author} counted as opened")
    if closed:
        logger.debug(f"PR #{pr.get('number')} by {author} counted as closed")


def belongs_to_repository(item: Dict[str, Any], repo: Repository) -> bool:
    """Check that a search hit is a pull request of ``repo``.

    Raises:
        KeyError, TypeError: when the item carries no pull request URL
    """
    match = PR_URL_RE.search(item['pull_request']['url'])
    return bool(match) and match.group(1) == repo.owner and match.group(2) == repo.name


def process_search_results(
    items: Iterable[Dict[str, Any]],
    repo: Repository,
    cutoff_date: datetime,
    ledger: AuthorLedger,
) -> int:
    """Record search hits confirmed to belong to ``repo``; returns how many were recorded."""
    counted = 0
    for item in items or []:
        try:
            if not belongs_to_repository(item, repo):
                logger.error(f"Ignoring search result outside {repo.full_name}: {item.get('html_url')}")
                continue
            record_pull_request(item, repo.name, cutoff_date, ledger)
            counted += 1
        except Exception as e:
            logger.error(f"Error processing individual PR: {e}")
    return counted


def fetch_prs_with_pagination(
    client: GitHubClient,
    repo: Repository,
    cutoff_date: datetime,
    ledger: AuthorLedger,
    policy: Optional[RetryPolicy] = None,
) -> int:
    """Page through ``repo``'s pull requests sorted by last update, newest first.

    Stops on a short page, on a page past the first with no pull request
    updated in the window, or on a non rate-limit error. The second rule
    assumes upstream ordering by update time is consistent; it is an
    approximation and can stop early if it is not.

    Returns:
        Number of pull requests updated in the window that were recorded
    """
    policy = policy or RetryPolicy()
    page = 1
    total_prs = 0
    rate_limit_retries = 0

    while True:
        if page > 1:
            policy.sleep(policy.page_delay_sec)

        logger.debug(f"Fetching PRs for {repo.name} - page {page}")
        try:
            pull_requests = client.list_pull_requests(repo.owner, repo.name, page=page, per_page=MAX_PER_PAGE)
        except Exception as e:
            logger.error(f"Error fetching PRs (page {page}): {e}")
            if is_rate_limit_error(e) and policy.allows_retry(rate_limit_retries):
                rate_limit_retries += 1
                logger.warning(f"Rate limit reached, waiting {policy.cooldown_sec:g} seconds...")
                policy.sleep(policy.cooldown_sec)
                continue
            break

        rate_limit_retries = 0
        logger.info(f"Page {page}: Found {len(pull_requests)} PRs for {repo.name}")

        recent = []
        for pr in pull_requests:
            try:
                updated_at = parse_timestamp(pr.get('updated_at'))
            except (AttributeError, TypeError, ValueError) as e:
                logger.error(f"Error filtering PR: {e}")
                continue
            if updated_at is not None and updated_at >= cutoff_date:
                recent.append(pr)

        logger.info(f"{len(recent)} PRs updated in the specified period")
        total_prs += len(recent)

        for pr in recent:
            try:
                record_pull_request(pr, repo.name, cutoff_date, ledger)
            except Exception as e:
                logger.error(f"Error processing PR: {e}")

        if len(pull_requests) < MAX_PER_PAGE:
            break
        if not recent and page >= 2:
            logger.info(f"No recent PRs found on page {page}, stopping search")
            break
        page += 1

    logger.debug(f"Total of {total_prs} recent PRs found for {repo.name}")
    return total_prs


def search_query_for(repo: Repository, cutoff_date: datetime) -> str:
    return f"repo:{repo.owner}/{repo.name} is:pr updated:>={cutoff_date.date().isoformat()}"


def collect_repository_pull_requests(
    client: GitHubClient,
    repo: Repository,
    cutoff_date: datetime,
    ledger: AuthorLedger,
    policy: Optional[RetryPolicy] = None,
) -> int:
    """Record opened/closed pull request counts for ``repo`` in ``ledger``.

    Returns:
        Number of pull requests recorded
    """
    query = search_query_for(repo, cutoff_date)
    logger.debug(f"Searching PRs with query: {query}")

    try:
        result = client.search_issues(query, per_page=MAX_PER_PAGE)
    except Exception as e:
        logger.error(f"Error searching PRs for {repo.full_name}: {e}")
        logger.info(f"Using fallback for pulls endpoint for {repo.name}")
        return fetch_prs_with_pagination(client, repo, cutoff_date, ledger, policy)

    total_count = result.get('total_count', 0)
    logger.info(f"Search API found {total_count} PRs for {repo.name}")
    if not total_count:
        logger.info(f"Using fallback for pulls endpoint for {repo.name}")
        return fetch_prs_with_pagination(client, repo, cutoff_date, ledger, policy)

    return process_search_results(result.get('items') or [], repo, cutoff_date, ledger)
