"""Commit collection: walk every branch of a repository and count each commit once."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set, Tuple

from .github.repository_queries import RepositoryQueries
from .models import UNKNOWN_AUTHOR, AuthorLedger, Repository, UserId

logger = logging.getLogger("ghactivity.commits")


def format_git_timestamp(moment: datetime) -> str:
    """UTC timestamp with millisecond precision, e.g. ``2026-10-12T12:00:00.000Z``."""
    return moment.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def resolve_commit_author(commit: Dict[str, Any]) -> Tuple[str, Optional[UserId]]:
    """Return ``(identity, user_id)`` for a commit node.

    Identity is the linked account login, else the author name, else the
    author email, else ``"Unknown"``.
    """
    author = commit.get('author') or {}
    user = author.get('user') or {}
    name = user.get('login') or author.get('name') or author.get('email') or UNKNOWN_AUTHOR
    return name, user.get('databaseId') or None


def collect_branch_commits(
    queries: RepositoryQueries,
    repo: Repository,
    branch: Dict[str, Any],
    since: str,
    seen: Set[str],
) -> List[Tuple[str, Optional[UserId]]]:
    """Return authors of commits on ``branch`` not yet in ``seen``, marking them seen."""
    nodes = queries.get_branch_commits(repo.owner, repo.name, branch['name'], since)
    logger.debug(f"Found {len(nodes)} commits in the period on {repo.name}:{branch['name']}")

    authors: List[Tuple[str, Optional[UserId]]] = []
    for commit in nodes:
        oid = commit.get('oid')
        if oid in seen:
            continue
        seen.add(oid)
        authors.append(resolve_commit_author(commit))
    return authors


def collect_repository_commits(
    queries: RepositoryQueries,
    repo: Repository,
    cutoff_date: datetime,
    ledger: AuthorLedger,
) -> int:
    """Count the commits made since ``cutoff_date`` on any branch of ``repo``.

    Only the first 100 branches and the first 100 commits per branch are
    read. A commit reachable from several branches counts once. If any
    branch cannot be read the repository contributes no commits at all; the
    error is logged and not raised.

    Returns:
        Number of distinct commits recorded in ``ledger``
    """
    since = format_git_timestamp(cutoff_date)
    seen: Set[str] = set()
    staged: List[Tuple[str, Optional[UserId]]] = []

    try:
        branches = queries.list_branches(repo.owner, repo.name)
        logger.info(f"Repository {repo.full_name} has {len(branches)} branches")
        for branch in branches:
            staged.extend(collect_branch_commits(queries, repo, branch, since, seen))
    except Exception as e:
        logger.error(f"Error collecting commits for {repo.full_name}: {e}")
        return 0

    for name, user_id in staged:
        ledger.record_commit(name, user_id, repo.name)
    return len(staged)
