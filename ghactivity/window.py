"""Lookback window: cutoff calculation and active-repository filtering."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from .models import Repository

DEFAULT_DAYS_TO_LOOK_BACK = 7

logger = logging.getLogger("ghactivity.window")


def validate_days_to_look_back(days_to_look_back: int) -> int:
    if isinstance(days_to_look_back, bool) or not isinstance(days_to_look_back, int):
        raise ValueError(f"days_to_look_back must be an integer, got {days_to_look_back!r}")
    if days_to_look_back <= 0:
        raise ValueError(f"days_to_look_back must be positive, got {days_to_look_back}")
    return days_to_look_back


def calculate_cutoff_date(days_to_look_back: int = DEFAULT_DAYS_TO_LOOK_BACK, now: Optional[datetime] = None) -> datetime:
    """Return the instant ``days_to_look_back`` days before ``now`` (UTC)."""
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=days_to_look_back)


def filter_updated_repositories(repos: Iterable[Repository], cutoff_date: datetime) -> List[Repository]:
    """Keep repositories pushed or updated at or after ``cutoff_date``, preserving order."""
    repos = list(repos)
    logger.debug(f"Filtering {len(repos)} repositories by update date")

    filtered: List[Repository] = []
    for repo in repos:
        if repo.latest_activity >= cutoff_date:
            filtered.append(repo)
        else:
            logger.debug(f"Skipping repository {repo.full_name} - no updates since {cutoff_date.isoformat()}")

    logger.debug(f"Filtered repositories: {len(filtered)} matched criteria")
    return filtered
