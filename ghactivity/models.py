"""
Data models for the activity report.

Repositories and installations are parsed from GitHub API responses. Author
statistics have two phases: a mutable ``AuthorAccumulator`` written while one
installation is collected, and frozen ``AuthorSummary`` values read by the
renderer.
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

UNKNOWN_AUTHOR = "Unknown"

UserId = Union[int, str]


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a GitHub ISO 8601 timestamp into an aware UTC datetime."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Installation:
    """A GitHub App installation on one account."""
    id: int
    account_login: str
    account_type: str
    account_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Installation':
        account = data.get('account') or {}
        return cls(
            id=data['id'],
            account_login=account.get('login', ''),
            account_type=account.get('type', ''),
            account_id=account.get('id'),
        )


@dataclass(frozen=True)
class Repository:
    """Repository information needed to decide whether it was active."""
    owner: str
    name: str
    full_name: str = ''
    pushed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def latest_activity(self) -> datetime:
        """Most recent of the push and update times; missing times count as the epoch."""
        return max(self.pushed_at or EPOCH, self.updated_at or EPOCH)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Repository':
        """Create a Repository instance from a REST API dictionary."""
        owner = (data.get('owner') or {}).get('login', '')
        name = data.get('name', '')
        return cls(
            owner=owner,
            name=name,
            full_name=data.get('full_name') or f"{owner}/{name}",
            pushed_at=parse_timestamp(data.get('pushed_at')),
            updated_at=parse_timestamp(data.get('updated_at')),
        )


@dataclass
class AuthorAccumulator:
    """Running totals for one author during one installation pass."""
    user_id: Optional[UserId] = None
    commits_by_repo: Dict[str, int] = field(default_factory=dict)
    pull_requests_by_repo: Dict[str, Dict[str, int]] = field(default_factory=dict)
    total_commits: int = 0
    total_prs_opened: int = 0
    total_prs_closed: int = 0

    def observe_user_id(self, user_id: Optional[UserId]) -> None:
        # First non-null id wins
        if user_id and not self.user_id:
            self.user_id = user_id

    def add_commit(self, repo_name: str) -> None:
        self.commits_by_repo[repo_name] = self.commits_by_repo.get(repo_name, 0) + 1
        self.total_commits += 1

    def add_pull_request(self, repo_name: str, opened: bool, closed: bool) -> None:
        counts = self.pull_requests_by_repo.setdefault(repo_name, {'opened': 0, 'closed': 0})
        if opened:
            counts['opened'] += 1
            self.total_prs_opened += 1
        if closed:
            counts['closed'] += 1
            self.total_prs_closed += 1


class AuthorLedger:
    """Author accumulators for one installation pass, keyed by author identity.

    Accumulators are created lazily on first observation and iterate in
    insertion order.
    """

    def __init__(self) -> None:
        self._authors: Dict[str, AuthorAccumulator] = {}

    def author(self, name: str, user_id: Optional[UserId] = None) -> AuthorAccumulator:
        accumulator = self._authors.get(name)
        if accumulator is None:
            accumulator = self._authors[name] = AuthorAccumulator(user_id=user_id or None)
        else:
            accumulator.observe_user_id(user_id)
        return accumulator

    def record_commit(self, name: str, user_id: Optional[UserId], repo_name: str) -> None:
        self.author(name, user_id).add_commit(repo_name)

    def record_pull_request(
        self,
        name: str,
        user_id: Optional[UserId],
        repo_name: str,
        opened: bool,
        closed: bool,
    ) -> None:
        self.author(name, user_id).add_pull_request(repo_name, opened, closed)

    def get(self, name: str) -> Optional[AuthorAccumulator]:
        return self._authors.get(name)

    def items(self) -> Iterator[Tuple[str, AuthorAccumulator]]:
        return iter(self._authors.items())

    def __contains__(self, name: object) -> bool:
        return name in self._authors

    def __len__(self) -> int:
        return len(self._authors)

    def __iter__(self) -> Iterator[str]:
        return iter(self._authors)


@dataclass(frozen=True)
class RepoContribution:
    repo_name: str
    commits: int = 0
    prs_opened: int = 0
    prs_closed: int = 0

    @property
    def total(self) -> int:
        return self.commits + self.prs_opened + self.prs_closed


@dataclass(frozen=True)
class AuthorSummary:
    """Finalized contribution record of one author."""
    name: str
    user_id: Optional[UserId]
    total_commits: int
    total_prs_opened: int
    total_prs_closed: int
    repo_contributions: Tuple[RepoContribution, ...] = ()

    @property
    def total(self) -> int:
        return self.total_commits + self.total_prs_opened + self.total_prs_closed


@dataclass(frozen=True)
class InstallationStats:
    """Successful result for one installation."""
    installation_id: int
    account: str
    account_type: str
    period_days: int
    account_id: Optional[int] = None
    user_stats: Tuple[AuthorSummary, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['user_stats'] = [
            dict(asdict(user), repo_contributions=[asdict(r) for r in user.repo_contributions])
            for user in self.user_stats
        ]
        return result


@dataclass(frozen=True)
class InstallationError:
    """Failed result for one installation."""
    id: Optional[int]
    account: str
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


InstallationResult = Union[InstallationStats, InstallationError]


@dataclass(frozen=True)
class ActivityReport:
    """Output of a report run: the rendered text plus the structured results."""
    summary: str
    detailed_results: List[InstallationResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summary': self.summary,
            'detailed_results': [r.to_dict() for r in self.detailed_results],
        }
