from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
import requests

from ghactivity.models import Repository
from ghactivity.pulls import RetryPolicy

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
CUTOFF = NOW - timedelta(days=7)


def iso(moment: datetime) -> str:
    return moment.strftime('%Y-%m-%dT%H:%M:%SZ')


def days_ago(days: float) -> str:
    return iso(NOW - timedelta(days=days))


def make_response(status: int, body: Any = None, headers: Optional[Dict[str, str]] = None, reason: str = "") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = json.dumps(body if body is not None else {}).encode()
    resp.headers.update(headers or {})
    resp.reason = reason
    resp.url = "https://api.github.com/test"
    return resp


def http_error(status: int, message: str = "", headers: Optional[Dict[str, str]] = None) -> requests.HTTPError:
    resp = make_response(status, {"message": message}, headers=headers, reason="Forbidden" if status == 403 else "")
    return requests.HTTPError(f"{status} Client Error: {message}", response=resp)


def commit_node(oid: str, login: Optional[str] = None, name: Optional[str] = None,
                email: Optional[str] = None, database_id: Optional[int] = None) -> Dict[str, Any]:
    user = {"login": login, "id": f"U_{login}", "databaseId": database_id} if login else None
    return {
        "oid": oid,
        "author": {"user": user, "name": name, "email": email},
        "committedDate": days_ago(1),
    }


def pull(number: int, login: Optional[str], created: str, closed: Optional[str] = None,
         updated: Optional[str] = None, user_id: Any = None, repo: str = "octo/app") -> Dict[str, Any]:
    user = {"login": login, "id": user_id, "node_id": f"MDQ_{login}"} if login else None
    return {
        "number": number,
        "user": user,
        "created_at": created,
        "closed_at": closed,
        "updated_at": updated or closed or created,
        "pull_request": {"url": f"https://api.github.com/repos/{repo}/pulls/{number}"},
    }


class FakeQueries:
    def __init__(self, branches: List[str], history: Dict[str, List[Dict[str, Any]]],
                 fail_on: Optional[str] = None):
        self.branches = branches
        self.history = history
        self.fail_on = fail_on
        self.calls: List[str] = []

    def list_branches(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        if self.fail_on == "branches":
            raise RuntimeError("branches unavailable")
        return [{"name": b, "target": {"oid": f"head-{b}"}} for b in self.branches]

    def get_branch_commits(self, owner: str, repo: str, branch: str, since: str) -> List[Dict[str, Any]]:
        self.calls.append(branch)
        if self.fail_on == branch:
            raise RuntimeError(f"history unavailable for {branch}")
        return self.history.get(branch, [])


class FakeClient:
    """Stands in for an installation-scoped GitHubClient."""

    def __init__(self, search: Any = None, pages: Optional[List[Any]] = None,
                 queries: Optional[FakeQueries] = None, repos: Optional[List[Dict[str, Any]]] = None):
        self.search = search
        self.pages = list(pages or [])
        self.repositories = queries or FakeQueries([], {})
        self.repos = repos or []
        self.page_calls: List[int] = []
        self.search_calls: List[str] = []
        self.closed = False

    def search_issues(self, query: str, per_page: int = 100) -> Dict[str, Any]:
        self.search_calls.append(query)
        if isinstance(self.search, Exception):
            raise self.search
        return self.search if self.search is not None else {"total_count": 0, "items": []}

    def list_pull_requests(self, owner: str, repo: str, page: int = 1, per_page: int = 100) -> List[Dict[str, Any]]:
        self.page_calls.append(page)
        result = self.pages.pop(0) if self.pages else []
        if isinstance(result, Exception):
            raise result
        return result

    def list_installation_repositories(self) -> List[Dict[str, Any]]:
        if isinstance(self.repos, Exception):
            raise self.repos
        return self.repos

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def repo() -> Repository:
    return Repository(owner="octo", name="app", full_name="octo/app",
                      pushed_at=NOW - timedelta(days=1), updated_at=NOW - timedelta(days=1))


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def policy(sleeps: List[float]) -> RetryPolicy:
    return RetryPolicy(cooldown_sec=60, page_delay_sec=1, sleep=sleeps.append)
