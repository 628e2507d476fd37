from __future__ import annotations

from typing import Any, Dict, List

import pytest
import requests

from conftest import http_error, make_response
from ghactivity.github.client import GitHubClient
from ghactivity.github.graphql_utils import GraphQLClient, GraphQLError
from ghactivity.github.rate_limit import is_rate_limit_error, make_rate_limited_session, request_with_rate_limit
from ghactivity.github.repository_queries import RepositoryQueries


class ScriptedSession:
    """Returns queued responses and records requests."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        self.requests.append({"method": method, "url": url, **kwargs})
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def close(self) -> None:
        pass


def test_rate_limit_error_classification() -> None:
    assert is_rate_limit_error(http_error(429, "Too Many Requests"))
    assert is_rate_limit_error(http_error(403, "API rate limit exceeded for installation"))
    assert is_rate_limit_error(http_error(403, "Forbidden", headers={"X-RateLimit-Remaining": "0"}))
    assert not is_rate_limit_error(http_error(403, "Resource not accessible by integration"))
    assert not is_rate_limit_error(http_error(500, "rate limit"))
    assert not is_rate_limit_error(ValueError("rate limit"))


def test_session_headers() -> None:
    session = make_rate_limited_session("abc", auth_scheme="Bearer")
    assert session.headers["Authorization"] == "Bearer abc"
    assert session.headers["X-GitHub-Api-Version"] == "2022-11-28"
    assert "Authorization" not in make_rate_limited_session(None).headers


def test_request_backs_off_on_transient_errors() -> None:
    sleeps: List[float] = []
    session = ScriptedSession([make_response(502), make_response(200, {"ok": True})])

    resp = request_with_rate_limit(session, "GET", "https://api.github.com/x",
                                   min_delay_sec=0, backoff_base=2, sleep=sleeps.append)

    assert resp.json() == {"ok": True}
    assert sleeps == [1]


def test_request_sleeps_until_quota_reset(monkeypatch) -> None:
    monkeypatch.setattr("ghactivity.github.rate_limit.time.time", lambda: 1000.0)
    sleeps: List[float] = []
    exhausted = make_response(403, {"message": "API rate limit exceeded"},
                              headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1010"})
    session = ScriptedSession([exhausted, make_response(200, [])])

    request_with_rate_limit(session, "GET", "https://api.github.com/x", min_delay_sec=0, sleep=sleeps.append)

    assert sleeps == [12.0]


def test_request_gives_back_last_response_after_max_attempts() -> None:
    session = ScriptedSession([make_response(503), make_response(503)])
    resp = request_with_rate_limit(session, "GET", "https://api.github.com/x",
                                   min_delay_sec=0, max_attempts=2, sleep=lambda _: None)
    assert resp.status_code == 503


def test_graphql_errors_are_raised() -> None:
    session = ScriptedSession([make_response(200, {"data": None, "errors": [{"message": "Could not resolve"}]})])
    client = GraphQLClient(token="t", session=session, request_delay=0)

    with pytest.raises(GraphQLError, match="Could not resolve"):
        client.execute_query("query { viewer { login } }")


def test_graphql_results_are_cached_per_client() -> None:
    session = ScriptedSession([make_response(200, {"data": {"viewer": {"login": "me"}}})])
    client = GraphQLClient(token="t", session=session, request_delay=0)

    assert client.execute_query("q", {"a": 1}) == {"viewer": {"login": "me"}}
    assert client.execute_query("q", {"a": 1}) == {"viewer": {"login": "me"}}
    assert len(session.requests) == 1


class CannedGraphQL:
    def __init__(self, data: Dict[str, Any]):
        self.data = data
        self.calls: List[Dict[str, Any]] = []

    def execute_query(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(variables)
        return self.data


def test_branch_history_query_parsing() -> None:
    gql = CannedGraphQL({"repository": {"ref": {"target": {"history": {"nodes": [{"oid": "1"}]}}}}})
    queries = RepositoryQueries(gql)

    assert queries.get_branch_commits("octo", "app", "main", "2026-10-12T00:00:00Z") == [{"oid": "1"}]
    assert gql.calls[0]["branchName"] == "refs/heads/main"


def test_missing_ref_yields_no_commits() -> None:
    queries = RepositoryQueries(CannedGraphQL({"repository": {"ref": None}}))
    assert queries.get_branch_commits("octo", "app", "gone", "2026-10-12T00:00:00Z") == []
    assert RepositoryQueries(CannedGraphQL({"repository": None})).list_branches("octo", "app") == []


def test_rest_client_calls() -> None:
    client = GitHubClient(token="t", request_delay=0)
    session = ScriptedSession([
        make_response(200, {"total_count": 0, "items": []}),
        make_response(200, [{"number": 1}]),
        make_response(404, {"message": "Not Found"}),
    ])
    client._session = session

    assert client.search_issues("repo:octo/app is:pr") == {"total_count": 0, "items": []}
    assert client.list_pull_requests("octo", "app", page=3) == [{"number": 1}]
    with pytest.raises(requests.HTTPError):
        client.list_installation_repositories()

    pulls_call = session.requests[1]
    assert pulls_call["url"] == "https://api.github.com/repos/octo/app/pulls"
    assert pulls_call["params"] == {"state": "all", "sort": "updated", "direction": "desc", "per_page": 100, "page": 3}
