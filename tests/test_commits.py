from __future__ import annotations

from datetime import datetime, timedelta, timezone

from conftest import CUTOFF, FakeQueries, commit_node
from ghactivity.commits import collect_repository_commits, format_git_timestamp, resolve_commit_author
from ghactivity.models import AuthorLedger


def test_commit_on_several_branches_counts_once(repo) -> None:
    shared = commit_node("abc", login="alice", database_id=1)
    queries = FakeQueries(["main", "feature"], {
        "main": [shared, commit_node("def", login="alice", database_id=1)],
        "feature": [shared, commit_node("123", login="bob", database_id=2)],
    })
    ledger = AuthorLedger()

    assert collect_repository_commits(queries, repo, CUTOFF, ledger) == 3
    assert ledger.get("alice").commits_by_repo == {"app": 2}
    assert ledger.get("alice").total_commits == 2
    assert ledger.get("bob").total_commits == 1
    assert queries.calls == ["main", "feature"]


def test_author_identity_fallbacks() -> None:
    assert resolve_commit_author(commit_node("a", login="alice", name="Alice", database_id=7)) == ("alice", 7)
    assert resolve_commit_author(commit_node("b", name="Alice A", email="a@x.io")) == ("Alice A", None)
    assert resolve_commit_author(commit_node("c", email="a@x.io")) == ("a@x.io", None)
    assert resolve_commit_author(commit_node("d")) == ("Unknown", None)
    assert resolve_commit_author({"oid": "e", "author": None}) == ("Unknown", None)


def test_first_known_user_id_is_kept(repo) -> None:
    queries = FakeQueries(["main"], {
        "main": [
            commit_node("1", name="alice"),
            commit_node("2", login="alice", database_id=11),
            commit_node("3", login="alice", database_id=99),
        ],
    })
    ledger = AuthorLedger()
    collect_repository_commits(queries, repo, CUTOFF, ledger)

    assert ledger.get("alice").user_id == 11
    assert ledger.get("alice").total_commits == 3


def test_branch_failure_counts_zero_commits_for_repository(repo) -> None:
    queries = FakeQueries(["main", "broken"], {
        "main": [commit_node("1", login="alice")],
    }, fail_on="broken")
    ledger = AuthorLedger()

    assert collect_repository_commits(queries, repo, CUTOFF, ledger) == 0
    assert len(ledger) == 0


def test_branch_listing_failure_is_not_raised(repo) -> None:
    ledger = AuthorLedger()
    queries = FakeQueries([], {}, fail_on="branches")
    assert collect_repository_commits(queries, repo, CUTOFF, ledger) == 0


def test_format_git_timestamp_keeps_milliseconds() -> None:
    assert format_git_timestamp(CUTOFF) == "2026-10-12T12:00:00.000Z"
    assert format_git_timestamp(CUTOFF + timedelta(microseconds=987654)) == "2026-10-12T12:00:00.987Z"
    assert format_git_timestamp(datetime(2026, 10, 12, 14, 0, tzinfo=timezone(timedelta(hours=2)))) == "2026-10-12T12:00:00.000Z"
