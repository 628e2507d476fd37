"""
GraphQL queries for branch and commit history lookups.
"""
from typing import Any, Dict, List

from .graphql_utils import GraphQLClient

BRANCHES_QUERY = """
query ListBranches($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    refs(refPrefix: "refs/heads/", first: 100) {
      nodes {
        name
        target {
          oid
        }
      }
    }
  }
}
"""

BRANCH_HISTORY_QUERY = """
query BranchHistory($owner: String!, $repo: String!, $branchName: String!, $since: GitTimestamp!) {
  repository(owner: $owner, name: $repo) {
    ref(qualifiedName: $branchName) {
      target {
        ... on Commit {
          history(since: $since, first: 100) {
            nodes {
              oid
              author {
                user {
                  login
                  id
                  databaseId
                }
                name
                email
              }
              committedDate
            }
          }
        }
      }
    }
  }
}
"""


class RepositoryQueries:
    def __init__(self, client: GraphQLClient):
        self.client = client

    def list_branches(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        """
        List branch heads of a repository.

        Only the first 100 refs are returned; deeper pages are not followed.
        """
        result = self.client.execute_query(BRANCHES_QUERY, {"owner": owner, "repo": repo})
        repository = result.get("repository") or {}
        return (repository.get("refs") or {}).get("nodes") or []

    def get_branch_commits(self, owner: str, repo: str, branch: str, since: str) -> List[Dict[str, Any]]:
        """
        Get commits reachable from ``branch`` committed at or after ``since``.

        Args:
            owner: Repository owner login
            repo: Repository name
            branch: Short branch name (without ``refs/heads/``)
            since: ISO 8601 timestamp

        Returns:
            Up to 100 commit nodes with ``oid``, ``author`` and ``committedDate``
        """
        variables = {
            "owner": owner,
            "repo": repo,
            "branchName": f"refs/heads/{branch}",
            "since": since,
        }
        result = self.client.execute_query(BRANCH_HISTORY_QUERY, variables)
        ref = (result.get("repository") or {}).get("ref") or {}
        history = (ref.get("target") or {}).get("history") or {}
        return history.get("nodes") or []
