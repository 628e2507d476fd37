"""GitHub API transport with GraphQL and REST support.

This package provides the GitHub access used by the activity report: an app
level entry point that mints JWTs and installation tokens, an
installation-scoped REST client, and GraphQL branch/commit queries, with
built-in rate limiting, retries, and caching.

Example usage:
    ```python
    from ghactivity.github import GitHubApp

    app = GitHubApp(app_id=12345, private_key=pem_text)
    for installation in app.list_installations():
        client = app.get_installation_client(installation["id"])
        repos = client.list_installation_repositories()
    ```
"""
from .app_auth import GitHubApp, create_app_jwt
from .client import BaseGitHubClient, GitHubClient
from .graphql_utils import GraphQLClient, GraphQLError
from .rate_limit import (
    is_rate_limit_error,
    make_rate_limited_session,
    request_with_rate_limit,
)
from .repository_queries import RepositoryQueries

__all__ = [
    'GitHubApp',
    'create_app_jwt',
    'BaseGitHubClient',
    'GitHubClient',
    'GraphQLClient',
    'GraphQLError',
    'RepositoryQueries',
    'is_rate_limit_error',
    'make_rate_limited_session',
    'request_with_rate_limit',
]
