"""GitHub API client with GraphQL and REST support and caching."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests
from cachetools import TTLCache
from cachetools.keys import hashkey

from .graphql_utils import GraphQLClient
from .rate_limit import make_rate_limited_session, request_with_rate_limit
from .repository_queries import RepositoryQueries

# Default cache TTL in seconds (1 hour)
DEFAULT_CACHE_TTL = 3600
# Default cache max size (1000 items)
DEFAULT_CACHE_SIZE = 1000
# GitHub max per_page is 100
MAX_PER_PAGE = 100


class BaseGitHubClient:
    """Base class for GitHub API clients with common functionality."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = "https://api.github.com",
        cache_ttl: int = DEFAULT_CACHE_TTL,
        cache_size: int = DEFAULT_CACHE_SIZE,
        user_agent: str = "ghactivity",
        auth_scheme: str = "token",
        request_delay: Optional[float] = None,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token: Installation access token (or app JWT with ``auth_scheme="Bearer"``)
            base_url: Base URL for the GitHub API
            cache_ttl: Cache TTL in seconds
            cache_size: Maximum number of items to cache
            user_agent: User agent string for API requests
            auth_scheme: Authorization header scheme
            request_delay: Pause before each request; None keeps the GITHUB_REQ_DELAY default
        """
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.user_agent = user_agent
        self.auth_scheme = auth_scheme
        self.request_delay = request_delay
        self.logger = logging.getLogger(self.__class__.__name__)

        self._cache = TTLCache(
            maxsize=cache_size,
            ttl=cache_ttl,
            getsizeof=lambda x: 1  # Simple size function for TTLCache
        )

        self._session = self._create_session()

        self._graphql_client: Optional[GraphQLClient] = None
        self._repository_queries: Optional[RepositoryQueries] = None

    def _create_session(self) -> requests.Session:
        """Create and configure a requests session."""
        return make_rate_limited_session(self.token, user_agent=self.user_agent, auth_scheme=self.auth_scheme)

    def set_token(self, token: str) -> None:
        """Replace the credential on the live session and drop cached responses."""
        self.token = token
        self._session.headers['Authorization'] = f"{self.auth_scheme} {token}"
        self._cache.clear()
        self._graphql_client = None
        self._repository_queries = None

    @property
    def graphql(self) -> GraphQLClient:
        """Get the GraphQL client, initializing it if needed."""
        if self._graphql_client is None:
            self._graphql_client = GraphQLClient(
                token=self.token,
                api_url=f"{self.base_url}/graphql",
                user_agent=self.user_agent,
                session=self._session,
                request_delay=self.request_delay,
            )
        return self._graphql_client

    @property
    def repositories(self) -> RepositoryQueries:
        """Get the repository queries client."""
        if self._repository_queries is None:
            self._repository_queries = RepositoryQueries(self.graphql)
        return self._repository_queries

    def _url(self, path: str) -> str:
        return urljoin(f"{self.base_url}/", path.lstrip('/'))

    def _make_cache_key(self, method: str, url: str, **kwargs) -> str:
        """Generate a cache key for a request."""
        params = kwargs.get('params') or {}
        sorted_params = tuple(sorted(params.items()))
        return str(hashkey(method, url, sorted_params))

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        kwargs.setdefault('timeout', 30)
        if self.request_delay is not None:
            kwargs.setdefault('min_delay_sec', self.request_delay)
        return request_with_rate_limit(self._session, method, url, logger=self.logger, **kwargs)

    def _cached_request(self, method: str, url: str, **kwargs) -> requests.Response:
        """Make a request with caching."""
        cache_key = self._make_cache_key(method, url, **kwargs)

        if cache_key in self._cache:
            self.logger.debug(f"Cache hit for {method} {url}")
            return self._cache[cache_key]

        self.logger.debug(f"Cache miss for {method} {url}")
        response = self._request(method, url, **kwargs)

        if response.status_code == 200:
            self._cache[cache_key] = response

        return response

    def get(self, path: str, **kwargs) -> requests.Response:
        """Make a GET request to the GitHub API."""
        return self._cached_request('GET', self._url(path), **kwargs)

    def post(self, path: str, **kwargs) -> requests.Response:
        """Make a POST request to the GitHub API."""
        return self._request('POST', self._url(path), **kwargs)

    def get_json(self, path: str, **kwargs) -> Any:
        response = self.get(path, **kwargs)
        response.raise_for_status()
        return response.json()

    def post_json(self, path: str, **kwargs) -> Any:
        response = self.post(path, **kwargs)
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    def __enter__(self) -> 'BaseGitHubClient':
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close the session."""
        self.close()


class GitHubClient(BaseGitHubClient):
    """Installation-scoped GitHub API client with the calls the activity report needs."""

    def list_installation_repositories(self, per_page: int = MAX_PER_PAGE) -> List[Dict[str, Any]]:
        """List repositories the installation can access (first page only)."""
        data = self.get_json("installation/repositories", params={'per_page': min(per_page, MAX_PER_PAGE)})
        return data.get('repositories') or []

    def search_issues(self, query: str, per_page: int = MAX_PER_PAGE, page: int = 1) -> Dict[str, Any]:
        """Search issues and pull requests with the GitHub API."""
        params = {
            'q': query,
            'per_page': min(per_page, MAX_PER_PAGE),
            'page': page,
        }
        return self.get_json("search/issues", params=params)

    def list_pull_requests(
        self,
        owner: str,
        repo: str,
        page: int = 1,
        per_page: int = MAX_PER_PAGE,
        state: str = "all",
        sort: str = "updated",
        direction: str = "desc",
    ) -> List[Dict[str, Any]]:
        """List one page of a repository's pull requests."""
        params = {
            'state': state,
            'sort': sort,
            'direction': direction,
            'per_page': min(per_page, MAX_PER_PAGE),
            'page': page,
        }
        return self.get_json(f"repos/{owner}/{repo}/pulls", params=params)
