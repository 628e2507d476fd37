"""
GraphQL utilities for GitHub API with rate limiting and caching.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import requests
from cachetools import TTLCache

from .rate_limit import make_rate_limited_session, request_with_rate_limit

# Default cache TTL in seconds (1 hour)
DEFAULT_CACHE_TTL = 3600
DEFAULT_CACHE_SIZE = 100


class GraphQLError(RuntimeError):
    """Raised when a GraphQL response carries errors or no data."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class GraphQLClient:
    def __init__(
        self,
        token: Optional[str],
        api_url: str = "https://api.github.com/graphql",
        user_agent: str = "ghactivity",
        session: Optional[requests.Session] = None,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        cache_size: int = DEFAULT_CACHE_SIZE,
        request_delay: Optional[float] = None,
    ):
        self.api_url = api_url
        self.session = session or make_rate_limited_session(token, user_agent=user_agent)
        self.request_delay = request_delay
        self.logger = logging.getLogger(self.__class__.__name__)
        # Per-client cache: tokens are installation scoped
        self._cache: TTLCache = TTLCache(maxsize=cache_size, ttl=cache_ttl)

    def execute_query(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        operation_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Execute a GraphQL query with caching.

        Args:
            query: The GraphQL query string
            variables: Dictionary of variables for the query
            operation_name: Optional operation name for the query

        Returns:
            The ``data`` member of the response

        Raises:
            requests.HTTPError: on a non-2xx response
            GraphQLError: when the response reports errors
        """
        cache_key = self._generate_cache_key(query, variables, operation_name)

        if cache_key in self._cache:
            return self._cache[cache_key]

        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables
        if operation_name:
            payload["operationName"] = operation_name

        kwargs: Dict[str, Any] = {}
        if self.request_delay is not None:
            kwargs["min_delay_sec"] = self.request_delay

        try:
            response = request_with_rate_limit(
                self.session, "POST", self.api_url,
                logger=self.logger, json=payload, timeout=30, **kwargs,
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as e:
            self.logger.error(f"GraphQL query failed: {e}")
            if getattr(e, "response", None) is not None:
                self.logger.error(f"Response: {e.response.text}")
            raise

        errors = body.get("errors")
        data = body.get("data")
        if errors or data is None:
            messages = "; ".join(str(err.get("message", err)) for err in errors or [])
            raise GraphQLError(messages or "GraphQL response contained no data", errors)

        self._cache[cache_key] = data
        return data

    def _generate_cache_key(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        operation_name: Optional[str] = None,
    ) -> str:
        """Generate a cache key for the query."""
        key_parts = [query]
        if variables:
            key_parts.append(json.dumps(variables, sort_keys=True))
        if operation_name:
            key_parts.append(operation_name)
        return "|".join(key_parts)

    def close(self) -> None:
        self.session.close()
