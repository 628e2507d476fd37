"""GitHub App authentication: app JWTs, installation listing and installation tokens."""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

import jwt

from .client import BaseGitHubClient, GitHubClient, MAX_PER_PAGE

# GitHub rejects app JWTs that live longer than 10 minutes
JWT_TTL_SEC = 540
# Backdate iat to tolerate clock drift
JWT_CLOCK_SKEW_SEC = 60
# Re-sign the app JWT once it is this close to expiry
JWT_REFRESH_MARGIN_SEC = 60


def create_app_jwt(app_id: int, private_key: str, now: Optional[float] = None) -> str:
    """Sign a short-lived RS256 JWT identifying the GitHub App."""
    issued = int(now if now is not None else time.time())
    payload = {
        "iat": issued - JWT_CLOCK_SKEW_SEC,
        "exp": issued + JWT_TTL_SEC,
        "iss": str(app_id),
    }
    return jwt.encode(payload, private_key, algorithm="RS256")


class GitHubApp:
    """Entry point for app-level calls and installation-scoped clients."""

    def __init__(
        self,
        app_id: int,
        private_key: str,
        base_url: str = "https://api.github.com",
        user_agent: str = "ghactivity",
    ) -> None:
        if not app_id:
            raise ValueError("GitHub App id is required")
        if not private_key:
            raise ValueError("GitHub App private key is required")
        self.app_id = app_id
        self.private_key = private_key
        self.base_url = base_url.rstrip('/')
        self.user_agent = user_agent
        self.logger = logging.getLogger(self.__class__.__name__)
        self._app_client: Optional[BaseGitHubClient] = None
        self._jwt_expires_at = 0.0

    def _sign_jwt(self) -> str:
        now = time.time()
        token = create_app_jwt(self.app_id, self.private_key, now=now)
        self._jwt_expires_at = int(now) + JWT_TTL_SEC
        return token

    @property
    def app_client(self) -> BaseGitHubClient:
        """Client authenticated as the app itself; signing fails fast on a bad key.

        The app JWT is short-lived, so it is re-signed on access once it is
        within ``JWT_REFRESH_MARGIN_SEC`` of expiring.
        """
        if self._app_client is None:
            self._app_client = BaseGitHubClient(
                token=self._sign_jwt(),
                base_url=self.base_url,
                user_agent=self.user_agent,
                auth_scheme="Bearer",
            )
        elif time.time() >= self._jwt_expires_at - JWT_REFRESH_MARGIN_SEC:
            self.logger.debug("App JWT close to expiry, signing a new one")
            self._app_client.set_token(self._sign_jwt())
        return self._app_client

    def list_installations(self) -> List[Dict[str, Any]]:
        """List installations of the app (first page only)."""
        return self.app_client.get_json("app/installations", params={"per_page": MAX_PER_PAGE})

    def create_installation_token(self, installation_id: int) -> str:
        data = self.app_client.post_json(f"app/installations/{installation_id}/access_tokens")
        return data["token"]

    def get_installation_client(self, installation_id: int) -> GitHubClient:
        """Return a client scoped to one installation's access token."""
        token = self.create_installation_token(installation_id)
        self.logger.debug(f"Obtained access token for installation {installation_id}")
        return GitHubClient(token=token, base_url=self.base_url, user_agent=self.user_agent)

    def close(self) -> None:
        if self._app_client is not None:
            self._app_client.close()
