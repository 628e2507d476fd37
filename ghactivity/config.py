"""Configuration for the activity report, read from the environment and CLI flags."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from .window import DEFAULT_DAYS_TO_LOOK_BACK, validate_days_to_look_back


class ActivityConfig:
    """Configuration for the activity report.

    Explicit arguments win over the environment (``GITHUB_APP_ID``,
    ``GITHUB_PRIVATE_KEY_PATH`` or ``GITHUB_PRIVATE_KEY``, ``GITHUB_API``,
    ``DAYS_TO_LOOK_BACK``, ``REPORT_DIR``).
    """

    def __init__(
        self,
        app_id: Optional[str] = None,
        private_key_path: Optional[str] = None,
        days_to_look_back: Optional[int] = None,
        api_base: Optional[str] = None,
        report_dir: Optional[str] = None,
    ):
        raw_app_id = app_id or os.getenv("GITHUB_APP_ID")
        if not raw_app_id:
            raise ValueError("GITHUB_APP_ID environment variable (or --app-id) is required")
        try:
            self.APP_ID = int(raw_app_id)
        except ValueError:
            raise ValueError(f"GitHub App id must be numeric, got {raw_app_id!r}") from None

        self.PRIVATE_KEY_PATH = private_key_path or os.getenv("GITHUB_PRIVATE_KEY_PATH")
        self._inline_private_key = os.getenv("GITHUB_PRIVATE_KEY")
        if not self.PRIVATE_KEY_PATH and not self._inline_private_key:
            raise ValueError(
                "GITHUB_PRIVATE_KEY_PATH (or GITHUB_PRIVATE_KEY, or --private-key-path) is required"
            )

        if days_to_look_back is None:
            raw_days = os.getenv("DAYS_TO_LOOK_BACK", str(DEFAULT_DAYS_TO_LOOK_BACK))
            try:
                days_to_look_back = int(raw_days)
            except ValueError:
                raise ValueError(f"DAYS_TO_LOOK_BACK must be an integer, got {raw_days!r}") from None
        self.DAYS_TO_LOOK_BACK = validate_days_to_look_back(days_to_look_back)

        self.GITHUB_API = (api_base or os.getenv("GITHUB_API", "https://api.github.com")).rstrip("/")
        self.REPORT_DIR = os.path.abspath(report_dir or os.getenv("REPORT_DIR", "activity_reports"))

    def load_private_key(self) -> str:
        """Return the PEM private key, preferring the key file over the inline variable."""
        if self.PRIVATE_KEY_PATH:
            return Path(self.PRIVATE_KEY_PATH).expanduser().resolve().read_text(encoding="utf-8")
        # Inline keys in .env files often carry escaped newlines
        return self._inline_private_key.replace("\\n", "\n")
