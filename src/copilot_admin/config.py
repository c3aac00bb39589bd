"""Load settings from the environment, a .env file and an optional YAML file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Mapping, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError

CONFIG_DIR = Path.home() / ".gh-copilot-admin"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PAGE_SIZE = 100
DEFAULT_REPORT_DAYS = 30


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings. Environment values win over the YAML file."""

    app_id: str = ""
    private_key_path: str = ""
    installation_id: str = ""
    org: str = ""
    owner: str = ""
    repo: str = ""
    experts: tuple[str, ...] = ()
    since: str = ""
    until: str = ""
    cost_per_seat: Optional[float] = None
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    page_size: int = DEFAULT_PAGE_SIZE
    max_pages: Optional[int] = None
    reports_dir: str = ""

    def require_app_identity(self) -> None:
        missing = [
            name for name, value in (
                ("GITHUB_APP_ID", self.app_id),
                ("GITHUB_PRIVATE_KEY_PATH", self.private_key_path),
                ("GITHUB_INSTALLATION_ID", self.installation_id),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join(missing)}")

    def require_org(self, org: str | None = None) -> str:
        value = org or self.org
        if not value:
            raise ConfigError("No organization given. Set GITHUB_ORG or pass --org.")
        return value

    def require_repo(self, owner: str | None = None, repo: str | None = None) -> tuple[str, str]:
        owner = owner or self.owner
        repo = repo or self.repo
        if not owner or not repo:
            raise ConfigError("No repository given. Set GITHUB_OWNER and GITHUB_REPO.")
        return owner, repo


def load_config() -> dict:
    """Load config from YAML file. Returns empty dict if not found."""
    if not CONFIG_FILE.exists():
        return {}
    with open(CONFIG_FILE, "r") as f:
        return yaml.safe_load(f) or {}


def parse_experts(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated COPILOT_EXPERTS value into usernames."""
    if not raw:
        return ()
    return tuple(name.strip().lstrip("@") for name in raw.split(",") if name.strip())


def validate_date(value: str, name: str) -> str:
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ConfigError(f"{name} must be a YYYY-MM-DD date, got {value!r}") from None
    return value


def default_date_range(today: date | None = None,
                       days: int = DEFAULT_REPORT_DAYS) -> tuple[str, str]:
    """Return (since, until) covering the last ``days`` days."""
    today = today or date.today()
    return (today - timedelta(days=days)).isoformat(), today.isoformat()


def _number(value, name: str, cast):
    if value is None or value == "":
        return None
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}") from None


def load_settings(env: Mapping[str, str] | None = None, config: dict | None = None,
                  today: date | None = None) -> Settings:
    """Build Settings from environment variables and the YAML config.

    When ``env`` is not given, a .env file in the working directory is loaded
    into ``os.environ`` first (existing variables are kept).
    """
    if env is None:
        load_dotenv(override=False)
        env = os.environ
    if config is None:
        config = load_config()

    default_since, default_until = default_date_range(today)
    since = env.get("METRICS_START_DATE") or env.get("METRICS_SINCE") or default_since
    until = env.get("METRICS_END_DATE") or env.get("METRICS_UNTIL") or default_until

    cost = _number(env.get("COPILOT_COST_PER_SEAT"), "COPILOT_COST_PER_SEAT", float)
    if cost is None:
        cost = _number(config.get("cost_per_seat"), "cost_per_seat", float)

    timeout = _number(env.get("GITHUB_TIMEOUT"), "GITHUB_TIMEOUT", float)
    if timeout is None:
        timeout = _number(config.get("timeout"), "timeout", float) or DEFAULT_TIMEOUT

    page_size = _number(config.get("page_size"), "page_size", int) or DEFAULT_PAGE_SIZE
    if not 1 <= page_size <= 100:
        raise ConfigError(f"page_size must be between 1 and 100, got {page_size}")

    return Settings(
        app_id=env.get("GITHUB_APP_ID", ""),
        private_key_path=env.get("GITHUB_PRIVATE_KEY_PATH", ""),
        installation_id=env.get("GITHUB_INSTALLATION_ID", ""),
        org=env.get("GITHUB_ORG", ""),
        owner=env.get("GITHUB_OWNER", ""),
        repo=env.get("GITHUB_REPO", ""),
        experts=parse_experts(env.get("COPILOT_EXPERTS")),
        since=validate_date(since, "METRICS_START_DATE"),
        until=validate_date(until, "METRICS_END_DATE"),
        cost_per_seat=cost,
        api_url=(env.get("GITHUB_API_URL") or config.get("api_url") or DEFAULT_API_URL).rstrip("/"),
        timeout=timeout,
        page_size=page_size,
        max_pages=_number(config.get("max_pages"), "max_pages", int),
        reports_dir=config.get("reports_dir", ""),
    )
