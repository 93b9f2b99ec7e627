"""
Configuration management for ghdb.

Loads and validates config.yml, which lists the users and organizations
to sync:

    users:
      - name: octocat
        token: ghp_xxx
        is_org: false
        url: https://ghe.example.com/api/v3
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError


GITHUB_API_BASE = "https://api.github.com"
CACHE_FILE_NAME = "cache.json"


@dataclass(frozen=True)
class Identity:
    """A GitHub user or organization to sync, plus its fetch parameters."""

    name: str
    token: str | None = None
    is_org: bool = False
    base_url: str = GITHUB_API_BASE

    @property
    def kind(self) -> str:
        return "org" if self.is_org else "user"

    def __str__(self) -> str:
        if self.base_url == GITHUB_API_BASE:
            return f"{self.kind} {self.name}"
        return f"{self.kind} {self.name} ({self.base_url})"


@dataclass
class GhdbConfig:
    """Complete ghdb configuration."""

    users: list[Identity] = field(default_factory=list)
    path: Path | None = None

    @classmethod
    def load(cls, path: Path) -> "GhdbConfig":
        """Load configuration from a YAML file."""
        path = Path(path).expanduser()
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}. Run: ghdb init")

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")

        return cls(users=cls._parse_users(data.get("users", []), path), path=path)

    @staticmethod
    def _parse_users(raw: Any, path: Path) -> list[Identity]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise ConfigError(f"{path}: 'users' must be a list")

        users: list[Identity] = []
        for index, entry in enumerate(raw):
            if not isinstance(entry, dict):
                raise ConfigError(f"{path}: users[{index}] must be a mapping")

            name = entry.get("name")
            if name is not None and not isinstance(name, str):
                raise ConfigError(f"{path}: users[{index}].name must be a string")
            name = (name or "").strip()
            if not name:
                raise ConfigError(f"{path}: users[{index}] is missing 'name'")

            token = entry.get("token")
            if token is not None and not isinstance(token, str):
                raise ConfigError(f"{path}: users[{index}].token must be a string")

            url = entry.get("url")
            if url is not None and not isinstance(url, str):
                raise ConfigError(f"{path}: users[{index}].url must be a string")

            is_org = entry.get("is_org", False)
            if not isinstance(is_org, bool):
                raise ConfigError(f"{path}: users[{index}].is_org must be true or false")

            users.append(
                Identity(
                    name=name,
                    token=token or None,
                    is_org=is_org,
                    base_url=(url or GITHUB_API_BASE).rstrip("/"),
                )
            )
        return users


def get_default_config_dir() -> Path:
    """Directory holding config.yml and the cache by default."""

    return Path.home() / ".config" / "ghdb"


def get_cache_file(cache_dir: Path) -> Path:
    return Path(cache_dir).expanduser() / CACHE_FILE_NAME
