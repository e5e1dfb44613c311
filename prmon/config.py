"""
Configuration management for prmon.

Loads prmon.yml (GitHub access and polling settings). The GitHub token
may also come from GITHUB_TOKEN or GH_TOKEN.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .changes import ComparisonPolicy
from .github import GITHUB_API_BASE

CONFIG_FILENAME = "prmon.yml"
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


@dataclass
class GitHubConfig:
    """GitHub access settings."""

    token: str | None = None
    api_base: str = GITHUB_API_BASE

    def resolve_token(self) -> str | None:
        """Configured token, else the first token found in the environment."""
        if self.token:
            return self.token
        for name in TOKEN_ENV_VARS:
            value = os.environ.get(name)
            if value:
                return value
        return None


@dataclass
class PollConfig:
    """Polling cadence and change detection settings."""

    interval_minutes: int = 5
    debug_interval_minutes: int = 1  # Used with --debug
    comparison: ComparisonPolicy = ComparisonPolicy.UNORDERED
    halt_on_error: bool = True  # False: log failed polls and keep going

    def interval_seconds(self, debug: bool = False) -> float:
        minutes = self.debug_interval_minutes if debug else self.interval_minutes
        return float(minutes * 60)


@dataclass
class PrmonConfig:
    """Complete prmon configuration."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    poll: PollConfig = field(default_factory=PollConfig)

    @classmethod
    def load(cls, directory: Path) -> "PrmonConfig":
        """Load configuration from `directory`, using defaults if absent."""
        return cls.load_file(directory / CONFIG_FILENAME)

    @classmethod
    def load_file(cls, path: Path) -> "PrmonConfig":
        if not path.exists():
            return cls()
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls._parse(data)

    @classmethod
    def _parse(cls, data: dict[str, Any]) -> "PrmonConfig":
        config = cls()

        github_data = data.get("github") or {}
        config.github = GitHubConfig(
            token=github_data.get("token"),
            api_base=github_data.get("api_base", GITHUB_API_BASE),
        )

        poll_data = data.get("poll") or {}
        comparison = poll_data.get("comparison", ComparisonPolicy.UNORDERED.value)
        try:
            policy = ComparisonPolicy(comparison)
        except ValueError:
            choices = ", ".join(p.value for p in ComparisonPolicy)
            raise ValueError(
                f"Unknown poll.comparison {comparison!r} (expected one of: {choices})"
            ) from None

        config.poll = PollConfig(
            interval_minutes=int(poll_data.get("interval_minutes", 5)),
            debug_interval_minutes=int(poll_data.get("debug_interval_minutes", 1)),
            comparison=policy,
            halt_on_error=bool(poll_data.get("halt_on_error", True)),
        )

        return config


def get_prmon_dir() -> Path:
    """Get the ~/.prmon directory path."""
    return Path.home() / ".prmon"


def ensure_prmon_dir() -> Path:
    """Ensure ~/.prmon exists and return its path."""
    prmon_dir = get_prmon_dir()
    prmon_dir.mkdir(parents=True, exist_ok=True)
    return prmon_dir
