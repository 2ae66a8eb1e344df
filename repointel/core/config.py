"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

_ACQUIRERS = ("git", "github")


@dataclass(frozen=True)
class Settings:
    scan_concurrency: int = 4
    acquire_timeout: float = 300.0
    acquirer: str = "git"
    github_token: str | None = None
    github_api_url: str = "https://api.github.com"


def _env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


def _env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


def load_settings() -> Settings:
    """Build :class:`Settings` from ``REPOINTEL_*`` environment variables.

    Raises ``ValueError`` for values that cannot be used (non-numeric limits,
    unknown acquirer name).
    """
    concurrency = _env_int("REPOINTEL_SCAN_CONCURRENCY", 4)
    if concurrency < 1:
        raise ValueError(f"REPOINTEL_SCAN_CONCURRENCY must be >= 1, got {concurrency}")

    acquirer = os.environ.get("REPOINTEL_ACQUIRER", "git").strip().lower()
    if acquirer not in _ACQUIRERS:
        raise ValueError(f"REPOINTEL_ACQUIRER must be one of {_ACQUIRERS}, got {acquirer!r}")

    return Settings(
        scan_concurrency=concurrency,
        acquire_timeout=_env_float("REPOINTEL_ACQUIRE_TIMEOUT", 300.0),
        acquirer=acquirer,
        github_token=os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN"),
        github_api_url=os.environ.get(
            "REPOINTEL_GITHUB_API_URL", "https://api.github.com"
        ).rstrip("/"),
    )
