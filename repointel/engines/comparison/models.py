"""Result types of the comparison engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class LookupStatus(Enum):
    """Outcome of looking up one coordinate in one repository."""

    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN = "UNKNOWN"  # declared, but every version is blank
    BELOW = "BELOW"  # drift only: highest version below the threshold


@dataclass(frozen=True)
class ArtifactVersion:
    status: LookupStatus
    version: str | None = None

    @property
    def label(self) -> str:
        if self.status is LookupStatus.FOUND:
            return self.version or ""
        if self.status is LookupStatus.BELOW:
            return f"BELOW({self.version})"
        return self.status.value

    def __str__(self) -> str:
        return self.label


class VersionStatus(Enum):
    MATCHES = "MATCHES"
    OLDER = "OLDER"
    NEWER = "NEWER"
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class RepoVersionStatus:
    repo_name: str
    package_name: str
    status: VersionStatus
    found_versions: tuple[str, ...] = ()
    message: str = ""


@dataclass(frozen=True)
class ComparisonSummary:
    total_repos: int = 0
    matching_repos: int = 0
    older_repos: int = 0
    newer_repos: int = 0
    not_found_repos: int = 0
    unknown_repos: int = 0
    text: str = ""


@dataclass(frozen=True)
class VersionComparisonResult:
    package_name: str
    requested_version: str | None
    repo_statuses: list[RepoVersionStatus] = field(default_factory=list)
    summary: ComparisonSummary = field(default_factory=ComparisonSummary)
