"""Comparison engine: version ordering and cross-repository queries."""

from repointel.engines.comparison.engine import ComparisonEngine, parse_coordinate
from repointel.engines.comparison.models import (
    ArtifactVersion,
    ComparisonSummary,
    LookupStatus,
    RepoVersionStatus,
    VersionComparisonResult,
    VersionStatus,
)
from repointel.engines.comparison.versioning import compare, is_above, is_below, select_highest

__all__ = [
    "ArtifactVersion",
    "ComparisonEngine",
    "ComparisonSummary",
    "LookupStatus",
    "RepoVersionStatus",
    "VersionComparisonResult",
    "VersionStatus",
    "compare",
    "is_above",
    "is_below",
    "parse_coordinate",
    "select_highest",
]
