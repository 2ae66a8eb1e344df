"""ComparisonEngine: read-only queries over the scan store.

Each query takes one snapshot of the store and works on it alone, so a
concurrent rescan never produces a half-old, half-new answer. Only
successful scans take part.
"""

from __future__ import annotations

from collections.abc import Iterable

from repointel.engines.comparison.models import (
    ArtifactVersion,
    ComparisonSummary,
    LookupStatus,
    RepoVersionStatus,
    VersionComparisonResult,
    VersionStatus,
)
from repointel.engines.comparison.versioning import compare, is_below, select_highest
from repointel.engines.dependency_scanner.models import DependencyRecord, ExtractedSet
from repointel.engines.dependency_scanner.store import ScanStore


def parse_coordinate(text: str) -> tuple[str, str] | None:
    """``"group:artifact"`` -> ``(group, artifact)``; ``None`` if malformed.

    The group may be empty (``":artifact"``), the artifact may not.
    """
    parts = text.strip().split(":")
    if len(parts) != 2:
        return None
    group, artifact = parts[0].strip(), parts[1].strip()
    if not artifact:
        return None
    return group, artifact


def _lookup(result: ExtractedSet, group: str, artifact: str) -> ArtifactVersion:
    versions = [
        r.version for r in result.records if r.group_id == group and r.artifact_id == artifact
    ]
    if not versions:
        return ArtifactVersion(LookupStatus.NOT_FOUND)
    best = select_highest(versions)
    if best is None:
        return ArtifactVersion(LookupStatus.UNKNOWN)
    return ArtifactVersion(LookupStatus.FOUND, best)


class ComparisonEngine:
    def __init__(self, store: ScanStore) -> None:
        self._store = store

    def _snapshot(self) -> dict[str, ExtractedSet]:
        return {name: r for name, r in self._store.snapshot().items() if r.success}

    def compare_single(self, group: str, artifact: str) -> dict[str, ArtifactVersion]:
        """Highest declared version of ``group:artifact`` in every repository."""
        return {
            name: _lookup(result, group, artifact) for name, result in self._snapshot().items()
        }

    def drift(self, group: str, artifact: str, min_version: str) -> dict[str, ArtifactVersion]:
        """Repositories missing the artifact or declaring it below *min_version*.

        Repositories at or above the threshold, and those whose version is
        unknown, are left out.
        """
        drifted: dict[str, ArtifactVersion] = {}
        for name, found in self.compare_single(group, artifact).items():
            if found.status is LookupStatus.NOT_FOUND:
                drifted[name] = found
            elif found.status is LookupStatus.FOUND and is_below(found.version, min_version):
                drifted[name] = ArtifactVersion(LookupStatus.BELOW, found.version)
        return drifted

    def matrix(self, coordinates: Iterable[str]) -> dict[str, dict[str, ArtifactVersion]]:
        """:meth:`compare_single` for each coordinate; malformed ones are skipped."""
        snapshot = self._snapshot()
        matrix: dict[str, dict[str, ArtifactVersion]] = {}
        for coord in coordinates:
            parsed = parse_coordinate(coord)
            if parsed is None:
                continue
            group, artifact = parsed
            matrix[coord.strip()] = {
                name: _lookup(result, group, artifact) for name, result in snapshot.items()
            }
        return matrix

    def search(self, keyword: str) -> dict[str, list[DependencyRecord]]:
        """Records whose group or artifact contains *keyword*, case-insensitively."""
        needle = keyword.strip().lower()
        return {
            name: [
                r
                for r in result.records
                if needle in r.group_id.lower() or needle in r.artifact_id.lower()
            ]
            for name, result in self._snapshot().items()
        }

    def compare_versions(
        self, package: str, requested_version: str | None = None
    ) -> VersionComparisonResult:
        """Classify every repository against *requested_version*.

        *package* is either an exact ``group:artifact`` coordinate or a free
        text name matched as a substring. Without a requested version every
        repository declaring the package counts as matching.
        """
        coordinate = parse_coordinate(package)
        statuses = [
            self._classify(name, result, package, coordinate, requested_version)
            for name, result in self._snapshot().items()
        ]
        return VersionComparisonResult(
            package_name=package,
            requested_version=requested_version,
            repo_statuses=statuses,
            summary=_summarize(statuses, package, requested_version),
        )

    @staticmethod
    def _classify(
        repo_name: str,
        result: ExtractedSet,
        package: str,
        coordinate: tuple[str, str] | None,
        requested: str | None,
    ) -> RepoVersionStatus:
        if coordinate is not None:
            matches = [
                r
                for r in result.records
                if (r.group_id, r.artifact_id) == coordinate
            ]
        else:
            needle = package.strip().lower()
            matches = [
                r
                for r in result.records
                if needle in r.coordinate.lower() or needle in r.artifact_id.lower()
            ]
        found = tuple(dict.fromkeys(r.version for r in matches if r.version.strip()))

        if not matches:
            return RepoVersionStatus(
                repo_name, package, VersionStatus.NOT_FOUND, message="Package not found"
            )
        if not found:
            return RepoVersionStatus(
                repo_name, package, VersionStatus.UNKNOWN, message="Version cannot be determined"
            )
        if requested is None:
            return RepoVersionStatus(
                repo_name, package, VersionStatus.MATCHES, found, f"Found: {', '.join(found)}"
            )

        highest = select_highest(found)
        order = compare(highest, requested)
        if order == 0:
            return RepoVersionStatus(
                repo_name, package, VersionStatus.MATCHES, found, f"Matches {requested}"
            )
        if order < 0:
            return RepoVersionStatus(
                repo_name,
                package,
                VersionStatus.OLDER,
                found,
                f"Older: {highest} (target: {requested})",
            )
        return RepoVersionStatus(
            repo_name,
            package,
            VersionStatus.NEWER,
            found,
            f"Newer: {highest} (target: {requested})",
        )


def _plural(count: int, one: str, many: str) -> str:
    return one if count == 1 else many


def _summarize(
    statuses: list[RepoVersionStatus], package: str, requested: str | None
) -> ComparisonSummary:
    counts = {status: 0 for status in VersionStatus}
    for s in statuses:
        counts[s.status] += 1
    total = len(statuses)

    if requested is not None:
        clauses = []
        if counts[VersionStatus.MATCHES]:
            n = counts[VersionStatus.MATCHES]
            clauses.append(f"{n} {_plural(n, 'is', 'are')} on version {requested}")
        if counts[VersionStatus.OLDER]:
            n = counts[VersionStatus.OLDER]
            clauses.append(f"{n} {_plural(n, 'is', 'are')} older")
        if counts[VersionStatus.NEWER]:
            n = counts[VersionStatus.NEWER]
            clauses.append(f"{n} {_plural(n, 'is', 'are')} newer")
        if counts[VersionStatus.NOT_FOUND]:
            n = counts[VersionStatus.NOT_FOUND]
            clauses.append(f"{n} {_plural(n, 'does', 'do')} not have it")
        if counts[VersionStatus.UNKNOWN]:
            n = counts[VersionStatus.UNKNOWN]
            clauses.append(f"{n} {_plural(n, 'has', 'have')} unknown versions")
        text = f"Checked {total} {_plural(total, 'repository', 'repositories')} for {package}."
        if clauses:
            text = text[:-1] + ": " + ", ".join(clauses) + "."
    else:
        found = total - counts[VersionStatus.NOT_FOUND]
        if found == 0:
            text = f"No repositories are using {package} in the currently scanned set."
        else:
            text = (
                f"Found {found} {_plural(found, 'repository', 'repositories')} using {package} "
                f"across {total} {_plural(total, 'repository', 'repositories')}."
            )

    return ComparisonSummary(
        total_repos=total,
        matching_repos=counts[VersionStatus.MATCHES],
        older_repos=counts[VersionStatus.OLDER],
        newer_repos=counts[VersionStatus.NEWER],
        not_found_repos=counts[VersionStatus.NOT_FOUND],
        unknown_repos=counts[VersionStatus.UNKNOWN],
        text=text,
    )
