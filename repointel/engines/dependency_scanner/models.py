"""Data models for the dependency scanner engine."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

UNRESOLVED_RE = re.compile(r"^\$\{.+\}$")

TOOLCHAIN_NOT_SPECIFIED = "Not specified"


@dataclass(frozen=True)
class DescriptorFile:
    """Raw bytes of one build descriptor, keyed by repo-relative POSIX path."""

    path: str
    content: bytes


@dataclass(frozen=True)
class AcquiredRepository:
    """Everything the acquirer fetched for one repository reference."""

    name: str
    reference: str
    files: tuple[DescriptorFile, ...] = ()


@dataclass(frozen=True)
class ParentRef:
    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    relative_path: str | None = None


@dataclass(frozen=True)
class DependencyDeclaration:
    """A ``<dependency>`` entry exactly as written in the descriptor."""

    group_id: str | None
    artifact_id: str | None
    version: str | None
    scope: str | None = None


@dataclass
class DescriptorDocument:
    """One parsed ``pom.xml``.

    ``managed_versions`` is the dependencyManagement table, keyed by the raw
    (groupId, artifactId) pair. ``properties`` keeps the first definition of
    every key.
    """

    path: str
    group_id: str | None = None
    artifact_id: str | None = None
    version: str | None = None
    parent: ParentRef | None = None
    properties: dict[str, str] = field(default_factory=dict)
    dependencies: list[DependencyDeclaration] = field(default_factory=list)
    managed_versions: dict[tuple[str | None, str | None], str | None] = field(
        default_factory=dict
    )

    @property
    def implicit_properties(self) -> dict[str, str]:
        """``project.*`` / ``pom.*`` values derived from the coordinate."""
        implicit: dict[str, str] = {}
        for prefix in ("project", "pom"):
            if self.group_id:
                implicit[f"{prefix}.groupId"] = self.group_id
            if self.artifact_id:
                implicit[f"{prefix}.artifactId"] = self.artifact_id
            if self.version:
                implicit[f"{prefix}.version"] = self.version
        if self.parent is not None:
            if self.parent.group_id:
                implicit["project.parent.groupId"] = self.parent.group_id
            if self.parent.artifact_id:
                implicit["project.parent.artifactId"] = self.parent.artifact_id
            if self.parent.version:
                implicit["project.parent.version"] = self.parent.version
        return implicit

    def lookup(self, name: str) -> str | None:
        """Own property value for *name*: explicit properties first."""
        value = self.properties.get(name)
        if value is None:
            value = self.implicit_properties.get(name)
        return value


@dataclass(frozen=True)
class DependencyRecord:
    """A resolved dependency.

    ``version`` is never ``None``: it is a concrete version, ``""`` when the
    version is absent, or the literal placeholder (``${x}``) when a property
    could not be resolved.
    """

    group_id: str
    artifact_id: str
    version: str = ""
    scope: str | None = None

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.group_id, self.artifact_id, self.version, self.scope or "")

    @property
    def coordinate(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    @property
    def is_unresolved(self) -> bool:
        return bool(UNRESOLVED_RE.match(self.version))

    @property
    def has_version(self) -> bool:
        return bool(self.version.strip()) and not self.is_unresolved


@dataclass(frozen=True)
class ExtractedSet:
    """The resolved dependency inventory of one repository for one scan."""

    repo_name: str
    reference: str
    records: tuple[DependencyRecord, ...] = ()
    success: bool = True
    error: str | None = None
    toolchain_version: str = TOOLCHAIN_NOT_SPECIFIED
    descriptor_count: int = 0

    @classmethod
    def failure(cls, repo_name: str, reference: str, error: str) -> ExtractedSet:
        return cls(repo_name=repo_name, reference=reference, success=False, error=error)

    @property
    def unresolved(self) -> list[DependencyRecord]:
        return [r for r in self.records if r.is_unresolved]
