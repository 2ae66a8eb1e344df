"""Dependency extraction: descriptor files of one repository -> ExtractedSet."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from repointel.engines.comparison.versioning import compare, select_highest
from repointel.engines.dependency_scanner.documents import DocumentSet
from repointel.engines.dependency_scanner.models import (
    TOOLCHAIN_NOT_SPECIFIED,
    AcquiredRepository,
    DependencyDeclaration,
    DependencyRecord,
    DescriptorDocument,
    ExtractedSet,
)
from repointel.engines.dependency_scanner.placeholders import PropertyResolver, has_placeholder

log = structlog.get_logger("repointel.engine")

TOOLCHAIN_PROPERTIES = ("maven.compiler.release", "maven.compiler.source", "java.version")


def collect_properties(documents: Iterable[DescriptorDocument]) -> dict[str, str]:
    """Union of every document's properties; the first definition wins."""
    merged: dict[str, str] = {}
    for doc in documents:
        for name, value in doc.properties.items():
            merged.setdefault(name, value)
    return merged


class DependencyExtractor:
    """Resolve and deduplicate the declared dependencies of one repository.

    The property table of every document is collected before any
    declaration is resolved, so a module can use a property that only a
    sibling module defines.
    """

    def extract(self, repo: AcquiredRepository) -> ExtractedSet:
        documents = DocumentSet(repo.files)
        parsed = list(documents.documents())
        resolver = PropertyResolver(documents, collect_properties(parsed))

        records: list[DependencyRecord] = []
        seen: set[tuple[str, str, str, str]] = set()
        for doc in parsed:
            added = 0
            for decl in doc.dependencies:
                record = self._resolve_declaration(decl, doc, documents, resolver)
                if record.key in seen:
                    continue
                seen.add(record.key)
                records.append(record)
                added += 1
                if record.is_unresolved:
                    log.warning(
                        "extractor.unresolved_version",
                        repo=repo.name,
                        path=doc.path,
                        dependency=record.coordinate,
                        version=record.version,
                    )
            log.debug("extractor.document_done", repo=repo.name, path=doc.path, added=added)

        assert len(seen) == len(records), "dedup key computed inconsistently"

        toolchain = self._detect_toolchain(parsed, resolver)
        log.info(
            "extractor.done",
            repo=repo.name,
            descriptors=len(documents),
            parsed=len(parsed),
            dependencies=len(records),
            toolchain=toolchain,
        )
        return ExtractedSet(
            repo_name=repo.name,
            reference=repo.reference,
            records=tuple(records),
            toolchain_version=toolchain,
            descriptor_count=len(documents),
        )

    @staticmethod
    def _resolve_declaration(
        decl: DependencyDeclaration,
        doc: DescriptorDocument,
        documents: DocumentSet,
        resolver: PropertyResolver,
    ) -> DependencyRecord:
        group_id = resolver.resolve(doc, decl.group_id) or ""
        artifact_id = resolver.resolve(doc, decl.artifact_id) or ""
        version = resolver.resolve(doc, decl.version)

        if version is None or not version.strip():
            managed = _managed_version(decl, doc, documents)
            if managed is not None:
                version = resolver.resolve(doc, managed)

        return DependencyRecord(
            group_id=group_id,
            artifact_id=artifact_id,
            version=version or "",
            scope=decl.scope,
        )

    @staticmethod
    def _detect_toolchain(
        documents: list[DescriptorDocument], resolver: PropertyResolver
    ) -> str:
        candidates: list[str] = []
        for doc in documents:
            for name in TOOLCHAIN_PROPERTIES:
                raw = doc.properties.get(name)
                value = resolver.resolve(doc, raw)
                if value and value.strip() and not has_placeholder(value):
                    candidates.append(value.strip())
        best = select_highest(candidates)
        if best is None:
            return TOOLCHAIN_NOT_SPECIFIED
        return best


def _managed_version(
    decl: DependencyDeclaration,
    doc: DescriptorDocument,
    documents: DocumentSet,
) -> str | None:
    """dependencyManagement version for *decl*, searched up the parent chain."""
    key = (decl.group_id, decl.artifact_id)
    visited: set[str] = set()
    current: DescriptorDocument | None = doc
    while current is not None and current.path not in visited:
        if key in current.managed_versions:
            return current.managed_versions[key]
        visited.add(current.path)
        current = documents.parent_of(current)
    return None


def merge_by_coordinate(records: Iterable[DependencyRecord]) -> list[DependencyRecord]:
    """Collapse records to one per (group, artifact).

    A concrete version beats a blank or unresolved one, and the highest
    concrete version wins among several. Not applied by the extractor.
    """
    merged: dict[tuple[str, str], DependencyRecord] = {}
    for record in records:
        key = (record.group_id, record.artifact_id)
        current = merged.get(key)
        if current is None:
            merged[key] = record
        elif record.has_version and (
            not current.has_version or compare(record.version, current.version) > 0
        ):
            merged[key] = record
    return list(merged.values())
