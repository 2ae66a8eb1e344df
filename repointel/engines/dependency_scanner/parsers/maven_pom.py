"""Parser for Maven pom.xml files."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from repointel.core.errors import DescriptorParseError
from repointel.engines.dependency_scanner.models import (
    DependencyDeclaration,
    DescriptorDocument,
    ParentRef,
)


def _local(tag: object) -> str:
    """Tag name without its ``{namespace}`` prefix."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element | None, name: str) -> ET.Element | None:
    if element is None:
        return None
    for child in element:
        if _local(child.tag) == name:
            return child
    return None


def _children(element: ET.Element | None, name: str) -> list[ET.Element]:
    if element is None:
        return []
    return [child for child in element if _local(child.tag) == name]


def _text(element: ET.Element | None) -> str | None:
    if element is None:
        return None
    return element.text.strip() if element.text else None


class MavenPomParser:
    detection_method = "maven-pom"
    file_name = "pom.xml"

    def parse(self, path: str, content: bytes) -> DescriptorDocument:
        """Build a :class:`DescriptorDocument` from raw POM bytes.

        Raises :class:`DescriptorParseError` for malformed XML or a root
        element other than ``<project>``.
        """
        try:
            root = ET.fromstring(content)
        except ET.ParseError as exc:
            raise DescriptorParseError(path, f"malformed XML: {exc}") from exc
        except ValueError as exc:
            raise DescriptorParseError(path, f"unreadable content: {exc}") from exc

        if _local(root.tag) != "project":
            raise DescriptorParseError(path, f"unexpected root element <{_local(root.tag)}>")

        parent = self._extract_parent(root)
        group_id = _text(_child(root, "groupId"))
        version = _text(_child(root, "version"))
        if parent is not None:
            group_id = group_id or parent.group_id
            version = version or parent.version

        return DescriptorDocument(
            path=path,
            group_id=group_id,
            artifact_id=_text(_child(root, "artifactId")),
            version=version,
            parent=parent,
            properties=self._extract_properties(root),
            dependencies=[
                self._declaration(dep_el)
                for dep_el in _children(_child(root, "dependencies"), "dependency")
            ],
            managed_versions=self._extract_managed_versions(root),
        )

    @staticmethod
    def _declaration(dep_el: ET.Element) -> DependencyDeclaration:
        return DependencyDeclaration(
            group_id=_text(_child(dep_el, "groupId")),
            artifact_id=_text(_child(dep_el, "artifactId")),
            version=_text(_child(dep_el, "version")),
            scope=_text(_child(dep_el, "scope")),
        )

    @staticmethod
    def _extract_parent(root: ET.Element) -> ParentRef | None:
        parent_el = _child(root, "parent")
        if parent_el is None:
            return None
        # An empty <relativePath/> disables the filesystem lookup in Maven.
        rel_el = _child(parent_el, "relativePath")
        relative_path = None if rel_el is None else (_text(rel_el) or "")
        return ParentRef(
            group_id=_text(_child(parent_el, "groupId")),
            artifact_id=_text(_child(parent_el, "artifactId")),
            version=_text(_child(parent_el, "version")),
            relative_path=relative_path,
        )

    @staticmethod
    def _extract_properties(root: ET.Element) -> dict[str, str]:
        """Extract <properties> key-value pairs; the first definition wins."""
        props: dict[str, str] = {}
        for props_el in _children(root, "properties"):
            for child in props_el:
                name = _local(child.tag)
                if name and name not in props:
                    props[name] = child.text.strip() if child.text else ""
        return props

    @staticmethod
    def _extract_managed_versions(
        root: ET.Element,
    ) -> dict[tuple[str | None, str | None], str | None]:
        managed: dict[tuple[str | None, str | None], str | None] = {}
        dm_deps = _child(_child(root, "dependencyManagement"), "dependencies")
        for dep_el in _children(dm_deps, "dependency"):
            key = (_text(_child(dep_el, "groupId")), _text(_child(dep_el, "artifactId")))
            managed.setdefault(key, _text(_child(dep_el, "version")))
        return managed
