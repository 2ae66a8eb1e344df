"""Per-repository document set with lazy parsing and parent lookup."""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Iterator

import structlog

from repointel.core.errors import DescriptorParseError
from repointel.engines.dependency_scanner.models import DescriptorDocument, DescriptorFile
from repointel.engines.dependency_scanner.parsers.maven_pom import MavenPomParser

log = structlog.get_logger("repointel.engine")

_DEFAULT_PARENT_PATH = "../pom.xml"


class DocumentSet:
    """All descriptor files of one repository, parsed on first access.

    Parse failures are logged once and remembered, so a broken file is
    neither retried nor allowed to stop the remaining files.
    """

    def __init__(
        self,
        files: Iterable[DescriptorFile],
        parser: MavenPomParser | None = None,
    ) -> None:
        self._files: dict[str, bytes] = {}
        for f in files:
            self._files.setdefault(f.path, f.content)
        self._parser = parser or MavenPomParser()
        self._cache: dict[str, DescriptorDocument | None] = {}

    @property
    def paths(self) -> list[str]:
        return list(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def load(self, path: str) -> DescriptorDocument | None:
        """Parsed document at *path*, or ``None`` if absent or unparseable."""
        if path in self._cache:
            return self._cache[path]
        content = self._files.get(path)
        if content is None:
            return None
        try:
            doc: DescriptorDocument | None = self._parser.parse(path, content)
        except DescriptorParseError as exc:
            log.warning("descriptor.parse_failed", path=path, reason=exc.reason)
            doc = None
        self._cache[path] = doc
        return doc

    def documents(self) -> Iterator[DescriptorDocument]:
        """Every parseable document, in acquisition order."""
        for path in self._files:
            doc = self.load(path)
            if doc is not None:
                yield doc

    def parent_of(self, doc: DescriptorDocument) -> DescriptorDocument | None:
        """The parent document of *doc* within this repository.

        Looks at the declared relative path first (``../pom.xml`` when none is
        given, ``<dir>/pom.xml`` when it names a directory), then falls back
        to any document whose own group/artifact matches the parent reference.
        """
        ref = doc.parent
        if ref is None:
            return None

        path = self._parent_path(doc.path, ref.relative_path)
        if path is not None and path != doc.path:
            parent = self.load(path)
            if parent is not None:
                return parent

        if ref.artifact_id:
            for candidate in self.documents():
                if (
                    candidate.path != doc.path
                    and candidate.artifact_id == ref.artifact_id
                    and candidate.group_id == ref.group_id
                ):
                    return candidate
        return None

    @staticmethod
    def _parent_path(child_path: str, relative_path: str | None) -> str | None:
        if relative_path == "":
            return None
        rel = (relative_path or _DEFAULT_PARENT_PATH).replace("\\", "/")
        joined = posixpath.normpath(posixpath.join(posixpath.dirname(child_path), rel))
        if not joined.endswith(".xml"):
            joined = posixpath.normpath(posixpath.join(joined, "pom.xml"))
        if joined == ".." or joined.startswith("../") or joined.startswith("/"):
            return None
        return joined
