"""Shared pytest fixtures for repointel tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import structlog

_NS = "http://maven.apache.org/POM/4.0.0"


@pytest.fixture(autouse=True)
def _structlog_for_tests():
    """Route structlog through stdlib logging, uncached, so capture_logs works
    and nothing is printed onto CliRunner's stdout."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


def build_pom(
    *,
    group: str | None = "com.example",
    artifact: str | None = "app",
    version: str | None = "1.0.0",
    parent: dict[str, str | None] | None = None,
    properties: list[tuple[str, str]] | dict[str, str] | None = None,
    dependencies: list[tuple] | None = None,
    managed: list[tuple] | None = None,
    namespace: bool = True,
) -> bytes:
    """Render a minimal pom.xml.

    ``dependencies`` / ``managed`` entries are ``(group, artifact, version[, scope])``
    tuples; ``None`` members are omitted from the XML.
    """

    def _tag(name: str, value: str | None) -> str:
        return "" if value is None else f"<{name}>{value}</{name}>"

    def _deps(entries: list[tuple]) -> str:
        out = []
        for entry in entries:
            g, a, v, *rest = entry
            scope = rest[0] if rest else None
            out.append(
                "<dependency>"
                + _tag("groupId", g)
                + _tag("artifactId", a)
                + _tag("version", v)
                + _tag("scope", scope)
                + "</dependency>"
            )
        return "<dependencies>" + "".join(out) + "</dependencies>"

    xmlns = f' xmlns="{_NS}"' if namespace else ""
    parts = [f"<project{xmlns}>", "<modelVersion>4.0.0</modelVersion>"]
    if parent is not None:
        parts.append("<parent>")
        for key in ("groupId", "artifactId", "version"):
            parts.append(_tag(key, parent.get(key)))
        if "relativePath" in parent:
            rel = parent["relativePath"]
            parts.append("<relativePath/>" if not rel else f"<relativePath>{rel}</relativePath>")
        parts.append("</parent>")
    parts.append(_tag("groupId", group))
    parts.append(_tag("artifactId", artifact))
    parts.append(_tag("version", version))
    if properties:
        items = properties.items() if isinstance(properties, dict) else properties
        parts.append(
            "<properties>" + "".join(f"<{k}>{v}</{k}>" for k, v in items) + "</properties>"
        )
    if managed:
        parts.append("<dependencyManagement>" + _deps(managed) + "</dependencyManagement>")
    if dependencies:
        parts.append(_deps(dependencies))
    parts.append("</project>")
    return "\n".join(parts).encode("utf-8")


@pytest.fixture
def make_pom():
    return build_pom


@pytest.fixture
def write_pom(tmp_path):
    """Write a pom.xml at ``tmp_path / rel_dir`` and return its path."""

    def _write(rel_dir: str = "", **kwargs) -> Path:
        target = tmp_path / rel_dir if rel_dir else tmp_path
        target.mkdir(parents=True, exist_ok=True)
        pom = target / "pom.xml"
        pom.write_bytes(build_pom(**kwargs))
        return pom

    return _write
