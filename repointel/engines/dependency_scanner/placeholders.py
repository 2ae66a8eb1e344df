"""``${name}`` placeholder tokenizing and property resolution.

Resolution never raises and never loops: a missing property, a cyclic
reference, or more than :data:`MAX_SUBSTITUTIONS` substitutions all leave the
caller's input untouched (never partially substituted) and log a warning.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import structlog

from repointel.engines.dependency_scanner.documents import DocumentSet
from repointel.engines.dependency_scanner.models import DescriptorDocument

log = structlog.get_logger("repointel.engine")

MAX_SUBSTITUTIONS = 10

_OPEN = "${"
_CLOSE = "}"


@dataclass(frozen=True)
class Span:
    """A literal run of text, or a placeholder whose ``text`` is the name."""

    text: str
    is_placeholder: bool = False


def tokenize(value: str) -> list[Span]:
    """Split *value* into literal and placeholder spans, left to right.

    An unterminated ``${`` and an empty ``${}`` are literal text.
    """
    spans: list[Span] = []
    literal_start = 0
    pos = 0
    while True:
        start = value.find(_OPEN, pos)
        if start == -1:
            break
        end = value.find(_CLOSE, start + len(_OPEN))
        if end == -1:
            break
        name = value[start + len(_OPEN) : end]
        if not name:
            pos = end + 1
            continue
        if start > literal_start:
            spans.append(Span(value[literal_start:start]))
        spans.append(Span(name, is_placeholder=True))
        literal_start = pos = end + 1
    if literal_start < len(value):
        spans.append(Span(value[literal_start:]))
    return spans


def has_placeholder(value: str | None) -> bool:
    return bool(value) and any(span.is_placeholder for span in tokenize(value))


class _Unresolvable(Exception):
    def __init__(self, reason: str, name: str) -> None:
        self.reason = reason
        self.name = name
        super().__init__(f"{reason}: {name}")


class _Budget:
    __slots__ = ("used",)

    def __init__(self) -> None:
        self.used = 0


class PropertyResolver:
    """Resolves placeholders against one repository's properties.

    Lookup order for a name: the starting document's own properties (and its
    implicit ``project.*`` values), then the ``<properties>`` of each parent
    up the chain, then the repository-wide *fallback* table.
    """

    def __init__(
        self,
        documents: DocumentSet | None = None,
        fallback: Mapping[str, str] | None = None,
        *,
        max_substitutions: int = MAX_SUBSTITUTIONS,
    ) -> None:
        self._documents = documents
        self._fallback = fallback if fallback is not None else {}
        self._max_substitutions = max_substitutions

    def resolve(self, document: DescriptorDocument, value: str | None) -> str | None:
        if not value or not has_placeholder(value):
            return value
        try:
            return self._substitute(document, value, frozenset(), _Budget())
        except _Unresolvable as exc:
            event = {
                "missing": "resolver.property_missing",
                "cycle": "resolver.cyclic_reference",
                "depth": "resolver.depth_exceeded",
            }[exc.reason]
            log.warning(event, property=exc.name, value=value, path=document.path)
            return value

    def lookup(self, document: DescriptorDocument, name: str) -> str | None:
        """Raw (unresolved) value of *name* as seen from *document*."""
        value = document.lookup(name)
        if value is not None:
            return value

        visited = {document.path}
        current = document
        for _ in range(self._max_substitutions):
            if self._documents is None:
                break
            parent = self._documents.parent_of(current)
            if parent is None or parent.path in visited:
                break
            value = parent.properties.get(name)
            if value is not None:
                return value
            visited.add(parent.path)
            current = parent

        return self._fallback.get(name)

    def _substitute(
        self,
        document: DescriptorDocument,
        value: str,
        active: frozenset[str],
        budget: _Budget,
    ) -> str:
        parts: list[str] = []
        for span in tokenize(value):
            if not span.is_placeholder:
                parts.append(span.text)
                continue
            name = span.text
            if name in active:
                raise _Unresolvable("cycle", name)
            found = self.lookup(document, name)
            if found is None:
                raise _Unresolvable("missing", name)
            budget.used += 1
            if budget.used > self._max_substitutions:
                raise _Unresolvable("depth", name)
            parts.append(self._substitute(document, found, active | {name}, budget))
        return "".join(parts)
