"""Version ordering for Maven-style version strings.

The ordering follows Maven's generic versioning rules:

* a version is split into items on ``.``, ``-`` and digit/letter transitions;
  ``-`` (and a digit/letter transition) opens a nested sub-list;
* numeric items compare numerically, and a number is always greater than a
  qualifier or a sub-list;
* qualifiers rank ``alpha < beta < milestone < rc < snapshot < release < sp``,
  with ``ga``/``final``/``release`` meaning release, ``cr`` meaning ``rc`` and
  single letters ``a``/``b``/``m`` followed by a digit meaning alpha, beta and
  milestone; unknown qualifiers sort after ``sp``, lexically among themselves;
* trailing zeros and release qualifiers are insignificant (``1.0 == 1``).

``compare`` never raises: every string parses into *some* item list.
"""

from __future__ import annotations

from collections.abc import Iterable

_QUALIFIERS = ("alpha", "beta", "milestone", "rc", "snapshot", "", "sp")
_ALIASES = {"ga": "", "final": "", "release": "", "cr": "rc"}
_RELEASE_INDEX = str(_QUALIFIERS.index(""))


def _comparable_qualifier(qualifier: str) -> str:
    try:
        return str(_QUALIFIERS.index(qualifier))
    except ValueError:
        return f"{len(_QUALIFIERS)}-{qualifier}"


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


class _IntItem:
    __slots__ = ("value",)

    def __init__(self, value: int) -> None:
        self.value = value

    def is_null(self) -> bool:
        return self.value == 0

    def compare_to(self, other) -> int:
        if other is None:
            return 0 if self.value == 0 else 1
        if isinstance(other, _IntItem):
            return _cmp(self.value, other.value)
        return 1

    def __repr__(self) -> str:
        return str(self.value)


class _StringItem:
    __slots__ = ("value",)

    def __init__(self, value: str, followed_by_digit: bool) -> None:
        if followed_by_digit and len(value) == 1:
            value = {"a": "alpha", "b": "beta", "m": "milestone"}.get(value, value)
        self.value = _ALIASES.get(value, value)

    def is_null(self) -> bool:
        return _comparable_qualifier(self.value) == _RELEASE_INDEX

    def compare_to(self, other) -> int:
        if other is None:
            return _cmp(_comparable_qualifier(self.value), _RELEASE_INDEX)
        if isinstance(other, _StringItem):
            return _cmp(_comparable_qualifier(self.value), _comparable_qualifier(other.value))
        return -1

    def __repr__(self) -> str:
        return self.value


class _ListItem(list):
    def is_null(self) -> bool:
        return len(self) == 0

    def normalize(self) -> None:
        for i in range(len(self) - 1, -1, -1):
            item = self[i]
            if item.is_null():
                del self[i]
            elif not isinstance(item, _ListItem):
                break

    def compare_to(self, other) -> int:
        if other is None:
            if not self:
                return 0
            return self[0].compare_to(None)
        if isinstance(other, _IntItem):
            return -1
        if isinstance(other, _StringItem):
            return 1
        for i in range(max(len(self), len(other))):
            left = self[i] if i < len(self) else None
            right = other[i] if i < len(other) else None
            if left is None:
                result = 0 if right is None else -right.compare_to(None)
            else:
                result = left.compare_to(right)
            if result:
                return result
        return 0


def _parse_item(is_digit: bool, text: str):
    if is_digit:
        return _IntItem(int(text))
    return _StringItem(text, False)


def parse_version(version: str) -> _ListItem:
    """Parse *version* into the nested item list used for ordering."""
    text = version.strip().lower()
    root = current = _ListItem()
    stack = [root]
    is_digit = False
    start = 0

    for i, ch in enumerate(text):
        if ch == ".":
            current.append(_IntItem(0) if i == start else _parse_item(is_digit, text[start:i]))
            start = i + 1
        elif ch == "-":
            current.append(_IntItem(0) if i == start else _parse_item(is_digit, text[start:i]))
            start = i + 1
            sub = _ListItem()
            current.append(sub)
            current = sub
            stack.append(current)
        elif ch.isdigit() and ch.isascii():
            if not is_digit and i > start:
                # 1.0.0.X1 sorts like 1.0.0-X1
                if current:
                    sub = _ListItem()
                    current.append(sub)
                    current = sub
                    stack.append(current)
                current.append(_StringItem(text[start:i], True))
                start = i
                sub = _ListItem()
                current.append(sub)
                current = sub
                stack.append(current)
            is_digit = True
        else:
            if is_digit and i > start:
                current.append(_parse_item(True, text[start:i]))
                start = i
                sub = _ListItem()
                current.append(sub)
                current = sub
                stack.append(current)
            is_digit = False

    if len(text) > start:
        if not is_digit and current:
            sub = _ListItem()
            current.append(sub)
            current = sub
            stack.append(current)
        current.append(_parse_item(is_digit, text[start:]))

    while stack:
        stack.pop().normalize()
    return root


def compare(a: str | None, b: str | None) -> int:
    """Return -1, 0 or 1. ``None`` sorts below every concrete version."""
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    return parse_version(a).compare_to(parse_version(b))


def is_below(version: str | None, min_version: str | None) -> bool:
    if version is None or min_version is None:
        return False
    return compare(version, min_version) < 0


def is_above(version: str | None, max_version: str | None) -> bool:
    if version is None or max_version is None:
        return False
    return compare(version, max_version) > 0


def select_highest(versions: Iterable[str | None]) -> str | None:
    """Highest non-blank version, or ``None`` when every entry is blank.

    Blank entries never win and never tie; the first of several equal
    versions is kept.
    """
    best: str | None = None
    for version in versions:
        if version is None or not version.strip():
            continue
        if best is None or compare(version, best) > 0:
            best = version
    return best
