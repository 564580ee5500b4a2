"""
Semantic version value type

Parsing is lenient on purpose: anything packaging understands (PEP 440, a
leading "v", most semver pre-release spellings) is used as-is. Strings it
rejects, like "1.0.0-SNAPSHOT", are reduced to their leading dotted digits
plus a qualifier that sorts below the plain release. Only strings without
any numeric part are rejected.
"""

import re
from functools import total_ordering

from packaging.version import InvalidVersion, Version

from handoff_updater.core.exceptions import InvalidVersionFormat

_LENIENT_RE = re.compile(r"^\D*?(?P<release>\d+(?:\.\d+)*)(?P<qualifier>.*)$", re.DOTALL)
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def _parse(text: str) -> Version:
    try:
        return Version(text)
    except InvalidVersion:
        pass

    match = _LENIENT_RE.match(text)
    if match is None:
        raise InvalidVersionFormat(text)

    release = match.group("release")
    qualifier = _NON_ALNUM_RE.sub(".", match.group("qualifier").lower()).strip(".")
    if not qualifier:
        return Version(release)
    # dev0 puts the qualified version below the release, the local label keeps
    # different qualifiers distinct
    return Version(f"{release}.dev0+{qualifier}")


@total_ordering
class SemanticVersion:
    """
    Immutable, totally ordered version

    Example:
        >>> SemanticVersion("v2.1.0").is_update_for(SemanticVersion("2.0.3"))
        True
    """

    __slots__ = ("_original", "_version")

    def __init__(self, version: str):
        if not isinstance(version, str):
            raise InvalidVersionFormat(repr(version))
        text = version.strip()
        self._original = text
        self._version = _parse(text)

    @classmethod
    def parse(cls, version: "str | SemanticVersion") -> "SemanticVersion":
        """Return version unchanged if already parsed, otherwise parse it"""
        if isinstance(version, SemanticVersion):
            return version
        return cls(version)

    @property
    def original(self) -> str:
        return self._original

    @property
    def release(self) -> tuple[int, ...]:
        return self._version.release

    @property
    def qualifier(self) -> str | None:
        """Pre-release/build part of the original string, or None"""
        match = _LENIENT_RE.match(self._original)
        if match is None:
            return None
        qualifier = match.group("qualifier").lstrip("-+._")
        return qualifier or None

    def compare_to(self, other: "SemanticVersion") -> int:
        if self._version < other._version:
            return -1
        if self._version > other._version:
            return 1
        return 0

    def is_newer_than(self, other: "SemanticVersion") -> bool:
        return self.compare_to(other) > 0

    def is_update_for(self, current: "SemanticVersion") -> bool:
        return self.is_newer_than(current)

    def is_same_or_newer(self, other: "SemanticVersion") -> bool:
        return self.compare_to(other) >= 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._version == other._version

    def __lt__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._version < other._version

    def __hash__(self) -> int:
        return hash(self._version)

    def __str__(self) -> str:
        return self._original[1:] if self._original[:1] in ("v", "V") else self._original

    def __repr__(self) -> str:
        return f"SemanticVersion({self._original!r})"
