"""
version.py

Responsibility: Parse Spring Boot style versions and match them against version ranges.

Versions look like `MAJOR.MINOR.PATCH[.QUALIFIER[N]]`, e.g. `1.5.3.RELEASE`,
`2.0.0.M1` or `2.1.0.BUILD-SNAPSHOT`. Qualifiers order as
`M < RC < BUILD-SNAPSHOT < RELEASE`; a version without a qualifier is a release.

Ranges use the Maven notation:
- `[a,b]`  a <= v <= b
- `[a,b)`  a <= v <  b
- `(a,b]`  a <  v <= b
- `(a,b)`  a <  v <  b
- `a`      a <= v (no upper bound)

This module is pure: no I/O, no logging. Everything that decides whether a
dependency is compatible with a Boot version goes through `match_range`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Callable, Sequence

RELEASE = "RELEASE"
SNAPSHOT = "BUILD-SNAPSHOT"
MILESTONE = "M"
RC = "RC"

KNOWN_QUALIFIERS: tuple[str, ...] = (MILESTONE, RC, SNAPSHOT, RELEASE)

_VERSION_REGEX = re.compile(r"^(\d+)\.(\d+|x)\.(\d+|x)(?:\.([^0-9]+)(\d+)?)?$")
_RANGE_REGEX = re.compile(r"^([(\[])(.*),(.*)([)\]])$")

# Placeholder used for an `x` segment that cannot be resolved from known versions.
_UNRESOLVED_SEGMENT = 999


class InvalidVersionError(ValueError):
    pass


@dataclass(frozen=True)
class Qualifier:
    """Version qualifier such as `M2` (name `M`, number 2) or `RELEASE`."""

    name: str
    number: int | None = None

    @property
    def rank(self) -> int:
        # Unknown qualifiers are handled like releases.
        if self.name in KNOWN_QUALIFIERS:
            return KNOWN_QUALIFIERS.index(self.name)
        return KNOWN_QUALIFIERS.index(RELEASE)

    def __str__(self) -> str:
        return self.name if self.number is None else f"{self.name}{self.number}"


_DEFAULT_QUALIFIER = Qualifier(RELEASE)


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    major: int
    minor: int | None = None
    patch: int | None = None
    qualifier: Qualifier | None = None

    @classmethod
    def parse(cls, text: str) -> "Version":
        return DEFAULT_PARSER.parse(text)

    @classmethod
    def safe_parse(cls, text: str | None) -> "Version | None":
        return DEFAULT_PARSER.safe_parse(text)

    @property
    def is_release(self) -> bool:
        return (self.qualifier or _DEFAULT_QUALIFIER).rank == KNOWN_QUALIFIERS.index(RELEASE)

    def _sort_key(self) -> tuple[int, int, int, int, int, str]:
        q = self.qualifier or _DEFAULT_QUALIFIER
        return (self.major or 0, self.minor or 0, self.patch or 0, q.rank, q.number or 0, q.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key() == other._sort_key()

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __hash__(self) -> int:
        return hash(self._sort_key())

    def __str__(self) -> str:
        parts = [str(self.major)]
        if self.minor is not None:
            parts.append(str(self.minor))
        if self.patch is not None:
            parts.append(str(self.patch))
        text = ".".join(parts)
        if self.qualifier is not None:
            text += f".{self.qualifier}"
        return text


@dataclass(frozen=True)
class VersionRange:
    lower: Version
    lower_inclusive: bool = True
    higher: Version | None = None
    higher_inclusive: bool = False

    def match(self, version: Version) -> bool:
        if self.lower > version:
            return False
        if not self.lower_inclusive and self.lower == version:
            return False
        if self.higher is not None:
            if self.higher < version:
                return False
            if not self.higher_inclusive and self.higher == version:
                return False
        return True

    def to_range_string(self) -> str:
        """Render the range back to its Maven notation."""
        if self.higher is None:
            return str(self.lower)
        start = "[" if self.lower_inclusive else "("
        end = "]" if self.higher_inclusive else ")"
        return f"{start}{self.lower},{self.higher}{end}"

    def __str__(self) -> str:
        text = f"{'>=' if self.lower_inclusive else '>'}{self.lower}"
        if self.higher is not None:
            text += f" and {'<=' if self.higher_inclusive else '<'}{self.higher}"
        return text


class VersionParser:
    """
    Parse versions and ranges.

    `latest_versions` lets `x` placeholders resolve to a concrete version: `1.5.x.RELEASE`
    becomes the single known version with major 1, minor 5 and the `RELEASE` qualifier.
    When zero or several known versions match, the placeholder becomes 999.
    """

    def __init__(self, latest_versions: Sequence[Version] = ()) -> None:
        self._latest_versions = list(latest_versions)

    def parse(self, text: str) -> Version:
        if text is None:
            raise InvalidVersionError("Version text must not be None")
        m = _VERSION_REGEX.match(text.strip())
        if not m:
            raise InvalidVersionError(
                f"Could not determine version based on '{text}': version format is "
                "Major.Minor.Patch.Qualifier (e.g. 1.0.5.RELEASE)"
            )
        major = int(m.group(1))
        minor, patch = m.group(2), m.group(3)
        qualifier = None
        if m.group(4):
            number = m.group(5)
            qualifier = Qualifier(m.group(4), int(number) if number is not None else None)

        if minor != "x" and patch != "x":
            return Version(major, int(minor), int(patch), qualifier)

        minor_int = None if minor == "x" else int(minor)
        latest = self._find_latest(major, minor_int, qualifier)
        if latest is None:
            return Version(
                major,
                _UNRESOLVED_SEGMENT if minor == "x" else int(minor),
                _UNRESOLVED_SEGMENT if patch == "x" else int(patch),
                qualifier,
            )
        return Version(major, latest.minor, latest.patch, latest.qualifier)

    def safe_parse(self, text: str | None) -> Version | None:
        if text is None:
            return None
        try:
            return self.parse(text)
        except InvalidVersionError:
            return None

    def parse_range(self, text: str) -> VersionRange:
        if text is None:
            raise InvalidVersionError("Range text must not be None")
        m = _RANGE_REGEX.match(text.strip())
        if not m:
            return VersionRange(self.parse(text), True, None, False)
        return VersionRange(
            lower=self.parse(m.group(2)),
            lower_inclusive=m.group(1) == "[",
            higher=self.parse(m.group(3)),
            higher_inclusive=m.group(4) == "]",
        )

    def _find_latest(self, major: int, minor: int | None, qualifier: Qualifier | None) -> Version | None:
        matches = [
            v
            for v in self._latest_versions
            if v.major == major
            and (minor is None or v.minor == minor)
            and (qualifier is None or v.qualifier == qualifier)
        ]
        return matches[0] if len(matches) == 1 else None


DEFAULT_PARSER = VersionParser()


def match_range(range_text: str, parser: VersionParser | None = None) -> Callable[[str], bool]:
    """
    Return a predicate telling whether a version string falls inside `range_text`.

    The range is parsed once; an invalid range raises `InvalidVersionError`.
    A candidate version that cannot be parsed never matches.
    """
    p = parser or DEFAULT_PARSER
    version_range = p.parse_range(range_text)

    def matcher(version: str) -> bool:
        candidate = p.safe_parse(version)
        return candidate is not None and version_range.match(candidate)

    return matcher


def is_compatible(range_text: str | None, version: str, parser: VersionParser | None = None) -> bool:
    """A missing range means the dependency works with every version."""
    if not range_text or range_text == "null":
        return True
    return match_range(range_text, parser)(version)
