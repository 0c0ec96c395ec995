"""
Semantic Versioning.

This module provides SemVer 2.0.0 parsing, precedence and npm-style range
matching.

Key features:
- Versions may carry a leading ``v``
- Full precedence rules, including prerelease identifiers
- Ranges: comparators, ``^``, ``~``, x-ranges, hyphen ranges, ``||``
"""

import re
from dataclasses import dataclass

from atutils.errors import AtUtilsError

_SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

# Partial version used inside ranges: "1", "1.2", "1.x", "*"
_PARTIAL_RE = re.compile(
    r"^[v=]?\s*(\d+|[xX*])(?:\.(\d+|[xX*]))?(?:\.(\d+|[xX*]))?"
    r"(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)

_COMPARATOR_RE = re.compile(r"^(<=|>=|<|>|=|\^|~)?\s*(.*)$")


class VersionError(AtUtilsError, ValueError):
    """Raised when a version range cannot be parsed."""

    pass


@dataclass(frozen=True)
class Version:
    """
    A parsed semantic version.

    Attributes:
        major: Major version
        minor: Minor version
        patch: Patch version
        prerelease: Dot-separated prerelease identifiers
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        return f"{core}-{'.'.join(self.prerelease)}" if self.prerelease else core

    def _key(self) -> tuple:
        # A release sorts above any of its prereleases
        if not self.prerelease:
            return (self.major, self.minor, self.patch, 1, ())
        ids = tuple(
            (0, int(p), "") if p.isdigit() else (1, 0, p) for p in self.prerelease
        )
        return (self.major, self.minor, self.patch, 0, ids)

    def __lt__(self, other: "Version") -> bool:
        return self._key() < other._key()

    def __le__(self, other: "Version") -> bool:
        return self._key() <= other._key()

    def __gt__(self, other: "Version") -> bool:
        return self._key() > other._key()

    def __ge__(self, other: "Version") -> bool:
        return self._key() >= other._key()


def parse_version(text: str | None) -> Version | None:
    """
    Parse a semantic version string.

    Args:
        text: Version string (e.g. "1.2.3", "v2.0.0-rc.1")

    Returns:
        Version, or None if text is not a valid semantic version
    """
    if not isinstance(text, str):
        return None
    match = _SEMVER_RE.match(text.strip())
    if not match:
        return None
    major, minor, patch, pre, _ = match.groups()
    return Version(int(major), int(minor), int(patch), tuple(pre.split(".")) if pre else ())


def is_valid(text: str | None) -> bool:
    """Check if text is a valid semantic version."""
    return parse_version(text) is not None


def compare(a: str, b: str) -> int:
    """
    Compare two semantic versions.

    Returns:
        -1 if a < b, 0 if equal, 1 if a > b

    Raises:
        VersionError: If either version is invalid
    """
    va, vb = parse_version(a), parse_version(b)
    if va is None or vb is None:
        raise VersionError(f"Invalid version: {a if va is None else b}")
    if va < vb:
        return -1
    if va > vb:
        return 1
    return 0


def gt(a: str, b: str) -> bool:
    """Check if a is strictly greater than b."""
    return compare(a, b) > 0


# Ranges

_Comparator = tuple[str, Version]


def _is_wild(part: str | None) -> bool:
    return part is None or part in ("x", "X", "*")


def _expand(op: str, text: str) -> list[_Comparator]:
    """Expand one range token into primitive comparators."""
    match = _PARTIAL_RE.match(text)
    if not match:
        raise VersionError(f"Invalid version range component: {op}{text}")
    raw_major, raw_minor, raw_patch, pre = match.groups()
    prerelease = tuple(pre.split(".")) if pre else ()

    if _is_wild(raw_major):
        return [] if op in ("", "=", ">=", "<=", "^", "~") else [("<", Version(0, 0, 0))]

    major = int(raw_major)
    minor = 0 if _is_wild(raw_minor) else int(raw_minor)
    patch = 0 if _is_wild(raw_patch) else int(raw_patch)
    low = Version(major, minor, patch, prerelease)

    if _is_wild(raw_minor):
        upper = Version(major + 1, 0, 0, ("0",))
    elif _is_wild(raw_patch):
        upper = Version(major, minor + 1, 0, ("0",))
    else:
        upper = None

    if op == "^":
        if major > 0 or _is_wild(raw_minor):
            high = Version(major + 1, 0, 0, ("0",))
        elif minor > 0 or _is_wild(raw_patch):
            high = Version(0, minor + 1, 0, ("0",))
        else:
            high = Version(0, 0, patch + 1, ("0",))
        return [(">=", low), ("<", high)]
    if op == "~":
        if _is_wild(raw_minor):
            high = Version(major + 1, 0, 0, ("0",))
        else:
            high = Version(major, minor + 1, 0, ("0",))
        return [(">=", low), ("<", high)]
    if upper is not None:
        if op in ("", "="):
            return [(">=", low), ("<", upper)]
        if op == ">":
            return [(">=", upper)]
        if op == "<=":
            return [("<", upper)]
        return [(op, low)]
    return [(op or "=", low)]


def _parse_set(text: str) -> list[_Comparator]:
    text = text.strip()
    hyphen = re.match(r"^(\S+)\s+-\s+(\S+)$", text)
    if hyphen:
        return _expand(">=", hyphen.group(1)) + _expand("<=", hyphen.group(2))

    # Join operators to their versions, e.g. ">= 1.2.3" -> ">=1.2.3"
    text = re.sub(r"(<=|>=|<|>|=|\^|~)\s+", r"\1", text)
    comparators: list[_Comparator] = []
    for token in text.split():
        op, version = _COMPARATOR_RE.match(token).groups()
        comparators.extend(_expand(op or "", version))
    return comparators


def _test(op: str, version: Version, target: Version) -> bool:
    if op == ">=":
        return version >= target
    if op == "<=":
        return version <= target
    if op == ">":
        return version > target
    if op == "<":
        return version < target
    return version._key() == target._key()


def satisfies(version: str | None, range_text: str) -> bool:
    """
    Check if version satisfies an npm-style range.

    A prerelease version only satisfies a comparator set that names a
    prerelease on the same major.minor.patch.

    Args:
        version: Installed version
        range_text: Range such as ">=18", "^2.1.0 || 3.x", "1.2 - 1.4"

    Returns:
        True if version is valid and inside the range

    Raises:
        VersionError: If range_text cannot be parsed
    """
    parsed = parse_version(version)
    if parsed is None:
        return False

    for alternative in range_text.split("||"):
        comparators = _parse_set(alternative)
        if not all(_test(op, parsed, target) for op, target in comparators):
            continue
        if parsed.prerelease and not any(
            target.prerelease
            and (target.major, target.minor, target.patch)
            == (parsed.major, parsed.minor, parsed.patch)
            for _, target in comparators
        ):
            continue
        return True
    return False
