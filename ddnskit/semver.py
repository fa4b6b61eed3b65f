"""Minimal semantic version parsing and comparison on major.minor.patch."""

import re
from dataclasses import dataclass

_SEMVER = re.compile(
    r"v?([0-9]+)(\.[0-9]+)?(\.[0-9]+)?"
    r"(-([0-9A-Za-z\-]+(\.[0-9A-Za-z\-]+)*))?"
    r"(\+([0-9A-Za-z\-]+(\.[0-9A-Za-z\-]+)*))?"
)

_UINT64_MAX = 2**64 - 1


class VersionError(ValueError):
    """Raised when a string is not a usable semantic version."""


@dataclass(frozen=True, order=True)
class Version:
    """A version reduced to its major, minor and patch numbers."""

    major: int
    minor: int = 0
    patch: int = 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def compare(self, other: "Version") -> int:
        """Return -1, 0 or 1 as this version is below, equal to or above ``other``."""
        mine = (self.major, self.minor, self.patch)
        theirs = (other.major, other.minor, other.patch)
        return (mine > theirs) - (mine < theirs)

    def greater_than(self, other: "Version") -> bool:
        return self.compare(other) > 0

    def greater_than_or_equal(self, other: "Version") -> bool:
        return self.compare(other) >= 0


def _segment(text: str, original: str) -> int:
    value = int(text.removeprefix("."))
    if value > _UINT64_MAX:
        raise VersionError(f"error parsing version {original}: {text} is out of range")
    return value


def new_version(v: str) -> Version:
    """Parse ``v``; pre-release and build metadata are accepted and ignored."""
    match = _SEMVER.fullmatch(v)
    if match is None:
        raise VersionError(f"the {v}, it's not a semantic version")
    major, minor, patch = match.group(1, 2, 3)
    return Version(
        major=_segment(major, v),
        minor=_segment(minor, v) if minor else 0,
        patch=_segment(patch, v) if patch else 0,
    )