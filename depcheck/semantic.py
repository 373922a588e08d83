"""Semantic version parsing and loose version comparison."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

__all__ = ["InvalidVersionError", "Version", "parse_version", "compare_versions"]

_IDENT = r"[0-9A-Za-z\-]+(?:\.[0-9A-Za-z\-]+)*"
_VERSION_RE = re.compile(
    r"v?([0-9]+)(?:\.([0-9]+))?(?:\.([0-9]+))?"
    rf"(?:-({_IDENT}))?"
    rf"(?:\+({_IDENT}))?"
)
_UINT64_LIMIT = 2**64
_INT_RE = re.compile(r"[+-]?[0-9]+")


class InvalidVersionError(ValueError):
    """Raised when a string is not a valid semantic version."""


def _is_numeric(part: str) -> bool:
    return part.isascii() and part.isdigit()


def _compare_pre_part(mine: str, other: str) -> int:
    if mine == other:
        return 0
    if mine == "":
        return -1
    if other == "":
        return 1
    mine_numeric = _is_numeric(mine)
    other_numeric = _is_numeric(other)
    if not mine_numeric and not other_numeric:
        return 1 if mine > other else -1
    if not other_numeric:
        return -1
    if not mine_numeric:
        return 1
    return 1 if int(mine) > int(other) else -1


def _compare_prerelease(mine: str, other: str) -> int:
    mine_parts = mine.split(".")
    other_parts = other.split(".")
    length = max(len(mine_parts), len(other_parts))
    mine_parts += [""] * (length - len(mine_parts))
    other_parts += [""] * (length - len(other_parts))
    for left, right in zip(mine_parts, other_parts):
        result = _compare_pre_part(left, right)
        if result:
            return result
    return 0


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """A parsed semantic version; build metadata does not affect ordering."""

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: str = ""
    metadata: str = ""

    def compare(self, other: Version) -> int:
        """Return -1, 0 or 1 as this version sorts before, with or after *other*."""
        for mine, theirs in (
            (self.major, other.major),
            (self.minor, other.minor),
            (self.patch, other.patch),
        ):
            if mine != theirs:
                return 1 if mine > theirs else -1
        if self.prerelease == other.prerelease:
            return 0
        if not self.prerelease:
            return 1
        if not other.prerelease:
            return -1
        return _compare_prerelease(self.prerelease, other.prerelease)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash((self.major, self.minor, self.patch, self.prerelease))

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.metadata:
            text += f"+{self.metadata}"
        return text


def parse_version(text: str) -> Version:
    """Parse a possibly abbreviated semantic version such as ``v1.2``."""
    match = _VERSION_RE.fullmatch(text)
    if match is None:
        raise InvalidVersionError(f"invalid semantic version: {text!r}")
    major, minor, patch, prerelease, metadata = match.groups()
    numbers = []
    for part in (major, minor, patch):
        value = int(part) if part is not None else 0
        if value >= _UINT64_LIMIT:
            raise InvalidVersionError(f"version segment too large in {text!r}")
        numbers.append(value)
    prerelease = prerelease or ""
    if prerelease:
        for segment in prerelease.split("."):
            if _is_numeric(segment) and len(segment) > 1 and segment[0] == "0":
                raise InvalidVersionError(
                    f"prerelease segment with leading zero in {text!r}"
                )
    return Version(numbers[0], numbers[1], numbers[2], prerelease, metadata or "")


def _as_int(part: str) -> int | None:
    if _INT_RE.fullmatch(part) is None:
        return None
    return int(part)


def compare_versions(v1: str, v2: str) -> int:
    """Compare dotted version strings part by part.

    Numeric parts compare as numbers, anything else as text. Returns -1, 0 or 1.
    """
    left_parts = v1.lstrip("vV").split(".")
    right_parts = v2.lstrip("vV").split(".")
    length = max(len(left_parts), len(right_parts))
    left_parts += [""] * (length - len(left_parts))
    right_parts += [""] * (length - len(right_parts))

    for left, right in zip(left_parts, right_parts):
        left_num = _as_int(left)
        right_num = _as_int(right)
        if left_num is None or right_num is None:
            if left < right:
                return -1
            if left > right:
                return 1
            continue
        if left_num < right_num:
            return -1
        if left_num > right_num:
            return 1
    return 0