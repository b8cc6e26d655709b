"""Semantic version helpers for package.json style version strings.

Provides:
- clean() / is_valid() — canonicalise a loose version string (``" v1.2.3 "`` -> ``"1.2.3"``)
- satisfies() — npm-style range matching (``^``, ``~``, x-ranges, hyphen ranges, ``||``)
- lt() — ordering between two versions

Any string matching SemVer 2.0.0 is valid. Ordering follows SemVer precedence:
numeric prerelease identifiers compare as numbers, alphanumeric ones in ASCII
order, and a shorter identifier list ranks lower when the prefixes are equal.
Build metadata is dropped.
"""

from __future__ import annotations

import functools
import logging
import operator
import re
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

__all__ = ["SemVer", "clean", "is_valid", "parse_version", "satisfies", "lt"]

_NUMBER = r"0|[1-9][0-9]*"
_PRERELEASE_ID = r"(?:0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*)"
_PRERELEASE = rf"{_PRERELEASE_ID}(?:\.{_PRERELEASE_ID})*"
_IDENTIFIERS = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"

_SEMVER_RE = re.compile(
    rf"(?P<major>{_NUMBER})\.(?P<minor>{_NUMBER})\.(?P<patch>{_NUMBER})"
    rf"(?:-(?P<prerelease>{_PRERELEASE}))?"
    rf"(?:\+(?P<build>{_IDENTIFIERS}))?"
)

_WILDCARD = r"[xX*]"
_PARTIAL_RE = re.compile(
    rf"v?(?P<major>{_NUMBER}|{_WILDCARD})"
    rf"(?:\.(?P<minor>{_NUMBER}|{_WILDCARD})"
    rf"(?:\.(?P<patch>{_NUMBER}|{_WILDCARD})"
    rf"(?:-(?P<prerelease>{_PRERELEASE}))?"
    rf"(?:\+{_IDENTIFIERS})?"
    r")?)?"
)
_COMPARATOR_RE = re.compile(r"(?P<op><=|>=|<|>|=|~>|~|\^)?(?P<partial>\S+)")
_HYPHEN_RE = re.compile(r"(?P<low>\S+)\s+-\s+(?P<high>\S+)")
_OPERATOR_SPACE_RE = re.compile(r"(<=|>=|<|>|=|~>|~|\^)\s+")


@functools.total_ordering
@dataclass(frozen=True)
class SemVer:
    """A parsed version ordered by SemVer 2.0.0 precedence."""

    major: int
    minor: int
    patch: int
    prerelease: tuple[int | str, ...] = ()

    @classmethod
    def from_parts(cls, major: int, minor: int, patch: int, prerelease: str | None = None) -> SemVer:
        identifiers: tuple[int | str, ...] = ()
        if prerelease:
            identifiers = tuple(int(part) if part.isdigit() else part for part in prerelease.split("."))
        return cls(major, minor, patch, identifiers)

    @property
    def release(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def _key(self) -> tuple:
        if not self.prerelease:
            return (self.release, 1, ())
        # Numeric identifiers rank below alphanumeric ones.
        identifiers = tuple(
            (0, part, "") if isinstance(part, int) else (1, 0, part) for part in self.prerelease
        )
        return (self.release, 0, identifiers)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text = f"{text}-{'.'.join(str(part) for part in self.prerelease)}"
        return text


_OPERATORS: dict[str, Callable[[SemVer, SemVer], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "=": operator.eq,
}

Comparator = tuple[str, SemVer]


def parse_version(raw: str | None) -> SemVer | None:
    """Parse a loose version string (leading ``v``/``=``, surrounding space), or None."""
    if raw is None:
        return None
    text = re.sub(r"^[=v]+", "", raw.strip()).strip()
    match = _SEMVER_RE.fullmatch(text)
    if match is None:
        return None
    return SemVer.from_parts(
        int(match["major"]), int(match["minor"]), int(match["patch"]), match["prerelease"]
    )


def clean(raw: str | None) -> str | None:
    """Return the canonical ``MAJOR.MINOR.PATCH[-PRERELEASE]`` form, or None."""
    version = parse_version(raw)
    return str(version) if version is not None else None


def is_valid(raw: str | None) -> bool:
    return parse_version(raw) is not None


def lt(left: str, right: str) -> bool:
    """Return True when *left* orders strictly before *right*.

    Raises:
        ValueError: If either side is not a valid version.
    """
    left_version = parse_version(left)
    right_version = parse_version(right)
    if left_version is None or right_version is None:
        raise ValueError(f"Cannot compare invalid versions: {left!r}, {right!r}")
    return left_version < right_version


@dataclass(frozen=True)
class _Partial:
    major: int | None
    minor: int | None
    patch: int | None
    prerelease: str | None = None


def _parse_partial(text: str) -> _Partial:
    match = _PARTIAL_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"Invalid version in range: {text!r}")

    parts: list[int | None] = []
    wildcard = False
    for name in ("major", "minor", "patch"):
        value = match[name]
        if wildcard or value is None or value in ("x", "X", "*"):
            wildcard = True
            parts.append(None)
        else:
            parts.append(int(value))

    prerelease = match["prerelease"] if parts[2] is not None else None
    return _Partial(parts[0], parts[1], parts[2], prerelease)


def _bound(major: int, minor: int = 0, patch: int = 0, prerelease: str | None = None) -> SemVer:
    return SemVer.from_parts(major, minor, patch, prerelease)


def _expand_xrange(partial: _Partial) -> list[Comparator]:
    if partial.major is None:
        return []
    if partial.minor is None:
        return [(">=", _bound(partial.major)), ("<", _bound(partial.major + 1))]
    if partial.patch is None:
        return [
            (">=", _bound(partial.major, partial.minor)),
            ("<", _bound(partial.major, partial.minor + 1)),
        ]
    return [("=", _bound(partial.major, partial.minor, partial.patch, partial.prerelease))]


def _expand_tilde(partial: _Partial) -> list[Comparator]:
    if partial.major is None:
        return []
    if partial.minor is None:
        return [(">=", _bound(partial.major)), ("<", _bound(partial.major + 1))]
    lower = _bound(partial.major, partial.minor, partial.patch or 0, partial.prerelease)
    return [(">=", lower), ("<", _bound(partial.major, partial.minor + 1))]


def _expand_caret(partial: _Partial) -> list[Comparator]:
    major, minor, patch = partial.major, partial.minor, partial.patch
    if major is None:
        return []
    if minor is None:
        return [(">=", _bound(major)), ("<", _bound(major + 1))]
    if patch is None:
        if major == 0:
            return [(">=", _bound(0, minor)), ("<", _bound(0, minor + 1))]
        return [(">=", _bound(major, minor)), ("<", _bound(major + 1))]

    lower = _bound(major, minor, patch, partial.prerelease)
    if major > 0:
        upper = _bound(major + 1)
    elif minor > 0:
        upper = _bound(0, minor + 1)
    else:
        upper = _bound(0, 0, patch + 1)
    return [(">=", lower), ("<", upper)]


def _expand_primitive(op: str, partial: _Partial) -> list[Comparator]:
    major, minor, patch = partial.major, partial.minor, partial.patch
    if major is None:
        if op in ("<", ">"):
            # Nothing is below 0.0.0 or above "any".
            return [("<", _bound(0))]
        return []
    if minor is None:
        if op == ">":
            return [(">=", _bound(major + 1))]
        if op == "<=":
            return [("<", _bound(major + 1))]
        return [(op, _bound(major))]
    if patch is None:
        if op == ">":
            return [(">=", _bound(major, minor + 1))]
        if op == "<=":
            return [("<", _bound(major, minor + 1))]
        return [(op, _bound(major, minor))]
    return [(op, _bound(major, minor, patch, partial.prerelease))]


def _expand_hyphen(low: _Partial, high: _Partial) -> list[Comparator]:
    comparators: list[Comparator] = []
    if low.major is not None:
        comparators.append(
            (">=", _bound(low.major, low.minor or 0, low.patch or 0, low.prerelease))
        )
    if high.major is not None:
        if high.minor is None:
            comparators.append(("<", _bound(high.major + 1)))
        elif high.patch is None:
            comparators.append(("<", _bound(high.major, high.minor + 1)))
        else:
            comparators.append(
                ("<=", _bound(high.major, high.minor, high.patch, high.prerelease))
            )
    return comparators


def _parse_comparator_set(text: str) -> list[Comparator]:
    text = text.strip()
    if not text:
        return []

    hyphen = _HYPHEN_RE.fullmatch(text)
    if hyphen:
        return _expand_hyphen(_parse_partial(hyphen["low"]), _parse_partial(hyphen["high"]))

    comparators: list[Comparator] = []
    for token in _OPERATOR_SPACE_RE.sub(r"\1", text).split():
        match = _COMPARATOR_RE.fullmatch(token)
        if match is None:
            raise ValueError(f"Invalid comparator: {token!r}")
        op = match["op"] or ""
        partial = _parse_partial(match["partial"])
        if op in ("~", "~>"):
            comparators.extend(_expand_tilde(partial))
        elif op == "^":
            comparators.extend(_expand_caret(partial))
        elif op in ("", "="):
            comparators.extend(_expand_xrange(partial))
        else:
            comparators.extend(_expand_primitive(op, partial))
    return comparators


def _test_set(version: SemVer, comparators: list[Comparator]) -> bool:
    if not all(_OPERATORS[op](version, bound) for op, bound in comparators):
        return False
    if version.is_prerelease:
        # A prerelease only matches when the range names a prerelease of the same release.
        return any(
            bound.is_prerelease and bound.release == version.release
            for _, bound in comparators
        )
    return True


def satisfies(version: str, range_: str) -> bool:
    """Return True when *version* is inside the npm-style *range_*.

    Invalid versions and invalid ranges never satisfy.
    """
    parsed = parse_version(version)
    if parsed is None:
        return False
    try:
        alternatives = [_parse_comparator_set(part) for part in range_.split("||")]
    except ValueError as exc:
        logger.debug("Unparsable version range %r: %s", range_, exc)
        return False
    return any(_test_set(parsed, comparators) for comparators in alternatives)
