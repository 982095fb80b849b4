"""Semantic versions, version constraints and choosing the latest valid version."""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(
    r"^v?([0-9]+)(\.[0-9]+)?(\.[0-9]+)?"
    r"(-([0-9A-Za-z\-]+(\.[0-9A-Za-z\-]+)*))?"
    r"(\+([0-9A-Za-z\-]+(\.[0-9A-Za-z\-]+)*))?$"
)

_CV = (
    r"v?([0-9xX*]+)(\.[0-9xX*]+)?(\.[0-9xX*]+)?"
    r"(-([0-9A-Za-z\-]+(\.[0-9A-Za-z\-]+)*))?"
    r"(\+([0-9A-Za-z\-]+(\.[0-9A-Za-z\-]+)*))?"
)

# Longest operators first so that alternation prefers them; the empty operator last.
_OPERATORS = ("!=", ">=", "=>", "<=", "=<", "~>", "=", ">", "<", "~", "^", "")
_OPS = "|".join(re.escape(op) for op in _OPERATORS)

_CONSTRAINT_RE = re.compile(rf"^\s*({_OPS})\s*({_CV})\s*$")
_FIND_CONSTRAINT_RE = re.compile(rf"({_OPS})\s*({_CV})")
_RANGE_RE = re.compile(rf"\s*({_CV})\s+-\s+({_CV})\s*")


def _compare_pre_part(left: str, right: str) -> int:
    if left == right:
        return 0
    if left == "":
        return -1
    if right == "":
        return 1
    left_numeric = left.isdigit()
    right_numeric = right.isdigit()
    if not left_numeric and not right_numeric:
        return 1 if left > right else -1
    if not left_numeric:
        return 1
    if not right_numeric:
        return -1
    return 1 if int(left) > int(right) else -1


def _compare_prerelease(left: str, right: str) -> int:
    left_parts = left.split(".")
    right_parts = right.split(".")
    for index in range(max(len(left_parts), len(right_parts))):
        a = left_parts[index] if index < len(left_parts) else ""
        b = right_parts[index] if index < len(right_parts) else ""
        result = _compare_pre_part(a, b)
        if result:
            return result
    return 0


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class SemVersion:
    """A parsed semantic version; build metadata does not take part in ordering."""

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: str = ""
    metadata: str = ""
    original: str = ""

    @classmethod
    def parse(cls, text: str) -> SemVersion:
        """Parse a version such as "v1.2.3-rc.1+build"; minor and patch may be left out."""
        match = _VERSION_RE.match(text)
        if match is None:
            raise ValueError(f"invalid semantic version: {text!r}")
        prerelease = match.group(5) or ""
        for part in prerelease.split(".") if prerelease else ():
            if part.isdigit() and len(part) > 1 and part.startswith("0"):
                raise ValueError(
                    f"invalid semantic version: {text!r}: "
                    "version segment starts with 0"
                )
        return cls(
            major=int(match.group(1)),
            minor=int(match.group(2)[1:]) if match.group(2) else 0,
            patch=int(match.group(3)[1:]) if match.group(3) else 0,
            prerelease=prerelease,
            metadata=match.group(8) or "",
            original=text,
        )

    def compare(self, other: SemVersion) -> int:
        """Return -1, 0 or 1 as this version is lower, equal or higher than other."""
        for mine, theirs in (
            (self.major, other.major),
            (self.minor, other.minor),
            (self.patch, other.patch),
        ):
            if mine != theirs:
                return 1 if mine > theirs else -1
        if not self.prerelease and not other.prerelease:
            return 0
        if not self.prerelease:
            return 1
        if not other.prerelease:
            return -1
        return _compare_prerelease(self.prerelease, other.prerelease)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemVersion):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: SemVersion) -> bool:
        if not isinstance(other, SemVersion):
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


@dataclass(frozen=True)
class _Term:
    operator: str
    version: SemVersion
    original: str
    dirty: bool = False
    minor_dirty: bool = False
    patch_dirty: bool = False


def _prerelease_blocked(version: SemVersion, term: _Term) -> bool:
    # Pre-releases only match constraints that ask for pre-releases themselves.
    return bool(version.prerelease) and not term.version.prerelease


def _not_equal(version: SemVersion, term: _Term) -> bool:
    if term.dirty:
        if _prerelease_blocked(version, term):
            return False
        if term.version.major != version.major:
            return True
        if term.version.minor != version.minor and not term.minor_dirty:
            return True
        return False
    return version != term.version


def _greater_than(version: SemVersion, term: _Term) -> bool:
    if _prerelease_blocked(version, term):
        return False
    return version.compare(term.version) == 1


def _less_than(version: SemVersion, term: _Term) -> bool:
    if _prerelease_blocked(version, term):
        return False
    if not term.dirty:
        return version.compare(term.version) < 0
    if version.major > term.version.major:
        return False
    if version.minor > term.version.minor and not term.minor_dirty:
        return False
    return True


def _greater_equal(version: SemVersion, term: _Term) -> bool:
    if _prerelease_blocked(version, term):
        return False
    return version.compare(term.version) >= 0


def _less_equal(version: SemVersion, term: _Term) -> bool:
    if _prerelease_blocked(version, term):
        return False
    if not term.dirty:
        return version.compare(term.version) <= 0
    if version.major > term.version.major:
        return False
    if version.minor > term.version.minor and not term.minor_dirty:
        return False
    return True


def _tilde(version: SemVersion, term: _Term) -> bool:
    if _prerelease_blocked(version, term):
        return False
    if version < term.version:
        return False
    con = term.version
    if (
        con.major == 0
        and con.minor == 0
        and con.patch == 0
        and not term.minor_dirty
        and not term.patch_dirty
    ):
        return True
    if version.major != con.major:
        return False
    if version.minor != con.minor and not term.minor_dirty:
        return False
    return True


def _tilde_or_equal(version: SemVersion, term: _Term) -> bool:
    if _prerelease_blocked(version, term):
        return False
    if term.dirty:
        return _tilde(version, term)
    return version == term.version


def _caret(version: SemVersion, term: _Term) -> bool:
    if _prerelease_blocked(version, term):
        return False
    con = term.version
    if version < con:
        return False
    if con.major > 0 or term.minor_dirty:
        return version.major == con.major
    if version.major > 0:
        return False
    if con.minor > 0 or term.patch_dirty:
        return version.minor == con.minor
    if version.minor > 0:
        return False
    return con.patch == version.patch


_CHECKS: dict[str, Callable[[SemVersion, _Term], bool]] = {
    "": _tilde_or_equal,
    "=": _tilde_or_equal,
    "!=": _not_equal,
    ">": _greater_than,
    "<": _less_than,
    ">=": _greater_equal,
    "=>": _greater_equal,
    "<=": _less_equal,
    "=<": _less_equal,
    "~": _tilde,
    "~>": _tilde,
    "^": _caret,
}


def _is_wildcard(text: str) -> bool:
    return text in ("x", "X", "*")


def _parse_term(text: str) -> _Term:
    match = _CONSTRAINT_RE.match(text)
    if match is None:
        raise ValueError(f"improper constraint: {text}")
    operator, whole, major = match.group(1), match.group(2), match.group(3)
    minor = match.group(4) or ""
    patch = match.group(5) or ""
    prerelease = match.group(6) or ""

    dirty = minor_dirty = patch_dirty = False
    candidate = whole
    if _is_wildcard(major):
        candidate = "0.0.0"
        dirty = True
    elif _is_wildcard(minor[1:]) or minor == "":
        candidate = f"{major}.0.0{prerelease}"
        dirty = minor_dirty = True
    elif _is_wildcard(patch[1:]):
        candidate = f"{major}{minor}.0{prerelease}"
        dirty = patch_dirty = True

    try:
        version = SemVersion.parse(candidate)
    except ValueError as exc:
        raise ValueError(f"Malformed version: {candidate}") from exc
    return _Term(operator, version, whole, dirty, minor_dirty, patch_dirty)


def _rewrite_ranges(text: str) -> str:
    return _RANGE_RE.sub(
        lambda m: f">= {m.group(1)}, <= {m.group(11)}", text
    )


@dataclass(frozen=True)
class Constraint:
    """A version constraint: groups joined by "||", each a list of terms that must all hold."""

    groups: tuple[tuple[_Term, ...], ...]
    original: str = ""

    @classmethod
    def parse(cls, text: str) -> Constraint:
        """Parse a constraint such as ">=1.2, <2.0 || ~3.1" or "1.2 - 1.4.5"."""
        rewritten = _rewrite_ranges(text)
        groups = []
        for alternative in rewritten.split("||"):
            found = [m.group(0) for m in _FIND_CONSTRAINT_RE.finditer(alternative)]
            pieces = found or [alternative]
            groups.append(tuple(_parse_term(piece) for piece in pieces))
        return cls(tuple(groups), text)

    def validate(self, version: SemVersion | str) -> bool:
        """Report whether version satisfies at least one group of the constraint."""
        if isinstance(version, str):
            version = SemVersion.parse(version)
        return any(
            all(_CHECKS[term.operator](version, term) for term in group)
            for group in self.groups
        )

    def __str__(self) -> str:
        return self.original


@dataclass(frozen=True)
class Version:
    """A parsed version together with the text it came from, which may carry a "v"."""

    semver: SemVersion
    version: str


def parse_versions(candidates: Iterable[str]) -> list[Version]:
    """Parse version strings, skipping those that are not valid semantic versions."""
    result = []
    for candidate in candidates:
        try:
            parsed = SemVersion.parse(candidate)
        except ValueError as exc:
            logger.error("ignoring version as it was invalid semver: %s (%s)", candidate, exc)
            continue
        result.append(Version(parsed, candidate))
    return result


def latest_valid_version(
    versions: Iterable[Version],
    constraint: Constraint | str,
    verify: Callable[[str], object] | None = None,
) -> str:
    """Return the highest version that satisfies constraint and passes verify.

    A version fails verification when verify raises or returns a false value.
    """
    available = list(versions)
    if not available:
        raise LookupError("no versions found")

    ordered = sorted(available, key=lambda v: v.semver, reverse=True)

    if isinstance(constraint, str):
        try:
            constraint = Constraint.parse(constraint)
        except ValueError as exc:
            raise ValueError(f"failed to parse constraint version: {exc}") from exc

    for candidate in ordered:
        if not constraint.validate(candidate.semver):
            continue
        if verify is not None:
            try:
                verified = verify(candidate.version)
            except Exception as exc:  # a failed verification only skips the version
                logger.error(
                    "ignoring version as it failed verification: %s (%s)",
                    candidate.version,
                    exc,
                )
                continue
            if not verified:
                logger.error(
                    "ignoring version as it failed verification: %s", candidate.version
                )
                continue
        return candidate.version

    raise LookupError(f"no matching versions found for constraint '{constraint}'")