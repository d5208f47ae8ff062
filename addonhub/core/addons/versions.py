"""
Version parsing, range checks and ordering.

Versions look like ``4.1.0``, ``4.1.0.M2`` or ``3.0.0.RC1``. Anything from the
first ``-`` onwards is replaced with ``.0`` before parsing, so
``1.2.3-SNAPSHOT`` compares equal to ``1.2.3``.

Ranges use interval notation with ``,`` or ``;`` as separator:
``[4.0.0,5.0.0)``, ``(3.4;4.0.0]``, ``[4.0.0,)`` (no upper bound).
"""

import logging
import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple

from addonhub.core.addons.exceptions import VersionParseError

logger = logging.getLogger(__name__)

_NUMERIC = re.compile(r"^\d+$")
_QUALIFIER = re.compile(r"^([A-Za-z]+)(\d*)$")
_RANGE = re.compile(r"^\s*([\[\(])\s*([^,;\]\)]*?)\s*[,;]\s*([^,;\]\)]*?)\s*([\]\)])\s*$")

# Release > RC > M > anything else
_QUALIFIER_RANK = {"RC": 2, "M": 1}
_RELEASE_RANK = 3


class Ordering(IntEnum):
    LESS = -1
    EQUAL = 0
    GREATER = 1


@dataclass(frozen=True)
class VersionComparison:
    """Result of comparing two version strings"""
    ordering: Ordering
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BundleVersion:
    """A parsed version"""
    numbers: Tuple[int, ...]
    qualifier: str = ""

    def _qualifier_key(self) -> Tuple[int, int, str]:
        if not self.qualifier:
            return (_RELEASE_RANK, 0, "")
        match = _QUALIFIER.match(self.qualifier)
        if not match:
            return (0, 0, self.qualifier)
        name, number = match.group(1).upper(), match.group(2)
        return (_QUALIFIER_RANK.get(name, 0), int(number) if number else 0, name)

    def compare_to(self, other: "BundleVersion") -> Ordering:
        width = max(len(self.numbers), len(other.numbers))
        mine = self.numbers + (0,) * (width - len(self.numbers))
        theirs = other.numbers + (0,) * (width - len(other.numbers))
        if mine != theirs:
            return Ordering.LESS if mine < theirs else Ordering.GREATER
        a, b = self._qualifier_key(), other._qualifier_key()
        if a == b:
            return Ordering.EQUAL
        return Ordering.LESS if a < b else Ordering.GREATER

    def __str__(self) -> str:
        text = ".".join(str(n) for n in self.numbers)
        return f"{text}.{self.qualifier}" if self.qualifier else text


def normalize_version(version: str) -> str:
    """Replace everything from the first dash with '.0'"""
    version = version.strip()
    head, sep, tail = version.partition("-")
    if not sep:
        return version
    if tail:
        logger.debug(f"Discarding version qualifier '-{tail}' from '{version}'")
    return f"{head}.0"


def parse_version(version: str) -> BundleVersion:
    """
    Parse a version string.

    Args:
        version: Version text, e.g. '4.1.0.M2' or '1.2.3-SNAPSHOT'

    Returns:
        Parsed BundleVersion

    Raises:
        VersionParseError: If the text is not a valid version
    """
    if version is None:
        raise VersionParseError("Version is empty")
    normalized = normalize_version(str(version))
    if not normalized:
        raise VersionParseError("Version is empty")

    segments = normalized.split(".")
    numbers = []
    qualifier = ""
    for index, segment in enumerate(segments):
        if _NUMERIC.match(segment):
            numbers.append(int(segment))
        elif index == len(segments) - 1 and index > 0 and segment and segment.isalnum():
            qualifier = segment
        else:
            raise VersionParseError(f"Invalid version '{version}'")
    return BundleVersion(numbers=tuple(numbers), qualifier=qualifier)


def in_range(version: str, version_range: str) -> bool:
    """
    Check whether a version lies within an interval range.

    Args:
        version: Version to check
        version_range: Interval such as '[4.0.0,5.0.0)'; empty max is unbounded

    Returns:
        True if the version satisfies both bounds

    Raises:
        VersionParseError: If the version or the range is malformed
    """
    match = _RANGE.match(version_range or "")
    if not match:
        raise VersionParseError(f"Invalid version range '{version_range}'")
    lower_bracket, low, high, upper_bracket = match.groups()
    if not low:
        raise VersionParseError(f"Version range '{version_range}' has no lower bound")

    current = parse_version(version)
    lower = current.compare_to(parse_version(low))
    if lower == Ordering.LESS or (lower == Ordering.EQUAL and lower_bracket == "("):
        return False

    if high:
        upper = current.compare_to(parse_version(high))
        if upper == Ordering.GREATER or (upper == Ordering.EQUAL and upper_bracket == ")"):
            return False
    return True


def compare_versions(a: str, b: str) -> VersionComparison:
    """Compare two versions; parse failures compare as EQUAL with error set"""
    try:
        return VersionComparison(parse_version(a).compare_to(parse_version(b)))
    except VersionParseError as e:
        return VersionComparison(Ordering.EQUAL, error=str(e))
