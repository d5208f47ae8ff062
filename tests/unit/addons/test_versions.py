from __future__ import annotations

import logging

import pytest

from addonhub.core.addons.exceptions import VersionParseError
from addonhub.core.addons.versions import (
    Ordering,
    compare_versions,
    in_range,
    normalize_version,
    parse_version,
)


def test_dash_qualifier_is_replaced_with_zero_segment() -> None:
    assert normalize_version("1.2.3-SNAPSHOT") == "1.2.3.0"
    assert normalize_version("4.0.0-rc1") == "4.0.0.0"
    assert str(parse_version("1.2.3-SNAPSHOT")) == "1.2.3.0"


def test_dash_qualifier_does_not_affect_ordering() -> None:
    assert compare_versions("1.2.3-SNAPSHOT", "1.2.3").ordering == Ordering.EQUAL
    assert compare_versions("4.0.0-rc1", "4.0.0").ordering == Ordering.EQUAL


def test_discarded_qualifier_is_logged(caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="addonhub.core.addons.versions"):
        normalize_version("2.0.0-beta")
    assert "-beta" in caplog.text


def test_numeric_segments_are_zero_padded() -> None:
    assert compare_versions("1.0", "1.0.0").ordering == Ordering.EQUAL
    assert compare_versions("1.10.0", "1.9.9").ordering == Ordering.GREATER
    assert compare_versions("2", "10").ordering == Ordering.LESS


def test_release_ranks_above_rc_and_milestone() -> None:
    assert compare_versions("4.1.0", "4.1.0.RC1").ordering == Ordering.GREATER
    assert compare_versions("4.1.0.RC1", "4.1.0.M2").ordering == Ordering.GREATER
    assert compare_versions("4.1.0.M3", "4.1.0.M2").ordering == Ordering.GREATER
    assert compare_versions("4.1.0.M9", "4.2.0.M1").ordering == Ordering.LESS


@pytest.mark.parametrize(
    "version,version_range,expected",
    [
        ("4.0.0", "[4.0.0,5.0.0)", True),
        ("4.9.9", "[4.0.0,5.0.0)", True),
        ("5.0.0", "[4.0.0,5.0.0)", False),
        ("5.0.0", "[4.0.0;5.0.0]", True),
        ("4.0.0", "(4.0.0,5.0.0)", False),
        ("3.9.9", "[4.0.0,)", False),
        ("9.0.0", "[4.0.0,)", True),
        ("4.0.0-SNAPSHOT", "[4.0.0,5.0.0)", True),
        ("4.1.0", " [ 4.0.0 ; 4.2.0 ) ", True),
    ],
)
def test_in_range(version: str, version_range: str, expected: bool) -> None:
    assert in_range(version, version_range) is expected


@pytest.mark.parametrize("version_range", ["4.0.0", "[,5.0.0)", "[4.0.0,5.0.0", "[a.b,5.0.0)"])
def test_malformed_range_raises(version_range: str) -> None:
    with pytest.raises(VersionParseError):
        in_range("4.0.0", version_range)


def test_version_parse_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        parse_version("not-a-version")


def test_compare_reports_parse_failure_as_equal() -> None:
    result = compare_versions("garbage", "1.0.0")
    assert result.ordering == Ordering.EQUAL
    assert not result.ok
    assert "garbage" in result.error

    assert compare_versions("1.0.0", "").ok is False
