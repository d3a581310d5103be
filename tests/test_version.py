from __future__ import annotations

import pytest

from initializr.version import (
    InvalidVersionError,
    Qualifier,
    Version,
    VersionParser,
    is_compatible,
    match_range,
)


def test_parse_full_version() -> None:
    v = Version.parse("1.5.3.RELEASE")
    assert (v.major, v.minor, v.patch) == (1, 5, 3)
    assert v.qualifier == Qualifier("RELEASE")
    assert str(v) == "1.5.3.RELEASE"


def test_parse_milestone_number() -> None:
    v = Version.parse("2.0.0.M2")
    assert v.qualifier == Qualifier("M", 2)
    assert not v.is_release


@pytest.mark.parametrize("text", ["", "foo", "1.2", "1.2.3.4", "a.b.c"])
def test_parse_rejects_malformed_versions(text: str) -> None:
    with pytest.raises(InvalidVersionError):
        Version.parse(text)
    assert Version.safe_parse(text) is None


def test_qualifier_ordering() -> None:
    ordered = ["2.0.0.M1", "2.0.0.M2", "2.0.0.RC1", "2.0.0.BUILD-SNAPSHOT", "2.0.0.RELEASE", "2.0.1.M1"]
    versions = [Version.parse(t) for t in ordered]
    assert sorted(reversed(versions)) == versions


def test_missing_qualifier_is_a_release() -> None:
    assert Version.parse("1.5.3") == Version.parse("1.5.3.RELEASE")
    assert Version.parse("1.5.3").is_release


def test_unknown_qualifier_ranks_as_release() -> None:
    final = Version.parse("1.0.0.FINAL")
    assert final.is_release
    assert final > Version.parse("1.0.0.BUILD-SNAPSHOT")
    assert final < Version.parse("1.0.1.M1")


def test_x_segments_resolve_against_known_versions() -> None:
    parser = VersionParser([Version.parse("1.5.16.RELEASE"), Version.parse("2.0.5.RELEASE")])
    assert parser.parse("1.5.x.RELEASE") == Version.parse("1.5.16.RELEASE")
    assert str(parser.parse("1.6.x.RELEASE")) == "1.6.999.RELEASE"


def test_x_segments_stay_unresolved_when_ambiguous() -> None:
    parser = VersionParser([Version.parse("2.0.4.RELEASE"), Version.parse("2.0.5.RELEASE")])
    assert str(parser.parse("2.0.x.RELEASE")) == "2.0.999.RELEASE"


def test_inclusive_exclusive_range() -> None:
    r = VersionParser().parse_range("[1.5.0.RELEASE,2.0.0.M1)")
    assert r.match(Version.parse("1.5.0.RELEASE"))
    assert r.match(Version.parse("1.5.16.RELEASE"))
    assert not r.match(Version.parse("2.0.0.M1"))
    assert not r.match(Version.parse("2.0.5.RELEASE"))
    assert r.to_range_string() == "[1.5.0.RELEASE,2.0.0.M1)"
    assert str(r) == ">=1.5.0.RELEASE and <2.0.0.M1"


def test_exclusive_inclusive_range() -> None:
    r = VersionParser().parse_range("(1.5.0.RELEASE,2.0.0.M1]")
    assert not r.match(Version.parse("1.5.0.RELEASE"))
    assert r.match(Version.parse("2.0.0.M1"))


def test_single_version_is_a_lower_bound() -> None:
    r = VersionParser().parse_range("2.0.0.M1")
    assert r.higher is None
    assert r.match(Version.parse("3.0.0.RELEASE"))
    assert not r.match(Version.parse("1.5.16.RELEASE"))
    assert r.to_range_string() == "2.0.0.M1"
    assert str(r) == ">=2.0.0.M1"


def test_match_range_predicate() -> None:
    matches = match_range("[1.5.0.RELEASE,2.0.0.M1)")
    assert matches("1.5.3.RELEASE")
    assert not matches("2.0.5.RELEASE")
    assert not matches("not-a-version")


def test_match_range_rejects_invalid_range() -> None:
    with pytest.raises(InvalidVersionError):
        match_range("[1.0.0.RELEASE,foo)")


def test_is_compatible_without_range() -> None:
    assert is_compatible(None, "1.0.0.RELEASE")
    assert is_compatible("", "1.0.0.RELEASE")
    assert is_compatible("null", "1.0.0.RELEASE")
    assert not is_compatible("2.0.0.M1", "1.5.16.RELEASE")


@pytest.mark.parametrize(
    ("version", "expected"),
    [
        ("1.4.9.RELEASE", False),
        ("1.5.0.RELEASE", True),
        ("1.7.2.RELEASE", True),
        ("2.0.0.RELEASE", True),
        ("2.0.1.RELEASE", False),
    ],
)
def test_inclusive_range_includes_both_bounds(version: str, expected: bool) -> None:
    r = VersionParser().parse_range("[1.5.0.RELEASE,2.0.0.RELEASE]")
    assert r.match(Version.parse(version)) is expected
    assert r.to_range_string() == "[1.5.0.RELEASE,2.0.0.RELEASE]"


@pytest.mark.parametrize(
    ("version", "expected"),
    [
        ("1.5.0.RELEASE", False),
        ("1.5.1.RELEASE", True),
        ("2.0.0.M1", True),
        ("2.0.0.RELEASE", False),
    ],
)
def test_exclusive_range_excludes_both_bounds(version: str, expected: bool) -> None:
    r = VersionParser().parse_range("(1.5.0.RELEASE,2.0.0.RELEASE)")
    assert r.match(Version.parse(version)) is expected
    assert r.to_range_string() == "(1.5.0.RELEASE,2.0.0.RELEASE)"


def test_release_rank_ties_break_on_qualifier_text() -> None:
    final = Version.parse("1.0.0.FINAL")
    release = Version.parse("1.0.0.RELEASE")
    assert final != release
    assert final < release
    assert sorted([release, final]) == [final, release]
