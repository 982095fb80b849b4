import pytest

from ocmcontroller.versioning import (
    Constraint,
    SemVersion,
    Version,
    latest_valid_version,
    parse_versions,
)


def _versions(*texts):
    return parse_versions(texts)


@pytest.mark.parametrize(
    "constraint, available, expected",
    [
        (">v0.0.1", ["v0.0.1", "v0.0.5"], "v0.0.5"),
        ("v0.0.1", ["v0.0.1", "v0.0.2", "v0.0.3"], "v0.0.1"),
        ("<=v0.0.2", ["v0.0.1", "v0.0.2", "v0.0.3"], "v0.0.2"),
        ("=v0.0.1", ["v0.0.1", "v0.0.2"], "v0.0.1"),
        ("!=v0.0.4", ["v0.0.1", "v0.0.2", "v0.0.4", "v0.0.5"], "v0.0.5"),
    ],
)
def test_latest_valid_version_cases(constraint, available, expected):
    assert latest_valid_version(_versions(*available), constraint) == expected


def test_latest_verified_version_is_returned():
    def verify(version):
        if version != "v0.0.4":
            raise RuntimeError("signature not found")
        return True

    versions = _versions("v0.0.1", "v0.0.2", "v0.0.4", "v0.0.5")
    assert latest_valid_version(versions, ">=v0.0.1", verify) == "v0.0.4"


def test_verify_returning_false_skips_version():
    versions = _versions("1.0.0", "2.0.0")
    assert latest_valid_version(versions, ">=1.0.0", lambda v: v == "1.0.0") == "1.0.0"


def test_no_versions_raises():
    with pytest.raises(LookupError, match="no versions found"):
        latest_valid_version([], ">=1.0.0")


def test_no_matching_version_raises():
    with pytest.raises(LookupError, match="no matching versions found for constraint '>5.0.0'"):
        latest_valid_version(_versions("1.0.0"), ">5.0.0")


def test_invalid_constraint_raises():
    with pytest.raises(ValueError, match="failed to parse constraint"):
        latest_valid_version(_versions("1.0.0"), "invalid")


def test_constraint_parse_rejects_invalid_and_empty():
    with pytest.raises(ValueError):
        Constraint.parse("invalid")
    with pytest.raises(ValueError):
        Constraint.parse("")


def test_constraint_validate_accepts_string():
    assert Constraint.parse(">1.0.0").validate("1.0.1") is True


@pytest.mark.parametrize(
    "text, parts",
    [
        ("v1.2.3", (1, 2, 3, "", "")),
        ("1.2", (1, 2, 0, "", "")),
        ("4", (4, 0, 0, "", "")),
        ("1.0.0-rc.1+build.5", (1, 0, 0, "rc.1", "build.5")),
    ],
)
def test_semversion_parse(text, parts):
    parsed = SemVersion.parse(text)
    assert (parsed.major, parsed.minor, parsed.patch, parsed.prerelease, parsed.metadata) == parts
    assert parsed.original == text


@pytest.mark.parametrize("text", ["", "invalid", "1.2.3.4", "1.0.0-01", "v"])
def test_semversion_parse_rejects(text):
    with pytest.raises(ValueError):
        SemVersion.parse(text)


@pytest.mark.parametrize(
    "lower, higher",
    [
        ("1.0.0-alpha", "1.0.0"),
        ("1.0.0-alpha.1", "1.0.0-alpha.beta"),
        ("1.0.0-beta.2", "1.0.0-beta.11"),
        ("1.0.0-alpha", "1.0.0-alpha.1"),
        ("0.9.9", "1.0.0"),
        ("1.2.3", "1.10.0"),
    ],
)
def test_semversion_ordering(lower, higher):
    assert SemVersion.parse(lower) < SemVersion.parse(higher)
    assert SemVersion.parse(higher).compare(SemVersion.parse(lower)) == 1


def test_metadata_does_not_affect_equality():
    assert SemVersion.parse("v1.2.3+abc") == SemVersion.parse("1.2.3")
    assert str(SemVersion.parse("v1.2.3-rc.1+abc")) == "1.2.3-rc.1+abc"


def test_parse_versions_skips_invalid():
    result = parse_versions(["v0.0.1", "not-a-version", "1.2.0"])
    assert [v.version for v in result] == ["v0.0.1", "1.2.0"]
    assert result[1] == Version(SemVersion.parse("1.2.0"), "1.2.0")


def test_sort_is_stable_for_equal_versions():
    versions = _versions("v1.0.0", "1.0.0+build", "0.1.0")
    assert latest_valid_version(versions, ">=0.0.0") == "v1.0.0"