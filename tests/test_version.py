"""Tests for version parsing and listing order."""

import pytest

from semver import Version as SemanticVersion

from docver.domain.version import (
    Version,
    compare_tags,
    parse_semver_like,
    sort_versions,
)


def ordered(*tags):
    return [v.tag for v in sort_versions(Version(t) for t in tags)]


class TestParseSemverLike:
    """Tests for parse_semver_like()."""

    def test_full_semver(self):
        """Test strict MAJOR.MINOR.PATCH."""
        assert parse_semver_like("1.2.3") == SemanticVersion(1, 2, 3)

    def test_v_prefix(self):
        """Test that leading v/V is ignored."""
        assert parse_semver_like("v2.0.0") == SemanticVersion(2, 0, 0)
        assert parse_semver_like("V2.0.0") == SemanticVersion(2, 0, 0)

    def test_prerelease_and_build(self):
        """Test pre-release and build metadata."""
        v = parse_semver_like("1.0.0-rc.1+build.5")
        assert v.prerelease == "rc.1"
        assert v.build == "build.5"

    @pytest.mark.parametrize("tag,expected", [
        ("1", SemanticVersion(1, 0, 0)),
        ("1.2", SemanticVersion(1, 2, 0)),
        ("v0.8_or_older", SemanticVersion(0, 8, 0)),
        ("2.1-docs", SemanticVersion(2, 1, 0)),
    ])
    def test_coerced_numeric_prefix(self, tag, expected):
        """Test that incomplete numeric prefixes are padded."""
        assert parse_semver_like(tag) == expected

    @pytest.mark.parametrize("tag", [
        "dev", "main", "latest", "", "v", "1.2.3.4", "1..2", "1.", ".5", "01.2.3",
    ])
    def test_not_semver(self, tag):
        """Test tags that do not parse."""
        assert parse_semver_like(tag) is None

    def test_leading_zero_rejected(self):
        """Test that numeric identifiers may not have leading zeros."""
        assert parse_semver_like("1.02.3") is None


class TestCompareTags:
    """Tests for the three-case tag comparison."""

    @pytest.mark.parametrize("newer,older", [
        ("2.0.0", "1.9.9"),
        ("1.10.0", "1.9.0"),
        ("v1.2.10", "1.2.3"),
        ("1.0.0", "1.0.0-rc.1"),
        ("1.0.0-rc.1", "1.0.0-beta"),
        ("1.0.0-beta.11", "1.0.0-beta.2"),
        ("1.0.0-alpha.beta", "1.0.0-alpha.1"),
        ("1.0.0-alpha.1", "1.0.0-alpha"),
        ("1.2", "1.1.9"),
    ])
    def test_semver_newest_first(self, newer, older):
        """Test that a greater semantic version is listed first."""
        assert compare_tags(newer, older) < 0
        assert compare_tags(older, newer) > 0

    @pytest.mark.parametrize("named,release", [
        ("dev", "1.0.0"),
        ("zzz", "0.0.1"),
        ("a", "v99.0.0"),
        ("", "1.0.0"),
    ])
    def test_non_semver_before_semver(self, named, release):
        """Test that non-semver tags always come first."""
        assert compare_tags(named, release) < 0
        assert compare_tags(release, named) > 0

    def test_non_semver_reverse_lexicographic(self):
        """Test reverse string order among non-semver tags."""
        assert compare_tags("main", "dev") < 0
        assert compare_tags("dev", "main") > 0
        assert compare_tags("Zeta", "alpha") > 0

    def test_equal(self):
        """Test that identical tags compare equal."""
        assert compare_tags("dev", "dev") == 0
        assert compare_tags("1.0.0", "1.0.0") == 0

    @pytest.mark.parametrize("first,second", [
        ("v1.0.0", "1.0.0"),
        ("2.1-docs", "2.1"),
        ("1.0.0", "1"),
        ("1.0.0+b", "1.0.0+a"),
    ])
    def test_equal_precedence_falls_back_to_tag(self, first, second):
        """Test that tags of equal precedence are ordered reverse lexicographically."""
        assert compare_tags(first, second) < 0
        assert compare_tags(second, first) > 0
        assert ordered(second, first) == [first, second]

    def test_sort_mixed(self):
        """Test sorting named channels, releases and coerced tags together."""
        tags = ordered("1.2.3", "dev", "v1.10.0", "1.2.10", "main", "v0.8_or_older")
        assert tags == ["main", "dev", "v1.10.0", "1.2.10", "1.2.3", "v0.8_or_older"]


class TestVersion:
    """Tests for the Version value object."""

    def test_display_title_defaults_to_tag(self):
        """Test that the tag is shown when there is no title."""
        assert Version("1.0.0").display_title == "1.0.0"
        assert Version("1.0.0", "First").display_title == "First"

    def test_tag_not_normalized(self):
        """Test that the stored tag keeps its v prefix."""
        v = Version("v2.0.0")
        assert v.tag == "v2.0.0"
        assert v.semver == SemanticVersion(2, 0, 0)

    def test_str(self):
        """Test string representation."""
        assert str(Version("dev")) == "dev"
        assert str(Version("dev", "Development")) == "dev (Development)"

    def test_immutable(self):
        """Test that versions cannot be changed in place."""
        v = Version("1.0.0")
        with pytest.raises(AttributeError):
            v.tag = "2.0.0"
