"""Tests for Maven coordinates and strict versions."""

import pytest

from constants import Constants
from maven.coordinate import MavenCoordinate, Version
from maven.errors import CoordinateFormatError


class TestMavenCoordinate:
    """Parsing, identity and repository paths."""

    @pytest.mark.parametrize("raw", [
        "org.example:foo:1.0.0",
        "androidx.core:core-ktx:1.12.0",
        "com.google.guava:guava:32.1.3-android",
    ])
    def test_parse_round_trips(self, raw):
        """parse followed by str gives back the input."""
        assert str(MavenCoordinate.parse(raw)) == raw

    @pytest.mark.parametrize("raw", [
        "org.example:foo",
        "org.example:foo:1.0.0:jar",
        "org.example",
        "",
        "org.example::1.0.0",
        ":foo:1.0.0",
        "org.example:foo:",
    ])
    def test_parse_rejects_malformed(self, raw):
        """Anything but three non-empty segments is a format error."""
        with pytest.raises(CoordinateFormatError):
            MavenCoordinate.parse(raw)

    def test_format_error_is_value_error(self):
        """Callers catching ValueError still see coordinate errors."""
        with pytest.raises(ValueError):
            MavenCoordinate.parse("nope")

    def test_key_ignores_version(self):
        a = MavenCoordinate.parse("org.example:foo:1.0.0")
        b = MavenCoordinate.parse("org.example:foo:2.0.0")
        assert a.key() == b.key() == "org.example:foo"

    def test_to_path_uses_repository_layout(self):
        coord = MavenCoordinate.parse("androidx.core:core:1.12.0")
        assert coord.to_path("aar") == "androidx/core/core/1.12.0/core-1.12.0.aar"

    def test_metadata_path(self):
        coord = MavenCoordinate.parse("androidx.core:core:1.12.0")
        assert coord.metadata_path() == "androidx/core/core/maven-metadata.xml"

    def test_with_version_keeps_identity(self):
        coord = MavenCoordinate.parse("org.example:foo:1.0.0")
        upgraded = coord.with_version("1.2.0")
        assert upgraded.key() == coord.key()
        assert upgraded.version == "1.2.0"
        assert coord.version == "1.0.0"

    def test_ordering_is_lexicographic(self):
        """Sorting is by field text, not semantic version."""
        coords = sorted([
            MavenCoordinate.parse("org.example:foo:10.0.0"),
            MavenCoordinate.parse("org.example:foo:9.0.0"),
            MavenCoordinate.parse("com.example:bar:1.0.0"),
        ])
        assert [str(c) for c in coords] == [
            "com.example:bar:1.0.0",
            "org.example:foo:10.0.0",
            "org.example:foo:9.0.0",
        ]


class TestVersion:
    """Strict three-part versions and the compatibility rule."""

    def test_parse_three_parts(self):
        assert Version.parse("1.2.3") == Version(1, 2, 3)

    @pytest.mark.parametrize("raw", ["1.2", "1.2.3-beta", "1.2.3.4", "[1.0,2.0)", "a.b.c", "1..3", "1.2.+3", ""])
    def test_parse_rejects_non_strict(self, raw):
        assert Version.parse(raw) is None

    def test_ordering(self):
        assert Version(1, 10, 0) > Version(1, 9, 9)
        assert Version(2, 0, 0) > Version(1, 99, 99)

    def test_higher_minor_is_compatible(self):
        assert Version(1, 5, 0).is_compatible_with(Version(1, 4, 9))

    def test_major_bump_is_incompatible(self):
        assert not Version(2, 0, 0).is_compatible_with(Version(1, 9, 9))

    def test_lower_patch_is_incompatible(self):
        assert not Version(1, 4, 0).is_compatible_with(Version(1, 4, 1))

    def test_same_version_is_compatible(self):
        assert Version(1, 4, 1).is_compatible_with(Version(1, 4, 1))


def test_metadata_path_uses_configured_file_name():
    coord = MavenCoordinate.parse("g:a:1.0.0")
    assert coord.metadata_path().endswith("/" + Constants.METADATA_FILE)
