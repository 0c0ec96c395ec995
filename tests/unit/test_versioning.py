"""
Tests for Semantic Versioning.

This test suite covers:
1. Version parsing and validity
2. Precedence, including prereleases
3. npm-style range matching
"""

import pytest

from atutils.release.versioning import (
    Version,
    VersionError,
    compare,
    gt,
    is_valid,
    parse_version,
    satisfies,
)


class TestParsing:
    """Test version parsing."""

    def test_parse_plain(self):
        """Should parse major.minor.patch."""
        assert parse_version("1.2.3") == Version(1, 2, 3)

    def test_parse_prefix_and_prerelease(self):
        """Should accept a leading v and keep prerelease identifiers."""
        assert parse_version("v2.0.0-rc.1+build.5") == Version(2, 0, 0, ("rc", "1"))

    @pytest.mark.parametrize(
        "text", ["1.2", "master", "1.2.3.4", "01.2.3", "", None, "1.2.3-", "=1.2.3", "v 1.2.3"]
    )
    def test_invalid(self, text):
        """Non-semver strings should not be valid."""
        assert not is_valid(text)

    def test_str(self):
        """Should render back to canonical form."""
        assert str(parse_version("v1.0.0-beta.2")) == "1.0.0-beta.2"


class TestPrecedence:
    """Test version ordering."""

    @pytest.mark.parametrize(
        "lower,higher",
        [
            ("1.0.0", "2.0.0"),
            ("2.0.0", "2.1.0"),
            ("2.1.0", "2.1.1"),
            ("1.0.0-alpha", "1.0.0"),
            ("1.0.0-alpha", "1.0.0-alpha.1"),
            ("1.0.0-alpha.1", "1.0.0-alpha.beta"),
            ("1.0.0-beta.2", "1.0.0-beta.11"),
            ("1.0.0-rc.1", "1.0.0"),
            ("0.9.9", "0.10.0"),
        ],
    )
    def test_ordering(self, lower, higher):
        """Should follow SemVer precedence rules."""
        assert compare(lower, higher) == -1
        assert compare(higher, lower) == 1
        assert gt(higher, lower)

    def test_build_metadata_ignored(self):
        """Build metadata should not affect precedence."""
        assert compare("1.0.0+a", "1.0.0+b") == 0

    def test_invalid_raises(self):
        """Comparing an invalid version should raise VersionError."""
        with pytest.raises(VersionError):
            compare("1.0.0", "latest")


class TestRanges:
    """Test npm-style range matching."""

    @pytest.mark.parametrize(
        "version,range_text,expected",
        [
            ("2.39.2", ">=2", True),
            ("1.9.0", ">=2", False),
            ("18.19.0", ">=18", True),
            ("20.11.1", "^18.0.0 || ^20.0.0", True),
            ("19.0.0", "^18.0.0 || ^20.0.0", False),
            ("1.4.9", "~1.4.2", True),
            ("1.5.0", "~1.4.2", False),
            ("0.2.9", "^0.2.3", True),
            ("0.3.0", "^0.2.3", False),
            ("18.4.0", "18.x", True),
            ("19.0.0", "18.x", False),
            ("18.0.0", "18", True),
            ("5.0.0", "*", True),
            ("1.3.0", "1.2 - 1.4", True),
            ("1.5.0", "1.2 - 1.4", False),
            ("1.2.3", ">= 1.2.0 < 2", True),
            ("2.0.0", ">=1.2.0 <2", False),
            ("1.2.3", "1.2.3", True),
            ("1.2.4", "=1.2.3", False),
            ("9.0.0", ">8", True),
            ("8.9.0", ">8", False),
            ("8.9.0", "<=8", True),
        ],
    )
    def test_satisfies(self, version, range_text, expected):
        """Should match npm range semantics."""
        assert satisfies(version, range_text) is expected

    def test_prerelease_excluded_by_default(self):
        """A prerelease should not satisfy a plain range."""
        assert not satisfies("2.0.0-beta.1", ">=1.0.0")
        assert satisfies("2.0.0-beta.2", ">=2.0.0-beta.1")

    def test_invalid_version_never_satisfies(self):
        """A missing installed version should not satisfy anything."""
        assert not satisfies(None, "*")

    def test_invalid_range_raises(self):
        """An unparsable range should raise VersionError."""
        with pytest.raises(VersionError):
            satisfies("1.0.0", ">=banana")
