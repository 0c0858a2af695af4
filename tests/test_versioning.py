"""Tests for version parsing, comparison and bumping."""

from __future__ import annotations

import pytest

from skillmanager.skills.models import PublishBump
from skillmanager.skills.versioning import bump_version, is_newer_version, parse_version


class TestParseVersion:
    def test_valid(self):
        assert parse_version("1.10.3") == (1, 10, 3)

    @pytest.mark.parametrize("value", ["1.2", "1.2.3.4", "v1.2.3", "1.2.x", "", "1..3", "-1.2.3", "1.2.3-beta"])
    def test_malformed(self, value: str):
        assert parse_version(value) is None


class TestIsNewerVersion:
    def test_numeric_not_lexicographic(self):
        assert is_newer_version("1.10.0", "1.2.3")
        assert not is_newer_version("1.2.3", "1.10.0")

    def test_equal_is_not_newer(self):
        assert not is_newer_version("2.0.0", "2.0.0")

    @pytest.mark.parametrize("a,b", [("1.0.1", "1.0.0"), ("2.0.0", "1.9.9"), ("0.3.0", "0.2.99")])
    def test_antisymmetric(self, a: str, b: str):
        assert is_newer_version(a, b)
        assert not is_newer_version(b, a)

    def test_malformed_never_newer(self):
        assert not is_newer_version("latest", "1.0.0")
        assert not is_newer_version("2.0.0", "1.0")


class TestBumpVersion:
    def test_patch(self):
        assert bump_version("1.2.3", PublishBump.PATCH) == "1.2.4"

    def test_minor_resets_patch(self):
        assert bump_version("2.4.9", PublishBump.MINOR) == "2.5.0"

    def test_major_resets_minor_and_patch(self):
        assert bump_version("2.4.9", PublishBump.MAJOR) == "3.0.0"

    def test_malformed(self):
        assert bump_version("one.two.three", PublishBump.PATCH) is None
