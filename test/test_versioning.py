"""
Tests for version comparison.
"""

import pytest

from src.plugin_registry.versioning import Ordering, compare, is_greater


class TestCompare:
    """Segment-wise version ordering."""

    @pytest.mark.parametrize("higher,lower", [
        ("1.2.0", "1.0.0"),
        ("1.10.0", "1.9.0"),
        ("2.0", "1.99.99"),
        ("1.0.1", "1.0"),
        ("0.0.10", "0.0.9"),
        ("1.0.0-rc2", "1.0.0-rc1"),
    ])
    def test_ordering_is_antisymmetric(self, higher, lower):
        assert compare(higher, lower) is Ordering.GREATER
        assert compare(lower, higher) is Ordering.LESS

    @pytest.mark.parametrize("version", ["1.0.0", "0.1", "3", "1.0.0-beta"])
    def test_equal_to_itself(self, version):
        assert compare(version, version) is Ordering.EQUAL

    def test_missing_segments_pad_with_zero(self):
        assert compare("1.2", "1.2.0") is Ordering.EQUAL
        assert compare("1.2.0.0", "1.2") is Ordering.EQUAL

    def test_numeric_not_lexical_when_both_parse(self):
        # Lexically "10" < "9"
        assert compare("10.0", "9.0") is Ordering.GREATER

    def test_non_numeric_segments_compare_lexically(self):
        assert compare("1.b", "1.a") is Ordering.GREATER


class TestIsGreater:

    def test_strictly_greater(self):
        assert is_greater("1.2.0", "1.0.0") is True

    def test_equal_is_not_greater(self):
        assert is_greater("1.2", "1.2.0") is False

    def test_lower_is_not_greater(self):
        assert is_greater("0.9", "1.0") is False
