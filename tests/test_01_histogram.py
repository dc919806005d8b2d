"""Histogram lookups, totals, shares and increments."""

import sys
from pathlib import Path

import pytest

ORBIT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ORBIT_ROOT))

from orbit import histogram


class TestLookup:

    def test_missing_label_is_zero(self):
        assert histogram.bucket({"home": 3}, "work") == 0

    def test_list_bucket(self):
        hours = histogram.empty_hours()
        hours[9] = 4
        assert histogram.bucket(hours, 9) == 4

    def test_out_of_range_hour_is_zero(self):
        assert histogram.bucket(histogram.empty_hours(), 30) == 0

    def test_non_integer_key_on_list_is_zero(self):
        assert histogram.bucket(histogram.empty_days(), "monday") == 0


class TestShare:

    def test_empty_histogram_share_is_zero(self):
        assert histogram.share({}, "home") == 0.0
        assert histogram.share(histogram.empty_hours(), 5) == 0.0

    def test_share_of_total(self):
        assert histogram.share({"home": 3, "work": 1}, "home") == pytest.approx(0.75)

    def test_total(self):
        assert histogram.total({"a": 2, "b": 5}) == 7
        assert histogram.total([1, 2, 3]) == 6


class TestIncrement:

    def test_dict_increment_returns_copy(self):
        original = {"home": 1}
        updated = histogram.increment(original, "home")
        assert updated == {"home": 2}
        assert original == {"home": 1}

    def test_dict_increment_new_label(self):
        assert histogram.increment({}, "cafe") == {"cafe": 1}

    def test_list_increment_returns_copy(self):
        original = histogram.empty_days()
        updated = histogram.increment(original, 3)
        assert updated[3] == 1
        assert original[3] == 0

    def test_list_increment_wraps(self):
        updated = histogram.increment(histogram.empty_hours(), 24)
        assert updated[0] == 1


class TestNeighbours:

    def test_midday(self):
        assert histogram.neighbours(12) == (11, 13)

    def test_wraps_at_midnight(self):
        assert histogram.neighbours(0) == (23, 1)
        assert histogram.neighbours(23) == (22, 0)


class TestCheckWeights:

    def test_clean(self):
        assert histogram.check_weights("place", {"home": 1}) == []

    def test_negative_reported(self):
        problems = histogram.check_weights("hours", [0, -1] + [0] * 22)
        assert len(problems) == 1
        assert "negative" in problems[0]
