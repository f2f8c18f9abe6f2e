"""Unit tests for normalized edit-distance similarity."""

import pytest

from alert_engine.matching.similarity import levenshtein_distance, similarity


class TestLevenshteinDistance:
    """Tests for the raw edit distance."""

    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ("", "", 0),
            ("abc", "", 3),
            ("", "abc", 3),
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("lakes", "lakes", 0),
            ("mawson", "mawsn", 1),
        ],
    )
    def test_known_distances(self, a, b, expected):
        assert levenshtein_distance(a, b) == expected

    def test_symmetric(self):
        assert levenshtein_distance("adelaide", "adelade") == levenshtein_distance("adelade", "adelaide")


class TestSimilarity:
    """Tests for similarity()."""

    def test_both_empty_is_identical(self):
        assert similarity("", "") == 1.0

    def test_one_empty_is_zero(self):
        assert similarity("", "lakes") == 0.0
        assert similarity("lakes", "") == 0.0

    def test_identical_strings(self):
        assert similarity("mawson", "mawson") == 1.0

    def test_kitten_sitting(self):
        assert similarity("kitten", "sitting") == pytest.approx(4 / 7)

    def test_single_typo_is_above_strict_threshold(self):
        # 6 characters, one deletion
        assert similarity("mawson", "mawsn") == pytest.approx(5 / 6)
        assert similarity("mawson", "mawsn") > 0.8

    def test_result_is_bounded(self):
        for a, b in [("a", "zzzz"), ("abc", "xyz"), ("glenelg", "glenelg north")]:
            assert 0.0 <= similarity(a, b) <= 1.0

    def test_symmetric(self):
        assert similarity("norwood", "northwood") == similarity("northwood", "norwood")
