"""Unit tests for fuzzy location matching."""

import pytest

from alert_engine.matching.location import (
    LocationMatcher,
    location_matches,
    strip_region_suffix,
    tokenize,
)


class TestStripRegionSuffix:
    """Tests for trailing region suffix removal."""

    @pytest.mark.parametrize(
        "fragment,expected",
        [
            ("Mawson Lakes, Australia", "mawson lakes"),
            ("mawson lakes, sa, australia", "mawson lakes"),
            ("Glenelg SA", "glenelg"),
            ("Bondi, NSW,", "bondi"),
            ("Adelaide", "adelaide"),
            ("Salisbury", "salisbury"),
        ],
    )
    def test_strips_suffixes(self, fragment, expected):
        assert strip_region_suffix(fragment) == expected

    def test_suffix_inside_word_is_kept(self):
        # "wa" only counts as a whole trailing word
        assert strip_region_suffix("Ottawa") == "ottawa"

    def test_fragment_that_is_only_a_suffix_is_kept(self):
        assert strip_region_suffix("Australia") == "australia"

    def test_custom_suffixes(self):
        matcher = LocationMatcher(region_suffixes=["new zealand"])
        assert matcher.strip_region_suffix("Auckland, New Zealand") == "auckland"
        assert matcher.strip_region_suffix("Glenelg, SA") == "glenelg, sa"

    def test_empty_suffix_list_disables_stripping(self):
        matcher = LocationMatcher(region_suffixes=[])
        assert matcher.strip_region_suffix("Glenelg, Australia") == "glenelg, australia"


class TestTokenize:
    def test_drops_short_tokens_and_punctuation(self):
        assert tokenize("12 Main St, Mawson Lakes") == ["main", "mawson", "lakes"]

    def test_none(self):
        assert tokenize(None) == []


class TestLocationMatches:
    """Tests for the fragment matching cascade."""

    def test_substring_of_label(self):
        assert location_matches("Mawson Lakes, SA", "Mawson Lakes", "SA")

    def test_substring_after_suffix_strip(self):
        assert location_matches("mawson lakes, australia", "Mawson Lakes", "SA")

    def test_city_contained_in_fragment(self):
        assert location_matches("near mawson lakes shops", "Mawson Lakes", "SA")

    def test_address_substring(self):
        assert location_matches("main street", "Mawson Lakes", "SA", address="12 Main Street")

    def test_strict_token_typo(self):
        # "mawsn" vs "mawson": one edit over 6 characters
        assert location_matches("Mawsn Lakes", "Mawson Lakes", "SA")

    def test_loose_token_coverage(self):
        # "northfeild" ~ "northfield" at 0.8, "gardns" ~ "gardens" at 0.857
        assert location_matches("northfeild gardns", "Northfield Gardens", "SA")

    def test_unrelated_area_does_not_match(self):
        assert not location_matches("Bondi Beach", "Mawson Lakes", "SA")

    def test_partial_token_overlap_below_coverage(self):
        # Only one of three tokens resembles the city
        assert not location_matches("lakes entrance victoria", "Mawson Lakes", "SA")

    def test_empty_haystacks_are_ignored(self):
        assert not location_matches("glenelg", "", "", address=None)

    def test_short_fragment_without_tokens(self):
        assert not location_matches("xy", "Mawson Lakes", "SA")

    def test_any_matches_short_circuits_on_first_hit(self):
        matcher = LocationMatcher()
        assert matcher.any_matches(["bondi", "mawson lakes"], "Mawson Lakes", "SA")
        assert not matcher.any_matches([], "Mawson Lakes", "SA")
