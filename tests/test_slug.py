"""
Tests for slug generation and geo helpers.
"""

import pytest

from storefront.utils.slug import slugify, count_slug_matches, candidate_slugs
from storefront.utils.geo import haversine_distance, bounding_box


class TestSlugify:
    """Test name to slug conversion."""

    def test_lowercases_and_hyphenates(self):
        assert slugify("Coffee Shop") == "coffee-shop"

    def test_collapses_punctuation(self):
        assert slugify("  Bob's   Burgers & Fries!! ") == "bob-s-burgers-fries"

    def test_folds_accents(self):
        assert slugify("Café Crème") == "cafe-creme"

    def test_empty_name_falls_back(self):
        assert slugify("!!!") == "store"
        assert slugify("") == "store"


class TestSlugCandidates:
    """Test suffix selection for colliding slugs."""

    def test_no_matches_uses_base(self):
        assert candidate_slugs("coffee-shop", [], 1) == ["coffee-shop"]

    def test_one_match_gets_suffix_two(self):
        assert candidate_slugs("coffee-shop", ["coffee-shop"], 1) == ["coffee-shop-2"]

    def test_suffix_is_match_count_plus_one(self):
        existing = ["coffee-shop", "coffee-shop-2", "coffee-shop-3"]
        assert candidate_slugs("coffee-shop", existing, 1) == ["coffee-shop-4"]

    def test_unrelated_slugs_do_not_count(self):
        existing = ["coffee-shop-deluxe", "coffee-shops", "coffee-shop"]
        assert count_slug_matches("coffee-shop", existing) == 1

    def test_retries_bump_suffix(self):
        assert candidate_slugs("coffee-shop", [], 3) == ["coffee-shop", "coffee-shop-2", "coffee-shop-3"]
        assert candidate_slugs("coffee-shop", ["coffee-shop"], 2) == ["coffee-shop-2", "coffee-shop-3"]


class TestGeo:
    """Test distance helpers."""

    def test_zero_distance(self):
        assert haversine_distance(43.65, -79.38, 43.65, -79.38) == pytest.approx(0.0)

    def test_known_distance(self):
        # One degree of latitude is roughly 111 km
        assert haversine_distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_195, rel=0.01)

    def test_bounding_box_contains_radius(self):
        min_lat, max_lat, min_lng, max_lng = bounding_box(43.65, -79.38, 10000)
        assert min_lat < 43.65 < max_lat
        assert min_lng < -79.38 < max_lng
        assert haversine_distance(43.65, -79.38, max_lat, -79.38) == pytest.approx(10000, rel=0.01)
