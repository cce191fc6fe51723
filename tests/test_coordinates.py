"""
Tests for GPS longitude sign correction

Covers the normalizer rule at the edges of the latitude band, the shape
preserving adapter (mapping, pair and "lat,lng" string) and the collection
corrector used by the bulk fix.
"""

import copy
import math

import pytest

from photoblog.core.coordinates import (
    changed_indexes,
    correct_collection,
    correct_coordinate_string,
    correct_coordinates,
    correct_metadata,
    correct_pair,
    count_changed,
    format_number,
    map_coordinates,
    normalize,
    parse_coordinates,
    parse_float,
)


# =============================================================================
# NORMALIZER
# =============================================================================

class TestNormalize:
    """The sign flip inside the 24-50 degree latitude band"""

    @pytest.mark.parametrize(
        "latitude, longitude, expected",
        [
            (24, 100, (24, -100)),
            (23.999, 100, (23.999, 100)),
            (50, 100, (50, -100)),
            (50.001, 100, (50.001, 100)),
            (10, 50, (10, 50)),
            (40.7128, -74.006, (40.7128, -74.006)),
            (40.7128, 0, (40.7128, 0)),
            (-33.86, 151.2, (-33.86, 151.2)),
        ],
    )
    def test_band_boundaries(self, latitude, longitude, expected):
        assert normalize(latitude, longitude) == expected

    @pytest.mark.parametrize(
        "latitude, longitude",
        [(24, 100), (35.5, 80.1), (50, 0.0001), (10, 50), (45, -120), (60, 10)],
    )
    def test_idempotent(self, latitude, longitude):
        once = normalize(latitude, longitude)
        assert normalize(*once) == once

    def test_negative_longitude_kept(self):
        for longitude in (0.5, 74.006, 179.9):
            assert normalize(37.0, -longitude) == (37.0, -longitude)


# =============================================================================
# STRING SHAPE
# =============================================================================

class TestCoordinateString:

    def test_positive_longitude_flipped(self):
        assert correct_coordinate_string("40.7128,74.0060") == "40.7128,-74.006"

    def test_correct_string_unchanged(self):
        text = "40.7128,-74.0060"
        assert correct_coordinate_string(text) is text

    def test_outside_band_unchanged(self):
        assert correct_coordinate_string("51.5074,0.1278") == "51.5074,0.1278"

    def test_whitespace_tolerated(self):
        assert correct_coordinate_string("40.5, 73.25") == "40.5,-73.25"

    def test_integral_values_formatted_without_decimals(self):
        assert correct_coordinate_string("40,74") == "40,-74"

    @pytest.mark.parametrize("text", ["", "abc", "40.7", "40.7,", ",74", "north,west"])
    def test_malformed_returned_as_is(self, text):
        assert correct_coordinate_string(text) == text

    def test_parse_float_reads_leading_number(self):
        assert parse_float(" 74.5abc") == 74.5
        assert math.isnan(parse_float("abc"))

    def test_parse_float_reads_infinity(self):
        assert parse_float("Infinity") == math.inf
        assert parse_float(" -Infinity,") == -math.inf
        assert math.isnan(parse_float("inf"))

    def test_infinite_longitude_flipped(self):
        assert correct_coordinate_string("40,Infinity") == "40,-Infinity"

    def test_parse_coordinates(self):
        assert parse_coordinates("40.1,-70.2") == (40.1, -70.2)
        assert parse_coordinates("40.1") is None

    def test_format_number(self):
        assert format_number(-74.0) == "-74"
        assert format_number(-74.006) == "-74.006"
        assert format_number(12) == "12"


# =============================================================================
# METADATA ADAPTER
# =============================================================================

class TestCorrectMetadata:

    def test_flips_and_rebuilds_coordinates(self, sample_metadata):
        original = copy.deepcopy(sample_metadata)

        result = correct_metadata(sample_metadata)

        assert result == {
            "latitude": 40.7128,
            "longitude": -74.006,
            "coordinates": "40.7128,-74.006",
            "originalLocation": "New York",
        }
        assert sample_metadata == original
        assert result is not sample_metadata

    def test_no_change_returns_same_object(self):
        metadata = {"latitude": 40.7128, "longitude": -74.006, "originalLocation": "NYC"}
        assert correct_metadata(metadata) is metadata

    def test_coordinates_key_not_added(self):
        result = correct_metadata({"latitude": 30.0, "longitude": 90.0})
        assert result == {"latitude": 30.0, "longitude": -90.0}

    def test_missing_longitude_unchanged(self):
        metadata = {"latitude": 40.0, "coordinates": "40,74"}
        assert correct_metadata(metadata) is metadata

    def test_string_only_metadata_corrected(self):
        metadata = {"coordinates": "35.2,80.8", "originalLocation": "Charlotte"}
        assert correct_metadata(metadata) == {
            "coordinates": "35.2,-80.8",
            "originalLocation": "Charlotte",
        }

    def test_non_numeric_values_passed_through(self):
        metadata = {"latitude": "40", "longitude": "74"}
        assert correct_metadata(metadata) is metadata

    def test_booleans_are_not_coordinates(self):
        metadata = {"latitude": True, "longitude": True}
        assert correct_metadata(metadata) is metadata


class TestCorrectPair:

    def test_flipped(self):
        assert correct_pair(40.7128, 74.006) == (40.7128, -74.006)

    def test_outside_band(self):
        assert correct_pair(10.0, 74.0) == (10.0, 74.0)

    @pytest.mark.parametrize("latitude, longitude", [(40.0, None), (None, 74.0), (None, None), ("40", 74.0)])
    def test_missing_or_non_numeric_passed_through(self, latitude, longitude):
        assert correct_pair(latitude, longitude) == (latitude, longitude)


class TestCorrectCoordinates:
    """Output has the same shape as the input"""

    def test_tuple(self):
        assert correct_coordinates((40.0, 74.0)) == (40.0, -74.0)

    def test_list(self):
        assert correct_coordinates([40.0, 74.0]) == [40.0, -74.0]

    def test_pair_unchanged_is_same_object(self):
        pair = (10.0, 74.0)
        assert correct_coordinates(pair) is pair

    def test_partial_pair_unchanged(self):
        pair = (40.0, None)
        assert correct_coordinates(pair) is pair

    def test_string(self):
        assert correct_coordinates("40.7128,74.006") == "40.7128,-74.006"

    def test_mapping(self, sample_metadata):
        assert correct_coordinates(sample_metadata)["longitude"] == -74.006

    def test_unknown_shape_unchanged(self):
        assert correct_coordinates(None) is None


class TestMapCoordinates:

    def test_coordinates_string_wins(self):
        metadata = {"latitude": 1.0, "longitude": 2.0, "coordinates": "40.7128,74.006"}
        assert map_coordinates(metadata) == "40.7128,-74.006"

    def test_built_from_numbers(self):
        assert map_coordinates({"latitude": 45.5, "longitude": 122.6}) == "45.5,-122.6"

    def test_unknown(self):
        assert map_coordinates(None) == ""
        assert map_coordinates({"originalLocation": "Somewhere"}) == ""


# =============================================================================
# COLLECTION CORRECTOR
# =============================================================================

@pytest.fixture
def five_records():
    """Two fixable photos, one already correct, one bare, one latitude only"""
    return [
        {"id": 1, "metadata": {"latitude": 40.7128, "longitude": 74.006, "coordinates": "40.7128,74.006"}},
        {"id": 2, "metadata": {"latitude": 34.05, "longitude": 118.24}},
        {"id": 3, "metadata": {"latitude": 41.88, "longitude": -87.63}},
        {"id": 4},
        {"id": 5, "metadata": {"latitude": 39.74}},
    ]


class TestCorrectCollection:

    def test_reports_two_changed(self, five_records):
        corrected = correct_collection(five_records)

        assert len(corrected) == len(five_records)
        assert count_changed(five_records, corrected) == 2
        assert changed_indexes(five_records, corrected) == [0, 1]

    def test_corrected_values(self, five_records):
        corrected = correct_collection(five_records)

        assert corrected[0]["metadata"] == {
            "latitude": 40.7128,
            "longitude": -74.006,
            "coordinates": "40.7128,-74.006",
        }
        assert corrected[1]["metadata"]["longitude"] == -118.24
        assert [record["id"] for record in corrected] == [1, 2, 3, 4, 5]

    def test_untouched_records_are_same_objects(self, five_records):
        corrected = correct_collection(five_records)
        for index in (2, 3, 4):
            assert corrected[index] is five_records[index]

    def test_input_not_mutated(self, five_records):
        snapshot = copy.deepcopy(five_records)
        nested = [record.get("metadata") for record in five_records]

        correct_collection(five_records)

        assert five_records == snapshot
        assert [record.get("metadata") for record in five_records] == nested
        for record, metadata in zip(five_records, nested):
            assert record.get("metadata") is metadata

    def test_second_pass_changes_nothing(self, five_records):
        once = correct_collection(five_records)
        twice = correct_collection(once)
        assert count_changed(once, twice) == 0

    def test_malformed_records_pass_through(self):
        records = [
            {"metadata": None},
            {"metadata": "40,74"},
            {"metadata": {"latitude": "40", "longitude": 74}},
            {"metadata": {"latitude": float("nan"), "longitude": 74.0}},
        ]
        corrected = correct_collection(records)
        assert all(after is before for before, after in zip(records, corrected))
        assert count_changed(records, corrected) == 0

    def test_empty(self):
        assert correct_collection([]) == []
