"""
Tests for the highway data model and distance strategies.
"""

import numpy as np
import pytest

from osmplot.processing.distance import (
    get_distance_function, haversine_distance, pairwise_distances, planar_distance,)
from osmplot.processing.errors import InvalidInputError
from osmplot.processing.geometry import Highway, HighwayPattern, Point, Segment


class TestHighwayPattern:
    """Tests for street-name patterns."""

    @pytest.mark.parametrize("name", ["Shorts Gardens", "Short's Gardens"])
    def test_optional_character(self, name):
        assert HighwayPattern("Short.?s.Gardens").matches(name)

    def test_wildcard_matches_single_character(self):
        pattern = HighwayPattern("Monmouth.St")
        assert pattern.matches("Monmouth St")
        assert pattern.matches("Monmouth-St")
        assert not pattern.matches("MonmouthSt")

    def test_substring_search(self):
        assert HighwayPattern("Long.Acre").matches("Long Acre Approach")

    def test_literal_characters_are_escaped(self):
        pattern = HighwayPattern("St (North)")
        assert pattern.matches("St (North)")
        assert not pattern.matches("St North")

    def test_non_string_names_do_not_match(self):
        pattern = HighwayPattern("Main")
        assert not pattern.matches(None)
        assert not pattern.matches(float('nan'))

    def test_compiled_once(self):
        pattern = HighwayPattern("Endell.St")
        regex = pattern.regex
        pattern.matches("Endell Street")
        assert pattern.regex is regex

    def test_empty_pattern_rejected(self):
        with pytest.raises(InvalidInputError):
            HighwayPattern("  ")


class TestSegment:
    """Tests for the point arena and index order of segments."""

    def test_from_coords(self):
        segment = Segment.from_coords([(0, 0), (1, 0)], osm_id=7, node_ids=[10, 11])
        assert segment.coords == [(0.0, 0.0), (1.0, 0.0)]
        assert segment.order == [0, 1]
        assert [p.osm_id for p in segment.nodes] == [10, 11]
        assert segment.osm_id == 7

    def test_mismatched_node_ids_are_dropped(self):
        segment = Segment.from_coords([(0, 0), (1, 0)], node_ids=[10])
        assert [p.osm_id for p in segment.nodes] == [None, None]

    def test_insert_after_appends_to_arena(self):
        segment = Segment.from_coords([(0, 0), (2, 0)])
        index = segment.insert_after(0, Point(1.0, 0.0))

        assert index == 2
        assert segment.order == [0, 2, 1]
        assert segment.coords == [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]
        assert segment.points[0] == Point(0.0, 0.0)
        assert len(segment) == 3

    def test_insert_in_front(self):
        segment = Segment.from_coords([(1, 0), (2, 0)])
        segment.insert_after(-1, Point(0.0, 0.0))
        assert segment.coords == [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]

    def test_endpoints_follow_order(self):
        segment = Segment.from_coords([(0, 0), (2, 0)])
        segment.insert_after(1, Point(3.0, 0.0))
        assert segment.endpoints == (Point(0.0, 0.0), Point(3.0, 0.0))

    def test_needs_two_points(self):
        with pytest.raises(InvalidInputError):
            Segment.from_coords([(0, 0)])

    def test_point_equality_ignores_osm_id(self):
        assert Point(1.0, 2.0, 5) == Point(1.0, 2.0)


class TestHighway:
    """Tests for named highways."""

    def test_keys_span_all_segments(self):
        highway = Highway.from_coords("A", [[(0, 0), (1, 0)], [(2, 0), (3, 0)]])
        assert highway.keys() == {(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (3.0, 0.0)}
        assert highway.n_points == 4
        assert highway.pattern.pattern == "A"


class TestDistance:
    """Tests for distance strategies."""

    def test_planar(self):
        assert planar_distance(0, 0, 3, 4) == pytest.approx(5.0)

    def test_haversine_one_degree_of_latitude(self):
        assert haversine_distance(0, 0, 0, 1) == pytest.approx(111195, rel=1e-3)

    def test_haversine_broadcasts(self):
        distances = haversine_distance(np.array([0.0, 0.0]), np.array([0.0, 0.0]), 0.0, 0.0)
        assert distances.shape == (2,)
        assert np.all(distances == 0)

    def test_get_distance_function(self):
        assert get_distance_function('planar') is planar_distance
        assert get_distance_function('Haversine') is haversine_distance
        custom = lambda *args: 0.0  # noqa: E731
        assert get_distance_function(custom) is custom

    def test_unknown_metric(self):
        with pytest.raises(InvalidInputError, match="Unknown distance metric"):
            get_distance_function('manhattan')

    def test_pairwise_distances(self):
        first = [Point(0.0, 0.0), Point(1.0, 0.0)]
        second = [Point(0.0, 1.0), Point(3.0, 0.0), Point(1.0, 0.0)]
        distances = pairwise_distances(first, second, planar_distance)

        assert distances.shape == (2, 3)
        assert distances[0, 0] == pytest.approx(1.0)
        assert distances[1, 2] == pytest.approx(0.0)
        assert distances[0, 1] == pytest.approx(3.0)
