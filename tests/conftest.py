"""Shared test fixtures for osmplot tests."""

from typing import List

import geopandas as gpd
import matplotlib
import pandas as pd
import pytest
from shapely.geometry import LineString, MultiLineString, Point

from osmplot.processing.geometry import Highway

matplotlib.use("Agg")


@pytest.fixture
def rectangle_highways() -> List[Highway]:
    """Four highways sharing exactly one corner with each neighbour."""
    return [
        Highway.from_coords("North St", [[(0.0, 1.0), (1.0, 1.0)]]),
        Highway.from_coords("East St", [[(1.0, 1.0), (1.0, 0.0)]]),
        Highway.from_coords("South St", [[(1.0, 0.0), (0.0, 0.0)]]),
        Highway.from_coords("West St", [[(0.0, 0.0), (0.0, 1.0)]]),
    ]


@pytest.fixture
def gap_highways() -> List[Highway]:
    """Rectangle whose west side stops 0.1 short of the north-west corner."""
    return [
        Highway.from_coords("North St", [[(0.0, 1.0), (1.0, 1.0)]]),
        Highway.from_coords("East St", [[(1.0, 1.0), (1.0, 0.0)]]),
        Highway.from_coords("South St", [[(1.0, 0.0), (0.0, 0.0)]]),
        Highway.from_coords("West St", [[(0.0, 0.0), (0.0, 0.9)]]),
    ]


@pytest.fixture
def isolated_highways(rectangle_highways) -> List[Highway]:
    """Rectangle plus a fifth highway touching nothing."""
    return rectangle_highways + [
        Highway.from_coords("Lonely Lane", [[(5.0, 5.0), (6.0, 5.0)]]),
    ]


@pytest.fixture
def split_highways() -> List[Highway]:
    """Rectangle whose north side comes as two disjoint pieces, one reversed."""
    return [
        Highway.from_coords("North St", [
            [(0.0, 1.0), (0.4, 1.0)],
            [(1.0, 1.0), (0.6, 1.0)],
        ]),
        Highway.from_coords("East St", [[(1.0, 1.0), (1.0, 0.0)]]),
        Highway.from_coords("South St", [[(1.0, 0.0), (0.0, 0.0)]]),
        Highway.from_coords("West St", [[(0.0, 0.0), (0.0, 1.0)]]),
    ]


@pytest.fixture
def sample_highway_lines() -> gpd.GeoDataFrame:
    """OSM highway lines as returned by osmnx, indexed by (element, id)."""
    data = {
        'name': ['Monmouth Street', "Short's Gardens", 'Shorts Gardens',
                 'Endell Street', None],
        'highway': ['residential', 'residential', 'residential', 'tertiary', 'footway'],
        'nodes': [[1, 2, 3], [3, 4], None, [5, 6], [7, 8]],
        'geometry': [
            LineString([(-0.1280, 51.5140), (-0.1275, 51.5145), (-0.1270, 51.5150)]),
            LineString([(-0.1270, 51.5150), (-0.1260, 51.5148)]),
            MultiLineString([[(-0.1255, 51.5147), (-0.1250, 51.5146)],
                             [(-0.1249, 51.5146), (-0.1245, 51.5145)]]),
            LineString([(-0.1250, 51.5146), (-0.1260, 51.5130)]),
            LineString([(-0.1200, 51.5100), (-0.1210, 51.5110)]),
        ],
    }
    index = [('way', 101), ('way', 102), ('way', 103), ('way', 104), ('way', 105)]
    gdf = gpd.GeoDataFrame(data, crs="EPSG:4326")
    gdf.index = pd.MultiIndex.from_tuples(index, names=['element', 'id'])
    return gdf


@pytest.fixture
def sample_structure_data() -> gpd.GeoDataFrame:
    """Mixed geometry layer."""
    return gpd.GeoDataFrame({
        'building': ['yes', 'yes', 'yes'],
        'geometry': [
            LineString([(-0.125, 51.512), (-0.120, 51.515)]),
            Point(-0.122, 51.513),
            Point(-0.121, 51.514).buffer(0.0005),
        ],
    }, crs="EPSG:4326")
