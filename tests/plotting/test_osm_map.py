"""
Tests for static OSM map composition.
"""

import logging
from pathlib import Path
from unittest.mock import patch

import geopandas as gpd
import matplotlib.pyplot as plt
import pandas as pd
import pytest

from osmplot.plotting import osm_map
from osmplot.plotting.osm_map import (
    STRUCTURE_COLUMNS, add_axes, add_osm_objects, add_tiles, make_osm_map, osm_basemap,
    osm_structures, print_osm_map,)
from osmplot.processing.geometry import Point
from osmplot.processing.highway_cycle import HighwayCycleResult

BBOX = [-0.13, 51.51, -0.11, 51.52]


@pytest.fixture
def basemap():
    fig, ax = osm_basemap(BBOX)
    yield fig, ax
    plt.close(fig)


class TestOsmStructures:
    """Tests for the structure table."""

    def test_default_structures(self):
        structures = osm_structures()

        assert list(structures.columns) == STRUCTURE_COLUMNS
        assert structures['structure'].iloc[-1] == 'background'
        assert list(structures['suffix']) == [
            'BU', 'A', 'W', 'G', 'N', 'P', 'H', 'BO', 'T', 'BA']

    def test_tags(self):
        structures = osm_structures(['grass', 'building']).set_index('structure')

        assert structures.loc['grass', 'key'] == 'landuse'
        assert structures.loc['grass', 'value'] == 'grass'
        assert structures.loc['building', 'value'] == ''

    def test_colour_schemes(self):
        dark = osm_structures(col_scheme='dark')
        light = osm_structures(col_scheme='light')

        assert dark['cols'].iloc[-1] == '#333333'
        assert light['cols'].iloc[-1] == '#f0f0f0'

    def test_unknown_scheme(self):
        with pytest.raises(ValueError, match="col_scheme"):
            osm_structures(col_scheme='neon')

    def test_unknown_structure(self):
        with pytest.raises(ValueError, match="Unknown structures"):
            osm_structures(['building', 'castle'])


class TestOsmBasemap:
    """Tests for the blank map canvas."""

    def test_axes_cover_bbox(self, basemap):
        fig, ax = basemap

        assert ax.get_xlim() == pytest.approx((-0.13, -0.11))
        assert ax.get_ylim() == pytest.approx((51.51, 51.52))
        assert fig.get_figwidth() == pytest.approx(10)
        assert fig.get_figheight() == pytest.approx(5)
        assert list(ax.get_xticks()) == []

    def test_background_from_structures(self):
        fig, ax = osm_basemap(BBOX, structures=osm_structures(col_scheme='light'))
        try:
            assert ax.get_facecolor()[:3] == pytest.approx((240 / 255,) * 3)
        finally:
            plt.close(fig)

    def test_structures_must_be_data_frame(self):
        with pytest.raises(ValueError, match="must be a data frame"):
            osm_basemap(BBOX, structures=['building'])

    def test_structures_format(self):
        with pytest.raises(ValueError, match="recognised format"):
            osm_basemap(BBOX, structures=pd.DataFrame({'structure': ['building']}))

    def test_invalid_bg(self):
        with pytest.raises(ValueError, match="Invalid bg"):
            osm_basemap(BBOX, bg='not-a-colour')

    def test_bg_list_uses_first_element(self, caplog):
        with caplog.at_level(logging.WARNING):
            fig, ax = osm_basemap(BBOX, bg=['red', 'blue'])
        try:
            assert ax.get_facecolor()[:3] == pytest.approx((1.0, 0.0, 0.0))
            assert "only first element" in caplog.text
        finally:
            plt.close(fig)


class TestAddOsmObjects:
    """Tests for overlaying layers."""

    def test_mixed_geometries(self, basemap, sample_structure_data):
        _, ax = basemap
        add_osm_objects(ax, sample_structure_data, col='#ff0000', border='black')

        assert ax.get_xlim() == pytest.approx((-0.13, -0.11))
        assert len(ax.collections) == 3

    def test_reprojects(self, basemap, sample_structure_data):
        _, ax = basemap
        add_osm_objects(ax, sample_structure_data.to_crs(epsg=3857))

        offsets = ax.collections[-1].get_offsets()
        assert offsets[0][0] == pytest.approx(-0.122)

    def test_object_with_to_gdf(self, basemap):
        _, ax = basemap
        result = HighwayCycleResult(
            highways=['a', 'b', 'c'], cycle=[0, 1, 2],
            path=[Point(-0.125, 51.512), Point(-0.12, 51.512),
                  Point(-0.12, 51.515), Point(-0.125, 51.512)])
        add_osm_objects(ax, result, col='red', linewidth=2.0)

        assert len(ax.collections) == 1

    def test_empty_layer_is_skipped(self, basemap, caplog):
        _, ax = basemap
        with caplog.at_level(logging.WARNING):
            add_osm_objects(ax, gpd.GeoDataFrame(geometry=[], crs="EPSG:4326"))

        assert len(ax.collections) == 0
        assert "No objects" in caplog.text

    def test_invalid_arguments(self, basemap, sample_structure_data):
        _, ax = basemap
        with pytest.raises(ValueError, match="GeoDataFrame"):
            add_osm_objects(ax, [1, 2, 3])
        with pytest.raises(ValueError, match="Invalid col"):
            add_osm_objects(ax, sample_structure_data, col='nope')
        with pytest.raises(ValueError, match="Invalid border"):
            add_osm_objects(ax, sample_structure_data, border='nope')


def test_add_axes(basemap):
    _, ax = basemap
    add_axes(ax, colour='white')
    assert len(ax.get_xticks()) > 0


def test_add_tiles_failure_is_logged(basemap, caplog):
    _, ax = basemap
    with patch.object(osm_map.ctx, 'add_basemap', side_effect=ConnectionError("offline")):
        with caplog.at_level(logging.WARNING):
            add_tiles(ax)

    assert "Could not add tiles" in caplog.text
    assert ax.get_xlim() == pytest.approx((-0.13, -0.11))


def test_add_tiles_uses_lonlat_crs(basemap):
    _, ax = basemap
    with patch.object(osm_map.ctx, 'add_basemap') as mock_basemap:
        add_tiles(ax, source='https://tiles.example.org/{z}/{x}/{y}.png', zoom=15)

    mock_basemap.assert_called_once_with(
        ax, source='https://tiles.example.org/{z}/{x}/{y}.png', zoom=15, crs="EPSG:4326")


def test_print_osm_map(basemap, tmp_path):
    fig, _ = basemap
    output = print_osm_map(fig, tmp_path / "maps" / "map.png", dpi=20)

    assert output == str(tmp_path / "maps" / "map.png")
    assert Path(output).exists()
    assert not plt.fignum_exists(fig.number)


class TestMakeOsmMap:
    """Tests for building a map from structure layers."""

    def test_downloads_missing_layers(self, sample_structure_data):
        structures = osm_structures(['building', 'park'])
        with patch.object(osm_map, 'extract_osm_objects',
                          return_value=sample_structure_data) as mock_extract:
            result = make_osm_map(BBOX, structures=structures,
                                  osm_data={'dat_BU': sample_structure_data})
        try:
            mock_extract.assert_called_once_with('leisure', BBOX, value='park')
            assert set(result['osm_data']) == {'dat_BU', 'dat_P'}
            assert len(result['axes'].collections) == 6
        finally:
            plt.close(result['figure'])

    def test_failed_download_is_skipped(self, caplog):
        structures = osm_structures(['building'])
        with patch.object(osm_map, 'extract_osm_objects',
                          side_effect=RuntimeError("overpass down")):
            with caplog.at_level(logging.ERROR):
                result = make_osm_map(BBOX, structures=structures)
        try:
            assert result['osm_data'] == {}
            assert "Error extracting building" in caplog.text
        finally:
            plt.close(result['figure'])
