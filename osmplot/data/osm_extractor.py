"""
OpenStreetMap data retrieval.

Downloads OSM features inside a bounding box through osmnx (Overpass API) and
turns named highway lines into the ``Highway`` model used by the highway
connection algorithm.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import geopandas as gpd
import osmnx as ox
import pandas as pd
from osmnx._errors import InsufficientResponseError
from tqdm import tqdm

from osmplot.data.bbox import get_bbox
from osmplot.processing.errors import InvalidInputError
from osmplot.processing.geometry import Highway, HighwayPattern, Segment

logger = logging.getLogger(__name__)

GEOM_TYPES = {
    'polygon': ('Polygon', 'MultiPolygon'),
    'line': ('LineString', 'MultiLineString'),
    'point': ('Point', 'MultiPoint'),
}


def configure_osmnx(osm_config: Optional[Dict[str, Any]] = None):
    """
    Apply download settings to osmnx.

    Args:
        osm_config (dict, optional): ``use_cache``, ``requests_timeout`` and
            ``overpass_url`` keys; missing keys leave osmnx defaults alone.
    """
    osm_config = osm_config or {}
    ox.settings.log_console = False
    if 'use_cache' in osm_config:
        ox.settings.use_cache = bool(osm_config['use_cache'])
    if osm_config.get('requests_timeout'):
        ox.settings.requests_timeout = int(osm_config['requests_timeout'])
    if osm_config.get('overpass_url'):
        ox.settings.overpass_url = osm_config['overpass_url']


def _empty_gdf() -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame(geometry=[], crs="EPSG:4326")


def extract_osm_objects(
        key: str,
        bbox,
        value: Optional[str] = None,
        extra_pairs: Optional[Sequence[Tuple[str, str]]] = None,
        geom_type: Optional[str] = None) -> gpd.GeoDataFrame:
    """
    Download OSM features with a given key (and optionally value) in a bbox.

    Args:
        key (str): OSM key, e.g. ``'building'`` or ``'highway'``.
        bbox: Anything accepted by ``get_bbox``.
        value (str, optional): OSM value; a leading ``!`` excludes that value
            instead.
        extra_pairs (list, optional): ``(key, value)`` pairs that every
            returned feature must also carry.
        geom_type (str, optional): ``'polygon'``, ``'line'`` or ``'point'``.

    Returns:
        gpd.GeoDataFrame: Matching features in EPSG:4326, possibly empty.
    """
    if not key:
        raise InvalidInputError("key must be provided")
    if geom_type is not None and geom_type not in GEOM_TYPES:
        raise InvalidInputError(
            f"geom_type must be one of {', '.join(GEOM_TYPES)}, got '{geom_type}'")

    bbox = get_bbox(bbox)
    west, east = bbox[0]
    south, north = bbox[1]

    exclude = None
    if value is not None and str(value).startswith('!'):
        exclude = str(value)[1:]
        value = None
    tags = {key: value if value is not None else True}

    logger.info(f"Extracting OSM objects {tags} in bbox "
                f"({west}, {south}, {east}, {north})")
    try:
        gdf = ox.features_from_bbox(bbox=(west, south, east, north), tags=tags)
    except InsufficientResponseError:
        logger.warning(f"No OSM objects found for {tags}")
        return _empty_gdf()

    if exclude is not None and key in gdf.columns:
        gdf = gdf[gdf[key] != exclude]

    for extra_key, extra_value in extra_pairs or []:
        if extra_key not in gdf.columns:
            logger.warning(f"No objects carry the key '{extra_key}'")
            return _empty_gdf()
        gdf = gdf[gdf[extra_key] == extra_value]

    if geom_type is not None:
        gdf = gdf[gdf.geom_type.isin(GEOM_TYPES[geom_type])]

    logger.info(f"Found {len(gdf)} OSM objects for {tags}")
    return gdf


def _row_segments(osm_id, geometry, node_ids) -> List[Segment]:
    if geometry is None or geometry.is_empty:
        return []
    if geometry.geom_type == 'LineString':
        lines = [geometry]
    elif geometry.geom_type == 'MultiLineString':
        lines = list(geometry.geoms)
        node_ids = None
    elif geometry.geom_type == 'Polygon':
        lines = [geometry.exterior]
    else:
        return []

    segments = []
    for line in lines:
        coords = list(line.coords)
        if len(coords) >= 2:
            segments.append(Segment.from_coords(coords, osm_id=osm_id, node_ids=node_ids))
    return segments


def highways_from_lines(names: Sequence[str], lines: gpd.GeoDataFrame) -> List[Highway]:
    """
    Match highway name patterns against a GeoDataFrame of OSM lines.

    Raises:
        InvalidInputError: if no names are given, the data carry no ``name``
            column, or a pattern matches nothing.
    """
    if not names:
        raise InvalidInputError("No highway names given")
    if 'name' not in lines.columns:
        raise InvalidInputError("OSM data carry no 'name' column", highways=list(names))

    highways = []
    for name in tqdm(names, desc="Matching highways"):
        pattern = HighwayPattern(name)
        matched = lines[lines['name'].apply(pattern.matches)]

        segments = []
        for idx, row in matched.iterrows():
            osm_id = idx[-1] if isinstance(idx, tuple) else idx
            node_ids = row.get('nodes')
            if not isinstance(node_ids, (list, tuple)):
                node_ids = None
            segments.extend(_row_segments(osm_id, row.geometry, node_ids))

        if not segments:
            raise InvalidInputError(f"No segments match highway '{name}'", highways=[name])

        matched_names = sorted(set(matched['name'].dropna().astype(str)))
        logger.info(f"Highway '{name}': {len(segments)} segments "
                    f"({'; '.join(matched_names)})")
        highways.append(Highway(name, segments))

    return highways


def extract_highways(names: Sequence[str], bbox,
                     osm_data: Optional[gpd.GeoDataFrame] = None) -> List[Highway]:
    """
    Extract named highways within a bbox.

    Args:
        names (list): Highway name patterns (see ``HighwayPattern``).
        bbox: Anything accepted by ``get_bbox``.
        osm_data (GeoDataFrame, optional): Pre-fetched highway lines; fetched
            with ``extract_osm_objects`` when omitted.

    Returns:
        list: One ``Highway`` per name, in the given order.
    """
    if not names:
        raise InvalidInputError("No highway names given")
    if osm_data is None:
        osm_data = extract_osm_objects('highway', bbox, geom_type='line')
    if isinstance(osm_data, pd.DataFrame) and osm_data.empty:
        raise InvalidInputError("No highways found in bbox", highways=list(names))
    return highways_from_lines(names, osm_data)
