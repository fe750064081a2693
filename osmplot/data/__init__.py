"""
OSM data access for osmplot.

This package provides bounding box validation and the download of OSM
features and named highways through osmnx.
"""

from osmplot.data.bbox import get_bbox
from osmplot.data.osm_extractor import (
    configure_osmnx, extract_highways, extract_osm_objects, highways_from_lines,)

__all__ = [
    'configure_osmnx',
    'extract_highways',
    'extract_osm_objects',
    'get_bbox',
    'highways_from_lines',
]
