"""
Map rendering for osmplot.
"""

from osmplot.plotting.osm_map import (
    add_axes, add_osm_objects, add_tiles, make_osm_map, osm_basemap, osm_structures,
    print_osm_map,)
from osmplot.plotting.plot_highway_cycle import plot_highway_cycle

__all__ = [
    'add_axes',
    'add_osm_objects',
    'add_tiles',
    'make_osm_map',
    'osm_basemap',
    'osm_structures',
    'plot_highway_cycle',
    'print_osm_map',
]
