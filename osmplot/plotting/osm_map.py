"""
Static OSM map composition.

A map is a matplotlib figure whose single axes spans the whole canvas and is
limited to the bounding box. Layers (GeoDataFrames, or anything exposing
``to_gdf()``) are drawn on top of each other in the order they are added.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import contextily as ctx
import geopandas as gpd
import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.colors import is_color_like
from matplotlib.ticker import MaxNLocator

from osmplot.config import config
from osmplot.data.bbox import get_bbox
from osmplot.data.osm_extractor import GEOM_TYPES, extract_osm_objects

logger = logging.getLogger(__name__)

STRUCTURE_COLUMNS = ['structure', 'key', 'value', 'suffix', 'cols']

# structure name -> (OSM key, OSM value); an empty value means any value
STRUCTURE_TAGS = {
    'building': ('building', ''),
    'amenity': ('amenity', ''),
    'waterway': ('waterway', ''),
    'grass': ('landuse', 'grass'),
    'natural': ('natural', ''),
    'park': ('leisure', 'park'),
    'highway': ('highway', ''),
    'boundary': ('boundary', ''),
    'tree': ('natural', 'tree'),
}

DEFAULT_STRUCTURES = list(STRUCTURE_TAGS)

COLOUR_SCHEMES = {
    'dark': {
        'building': '#666666',
        'amenity': '#595959',
        'waterway': '#4d4d4d',
        'grass': '#6b6b6b',
        'natural': '#6b6b6b',
        'park': '#6b6b6b',
        'highway': '#1a1a1a',
        'boundary': '#999999',
        'tree': '#737373',
        'background': '#333333',
    },
    'light': {
        'building': '#d9d9d9',
        'amenity': '#cccccc',
        'waterway': '#a6cee3',
        'grass': '#c7e9c0',
        'natural': '#c7e9c0',
        'park': '#a1d99b',
        'highway': '#ffffff',
        'boundary': '#737373',
        'tree': '#74c476',
        'background': '#f0f0f0',
    },
}


def _unique_suffixes(names: List[str]) -> List[str]:
    suffixes = []
    for name in names:
        prefix = name
        for n in range(1, len(name) + 1):
            prefix = name[:n]
            if not any(other != name and other.startswith(prefix) for other in names):
                break
        suffixes.append(prefix.upper())
    return suffixes


def osm_structures(structures: Optional[List[str]] = None,
                   col_scheme: str = 'dark') -> pd.DataFrame:
    """
    Table of map structures, their OSM tags and colours.

    Args:
        structures (list, optional): Structure names, defaults to all known
            structures.
        col_scheme (str): ``'dark'`` or ``'light'``.

    Returns:
        pd.DataFrame: Columns ``structure, key, value, suffix, cols``, with a
            final ``background`` row holding the background colour.
    """
    if col_scheme not in COLOUR_SCHEMES:
        raise ValueError(
            f"Unknown col_scheme '{col_scheme}'. Expected one of: {', '.join(COLOUR_SCHEMES)}")
    structures = list(structures or DEFAULT_STRUCTURES)
    unknown = [s for s in structures if s not in STRUCTURE_TAGS]
    if unknown:
        raise ValueError(f"Unknown structures: {', '.join(unknown)}")

    colours = COLOUR_SCHEMES[col_scheme]
    names = structures + ['background']
    rows = []
    for name, suffix in zip(names, _unique_suffixes(names)):
        key, value = STRUCTURE_TAGS.get(name, ('', ''))
        rows.append([name, key, value, suffix, colours[name]])
    return pd.DataFrame(rows, columns=STRUCTURE_COLUMNS)


def osm_basemap(bbox, structures: Optional[pd.DataFrame] = None,
                bg='#333333', width: float = 10):
    """
    Blank map canvas covering a bounding box.

    Args:
        bbox: Anything accepted by ``get_bbox``.
        structures (pd.DataFrame, optional): Table from ``osm_structures``;
            its background row overrides ``bg``.
        bg: Background colour, used when ``structures`` is not given.
        width (float): Figure width in inches; the height follows the bbox.

    Returns:
        tuple: ``(fig, ax)``.
    """
    bbox = get_bbox(bbox)

    if structures is not None:
        if not isinstance(structures, pd.DataFrame):
            raise ValueError("structures must be a data frame")
        if list(structures.columns) != STRUCTURE_COLUMNS:
            raise ValueError("structures not in recognised format")
        background = structures.loc[structures['structure'] == 'background', 'cols']
        if not background.empty:
            bg = background.iloc[0]

    if isinstance(bg, (list, tuple)) and not is_color_like(bg):
        if len(bg) > 1:
            logger.warning("bg has length > 1; only first element will be used")
        bg = bg[0] if bg else None
    if bg is None or not is_color_like(bg):
        raise ValueError(f"Invalid bg: {bg}")

    (xmin, xmax), (ymin, ymax) = bbox
    height = width * (ymax - ymin) / (xmax - xmin)

    fig = plt.figure(figsize=(width, height))
    fig.patch.set_facecolor(bg)
    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_facecolor(bg)
    ax.set_xlim(xmin, xmax)
    ax.set_ylim(ymin, ymax)
    ax.set_aspect('equal', adjustable='box')
    ax.set_xticks([])
    ax.set_yticks([])
    for spine in ax.spines.values():
        spine.set_visible(False)

    return fig, ax


def add_osm_objects(ax, obj, col='#666666', border=None,
                    linewidth: float = 1.0, size: float = 4.0):
    """
    Overlay OSM objects on a map.

    Args:
        ax: Axes from ``osm_basemap``.
        obj: GeoDataFrame, or an object with a ``to_gdf()`` method such as a
            ``HighwayCycleResult``.
        col: Fill colour for polygons, line colour for lines, marker colour
            for points.
        border: Polygon outline colour (none by default).
        linewidth (float): Line and outline width.
        size (float): Point marker size.

    Returns:
        The axes.
    """
    if not isinstance(obj, gpd.GeoDataFrame) and hasattr(obj, 'to_gdf'):
        obj = obj.to_gdf()
    if not isinstance(obj, gpd.GeoDataFrame):
        raise ValueError("obj must be a GeoDataFrame or provide to_gdf()")
    if not is_color_like(col):
        raise ValueError(f"Invalid col: {col}")
    if border is not None and not is_color_like(border):
        raise ValueError(f"Invalid border: {border}")

    if obj.empty:
        logger.warning("No objects to add to map")
        return ax

    if obj.crs is not None and obj.crs.to_epsg() != 4326:
        obj = obj.to_crs(epsg=4326)

    xlim, ylim = ax.get_xlim(), ax.get_ylim()

    polygons = obj[obj.geom_type.isin(GEOM_TYPES['polygon'])]
    if not polygons.empty:
        polygons.plot(ax=ax, facecolor=col, edgecolor=border or 'none', linewidth=linewidth)
    lines = obj[obj.geom_type.isin(GEOM_TYPES['line'])]
    if not lines.empty:
        lines.plot(ax=ax, color=col, linewidth=linewidth)
    points = obj[obj.geom_type.isin(GEOM_TYPES['point'])]
    if not points.empty:
        points.plot(ax=ax, color=col, markersize=size)

    ax.set_xlim(xlim)
    ax.set_ylim(ylim)
    return ax


def add_axes(ax, colour='black', fontsize: float = 8, nbins: int = 5):
    """
    Draw longitude and latitude ticks inside the map area.

    Returns:
        The axes.
    """
    ax.xaxis.set_major_locator(MaxNLocator(nbins=nbins))
    ax.yaxis.set_major_locator(MaxNLocator(nbins=nbins))
    ax.tick_params(
        axis='both', direction='in', pad=-14, labelsize=fontsize,
        color=colour, labelcolor=colour, labelbottom=True, labelleft=True,
    )
    for label in ax.get_yticklabels():
        label.set_horizontalalignment('left')
    return ax


def add_tiles(ax, source=None, zoom='auto'):
    """
    Add a web tile layer below the existing layers.

    Returns:
        The axes.
    """
    xlim, ylim = ax.get_xlim(), ax.get_ylim()
    try:
        ctx.add_basemap(
            ax,
            source=source or ctx.providers.CartoDB.Positron,
            zoom=zoom,
            crs="EPSG:4326"
        )
    except Exception as e:
        logger.warning(f"Could not add tiles: {e}")
    ax.set_xlim(xlim)
    ax.set_ylim(ylim)
    return ax


def print_osm_map(fig, filename=None, dpi: Optional[int] = None) -> str:
    """
    Save a map to disk and close it.

    Args:
        fig: Figure from ``osm_basemap``.
        filename (str, optional): Output path, defaults to the configured
            ``map.output_file`` in the output directory.
        dpi (int, optional): Resolution, defaults to the configured value.

    Returns:
        str: Path of the written image.
    """
    map_params = config.get_map_params()
    if filename is None:
        filename = config.get_output_path(map_params['output_file'])
    if dpi is None:
        dpi = map_params['dpi']

    output_file = Path(filename)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_file, dpi=dpi, facecolor=fig.get_facecolor())
    plt.close(fig)

    logger.info(f"Map saved to: {output_file}")
    return str(output_file)


def make_osm_map(bbox, structures: Optional[pd.DataFrame] = None,
                 osm_data: Optional[Dict[str, gpd.GeoDataFrame]] = None,
                 width: float = 10) -> Dict[str, Any]:
    """
    Build a map with one layer per structure.

    Layers missing from ``osm_data`` (keyed ``dat_<suffix>``) are downloaded.

    Returns:
        dict: ``figure``, ``axes`` and the (completed) ``osm_data``.
    """
    if structures is None:
        structures = osm_structures()
    osm_data = dict(osm_data or {})

    fig, ax = osm_basemap(bbox, structures=structures, width=width)

    for row in structures.itertuples(index=False):
        if row.structure == 'background':
            continue
        name = f"dat_{row.suffix}"
        if name not in osm_data:
            try:
                osm_data[name] = extract_osm_objects(row.key, bbox, value=row.value or None)
            except Exception as e:
                logger.error(f"Error extracting {row.structure}: {e}")
                continue
        add_osm_objects(ax, osm_data[name], col=row.cols)

    return {'figure': fig, 'axes': ax, 'osm_data': osm_data}
