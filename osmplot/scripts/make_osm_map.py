"""
Standalone script to render an OSM map with a highlighted highway boundary.

The bounding box, highway names and rendering options default to the values
in ``osmplot/config/config.yaml``.

Usage:
    python -m osmplot.scripts.make_osm_map --plot-diagnostics
    python -m osmplot.scripts.make_osm_map --bbox=-0.13,51.51,-0.11,51.52 \
        --highways "Monmouth.St" "Short.?s.Gardens" "Endell.St" "Long.Acre"
"""
import argparse
import time
from typing import List, Optional

from osmplot.config import config
from osmplot.data.bbox import get_bbox
from osmplot.data.osm_extractor import configure_osmnx, extract_highways
from osmplot.plotting.osm_map import (
    add_osm_objects, make_osm_map, osm_basemap, osm_structures, print_osm_map,)
from osmplot.plotting.plot_highway_cycle import plot_highway_cycle
from osmplot.processing.errors import HighwayCycleError
from osmplot.processing.highway_cycle import connect_highways
from osmplot.utils import configure_package_logging, create_logger

logger = create_logger(
    name="MakeOSMMap",
    log_level=config.log_level,
    log_file=config.log_file,
)

BOUNDARY_COLOUR = '#e31a1c'


def run(bbox=None, highways: Optional[List[str]] = None, output: Optional[str] = None,
        structures: bool = True, plot_diagnostics: bool = False):
    """
    Render a map for the bbox and outline the region enclosed by the highways.

    Args:
        bbox: Bounding box, defaults to the configured one.
        highways (list, optional): Highway name patterns, defaults to the
            configured ones; an empty list skips the boundary.
        output (str, optional): Output image path.
        structures (bool): Whether to download and draw the structure layers.
        plot_diagnostics (bool): Whether to save the highway diagnostic plot.

    Returns:
        dict: ``map_file``, ``result`` (HighwayCycleResult or None) and
            ``diagnostics_file``.
    """
    start_time = time.time()
    logger.info("Starting OSM map generation")

    outputs = {'map_file': None, 'result': None, 'diagnostics_file': None}

    try:
        bbox = get_bbox(bbox if bbox is not None else config.get_bbox())
        if highways is None:
            highways = config.get_highways()
        configure_osmnx(config.get_osm_config())
        map_params = config.get_map_params()

        if structures:
            osm_map = make_osm_map(
                bbox,
                structures=osm_structures(col_scheme=map_params['col_scheme']),
                width=map_params['width'],
            )
            fig, ax = osm_map['figure'], osm_map['axes']
        else:
            fig, ax = osm_basemap(bbox, width=map_params['width'])

        if highways:
            extracted = extract_highways(highways, bbox)
            result = connect_highways(extracted)
            outputs['result'] = result
            if not result.complete:
                for error in result.errors:
                    logger.warning(f"{error.kind}: {error.message}")
            add_osm_objects(ax, result, col=BOUNDARY_COLOUR, linewidth=2.0)
            if plot_diagnostics:
                outputs['diagnostics_file'] = plot_highway_cycle(extracted, result)

        outputs['map_file'] = print_osm_map(fig, output)
        logger.info("OSM map generation completed successfully.")

    except HighwayCycleError as he:
        logger.error("Invalid highway input: %s", he, exc_info=True)
    except ValueError as ve:
        logger.error("Configuration or validation error: %s", ve, exc_info=True)
    except RuntimeError as re:
        logger.error("Runtime error during execution: %s", re, exc_info=True)
    except Exception as e:
        logger.error("An unexpected error occurred: %s", e, exc_info=True)
    finally:
        end_time = time.time()
        total_time = end_time - start_time
        logger.info(
            "OSM map generation finished in %.2f seconds", total_time
        )

    return outputs


def main(argv=None):
    """Main entry point for the script."""
    parser = argparse.ArgumentParser(
        description="Render an OSM map and outline the region enclosed by "
        "a set of named highways."
    )
    parser.add_argument(
        "--bbox",
        type=str,
        default=None,
        help="Bounding box as xmin,ymin,xmax,ymax. Defaults to the configured bbox.",
    )
    parser.add_argument(
        "--highways",
        nargs="*",
        default=None,
        help="Highway name patterns. Defaults to the configured highways.",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output image path. Defaults to the configured output file.",
    )
    parser.add_argument(
        "--no-structures",
        action="store_true",
        help="If set, skip downloading and drawing the structure layers.",
    )
    parser.add_argument(
        "--plot-diagnostics",
        action="store_true",
        help="If set, save a diagnostic plot of the highways and their connections.",
    )
    args = parser.parse_args(argv)

    configure_package_logging(config.log_level, config.log_file)
    return run(
        bbox=args.bbox,
        highways=args.highways,
        output=args.output,
        structures=not args.no_structures,
        plot_diagnostics=args.plot_diagnostics,
    )


if __name__ == "__main__":
    main()
