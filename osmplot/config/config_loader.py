import logging
import os
from pathlib import Path
from typing import Any, Dict, List

import yaml

DEFAULT_PROCESSING = {
    'tolerance': 5.0,
    'distance_metric': 'haversine',
    'max_bridge_distance': None,
    'max_stitch_attempts': None,
}

DEFAULT_MAP = {
    'col_scheme': 'dark',
    'width': 10,
    'dpi': 300,
    'output_file': 'map.png',
}


class ConfigLoader:
    """
    Load and manage configuration settings from YAML files for osmplot.

    This class is designed to be used as a singleton. A single instance is
    created at the module level, which should be imported by other parts of
    the application.
    """

    def __init__(self, config_path=None):
        """
        Initialize the ConfigLoader, load the YAML file, and set key config
        properties as attributes.
        """
        self.logger = logging.getLogger(__name__)

        if config_path is None:
            # Default to config.yaml in the same directory as this script
            self.config_path = os.path.join(os.path.dirname(__file__), 'config.yaml')
        else:
            self.config_path = config_path

        self.config: Dict[str, Any] = self._load_config()

        # Expose logging configuration as direct attributes for simple access
        self.log_level: int = self._parse_log_level()
        self.log_file: str = self._parse_log_file()

        self._validate_bbox()

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Returns:
            dict: Configuration as a dictionary
        """
        try:
            with open(self.config_path, 'r') as f:
                config_data = yaml.safe_load(f) or {}
                self.logger.info(f"Loaded configuration from {self.config_path}")
                return config_data
        except FileNotFoundError:
            self.logger.error(f"Configuration file not found: {self.config_path}")
            raise
        except yaml.YAMLError as e:
            self.logger.error(f"Error parsing YAML configuration: {str(e)}")
            raise

    def _parse_log_level(self) -> int:
        """Get the logging level from the configuration.
        Returns:
            int: The logging level (e.g., logging.INFO, logging.DEBUG).
                 Defaults to logging.INFO if not specified or invalid.
        """
        log_level_str = str(self.config.get("log_level", "INFO")).upper()
        level = getattr(logging, log_level_str, None)

        if not isinstance(level, int):
            logging.warning(
                "Invalid log level '%s' in config. Defaulting to INFO.",
                log_level_str,
            )
            return logging.INFO

        return level

    def _parse_log_file(self) -> str:
        """Get the log file path from the configuration.
        Returns:
            str: The path to the log file.
        """
        return self.config.get('log_file', 'log.txt')

    def _validate_bbox(self):
        """
        Check that the configured bounding box looks usable. Full validation
        happens in ``osmplot.data.bbox.get_bbox`` when the box is used.
        """
        bbox = self.get_bbox()
        if bbox is None:
            self.logger.warning("No bbox specified in configuration")
        elif not isinstance(bbox, (list, tuple)) or len(bbox) != 4:
            self.logger.warning(
                f"Configured bbox should be [xmin, ymin, xmax, ymax], got: {bbox}")

    def get_bbox(self):
        """
        Get the configured bounding box.

        Returns:
            list: ``[xmin, ymin, xmax, ymax]`` or None
        """
        return self.config.get('bbox')

    def get_highways(self) -> List[str]:
        """
        Get the configured highway name patterns.

        Returns:
            list: Highway name patterns, in the order they enclose the region
        """
        return list(self.config.get('highways') or [])

    def get_output_dir(self):
        """
        Get the output directory path.

        Returns:
            Path: Output directory path
        """
        return Path(self.config.get('output_dir', 'osmplot/output/'))

    def get_output_path(self, filename=None):
        """
        Get the output path, optionally with a filename appended.

        Args:
            filename (str, optional): Filename to append to the output directory

        Returns:
            Path: Output path
        """
        output_dir = self.get_output_dir()
        output_dir.mkdir(parents=True, exist_ok=True)

        if filename:
            return output_dir / filename
        return output_dir

    def get_processing_params(self) -> Dict[str, Any]:
        """
        Get highway connection parameters, completed with defaults.

        Returns:
            dict: Processing parameters
        """
        params = dict(DEFAULT_PROCESSING)
        params.update(self.config.get('processing') or {})
        return params

    def get_osm_config(self) -> Dict[str, Any]:
        """
        Get OSM download settings (osmnx cache, timeout, Overpass endpoint).

        Returns:
            dict: OSM download configuration
        """
        return self.config.get('osm') or {}

    def get_map_params(self) -> Dict[str, Any]:
        """
        Get rendering parameters, completed with defaults.

        Returns:
            dict: Map parameters
        """
        params = dict(DEFAULT_MAP)
        params.update(self.config.get('map') or {})
        return params


# --- Singleton Instance ---
# This single, pre-initialized instance should be imported by other modules
# to ensure consistent configuration access across the application.
config = ConfigLoader()
