"""
Geometry processing for osmplot: the highway model and the algorithm that
connects named highways into one closed boundary.
"""

from osmplot.processing.errors import (
    HighwayCycleError, IncompleteCycleError, InvalidInputError, StitchingAmbiguityError,)
from osmplot.processing.geometry import Highway, HighwayPattern, Point, Segment
from osmplot.processing.highway_cycle import (
    Bridge, HighwayCycleResult, HighwayGraphBuilder, Stitch, connect_highways,
    find_longest_cycle,)

__all__ = [
    'Bridge',
    'Highway',
    'HighwayCycleError',
    'HighwayCycleResult',
    'HighwayGraphBuilder',
    'HighwayPattern',
    'IncompleteCycleError',
    'InvalidInputError',
    'Point',
    'Segment',
    'Stitch',
    'StitchingAmbiguityError',
    'connect_highways',
    'find_longest_cycle',
]
