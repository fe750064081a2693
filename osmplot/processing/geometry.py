"""
Data model for highway connection: points, segments and named highways.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from shapely.geometry import LineString

from osmplot.processing.errors import InvalidInputError

Coord = Tuple[float, float]


@dataclass(frozen=True)
class Point:
    """A (longitude, latitude) node, optionally carrying its OSM node id."""

    lon: float
    lat: float
    osm_id: Optional[int] = field(default=None, compare=False)

    @property
    def key(self) -> Coord:
        return (self.lon, self.lat)


@dataclass
class Segment:
    """
    One continuous polyline piece of a highway.

    ``points`` is an append-only arena and ``order`` the sequence of arena
    indices that makes up the polyline. Inserting a junction appends to the
    arena and splices its index into ``order``.
    """

    points: List[Point]
    order: Optional[List[int]] = None
    osm_id: Optional[object] = None
    synthetic: bool = False

    def __post_init__(self):
        self.points = list(self.points)
        if self.order is None:
            self.order = list(range(len(self.points)))
        if len(self.order) < 2:
            raise InvalidInputError(
                f"Segment {self.osm_id} needs at least two points",
                segments=[self.osm_id],
            )

    @classmethod
    def from_coords(cls, coords: Iterable[Sequence[float]], osm_id=None,
                    node_ids: Optional[Sequence] = None, synthetic: bool = False) -> 'Segment':
        coords = [(float(c[0]), float(c[1])) for c in coords]
        if node_ids is None or len(node_ids) != len(coords):
            node_ids = [None] * len(coords)
        points = [Point(lon, lat, nid) for (lon, lat), nid in zip(coords, node_ids)]
        return cls(points, osm_id=osm_id, synthetic=synthetic)

    @property
    def nodes(self) -> List[Point]:
        return [self.points[i] for i in self.order]

    @property
    def coords(self) -> List[Coord]:
        return [p.key for p in self.nodes]

    @property
    def endpoints(self) -> Tuple[Point, Point]:
        return self.points[self.order[0]], self.points[self.order[-1]]

    def keys(self) -> Set[Coord]:
        return {self.points[i].key for i in self.order}

    def contains(self, key: Coord) -> bool:
        return key in self.keys()

    def insert_after(self, position: int, point: Point) -> int:
        """
        Insert ``point`` after the node at ``position`` in the polyline;
        a position of -1 puts it in front of the first node.

        Returns:
            int: Arena index of the new point.
        """
        self.points.append(point)
        index = len(self.points) - 1
        self.order.insert(position + 1, index)
        return index

    def to_linestring(self) -> LineString:
        return LineString(self.coords)

    def __len__(self):
        return len(self.order)


class HighwayPattern:
    """
    Street-name pattern.

    Literal text, where ``.`` matches any single character and ``?`` makes the
    preceding character optional, so ``'Short.?s.Gardens'`` matches both
    "Shorts Gardens" and "Short's Gardens". Compiled once, matched as a
    substring search.
    """

    def __init__(self, pattern: str):
        if not isinstance(pattern, str) or not pattern.strip():
            raise InvalidInputError("Highway pattern must be a non-empty string",
                                    highways=[pattern])
        self.pattern = pattern
        self.regex = re.compile(self._translate(pattern))

    @staticmethod
    def _translate(pattern: str) -> str:
        parts: List[str] = []
        for char in pattern:
            if char == '.':
                parts.append('.')
            elif char == '?' and parts and not parts[-1].endswith('?'):
                parts[-1] += '?'
            else:
                parts.append(re.escape(char))
        return ''.join(parts)

    def matches(self, name) -> bool:
        if not isinstance(name, str):
            return False
        return self.regex.search(name) is not None

    def __repr__(self):
        return f"HighwayPattern({self.pattern!r})"


@dataclass
class Highway:
    """A named street and the segments matched by its name pattern."""

    name: str
    segments: List[Segment] = field(default_factory=list)
    pattern: HighwayPattern = field(init=False, repr=False)

    def __post_init__(self):
        self.pattern = HighwayPattern(self.name)

    @classmethod
    def from_coords(cls, name: str, lines: Iterable[Iterable[Sequence[float]]]) -> 'Highway':
        return cls(name, [Segment.from_coords(line) for line in lines])

    def iter_nodes(self) -> Iterator[Point]:
        for segment in self.segments:
            yield from segment.nodes

    def keys(self) -> Set[Coord]:
        keys: Set[Coord] = set()
        for segment in self.segments:
            keys |= segment.keys()
        return keys

    @property
    def n_points(self) -> int:
        return sum(len(s) for s in self.segments)
