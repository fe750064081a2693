"""
Highway cycle connection.

Turns a list of named highways, each made of one or more OSM line segments,
into a single closed boundary path that encloses a region. The work runs in
sequential phases:

1. junction insertion: nodes where two segments cross or nearly touch are
   added to both segments so that they share an actual point;
2. a connectivity matrix over highways and a longest simple cycle search;
3. forced connections (bridges) between the closest nodes of unconnected
   highways until the cycle spans every highway, or nothing more helps;
4. per-highway stitching of disjoint segments into one path between the
   junctions with the two cycle neighbours, and concatenation of those paths.
"""

import copy
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple, Union

import geopandas as gpd
import networkx as nx
import numpy as np
from shapely.geometry import LineString
from shapely.geometry import Point as ShapelyPoint

from osmplot.config import config
from osmplot.processing.distance import (
    DistanceFunction, get_distance_function, pairwise_distances,)
from osmplot.processing.errors import (
    IncompleteCycleError, InvalidInputError, StitchingAmbiguityError,)
from osmplot.processing.geometry import Coord, Highway, Point, Segment

logger = logging.getLogger(__name__)


@dataclass
class Bridge:
    """Synthetic edge between two highways that share no node."""

    from_highway: str
    to_highway: str
    start: Point
    end: Point
    distance: float


@dataclass
class Stitch:
    """Synthetic edge joining two disjoint components of one highway."""

    highway: str
    start: Point
    end: Point
    distance: float


@dataclass
class HighwayCycleResult:
    """
    Outcome of a highway connection run.

    A result is ``complete`` only when the cycle spans every highway and no
    error was reported. Partial results keep the best cycle found and the
    path along it, with the reasons listed in ``errors``.
    """

    highways: List[str]
    cycle: List[int] = field(default_factory=list)
    path: List[Point] = field(default_factory=list)
    bridges: List[Bridge] = field(default_factory=list)
    stitches: List[Stitch] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.errors and len(self.cycle) == len(self.highways)

    @property
    def cycle_names(self) -> List[str]:
        return [self.highways[i] for i in self.cycle]

    @property
    def excluded(self) -> List[str]:
        on_cycle = set(self.cycle)
        return [name for i, name in enumerate(self.highways) if i not in on_cycle]

    @property
    def coords(self) -> List[Coord]:
        return [p.key for p in self.path]

    def to_linestring(self) -> Optional[LineString]:
        if len(self.path) < 2:
            return None
        return LineString(self.coords)

    def to_gdf(self) -> gpd.GeoDataFrame:
        """Boundary path as a one-row line layer (empty when there is no path)."""
        line = self.to_linestring()
        geometry = [line] if line is not None else []
        data = {
            'highways': [', '.join(self.cycle_names)] * len(geometry),
            'complete': [self.complete] * len(geometry),
        }
        return gpd.GeoDataFrame(data, geometry=geometry, crs="EPSG:4326")

    def raise_for_errors(self):
        if self.errors:
            raise self.errors[0]


def find_longest_cycle(matrix) -> List[int]:
    """
    Longest simple cycle in an undirected connectivity matrix.

    Depth-first search from every index, visiting neighbours in ascending
    order and only through indices larger than the start, so each cycle is
    met first with its smallest index at the front. Among cycles of equal
    length the lexicographically smallest index sequence is returned.

    Args:
        matrix: N x N symmetric boolean array.

    Returns:
        list: Highway indices of the cycle, or an empty list.
    """
    matrix = np.asarray(matrix, dtype=bool)
    n = matrix.shape[0]
    neighbours = [np.flatnonzero(matrix[i]).tolist() for i in range(n)]
    best: List[int] = []

    def extend(start: int, path: List[int], visited: set):
        nonlocal best
        for nxt in neighbours[path[-1]]:
            if nxt == start:
                if len(path) >= 3 and len(path) > len(best):
                    best = list(path)
            elif nxt > start and nxt not in visited:
                path.append(nxt)
                visited.add(nxt)
                extend(start, path, visited)
                path.pop()
                visited.discard(nxt)
            if len(best) == n:
                return

    for start in range(n):
        # only indices >= start are available from here on
        if n - start < 3 or n - start <= len(best):
            break
        extend(start, [start], {start})

    return best


def _intersection_points(first: LineString, second: LineString) -> List[Coord]:
    # crossings are found in lon/lat space; no distance is measured here
    intersection = first.intersection(second)
    if intersection.is_empty:
        return []
    coords = set()
    for geom in getattr(intersection, 'geoms', [intersection]):
        if geom.geom_type == 'Point':
            coords.add((geom.x, geom.y))
        elif geom.geom_type == 'LineString':
            # collinear overlap
            overlap = list(geom.coords)
            coords.add(overlap[0])
            coords.add(overlap[-1])
    return sorted(coords)


class HighwayGraphBuilder:
    """
    Builds one closed boundary path from a list of highways.

    The builder mutates the segments of the highways it is given; use
    ``connect_highways`` to work on a private copy.
    """

    def __init__(
            self,
            highways: List[Highway],
            tolerance: float = 5.0,
            distance: Union[str, DistanceFunction] = 'haversine',
            max_bridge_distance: Optional[float] = None,
            max_stitch_attempts: Optional[int] = None):
        """
        Args:
            highways (list): Highways in any order.
            tolerance (float): Distance under which two nodes of different
                segments count as the same junction.
            distance (str or callable): Distance strategy used for every
                decision of the run.
            max_bridge_distance (float, optional): Longest allowed bridge.
            max_stitch_attempts (int, optional): Merge attempts per highway,
                defaults to the number of segments of that highway.
        """
        highways = list(highways or [])
        if not highways:
            raise InvalidInputError("No highways given")

        names = [hw.name for hw in highways]
        if len(highways) < 3:
            raise InvalidInputError(
                "At least three highways are needed to enclose a region", highways=names)
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise InvalidInputError(
                f"Duplicate highway names: {', '.join(duplicates)}", highways=duplicates)
        for highway in highways:
            if not highway.segments:
                raise InvalidInputError(
                    f"Highway '{highway.name}' has no segments", highways=[highway.name])
        if tolerance is None or tolerance < 0:
            raise InvalidInputError(f"Tolerance must be a non-negative number, got {tolerance}")

        self.highways = highways
        self.names = names
        self.tolerance = float(tolerance)
        self.distance = get_distance_function(distance)
        self.max_bridge_distance = max_bridge_distance
        self.max_stitch_attempts = max_stitch_attempts

        self.matrix: Optional[np.ndarray] = None
        self.bridges: List[Bridge] = []

    # --- Junction insertion ---

    def insert_junctions(self) -> int:
        """
        Add shared nodes where segments cross or nearly touch.

        Running this again on its own output inserts nothing.

        Returns:
            int: Number of points inserted.
        """
        segments = [segment for highway in self.highways for segment in highway.segments]
        inserted = 0
        for a in range(len(segments)):
            for b in range(a + 1, len(segments)):
                inserted += self._insert_crossings(segments[a], segments[b])
                inserted += self._insert_near_misses(segments[a], segments[b])

        if inserted:
            logger.info(f"Inserted {inserted} junction nodes")
        else:
            logger.debug("No junction nodes inserted")
        return inserted

    def _nearest_node(self, segment: Segment, coord: Coord) -> Optional[Point]:
        nodes = segment.nodes
        lons = np.array([p.lon for p in nodes])
        lats = np.array([p.lat for p in nodes])
        distances = np.asarray(self.distance(lons, lats, coord[0], coord[1]), dtype=float)
        k = int(np.argmin(distances))
        return nodes[k] if distances[k] <= self.tolerance else None

    def _edge_position(self, segment: Segment, coord: Coord) -> int:
        """
        Index of the node that starts the edge closest to ``coord``.

        Each edge is measured from ``coord`` to its nearest point on the edge,
        using the distance strategy of the run.
        """
        nodes = segment.nodes
        target = ShapelyPoint(coord)
        gaps = []
        for a, b in zip(nodes[:-1], nodes[1:]):
            if a.key == b.key:
                foot = a.key
            else:
                edge = LineString([a.key, b.key])
                nearest = edge.interpolate(edge.project(target))
                foot = (nearest.x, nearest.y)
            gaps.append(float(self.distance(coord[0], coord[1], foot[0], foot[1])))
        return int(np.argmin(gaps))

    def _near_any(self, points: List[Point], point: Point) -> bool:
        if not points:
            return False
        lons = np.array([p.lon for p in points])
        lats = np.array([p.lat for p in points])
        distances = np.asarray(self.distance(lons, lats, point.lon, point.lat), dtype=float)
        return bool(np.any(distances <= self.tolerance))

    def _insert_crossings(self, first: Segment, second: Segment) -> int:
        inserted = 0
        for coord in _intersection_points(first.to_linestring(), second.to_linestring()):
            near_first = self._nearest_node(first, coord)
            near_second = self._nearest_node(second, coord)
            if near_first is not None and near_second is not None:
                continue

            if near_first is not None:
                junction = near_first
            elif near_second is not None:
                junction = near_second
            else:
                junction = Point(*coord)

            if near_first is None:
                first.insert_after(self._edge_position(first, coord), junction)
                inserted += 1
            if near_second is None:
                second.insert_after(self._edge_position(second, coord), junction)
                inserted += 1
        return inserted

    def _insert_near_misses(self, first: Segment, second: Segment) -> int:
        first_nodes = first.nodes
        second_nodes = second.nodes
        second_order = list(second.order)

        distances = pairwise_distances(first_nodes, second_nodes, self.distance)
        rows, cols = np.nonzero((distances > 0) & (distances <= self.tolerance))
        if not len(rows):
            return 0

        candidates = sorted(
            (float(distances[i, j]), int(i), int(j)) for i, j in zip(rows, cols))
        second_keys = second.keys()
        shared = [p for p in first_nodes if p.key in second_keys]

        inserted = 0
        for _, i, j in candidates:
            node, target = first_nodes[i], second_nodes[j]
            if self._near_any(shared, node) or self._near_any(shared, target):
                continue
            position = second.order.index(second_order[j])
            second.insert_after(self._snap_position(second, position, node), node)
            shared.append(node)
            inserted += 1
        return inserted

    def _snap_position(self, segment: Segment, position: int, node: Point) -> int:
        """
        Position after which a snapped copy of ``node`` is inserted.

        Before the first node and after the last one, so that a snapped end
        extends the polyline; inside the polyline, on the side of the nearer
        neighbour.
        """
        nodes = segment.nodes
        if position == 0:
            return -1
        if position == len(nodes) - 1:
            return position
        before, after = nodes[position - 1], nodes[position + 1]
        to_before = self.distance(node.lon, node.lat, before.lon, before.lat)
        to_after = self.distance(node.lon, node.lat, after.lon, after.lat)
        return position - 1 if to_before < to_after else position

    # --- Connectivity and cycle search ---

    def build_connectivity_matrix(self) -> np.ndarray:
        """
        Boolean matrix with entry (i, j) set when highways i and j share a node.
        """
        n = len(self.highways)
        keys = [highway.keys() for highway in self.highways]
        matrix = np.zeros((n, n), dtype=bool)
        for i in range(n):
            for j in range(i + 1, n):
                if keys[i] & keys[j]:
                    matrix[i, j] = matrix[j, i] = True
        self.matrix = matrix
        return matrix

    def find_longest_cycle(self, matrix=None) -> List[int]:
        if matrix is None:
            matrix = self.build_connectivity_matrix()
        return find_longest_cycle(matrix)

    # --- Forced connections ---

    def _closest_nodes(self, i: int, j: int) -> Tuple[float, Point, Point]:
        first = list(self.highways[i].iter_nodes())
        second = list(self.highways[j].iter_nodes())
        distances = pairwise_distances(first, second, self.distance)
        r, c = divmod(int(np.argmin(distances)), distances.shape[1])
        return float(distances[r, c]), first[r], second[c]

    def _bridge_candidates(self, matrix: np.ndarray, cycle: List[int]) -> List[tuple]:
        """Unconnected pairs with at least one highway off the cycle, closest first."""
        n = len(self.highways)
        off_cycle = set(range(n)) - set(cycle)
        candidates = []
        for i in range(n):
            for j in range(i + 1, n):
                if matrix[i, j] or (i not in off_cycle and j not in off_cycle):
                    continue
                gap, start, end = self._closest_nodes(i, j)
                if self.max_bridge_distance is not None and gap > self.max_bridge_distance:
                    continue
                candidates.append((gap, i, j, start, end))

        candidates.sort(key=lambda c: (c[0], c[1], c[2]))
        return candidates

    @staticmethod
    def _trial_cycle_length(matrix: np.ndarray, pairs) -> int:
        trial = matrix.copy()
        for i, j in pairs:
            trial[i, j] = trial[j, i] = True
        return len(find_longest_cycle(trial))

    def _find_beneficial_bridges(self, matrix: np.ndarray,
                                 cycle: List[int]) -> List[Tuple[int, Bridge]]:
        """
        Bridges whose addition gives the longest cycle.

        Single bridges are tried closest first. Two open chain ends
        (highways with at most one neighbour) may also be joined by a pair of
        bridges at once, which is the only way to close a loop broken in two
        places; a pair is used only when it gives a strictly longer cycle
        than any single bridge, and among equally long pairs the smaller
        total gap wins.

        Returns:
            list: ``(owner index, Bridge)`` tuples, empty when nothing helps.
        """
        candidates = self._bridge_candidates(matrix, cycle)

        best_length, best = len(cycle), []
        for candidate in candidates:
            length = self._trial_cycle_length(matrix, [candidate[1:3]])
            if length > best_length:
                best_length, best = length, [candidate]

        degree = matrix.sum(axis=1)
        open_ends = [c for c in candidates if degree[c[1]] <= 1 and degree[c[2]] <= 1]
        pair, pair_gap = None, None
        for first, second in itertools.combinations(open_ends, 2):
            length = self._trial_cycle_length(matrix, [first[1:3], second[1:3]])
            gap = first[0] + second[0]
            if length > best_length or (pair is not None and length == best_length
                                        and gap < pair_gap):
                best_length, pair, pair_gap = length, [first, second], gap
        if pair is not None:
            best = pair

        return [(i, Bridge(self.names[i], self.names[j], start, end, gap))
                for gap, i, j, start, end in best]

    def insert_forced_connections(self) -> Tuple[List[int], Optional[IncompleteCycleError]]:
        """
        Bridge unconnected highways until the cycle spans all of them.

        Every bridge involves a highway that is not on the current cycle, so
        no chord is drawn between two highways already on it.

        Returns:
            tuple: The final cycle, and an ``IncompleteCycleError`` if some
                highways could not be brought onto it (else None).
        """
        matrix = self.build_connectivity_matrix()
        cycle = find_longest_cycle(matrix)
        n = len(self.highways)

        while len(cycle) < n:
            found = self._find_beneficial_bridges(matrix, cycle)
            if not found:
                excluded = [name for k, name in enumerate(self.names) if k not in cycle]
                error = IncompleteCycleError(
                    f"Cycle spans {len(cycle)} of {n} highways; could not include: "
                    f"{', '.join(excluded)}",
                    highways=excluded,
                    partial_cycle=[self.names[k] for k in cycle],
                )
                logger.warning(error.message)
                return cycle, error

            for index, bridge in found:
                self.highways[index].segments.append(
                    Segment([bridge.start, bridge.end], synthetic=True))
                self.bridges.append(bridge)
                logger.info(
                    f"Bridged '{bridge.from_highway}' to '{bridge.to_highway}' "
                    f"over a gap of {bridge.distance:.6g}")

            matrix = self.build_connectivity_matrix()
            cycle = find_longest_cycle(matrix)

        return cycle, None

    # --- Stitching ---

    def junction(self, i: int, j: int) -> Optional[Coord]:
        """Shared node of two highways; the same answer for (i, j) and (j, i)."""
        shared = self.highways[i].keys() & self.highways[j].keys()
        return min(shared) if shared else None

    def _closest_components(self, graph: nx.Graph, lookup: Dict[Coord, Point],
                            name: str) -> Optional[Stitch]:
        components = sorted(
            (sorted(component) for component in nx.connected_components(graph)),
            key=lambda c: c[0])
        ends = []
        for component in components:
            open_ends = [k for k in component if graph.degree(k) <= 1] or component
            ends.append([lookup[k] for k in open_ends])

        best = None
        for x in range(len(ends)):
            for y in range(x + 1, len(ends)):
                distances = pairwise_distances(ends[x], ends[y], self.distance)
                r, c = divmod(int(np.argmin(distances)), distances.shape[1])
                if best is None or distances[r, c] < best[0]:
                    best = (float(distances[r, c]), ends[x][r], ends[y][c])

        if best is None:
            return None
        return Stitch(name, best[1], best[2], best[0])

    def stitch_highway(self, index: int, start: Coord,
                       end: Coord) -> Tuple[List[Point], List[Stitch]]:
        """
        Path along one highway from ``start`` to ``end``.

        Disjoint components are merged greedily, closest endpoints first.
        This is locally closest at each step, not a globally shortest merge.

        Raises:
            StitchingAmbiguityError: if the components cannot be joined within
                the allowed number of attempts.
        """
        highway = self.highways[index]
        graph = nx.Graph()
        lookup: Dict[Coord, Point] = {}
        for segment in highway.segments:
            nodes = segment.nodes
            for node in nodes:
                lookup.setdefault(node.key, node)
                graph.add_node(node.key)
            for a, b in zip(nodes[:-1], nodes[1:]):
                if a.key != b.key:
                    weight = float(self.distance(a.lon, a.lat, b.lon, b.lat))
                    graph.add_edge(a.key, b.key, weight=weight)

        limit = self.max_stitch_attempts
        if limit is None:
            limit = len(highway.segments)

        stitches: List[Stitch] = []
        while not nx.has_path(graph, start, end):
            stitch = None
            if len(stitches) < limit:
                stitch = self._closest_components(graph, lookup, highway.name)
            if stitch is None:
                raise StitchingAmbiguityError(
                    f"Could not join the {len(highway.segments)} segments of "
                    f"'{highway.name}' after {len(stitches)} merges",
                    highways=[highway.name],
                    segments=[s.osm_id for s in highway.segments],
                )
            graph.add_edge(stitch.start.key, stitch.end.key, weight=stitch.distance)
            stitches.append(stitch)

        keys = nx.shortest_path(graph, start, end, weight='weight')
        return [lookup[k] for k in keys], stitches

    def _assemble_path(self, cycle: List[int]):
        path: List[Point] = []
        stitches: List[Stitch] = []
        errors: List[Exception] = []

        for k, index in enumerate(cycle):
            start = self.junction(index, cycle[k - 1])
            end = self.junction(index, cycle[(k + 1) % len(cycle)])
            try:
                points, found = self.stitch_highway(index, start, end)
                stitches.extend(found)
            except StitchingAmbiguityError as e:
                logger.warning(e.message)
                errors.append(e)
                points = [Point(*start)] if start == end else [Point(*start), Point(*end)]

            if path and points and path[-1].key == points[0].key:
                points = points[1:]
            path.extend(points)

        return path, stitches, errors

    def build(self) -> HighwayCycleResult:
        """
        Run all phases and return the boundary path.

        Returns:
            HighwayCycleResult: Complete, or partial with the errors that made it so.
        """
        logger.info(f"Connecting {len(self.highways)} highways: {', '.join(self.names)}")

        self.insert_junctions()
        cycle, cycle_error = self.insert_forced_connections()
        path, stitches, errors = self._assemble_path(cycle)
        if cycle_error is not None:
            errors.insert(0, cycle_error)

        result = HighwayCycleResult(
            highways=list(self.names),
            cycle=list(cycle),
            path=path,
            bridges=list(self.bridges),
            stitches=stitches,
            errors=errors,
        )

        if result.complete:
            logger.info(
                f"Closed boundary through {len(cycle)} highways: {len(path)} points, "
                f"{len(self.bridges)} bridges, {len(stitches)} stitches")
        else:
            logger.warning(
                f"Boundary is incomplete ({len(errors)} errors); "
                f"excluded highways: {', '.join(result.excluded) or 'none'}")
        return result


def connect_highways(
        highways: Iterable[Highway],
        tolerance: Optional[float] = None,
        distance: Optional[Union[str, DistanceFunction]] = None,
        max_bridge_distance: Optional[float] = None,
        max_stitch_attempts: Optional[int] = None) -> HighwayCycleResult:
    """
    Connect highways into one closed boundary path.

    Works on a deep copy of ``highways``; parameters left as None are read
    from the ``processing`` section of the configuration.

    Returns:
        HighwayCycleResult: The boundary path and any diagnostics.
    """
    params = config.get_processing_params()
    builder = HighwayGraphBuilder(
        copy.deepcopy(list(highways)),
        tolerance=params['tolerance'] if tolerance is None else tolerance,
        distance=params['distance_metric'] if distance is None else distance,
        max_bridge_distance=(params['max_bridge_distance']
                             if max_bridge_distance is None else max_bridge_distance),
        max_stitch_attempts=(params['max_stitch_attempts']
                             if max_stitch_attempts is None else max_stitch_attempts),
    )
    return builder.build()
