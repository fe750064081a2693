"""
Error types for highway cycle connection.

Invalid input is raised straight away. Incomplete cycles and stitching
failures are expected outcomes for sparse OSM data, so the builder collects
them on the result instead of raising; ``HighwayCycleResult.raise_for_errors``
turns them back into exceptions for callers that want that.
"""

from typing import Iterable, List, Optional


class HighwayCycleError(Exception):
    """Base class for all highway connection errors."""

    kind = 'error'

    def __init__(self, message: str,
                 highways: Optional[Iterable[str]] = None,
                 segments: Optional[Iterable] = None):
        super().__init__(message)
        self.message = message
        self.highways: List[str] = list(highways or [])
        self.segments: List = list(segments or [])

    def to_dict(self):
        return {
            'kind': self.kind,
            'message': self.message,
            'highways': list(self.highways),
            'segments': list(self.segments),
        }


class InvalidInputError(HighwayCycleError, ValueError):
    """Malformed bbox, empty highway list or a pattern without segments."""

    kind = 'invalid_input'


class IncompleteCycleError(HighwayCycleError):
    """Some highways could not be brought onto the cycle."""

    kind = 'incomplete_cycle'

    def __init__(self, message: str,
                 highways: Optional[Iterable[str]] = None,
                 partial_cycle: Optional[Iterable[str]] = None):
        super().__init__(message, highways=highways)
        self.partial_cycle: List[str] = list(partial_cycle or [])

    def to_dict(self):
        result = super().to_dict()
        result['partial_cycle'] = list(self.partial_cycle)
        return result


class StitchingAmbiguityError(HighwayCycleError):
    """The segments of one highway could not be merged into a single path."""

    kind = 'stitching_ambiguity'
