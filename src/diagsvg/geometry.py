"""Scene geometry: segments, trails and paths.

Segment coordinates are offsets relative to the segment's start point,
so a trail is position independent until it is located at a start point.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, NamedTuple, Union

from . import transform

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from typing_extensions import Self, TypeAlias

    from .transform import TMatrix, TPoint

# Magic number for approximating a quarter circle with a cubic Bezier.
_KAPPA = 4 * (math.sqrt(2) - 1) / 3


class Linear(NamedTuple):
    """Straight line segment."""

    offset: TPoint

    def transform(self, matrix: TMatrix) -> Linear:
        """Apply the linear part of the matrix."""
        return Linear(transform.apply_vector(matrix, self.offset))


class Cubic(NamedTuple):
    """Cubic Bezier segment.

    Both control points and the end point are relative
    to the start of the segment.
    """

    c1: TPoint
    c2: TPoint
    offset: TPoint

    def transform(self, matrix: TMatrix) -> Cubic:
        """Apply the linear part of the matrix."""
        return Cubic(
            transform.apply_vector(matrix, self.c1),
            transform.apply_vector(matrix, self.c2),
            transform.apply_vector(matrix, self.offset),
        )


TSegment: TypeAlias = Union[Linear, Cubic]


class Trail(NamedTuple):
    """A connected sequence of segments.

    An open trail is a line, a closed trail is a loop.
    The last segment of a loop is its closing segment.
    """

    segments: tuple[TSegment, ...]
    closed: bool = False

    @classmethod
    def line(cls: type[Self], segments: Iterable[TSegment]) -> Self:
        """Create an open trail."""
        return cls(tuple(segments), closed=False)

    @classmethod
    def loop(cls: type[Self], segments: Iterable[TSegment]) -> Self:
        """Create a closed trail."""
        return cls(tuple(segments), closed=True)

    @classmethod
    def from_vertices(
        cls: type[Self], vertices: Sequence[TPoint], closed: bool = False
    ) -> Self:
        """Create a polyline trail through the vertices.

        If `closed` is True a linear closing segment back to the
        first vertex is appended.
        """
        segments: list[TSegment] = [
            Linear((float(x2 - x1), float(y2 - y1)))
            for (x1, y1), (x2, y2) in zip(vertices, vertices[1:])
        ]
        if closed and vertices:
            (x1, y1), (x2, y2) = vertices[-1], vertices[0]
            segments.append(Linear((float(x2 - x1), float(y2 - y1))))
        return cls(tuple(segments), closed=closed)

    def transform(self, matrix: TMatrix) -> Trail:
        """Apply the linear part of the matrix to all segments."""
        return Trail(
            tuple(segment.transform(matrix) for segment in self.segments),
            self.closed,
        )


class LocatedTrail(NamedTuple):
    """A trail with an absolute start point."""

    start: TPoint
    trail: Trail

    def transform(self, matrix: TMatrix) -> LocatedTrail:
        """Map the start point and the trail through the matrix."""
        return LocatedTrail(
            transform.apply_point(matrix, self.start),
            self.trail.transform(matrix),
        )

    def vertices(self) -> Iterator[TPoint]:
        """Absolute segment end points, starting with the start point."""
        x, y = self.start
        yield (x, y)
        for segment in self.trail.segments:
            dx, dy = segment.offset
            x += dx
            y += dy
            yield (x, y)


class Path(NamedTuple):
    """Zero or more located trails."""

    trails: tuple[LocatedTrail, ...] = ()

    @classmethod
    def from_vertices(
        cls: type[Self], vertices: Sequence[TPoint], closed: bool = False
    ) -> Self:
        """Create a single-trail polyline (or polygon if closed) path."""
        if not vertices:
            return cls()
        start = (float(vertices[0][0]), float(vertices[0][1]))
        trail = Trail.from_vertices(vertices, closed=closed)
        return cls((LocatedTrail(start, trail),))

    def transform(self, matrix: TMatrix) -> Path:
        """Map every trail through the matrix."""
        return Path(tuple(trail.transform(matrix) for trail in self.trails))

    def is_lines(self) -> bool:
        """Return True if no trail is closed.

        Open lines are never filled.
        """
        return all(not located.trail.closed for located in self.trails)

    def __add__(self, other: object) -> Path:
        if not isinstance(other, Path):
            return NotImplemented
        return Path(self.trails + other.trails)


def rect(x: float, y: float, width: float, height: float) -> Path:
    """Create an axis-aligned, counter-clockwise rectangle path."""
    return Path.from_vertices(
        ((x, y), (x + width, y), (x + width, y + height), (x, y + height)),
        closed=True,
    )


def square(side: float) -> Path:
    """Create a square path centered at the origin."""
    half = side / 2
    return rect(-half, -half, side, side)


def circle(center: TPoint, radius: float) -> Path:
    """Create a circle path made of four cubic Bezier arcs.

    The trail starts at the rightmost point and runs counter-clockwise.
    """
    k = radius * _KAPPA
    r = radius
    segments = (
        Cubic((0.0, k), (k - r, r), (-r, r)),
        Cubic((-k, 0.0), (-r, k - r), (-r, -r)),
        Cubic((0.0, -k), (r - k, -r), (r, -r)),
        Cubic((k, 0.0), (r, r - k), (r, r)),
    )
    start = (float(center[0] + r), float(center[1]))
    return Path((LocatedTrail(start, Trail.loop(segments)),))
