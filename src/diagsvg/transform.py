"""2D affine transform matrices.

Matrices are 3x3 homogeneous numpy arrays of the form::

    [[a, c, e],
     [b, d, f],
     [0, 0, 1]]

which map a point (x, y) to (a*x + c*y + e, b*x + d*y + f).
Composition follows function composition: ``compose(m1, m2)`` applies
``m2`` first, then ``m1``.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, TypeAlias

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

TMatrix: TypeAlias = np.ndarray
TPoint: TypeAlias = tuple[float, float]

IDENTITY: TMatrix = np.identity(3)
IDENTITY.flags.writeable = False


def matrix(
    a: float = 1.0,
    b: float = 0.0,
    c: float = 0.0,
    d: float = 1.0,
    e: float = 0.0,
    f: float = 0.0,
) -> TMatrix:
    """Create a matrix from the six SVG ``matrix(a,b,c,d,e,f)`` terms."""
    return np.array(
        ((a, c, e), (b, d, f), (0.0, 0.0, 1.0)), dtype=np.float64
    )


def translate(x: float, y: float) -> TMatrix:
    """Translation matrix."""
    return matrix(e=x, f=y)


def scale(sx: float, sy: float | None = None) -> TMatrix:
    """Scaling matrix. Uniform if `sy` is None."""
    return matrix(a=sx, d=sx if sy is None else sy)


def rotate(angle: float, origin: TPoint | None = None) -> TMatrix:
    """Rotation matrix.

    Args:
        angle: Counter-clockwise angle in radians.
        origin: Optional center of rotation. Default is (0, 0).
    """
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    m = matrix(a=cos_a, b=sin_a, c=-sin_a, d=cos_a)
    if origin is not None:
        ox, oy = origin
        m = compose(translate(ox, oy), m, translate(-ox, -oy))
    return m


def reflect_y() -> TMatrix:
    """Reflection about the X axis (flips the Y coordinate)."""
    return scale(1.0, -1.0)


def flip_y(height: float) -> TMatrix:
    """Map a Y-up coordinate system of the given height onto Y-down."""
    return compose(translate(0.0, height), reflect_y())


def compose(*matrices: TMatrix) -> TMatrix:
    """Compose matrices left to right (the rightmost is applied first)."""
    result = IDENTITY
    for m in matrices:
        result = result @ m
    return result


def is_identity(m: TMatrix) -> bool:
    """Return True if the matrix is exactly the identity."""
    return bool(np.array_equal(m, IDENTITY))


def apply_point(m: TMatrix, p: Sequence[float]) -> TPoint:
    """Map a point through the full affine transform."""
    x, y = p[0], p[1]
    return (
        float(m[0, 0] * x + m[0, 1] * y + m[0, 2]),
        float(m[1, 0] * x + m[1, 1] * y + m[1, 2]),
    )


def apply_vector(m: TMatrix, v: Sequence[float]) -> TPoint:
    """Map a vector (offset) through the linear part only."""
    x, y = v[0], v[1]
    return (
        float(m[0, 0] * x + m[0, 1] * y),
        float(m[1, 0] * x + m[1, 1] * y),
    )


def terms(m: TMatrix) -> tuple[float, float, float, float, float, float]:
    """Flatten the matrix into the SVG (a, b, c, d, e, f) terms."""
    return (
        float(m[0, 0]),
        float(m[1, 0]),
        float(m[0, 1]),
        float(m[1, 1]),
        float(m[0, 2]),
        float(m[1, 2]),
    )
