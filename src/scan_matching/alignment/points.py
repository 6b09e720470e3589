"""
Point Types

Defines the capability contract every point must satisfy to take part in a
registration run, together with the two concrete point kinds shipped with
the package.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections import namedtuple
from dataclasses import dataclass
from typing import Iterable, List, Tuple, Type, TypeVar

import numpy as np

P = TypeVar("P", bound="ICPPoint")


class ICPPoint(ABC):
    """
    Minimal interface of a point that can be registered.

    Implementations are immutable: translate and rotate return new points.
    """

    @abstractmethod
    def translate(self: P, dx: float, dy: float) -> P:
        """Return a copy shifted by (dx, dy)."""

    @abstractmethod
    def rotate(self: P, angle_rad: float) -> P:
        """Return a copy rotated by angle_rad about the origin."""

    @abstractmethod
    def position(self) -> Tuple[float, float]:
        """Planar coordinate used for all geometric computation."""

    def is_valid(self) -> bool:
        return True


def _rotate_xy(x: float, y: float, angle_rad: float) -> Tuple[float, float]:
    c = math.cos(angle_rad)
    s = math.sin(angle_rad)
    return c * x - s * y, s * x + c * y


@dataclass(frozen=True)
class Point2D(ICPPoint):
    """A bare 2-D coordinate."""

    x: float
    y: float

    def translate(self, dx: float, dy: float) -> "Point2D":
        return Point2D(self.x + dx, self.y + dy)

    def rotate(self, angle_rad: float) -> "Point2D":
        return Point2D(*_rotate_xy(self.x, self.y, angle_rad))

    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def is_valid(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)


class PointPair(namedtuple("_PointPair", ["x", "y"]), ICPPoint):
    """
    A coordinate pair that behaves like a plain (x, y) tuple.

    Unpacks, indexes and compares like a tuple while satisfying the same
    point contract as Point2D.
    """

    __slots__ = ()

    def translate(self, dx: float, dy: float) -> "PointPair":
        return PointPair(self.x + dx, self.y + dy)

    def rotate(self, angle_rad: float) -> "PointPair":
        return PointPair(*_rotate_xy(self.x, self.y, angle_rad))

    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def is_valid(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)


def points_from_array(
    coordinates: Iterable[Tuple[float, float]] | np.ndarray,
    point_type: Type[P] = Point2D,
) -> List[P]:
    """
    Convert an (N, 2) array or an iterable of (x, y) pairs into points.

    Args:
        coordinates: Coordinates to convert.
        point_type: Concrete point class to build (Point2D or PointPair).

    Returns:
        List of points in input order.
    """
    arr = np.asarray(coordinates, dtype=float)
    if arr.size == 0:
        return []
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Expected Nx2 coordinates, got shape {arr.shape}")
    return [point_type(float(x), float(y)) for x, y in arr]


def positions_of(points: Iterable[ICPPoint]) -> np.ndarray:
    """Stack the positions of the given points into an (N, 2) array."""
    arr = np.array([p.position() for p in points], dtype=float)
    return arr.reshape(-1, 2)
