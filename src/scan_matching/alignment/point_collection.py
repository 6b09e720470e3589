"""
Point Collections

Containers used by the registration engine:
- PointCollection owns the movable scan and applies rigid transforms in place.
- IndexedPointCollection wraps the fixed reference scan with a KD-tree for
  nearest-neighbor queries.

Both keep a cached center of mass. The optional verification layer
(check_invariants=True) recomputes it after every mutation and raises
InvariantViolationError on drift.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Generic, List, Sequence, Tuple, TypeVar

import numpy as np
from sklearn.neighbors import NearestNeighbors

from ..utils.logging import setup_logger
from .exceptions import EmptyCollectionError, InvalidPointError, InvariantViolationError
from .points import ICPPoint, positions_of

logger = setup_logger(__name__)

T = TypeVar("T", bound=ICPPoint)

# Allowed per-axis difference between cached and recomputed center of mass
CENTER_OF_MASS_TOLERANCE = 0.001


def points_equal_tolerance(
    p1: np.ndarray, p2: np.ndarray, tolerance: float = CENTER_OF_MASS_TOLERANCE
) -> bool:
    return bool(np.all(np.abs(np.asarray(p1) - np.asarray(p2)) <= tolerance))


def _read_only(positions: np.ndarray) -> np.ndarray:
    positions.setflags(write=False)
    return positions


class _CenterOfMassCollection(ABC, Generic[T]):
    """Shared center-of-mass bookkeeping for both collection kinds."""

    _positions: np.ndarray
    _center_of_mass: np.ndarray

    @property
    @abstractmethod
    def points(self) -> Sequence[T]:
        """The points held by the collection."""

    @property
    def positions(self) -> np.ndarray:
        """Current point positions as a read-only (N, 2) array."""
        return self._positions

    @property
    def center_of_mass(self) -> np.ndarray:
        return self._center_of_mass.copy()

    def __len__(self) -> int:
        return len(self.points)

    def calculate_center_of_mass(self) -> np.ndarray:
        return self._positions.mean(axis=0)

    def validate(self) -> None:
        """
        Check every point against its own validity predicate.

        Raises:
            InvalidPointError: For the first point that is not valid.
        """
        for i, p in enumerate(self.points):
            if not p.is_valid():
                raise InvalidPointError(i, p)

    def assert_valid(self) -> None:
        """
        Verify point validity and the cached center of mass.

        Raises:
            InvalidPointError: If a point is not valid.
            InvariantViolationError: If the cached center of mass drifted.
        """
        self.validate()
        recomputed = self.calculate_center_of_mass()
        if not points_equal_tolerance(self._center_of_mass, recomputed):
            raise InvariantViolationError(
                f"Cached center of mass {self._center_of_mass} differs from "
                f"recomputed {recomputed} by more than {CENTER_OF_MASS_TOLERANCE}"
            )


class PointCollection(_CenterOfMassCollection[T]):
    """
    Mutable, owned sequence of points with a maintained center of mass.

    Used for the movable scan. translate() updates the center of mass
    incrementally; rotate() recomputes it.
    """

    def __init__(self, points: Sequence[T], check_invariants: bool = False):
        """
        Args:
            points: Points to take ownership of. Must not be empty.
            check_invariants: Re-verify the center of mass after each mutation.

        Raises:
            EmptyCollectionError: If points is empty.
        """
        if len(points) == 0:
            raise EmptyCollectionError("Cannot build a PointCollection from an empty point sequence")
        self._points: List[T] | None = list(points)
        self.check_invariants = check_invariants
        self._positions = _read_only(positions_of(self._points))
        self._center_of_mass = self.calculate_center_of_mass()

    @property
    def points(self) -> Tuple[T, ...]:
        return tuple(self._owned())

    def _owned(self) -> List[T]:
        if self._points is None:
            raise RuntimeError("PointCollection was already released with into_inner()")
        return self._points

    def translate(self, dx: float, dy: float) -> "PointCollection[T]":
        """Shift every point by (dx, dy) in place."""
        self._points = [p.translate(dx, dy) for p in self._owned()]
        self._positions = _read_only(positions_of(self._points))
        self._center_of_mass = self._center_of_mass + np.array([dx, dy], dtype=float)
        if self.check_invariants:
            self.assert_valid()
        return self

    def rotate(self, angle_rad: float) -> "PointCollection[T]":
        """Rotate every point about the origin in place."""
        self._points = [p.rotate(angle_rad) for p in self._owned()]
        self._positions = _read_only(positions_of(self._points))
        self._center_of_mass = self.calculate_center_of_mass()
        if self.check_invariants:
            self.assert_valid()
        return self

    def into_inner(self) -> List[T]:
        """
        Release the collection and hand back its point list.

        The collection cannot be used afterwards.
        """
        points = self._owned()
        self._points = None
        return points


class IndexedPointCollection(_CenterOfMassCollection[T]):
    """
    Read-only view over a point sequence with a KD-tree spatial index.

    Used for the reference scan. The index is built once at construction
    and serves every nearest-neighbor query of a registration run.
    """

    def __init__(self, points: Sequence[T]):
        """
        Args:
            points: Reference points. The sequence is kept by reference and
                must not be modified while the collection is in use.

        Raises:
            EmptyCollectionError: If points is empty.
        """
        if len(points) == 0:
            raise EmptyCollectionError(
                "Cannot build an IndexedPointCollection from an empty point sequence"
            )
        self._points = points
        self._positions = positions_of(points)

        build_start = time.time()
        self._nbrs = NearestNeighbors(n_neighbors=1, algorithm="kd_tree").fit(self._positions)
        logger.debug(
            "KD-tree over %d reference points built in %.4f s.",
            len(points),
            time.time() - build_start,
        )

        self._positions = _read_only(self._positions)
        self._center_of_mass = self.calculate_center_of_mass()

    @property
    def points(self) -> Sequence[T]:
        return self._points

    def closest(self, position: Sequence[float] | np.ndarray) -> np.ndarray:
        """
        Position of the indexed point nearest to the query position.

        Args:
            position: Query (x, y).

        Returns:
            Array of shape (2,).
        """
        query = np.asarray(position, dtype=float).reshape(1, 2)
        _, indices = self._nbrs.kneighbors(query)
        return self._positions[int(indices[0, 0])].copy()

    def closest_many(self, positions: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Batched nearest-neighbor query.

        Args:
            positions: Query positions (N x 2).

        Returns:
            Tuple of (closest_positions (N x 2), distances (N,)).
        """
        query = np.asarray(positions, dtype=float).reshape(-1, 2)
        distances, indices = self._nbrs.kneighbors(query)
        return self._positions[indices.ravel()], distances.ravel()
