"""
Tests for PointCollection and IndexedPointCollection.

These tests verify:
- The cached center of mass tracks the recomputed mean through transforms
- The optional verification layer catches drift
- Ownership hand-back with into_inner()
- KD-tree nearest-neighbor queries against a brute-force search
- Empty and invalid input handling
"""

from pathlib import Path
import sys

import numpy as np
import pytest

sys.path.append(str(Path(__file__).parent.parent / "src"))

from scan_matching.alignment.exceptions import (
    EmptyCollectionError,
    InvalidPointError,
    InvariantViolationError,
)
from scan_matching.alignment.point_collection import (
    CENTER_OF_MASS_TOLERANCE,
    IndexedPointCollection,
    PointCollection,
    _CenterOfMassCollection,
)
from scan_matching.alignment.points import Point2D, PointPair, points_from_array


def _make_random_scan(n: int = 300, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.uniform(-3.0, 3.0, size=(n, 2)) + np.array([0.7, -0.4])


def test_collection_base_requires_points():
    with pytest.raises(TypeError):
        _CenterOfMassCollection()

    class _NoPoints(_CenterOfMassCollection):
        pass

    with pytest.raises(TypeError):
        _NoPoints()


class TestPointCollection:

    def test_center_of_mass_on_construction(self):
        coords = _make_random_scan()
        col = PointCollection(points_from_array(coords))

        np.testing.assert_allclose(col.center_of_mass, coords.mean(axis=0))
        assert len(col) == len(coords)

    @pytest.mark.parametrize("point_type", [Point2D, PointPair])
    def test_center_of_mass_invariant_after_transforms(self, point_type):
        rng = np.random.default_rng(3)
        col = PointCollection(points_from_array(_make_random_scan(), point_type), check_invariants=True)

        for _ in range(20):
            if rng.random() < 0.5:
                col.translate(*rng.uniform(-1.0, 1.0, size=2))
            else:
                col.rotate(rng.uniform(-np.pi, np.pi))

            recomputed = col.positions.mean(axis=0)
            assert np.all(np.abs(col.center_of_mass - recomputed) <= CENTER_OF_MASS_TOLERANCE)

    def test_translate_and_rotate_move_points(self):
        col = PointCollection([Point2D(1.0, 0.0), Point2D(0.0, 1.0)])

        col.translate(1.0, 2.0).rotate(np.pi)

        np.testing.assert_allclose(col.positions, [[-2.0, -2.0], [-1.0, -3.0]], atol=1e-12)
        np.testing.assert_allclose(col.center_of_mass, [-1.5, -2.5], atol=1e-12)

    def test_points_view_is_read_only(self):
        col = PointCollection([Point2D(0.0, 0.0), Point2D(1.0, 1.0)])

        assert isinstance(col.points, tuple)

    def test_positions_cannot_be_written_through(self):
        col = PointCollection([Point2D(0.0, 0.0), Point2D(1.0, 1.0)], check_invariants=True)

        with pytest.raises(ValueError):
            col.positions[0, 0] = 5.0

        col.translate(1.0, 0.0)
        with pytest.raises(ValueError):
            col.positions[0, 0] = 5.0
        np.testing.assert_allclose(col.positions, [[1.0, 0.0], [2.0, 1.0]])
        col.assert_valid()

    def test_assert_valid_detects_drift(self):
        col = PointCollection(points_from_array(_make_random_scan(50)))
        col._center_of_mass = col._center_of_mass + 0.01

        with pytest.raises(InvariantViolationError):
            col.assert_valid()

    def test_validate_reports_first_invalid_point(self):
        pts = [PointPair(0.0, 0.0), PointPair(1.0, float("nan")), PointPair(2.0, 2.0)]
        col = PointCollection(pts)

        with pytest.raises(InvalidPointError) as exc:
            col.validate()
        assert exc.value.index == 1

    def test_into_inner_hands_back_points(self):
        pts = points_from_array(_make_random_scan(40))
        col = PointCollection(pts)
        col.translate(0.5, 0.5)

        inner = col.into_inner()

        assert len(inner) == len(pts)
        assert inner[0].position() == pytest.approx(pts[0].translate(0.5, 0.5).position())
        with pytest.raises(RuntimeError):
            col.translate(1.0, 1.0)

    def test_empty_raises(self):
        with pytest.raises(EmptyCollectionError):
            PointCollection([])


class TestIndexedPointCollection:

    def test_closest_matches_brute_force(self):
        coords = _make_random_scan(500, seed=1)
        col = IndexedPointCollection(points_from_array(coords))
        queries = np.random.default_rng(2).uniform(-4.0, 4.0, size=(50, 2))

        for q in queries:
            expected = coords[np.argmin(np.sum((coords - q) ** 2, axis=1))]
            np.testing.assert_allclose(col.closest(q), expected)

    def test_closest_many_matches_single_queries(self):
        coords = _make_random_scan(200, seed=4)
        col = IndexedPointCollection(points_from_array(coords))
        queries = coords + 0.01

        closest, distances = col.closest_many(queries)

        assert closest.shape == (200, 2)
        assert distances.shape == (200,)
        for q, c in zip(queries[:10], closest[:10]):
            np.testing.assert_allclose(col.closest(q), c)
        np.testing.assert_allclose(distances, np.linalg.norm(queries - closest, axis=1))

    def test_positions_cannot_be_written_through(self):
        coords = _make_random_scan(30, seed=6)
        col = IndexedPointCollection(points_from_array(coords))

        with pytest.raises(ValueError):
            col.positions[0] = [100.0, 100.0]
        np.testing.assert_allclose(col.closest(coords[0]), coords[0])

    def test_borrows_points_and_center_of_mass(self):
        pts = points_from_array(_make_random_scan(60, seed=5), PointPair)
        col = IndexedPointCollection(pts)

        assert col.points is pts
        np.testing.assert_allclose(col.center_of_mass, np.array(pts).mean(axis=0))
        col.assert_valid()

    def test_empty_raises(self):
        with pytest.raises(EmptyCollectionError):
            IndexedPointCollection([])
