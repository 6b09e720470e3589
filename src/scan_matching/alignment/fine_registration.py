"""
ICP Registration Implementation

This module implements the Iterative Closest Point (ICP) algorithm for
aligning a movable 2-D scan onto a fixed reference scan.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Generic, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from ..utils.logging import setup_logger
from .estimation import SVDTransformEstimator, TransformEstimator
from .point_collection import IndexedPointCollection, PointCollection
from .points import ICPPoint

if TYPE_CHECKING:
    from ..utils.config import RegistrationConfig

logger = setup_logger(__name__)

TRef = TypeVar("TRef", bound=ICPPoint)
TOther = TypeVar("TOther", bound=ICPPoint)

DEFAULT_MAX_ITERATIONS = 50
DEFAULT_CONVERGENCE_DISTANCE = 0.005
DEFAULT_CONVERGENCE_ROTATION_RAD = float(np.deg2rad(0.1))
DEFAULT_CONVERGENCE_POINTS_MAXDIST = 0.01


class RegistrationState(Enum):
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERATIONS_REACHED = "max_iterations_reached"
    FINALIZING = "finalizing"
    DONE = "done"


@dataclass(frozen=True)
class ICPResult:
    """
    Outcome of a registration run.

    x_offset and y_offset are the initial guess plus the plain sum of the
    per-iteration translation steps. The replay offsets hold the same steps
    expressed in the original movable frame: translating the original
    movable scan by (replay_x_offset, replay_y_offset) and then rotating it by
    rotation_offset_rad reproduces the aligned scan.

    Attributes:
        x_offset: Accumulated x translation (meters).
        y_offset: Accumulated y translation (meters).
        rotation_offset_rad: Accumulated rotation (radians).
        convergence: Fraction of movable points whose nearest reference point
            lies within the per-axis tolerance, in [0, 1].
        iterations: Number of estimator invocations.
        converged: True if the incremental transform dropped below the
            convergence thresholds before the iteration budget ran out.
        replay_x_offset: x translation in the original movable frame (meters).
        replay_y_offset: y translation in the original movable frame (meters).
    """

    x_offset: float
    y_offset: float
    rotation_offset_rad: float
    convergence: float
    iterations: int = 0
    converged: bool = False
    replay_x_offset: float = 0.0
    replay_y_offset: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x_offset, self.y_offset, self.rotation_offset_rad, self.convergence)

    def as_replay_transform(self) -> Tuple[float, float, float]:
        """(x, y, angle_rad) to translate-then-rotate the original movable scan onto the aligned one."""
        return (self.replay_x_offset, self.replay_y_offset, self.rotation_offset_rad)


def _rotation_matrix(angle_rad: float) -> np.ndarray:
    c, s = np.cos(angle_rad), np.sin(angle_rad)
    return np.array([[c, -s], [s, c]])


class ICPRegistration(Generic[TRef, TOther]):
    """
    One-shot ICP registration session.

    The ICP loop iteratively:
    1. Finds closest point correspondences
    2. Estimates the incremental rigid transform
    3. Applies it to the movable scan
    4. Repeats until the increment is small or the iteration budget is spent

    The session owns the movable scan and is consumed by do_icp().
    """

    def __init__(
        self,
        reference_points: Sequence[TRef],
        movable_points: Sequence[TOther],
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        convergence_distance: float = DEFAULT_CONVERGENCE_DISTANCE,
        convergence_rotation_rad: float = DEFAULT_CONVERGENCE_ROTATION_RAD,
        convergence_points_maxdist: float = DEFAULT_CONVERGENCE_POINTS_MAXDIST,
        estimator: Optional[TransformEstimator] = None,
        check_invariants: bool = False,
        validate_points: bool = False,
    ):
        """
        Initialize the registration session.

        Args:
            reference_points: Fixed reference scan (kept by reference, never modified).
            movable_points: Scan to align; the session takes ownership of a copy.
            max_iterations: Maximum number of ICP iterations.
            convergence_distance: Translation step (meters) below which the
                run is considered converged.
            convergence_rotation_rad: Rotation step (radians) below which the
                run is considered converged.
            convergence_points_maxdist: Per-axis distance (meters) within which a
                final movable point counts as converged.
            estimator: Transform estimation strategy. Defaults to SVDTransformEstimator.
            check_invariants: Verify the movable scan's center of mass after
                every transform.
            validate_points: Run every point's is_valid() once before registering.

        Raises:
            EmptyCollectionError: If either scan is empty.
            InvalidPointError: If validate_points is set and a point is invalid.
        """
        self.points_reference: IndexedPointCollection[TRef] = IndexedPointCollection(reference_points)
        self.points_other: PointCollection[TOther] = PointCollection(
            movable_points, check_invariants=check_invariants
        )
        if validate_points:
            self.points_reference.validate()
            self.points_other.validate()

        self.max_iterations = max_iterations
        self.convergence_distance = convergence_distance
        self.convergence_rotation = convergence_rotation_rad
        self.convergence_points_maxdist = convergence_points_maxdist
        self.estimator: TransformEstimator = estimator or SVDTransformEstimator()
        self.state = RegistrationState.INITIALIZED

    @classmethod
    def default(
        cls, reference_points: Sequence[TRef], movable_points: Sequence[TOther]
    ) -> "ICPRegistration[TRef, TOther]":
        """Session converging at 0.5 cm and 0.1 degrees, 50 iterations max."""
        return cls(
            reference_points,
            movable_points,
            max_iterations=DEFAULT_MAX_ITERATIONS,
            convergence_distance=DEFAULT_CONVERGENCE_DISTANCE,
            convergence_rotation_rad=DEFAULT_CONVERGENCE_ROTATION_RAD,
            convergence_points_maxdist=DEFAULT_CONVERGENCE_POINTS_MAXDIST,
        )

    @classmethod
    def from_config(
        cls,
        reference_points: Sequence[TRef],
        movable_points: Sequence[TOther],
        config: "RegistrationConfig",
    ) -> "ICPRegistration[TRef, TOther]":
        return cls(
            reference_points,
            movable_points,
            max_iterations=config.max_iterations,
            convergence_distance=config.convergence_distance,
            convergence_rotation_rad=config.convergence_rotation_rad,
            convergence_points_maxdist=config.convergence_points_maxdist,
            estimator=SVDTransformEstimator(
                correct_reflection=config.correct_reflection,
                condition_epsilon=config.condition_epsilon,
            ),
            check_invariants=config.check_invariants,
            validate_points=config.validate_points,
        )

    def do_icp(
        self, x: float = 0.0, y: float = 0.0, angle_rad: float = 0.0
    ) -> Tuple[ICPResult, List[TOther]]:
        """
        Run the registration. Consumes the session.

        Args:
            x: Initial x translation guess (meters).
            y: Initial y translation guess (meters).
            angle_rad: Initial rotation guess (radians), applied after the translation.

        Returns:
            Tuple of (result, aligned_movable_points).

        Raises:
            RuntimeError: If the session was already used.
            IllConditionedCorrespondenceError: If an iteration's correspondence
                set cannot define a rotation.
        """
        if self.state is not RegistrationState.INITIALIZED:
            raise RuntimeError(f"ICPRegistration session already used (state={self.state.value}).")

        result = self._run(x, y, angle_rad)
        return result, self.points_other.into_inner()

    def _run(self, x: float, y: float, angle_rad: float) -> ICPResult:
        n_ref = len(self.points_reference)
        n_other = len(self.points_other)
        logger.info(
            "Starting ICP alignment with %d movable points and %d reference points.",
            n_other,
            n_ref,
        )
        icp_start = time.time()

        # Apply initial translation and rotation
        self.points_other.translate(x, y)
        self.points_other.rotate(angle_rad)
        total_translation = np.array([x, y], dtype=float)
        replay_translation = total_translation.copy()
        total_rotation = float(angle_rad)

        self.state = RegistrationState.ITERATING
        n_iterations = 0
        for iteration in range(self.max_iterations):
            translation, rotation = self.estimator(self.points_reference, self.points_other)

            self.points_other.translate(float(translation[0]), float(translation[1]))
            self.points_other.rotate(rotation)

            total_translation += translation
            # Same step in the original movable frame: undo the rotation
            # accumulated before this iteration.
            replay_translation += _rotation_matrix(-total_rotation) @ translation
            total_rotation += rotation
            n_iterations = iteration + 1

            trans_step = float(np.linalg.norm(translation))
            logger.debug(
                "Iteration %d: |Δt|=%.6e m, Δθ=%.6e rad",
                n_iterations,
                trans_step,
                rotation,
            )

            if trans_step < self.convergence_distance and abs(rotation) < self.convergence_rotation:
                self.state = RegistrationState.CONVERGED
                logger.info(
                    "ICP converged after %d iterations (motion below thresholds: "
                    "|Δt|=%.3e m, Δθ=%.3e rad).",
                    n_iterations,
                    trans_step,
                    rotation,
                )
                break
        else:
            self.state = RegistrationState.MAX_ITERATIONS_REACHED
            logger.info("ICP did not converge after %d iterations.", self.max_iterations)

        converged = self.state is RegistrationState.CONVERGED
        self.state = RegistrationState.FINALIZING
        convergence = self.compute_convergence()

        result = ICPResult(
            x_offset=float(total_translation[0]),
            y_offset=float(total_translation[1]),
            rotation_offset_rad=total_rotation,
            convergence=convergence,
            iterations=n_iterations,
            converged=converged,
            replay_x_offset=float(replay_translation[0]),
            replay_y_offset=float(replay_translation[1]),
        )
        self.state = RegistrationState.DONE

        logger.info(
            "ICP finished in %.4f s (%d iterations): x=%.4f m, y=%.4f m, rot=%.4f deg, "
            "convergence=%.1f%%",
            time.time() - icp_start,
            n_iterations,
            result.x_offset,
            result.y_offset,
            np.rad2deg(result.rotation_offset_rad),
            result.convergence * 100.0,
        )
        return result

    def compute_convergence(self) -> float:
        """
        Fraction of movable points with a reference neighbor within
        convergence_points_maxdist on both axes.
        """
        movable = self.points_other.positions
        closest, _ = self.points_reference.closest_many(movable)
        within = np.all(np.abs(movable - closest) < self.convergence_points_maxdist, axis=1)
        return float(np.count_nonzero(within)) / len(movable)
