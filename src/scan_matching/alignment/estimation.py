"""
Rigid Transform Estimation

Closest-point correspondence search and closed-form 2-D rigid transform
estimation (SVD of the cross-covariance, Kabsch style). This is one ICP step.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

import numpy as np

from ..utils.logging import setup_logger
from .exceptions import IllConditionedCorrespondenceError
from .point_collection import IndexedPointCollection, PointCollection

logger = setup_logger(__name__)


class TransformEstimate(NamedTuple):
    """Incremental transform: translate by `translation`, then rotate by `rotation_rad`."""

    translation: np.ndarray
    rotation_rad: float


# Strategy signature used by ICPRegistration
TransformEstimator = Callable[[IndexedPointCollection, PointCollection], TransformEstimate]


class SVDTransformEstimator:
    """
    Nearest-neighbor correspondences + SVD rotation estimate.

    For every movable point the nearest reference point is taken as its
    correspondence (many-to-one allowed, nothing is rejected). The rotation
    comes from the SVD of the 2x2 cross-covariance of the centered sets.
    """

    def __init__(self, correct_reflection: bool = False, condition_epsilon: float = 1e-9):
        """
        Args:
            correct_reflection: If det(U @ Vt) < 0, negate the singular vector of
                the smallest singular value so the result is a proper rotation.
                Off by default: R = U @ Vt is used as is. A warning is logged
                either way.
            condition_epsilon: Ratio of smallest to largest singular value below
                which the correspondence set is rejected as ill-conditioned.
        """
        self.correct_reflection = correct_reflection
        self.condition_epsilon = condition_epsilon

    def __call__(
        self,
        reference: IndexedPointCollection,
        movable: PointCollection,
    ) -> TransformEstimate:
        movable_points = movable.positions
        reference_points, _ = reference.closest_many(movable_points)
        return self.estimate_transformation(reference_points, movable_points)

    def estimate_transformation(
        self,
        reference_points: np.ndarray,
        movable_points: np.ndarray,
    ) -> TransformEstimate:
        """
        Estimate the rigid transform moving movable_points onto reference_points.

        Args:
            reference_points: Matched reference positions (N x 2).
            movable_points: Movable positions (N x 2), row-aligned with the above.

        Returns:
            TransformEstimate with t = centroid_ref - R @ centroid_mov and the
            angle of R.

        Raises:
            IllConditionedCorrespondenceError: If the cross-covariance is
                (near) singular, e.g. for collinear or coincident points.
        """
        centroid_ref = np.mean(reference_points, axis=0)
        centroid_mov = np.mean(movable_points, axis=0)

        ref_centered = reference_points - centroid_ref
        mov_centered = movable_points - centroid_mov

        # H = sum_i (ref_i - c_ref)(mov_i - c_mov)^T
        H = ref_centered.T @ mov_centered

        U, S, Vt = np.linalg.svd(H)

        if S[0] <= 0.0 or S[1] <= self.condition_epsilon * S[0]:
            raise IllConditionedCorrespondenceError(
                f"Cross-covariance is ill-conditioned (singular values {S[0]:.3e}, {S[1]:.3e}); "
                "the correspondence set does not constrain a rotation."
            )

        R = U @ Vt

        if np.linalg.det(R) < 0:
            if self.correct_reflection:
                logger.warning("SVD produced a reflection; correcting to a proper rotation.")
                U[:, -1] *= -1
                R = U @ Vt
            else:
                logger.warning("SVD produced a reflection; using it uncorrected.")

        rotation = float(np.arctan2(R[1, 0], R[0, 0]))
        translation = centroid_ref - R @ centroid_mov

        return TransformEstimate(translation=translation, rotation_rad=rotation)
