"""
Scan Alignment Module

This module aligns a movable 2-D scan onto a fixed reference scan using the
ICP (Iterative Closest Point) algorithm with a KD-tree correspondence search
and an SVD-based rigid transform estimate.
"""

from .points import ICPPoint, Point2D, PointPair, points_from_array
from .point_collection import PointCollection, IndexedPointCollection
from .estimation import SVDTransformEstimator, TransformEstimate
from .fine_registration import ICPRegistration, ICPResult, RegistrationState
from .exceptions import (
    RegistrationError,
    EmptyCollectionError,
    InvalidPointError,
    IllConditionedCorrespondenceError,
    InvariantViolationError,
)

__all__ = [
    "ICPPoint",
    "Point2D",
    "PointPair",
    "points_from_array",
    "PointCollection",
    "IndexedPointCollection",
    "SVDTransformEstimator",
    "TransformEstimate",
    "ICPRegistration",
    "ICPResult",
    "RegistrationState",
    "RegistrationError",
    "EmptyCollectionError",
    "InvalidPointError",
    "IllConditionedCorrespondenceError",
    "InvariantViolationError",
]
