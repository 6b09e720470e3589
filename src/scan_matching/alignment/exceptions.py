"""
Registration Errors

Exceptions raised by the scan registration engine. All of them derive from
ValueError so callers that only guard against bad input keep working.
"""


class RegistrationError(ValueError):
    """Base class for all registration failures."""


class EmptyCollectionError(RegistrationError):
    """A point collection was built from an empty point sequence."""


class InvalidPointError(RegistrationError):
    """A point failed its own validity predicate during pre-flight validation."""

    def __init__(self, index: int, point: object):
        self.index = index
        self.point = point
        super().__init__(f"Point at index {index} is not valid: {point!r}")


class IllConditionedCorrespondenceError(RegistrationError):
    """The cross-covariance of the correspondence set cannot define a rotation."""


class InvariantViolationError(RegistrationError):
    """The cached center of mass drifted away from the recomputed one."""
