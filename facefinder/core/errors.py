"""
Exceptions raised by the detection and verification core.
"""


class FaceFinderError(Exception):
    """Base class for facefinder errors."""


class InvalidArgument(FaceFinderError, ValueError):
    """Malformed input: empty grids, non-positive dimensions or ratios."""


class InvalidOperation(FaceFinderError, RuntimeError):
    """Classifier used before training, or trained with too few examples."""
