# imagediff/errors.py
"""
Error taxonomy for the difference pipeline.
"""


class ImageDiffError(Exception):
    """Base class for every failure reported by the pipeline."""


class ConfigurationError(ImageDiffError):
    """A required numeric setting is missing or out of range."""


class DimensionMismatchError(ImageDiffError):
    """The two buffers disagree on size, or a buffer length is not width*height*4."""


class InternalError(ImageDiffError):
    """Unexpected failure while computing a difference."""
