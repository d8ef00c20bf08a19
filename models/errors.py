"""
Failure taxonomy of the compression pipeline.
Every stage raises one of these and nothing partial is returned.
"""


class CompressionError(Exception):
    """Base class for all pipeline failures."""


class DecodeError(CompressionError):
    """Input bytes are not a supported raster image (PNG or JPEG)."""


class EmptyImageError(CompressionError):
    """No pixel passes the visibility (alpha) threshold."""


class RenderError(CompressionError):
    """Resampling or encoding surface could not be used."""


class ImageReadError(CompressionError, OSError):
    """Underlying byte source could not be read."""
