# Error types raised by the reader


class SerialTagError(Exception):
    """Base class for all serial tag reader errors."""


class GeometryError(SerialTagError):
    """
    Raised for degenerate rects (zero area, outside the frame) and
    non-invertible transforms.
    """


class InitializationError(SerialTagError):
    """
    Raised when a classifier (model weights or labels) fails to load.
    Fatal for that detector instance.
    """
