"""
Exception types raised by the slicing engine and exporter.
"""


class SlicerError(Exception):
    """Base class for all slicing failures."""


class DecodeError(SlicerError):
    """Source bytes could not be decoded into a raster."""


class SurfaceError(SlicerError):
    """The output canvas could not be created."""


class EncodeError(SlicerError):
    """A single rendered cell could not be serialized."""


class DegenerateInputError(SlicerError):
    """Rows, columns, ratio components or dimensions were not positive."""


class ExportError(SlicerError):
    """Nothing could be exported."""
