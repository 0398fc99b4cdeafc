"""Headless slicing engine, task queue and export helpers."""
from .errors import (
    DecodeError, DegenerateInputError, EncodeError, ExportError, SlicerError, SurfaceError
)
from .models import AspectRatio, GridSpec, NamingContext, ProjectConfig, SliceResult
from .image_loader import RasterImage, decode_image
from .grid_detector import detect_grid_structure
from .aspect_ratio import resolve_aspect_ratio
from .slice_engine import compute_crop_geometry, iter_slices, slice_image
