"""Batch slicer for grid and contact-sheet images."""

__version__ = "1.0.0"
