"""
Grid structure detection.

A composite sheet is assumed to have quiet seams between its cells: pixel-to-pixel
differences along a seam line are much lower than along a line through the middle
of a cell. The detector downsamples the image to a fixed scan width, then for each
axis tests 3 and then 2 divisions by comparing the edge energy of the expected
seam lines against the energy of the cell-center lines.
"""
import logging

import numpy as np
from PIL import Image

from shotslicer.core.image_loader import RasterImage
from shotslicer.core.models import GridSpec, round_half_up

logger = logging.getLogger(__name__)

SCAN_WIDTH = 300
SEAM_ENERGY_RATIO = 0.45
CANDIDATE_SPLITS = (3, 2)
SQUARE_FALLBACK_RANGE = (0.8, 1.2)
SQUARE_FALLBACK_GRID = GridSpec(3, 3)


def make_scan_buffer(image: RasterImage) -> np.ndarray:
    """Downsample to SCAN_WIDTH pixels wide, returning float RGB of shape (h, w, 3)."""
    scan_height = max(1, round_half_up(image.height / image.width * SCAN_WIDTH))
    scan = image.to_pil().convert("RGB").resize(
        (SCAN_WIDTH, scan_height), Image.Resampling.BILINEAR
    )
    return np.asarray(scan, dtype=np.float64)


def line_energy(scan: np.ndarray, horizontal: bool, position: float) -> float:
    """Mean per-pixel RGB difference along one scan line.

    A horizontal line runs across row floor(position * (h - 1)) and is normalized
    by the scan width; a vertical line runs down the matching column and is
    normalized by the scan height.
    """
    h, w = scan.shape[:2]
    if horizontal:
        line = scan[int(np.floor(position * (h - 1))), :, :]
        length = w
    else:
        line = scan[:, int(np.floor(position * (w - 1))), :]
        length = h
    diffs = np.abs(np.diff(line, axis=0))
    return float(diffs.sum()) / length


def check_split(scan: np.ndarray, horizontal: bool, count: int) -> bool:
    """Test whether the axis looks divided into `count` equal parts."""
    if count <= 1:
        return True

    boundary = [line_energy(scan, horizontal, i / count) for i in range(1, count)]
    interior = [line_energy(scan, horizontal, (i + 0.5) / count) for i in range(count)]
    avg_boundary = sum(boundary) / len(boundary)
    avg_interior = sum(interior) / len(interior)

    logger.debug(
        "split check %s k=%d boundary=%.3f interior=%.3f",
        "rows" if horizontal else "cols", count, avg_boundary, avg_interior,
    )

    # Flat interiors carry no signal, never accept a split from them
    if avg_interior <= 0.0:
        return False
    return avg_boundary < avg_interior * SEAM_ENERGY_RATIO


def detect_axis(scan: np.ndarray, horizontal: bool) -> int:
    for count in CANDIDATE_SPLITS:
        if check_split(scan, horizontal, count):
            return count
    return 1


def detect_grid_structure(image: RasterImage) -> GridSpec:
    """Infer rows and columns of a composite image from its pixels."""
    scan = make_scan_buffer(image)
    rows = detect_axis(scan, horizontal=True)
    cols = detect_axis(scan, horizontal=False)

    if rows == 1 and cols == 1:
        ratio = image.width / image.height
        low, high = SQUARE_FALLBACK_RANGE
        if low <= ratio <= high:
            logger.debug("No grid found in near-square image, assuming 3x3")
            return SQUARE_FALLBACK_GRID

    logger.debug("Detected grid %dx%d", cols, rows)
    return GridSpec(rows, cols)
