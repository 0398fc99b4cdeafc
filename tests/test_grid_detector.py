import numpy as np
import pytest

from shotslicer.core.grid_detector import (
    SCAN_WIDTH, check_split, detect_grid_structure, line_energy, make_scan_buffer
)
from shotslicer.core.image_loader import RasterImage
from shotslicer.core.models import GridSpec


def _flat(width, height, value=90):
    return RasterImage.from_array(np.full((height, width, 3), value, dtype=np.uint8))


def test_scan_buffer_keeps_aspect_ratio():
    scan = make_scan_buffer(_flat(1000, 500))
    assert scan.shape == (150, SCAN_WIDTH, 3)


def test_scan_buffer_height_never_zero():
    scan = make_scan_buffer(_flat(2000, 1))
    assert scan.shape[0] == 1


def test_line_energy_is_normalized_by_line_length():
    scan = np.zeros((4, 10, 3), dtype=np.float64)
    scan[0, ::2, 0] = 10.0  # alternating 10/0 on row 0, red channel
    # 9 adjacent pairs, each differing by 10, divided by the width of 10
    assert line_energy(scan, horizontal=True, position=0.0) == pytest.approx(9.0)
    assert line_energy(scan, horizontal=True, position=1.0) == 0.0


def test_flat_interior_never_accepts_split():
    scan = np.zeros((30, 30, 3), dtype=np.float64)
    assert check_split(scan, horizontal=True, count=2) is False
    assert check_split(scan, horizontal=False, count=3) is False


def test_single_part_always_accepted():
    scan = np.zeros((30, 30, 3), dtype=np.float64)
    assert check_split(scan, horizontal=True, count=1) is True


def test_detects_three_by_three(grid_array):
    image = RasterImage.from_array(grid_array(600, 600, rows=3, cols=3))
    assert detect_grid_structure(image) == GridSpec(3, 3)


def test_detects_two_by_two(grid_array):
    image = RasterImage.from_array(grid_array(600, 600, rows=2, cols=2))
    assert detect_grid_structure(image) == GridSpec(2, 2)


def test_detects_axes_independently(grid_array):
    image = RasterImage.from_array(grid_array(900, 600, rows=2, cols=3))
    assert detect_grid_structure(image) == GridSpec(2, 3)


def test_seamless_wide_noise_is_single_cell(grid_array):
    image = RasterImage.from_array(grid_array(900, 300, rows=1, cols=1))
    assert detect_grid_structure(image) == GridSpec(1, 1)


@pytest.mark.parametrize("width,height", [(400, 200), (200, 400), (1210, 1000), (780, 1000)])
def test_uniform_non_square_image_is_single_cell(width, height):
    assert detect_grid_structure(_flat(width, height)) == GridSpec(1, 1)


@pytest.mark.parametrize("width,height", [(500, 500), (800, 1000), (1200, 1000), (640, 600)])
def test_uniform_near_square_image_falls_back_to_three_by_three(width, height):
    assert detect_grid_structure(_flat(width, height)) == GridSpec(3, 3)


def test_detection_is_deterministic(grid_array):
    image = RasterImage.from_array(grid_array(600, 600, rows=2, cols=2, seed=7))
    assert detect_grid_structure(image) == detect_grid_structure(image)
