import io

import numpy as np
import pytest
from PIL import Image

from shotslicer.core import slice_engine
from shotslicer.core.errors import DegenerateInputError, EncodeError, SurfaceError
from shotslicer.core.image_loader import RasterImage
from shotslicer.core.models import AspectRatio, GridSpec, NamingContext
from shotslicer.core.slice_engine import (
    build_shot_name, compute_crop_geometry, iter_slices, slice_image
)

NAMING = NamingContext(image_name="sheet", task_id="AB12", project_id="PRJ", scene_id="SC01")

CELL_COLORS = [
    (255, 0, 0), (0, 255, 0), (0, 0, 255),
    (255, 255, 0), (0, 255, 255), (255, 0, 255),
]


def _colored_cells(rows, cols, cell_w, cell_h):
    arr = np.zeros((rows * cell_h, cols * cell_w, 3), dtype=np.uint8)
    for r in range(rows):
        for c in range(cols):
            color = CELL_COLORS[(r * cols + c) % len(CELL_COLORS)]
            arr[r * cell_h:(r + 1) * cell_h, c * cell_w:(c + 1) * cell_w] = color
    return RasterImage.from_array(arr)


def _decode(result):
    return Image.open(io.BytesIO(result.data))


def test_shot_name_format():
    assert build_shot_name(0, NAMING) == "Shot001_sheet_SC01__PRJ_001_AB12.png"
    assert build_shot_name(11, NAMING) == "Shot012_sheet_SC01__PRJ_012_AB12.png"


def test_matching_ratio_uses_whole_cell():
    geometry = compute_crop_geometry(1920, 1080, GridSpec(3, 3), AspectRatio(16, 9))
    assert geometry.cell_width == pytest.approx(640.0)
    assert geometry.extract_width == pytest.approx(640.0)
    assert geometry.extract_height == pytest.approx(360.0)
    assert geometry.output_size == (640, 360)


def test_wide_target_in_square_cell_limits_height():
    geometry = compute_crop_geometry(1000, 1000, GridSpec(3, 3), AspectRatio(16, 9))
    assert geometry.extract_width == pytest.approx(1000 / 3)
    assert geometry.extract_height == pytest.approx(187.5)
    assert geometry.output_size == (333, 188)
    assert geometry.offset_x == pytest.approx(0.0)
    assert geometry.offset_y > 0


@pytest.mark.parametrize("width,height,rows,cols,ratio", [
    (1000, 1000, 3, 3, AspectRatio(16, 9)),
    (1000, 1000, 3, 3, AspectRatio(9, 16)),
    (1920, 1080, 2, 5, AspectRatio(1, 1)),
    (777, 1333, 4, 1, AspectRatio(21, 9)),
    (50, 3000, 7, 2, AspectRatio(5, 4)),
])
def test_fit_crop_stays_inside_cell(width, height, rows, cols, ratio):
    geometry = compute_crop_geometry(width, height, GridSpec(rows, cols), ratio)
    assert geometry.extract_width <= geometry.cell_width + 1e-9
    assert geometry.extract_height <= geometry.cell_height + 1e-9
    assert geometry.extract_width / geometry.extract_height == pytest.approx(ratio.w / ratio.h)
    assert geometry.offset_x >= 0 and geometry.offset_y >= 0

    for r in range(rows):
        for c in range(cols):
            cl, ct, cr, cb = geometry.cell_box(r, c)
            left, top, right, bottom = geometry.crop_box(r, c)
            assert left >= cl - 1e-9 and top >= ct - 1e-9
            assert right <= cr + 1e-9 and bottom <= cb + 1e-9


def test_slices_every_cell_in_row_major_order():
    image = _colored_cells(2, 3, 100, 100)
    progress = []

    results = slice_image(image, GridSpec(2, 3), AspectRatio(1, 1), NAMING, progress.append)

    assert [r.index for r in results] == list(range(6))
    assert [r.name for r in results] == [build_shot_name(i, NAMING) for i in range(6)]
    assert {(r.width, r.height) for r in results} == {(100, 100)}
    assert progress == pytest.approx([(i + 1) / 6 * 100 for i in range(6)])
    assert progress[-1] == 100.0
    assert all(b > a for a, b in zip(progress, progress[1:]))


def test_each_shot_shows_its_own_cell():
    image = _colored_cells(2, 3, 100, 100)
    results = slice_image(image, GridSpec(2, 3), AspectRatio(1, 1), NAMING)

    for result in results:
        img = _decode(result).convert("RGBA")
        assert img.size == (100, 100)
        assert img.getpixel((50, 50)) == CELL_COLORS[result.index] + (255,)


def test_crop_is_centered_in_cell():
    # Cell 200x100, target 1:1 -> 100x100 crop starting 50px into the cell
    arr = np.zeros((100, 200, 3), dtype=np.uint8)
    arr[:, 50:150] = (255, 255, 255)
    results = slice_image(RasterImage.from_array(arr), GridSpec(1, 1), AspectRatio(1, 1), NAMING)

    img = np.asarray(_decode(results[0]).convert("RGB"))
    assert img.shape == (100, 100, 3)
    assert img[5:95, 5:95].min() == 255


def test_transparent_source_renders_over_black():
    arr = np.zeros((60, 60, 4), dtype=np.uint8)
    results = slice_image(RasterImage.from_array(arr), GridSpec(1, 1), AspectRatio(1, 1), NAMING)

    img = _decode(results[0]).convert("RGBA")
    assert img.getpixel((30, 30)) == (0, 0, 0, 255)


def test_encode_failure_skips_only_that_cell(monkeypatch):
    real_encode = slice_engine._encode_png
    calls = []

    def flaky_encode(img):
        calls.append(img)
        if len(calls) == 5:
            raise EncodeError("disk full")
        return real_encode(img)

    monkeypatch.setattr(slice_engine, "_encode_png", flaky_encode)
    progress = []

    results = slice_image(
        _colored_cells(3, 3, 40, 40), GridSpec(3, 3), AspectRatio(1, 1), NAMING, progress.append
    )

    assert [r.index for r in results] == [0, 1, 2, 3, 5, 6, 7, 8]
    assert len(progress) == 9
    assert progress[-1] == 100.0


def test_empty_canvas_is_a_surface_error():
    image = RasterImage.from_array(np.zeros((1, 1, 3), dtype=np.uint8))
    progress = []

    with pytest.raises(SurfaceError):
        slice_image(image, GridSpec(3, 3), AspectRatio(1, 1), NAMING, progress.append)
    assert progress == []


@pytest.mark.parametrize("grid,ratio", [
    (GridSpec(0, 3), AspectRatio(1, 1)),
    (GridSpec(3, -1), AspectRatio(1, 1)),
    (GridSpec(3, 3), AspectRatio(0, 9)),
])
def test_degenerate_inputs_are_rejected(grid, ratio):
    with pytest.raises(DegenerateInputError):
        slice_image(_colored_cells(1, 1, 30, 30), grid, ratio, NAMING)


def test_iterator_matches_list():
    image = _colored_cells(2, 2, 50, 30)
    listed = slice_image(image, GridSpec(2, 2), AspectRatio(4, 3), NAMING)
    iterated = list(iter_slices(image, GridSpec(2, 2), AspectRatio(4, 3), NAMING))
    assert [(r.index, r.width, r.height, r.name) for r in listed] == \
        [(r.index, r.width, r.height, r.name) for r in iterated]


def test_progress_precedes_each_yielded_shot():
    progress = []
    shots = iter_slices(
        _colored_cells(2, 2, 20, 20), GridSpec(2, 2), AspectRatio(1, 1), NAMING, progress.append
    )

    first = next(shots)
    assert first.index == 0
    assert progress == [25.0]

    remaining = list(shots)
    assert [r.index for r in remaining] == [1, 2, 3]
    assert progress == [25.0, 50.0, 75.0, 100.0]


def test_repeated_runs_are_consistent(grid_array):
    image = RasterImage.from_array(grid_array(600, 400, rows=2, cols=3, seed=3))
    first = slice_image(image, GridSpec(2, 3), AspectRatio(16, 9), NAMING)
    second = slice_image(image, GridSpec(2, 3), AspectRatio(16, 9), NAMING)

    assert len(first) == len(second) == 6
    assert [(r.index, r.width, r.height) for r in first] == \
        [(r.index, r.width, r.height) for r in second]
