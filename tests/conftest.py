import os

import numpy as np
import pytest
from PIL import Image

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


def _grid_array(width, height, rows, cols, gutter=30, seed=0):
    """Noise-filled cells separated by flat gray seams."""
    rng = np.random.default_rng(seed)
    arr = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    half = gutter // 2
    for i in range(1, rows):
        y = round(i * height / rows)
        arr[max(0, y - half):y + half, :, :] = 128
    for i in range(1, cols):
        x = round(i * width / cols)
        arr[:, max(0, x - half):x + half, :] = 128
    return arr


@pytest.fixture
def grid_array():
    return _grid_array


@pytest.fixture
def write_grid_png(tmp_path):
    def _write(name, width=600, height=600, rows=3, cols=3, seed=0):
        path = tmp_path / name
        Image.fromarray(_grid_array(width, height, rows, cols, seed=seed), "RGB").save(path)
        return path
    return _write


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication
    return QApplication.instance() or QApplication([])
