import io
from pathlib import Path

import pytest
from PIL import Image
from PySide6.QtGui import QGuiApplication

from shotslicer.core.models import SliceResult
from shotslicer.core.task_queue import Asset, ProcessingTask
from shotslicer.gui.widgets import shot_gallery


def _png_bytes(color):
    buf = io.BytesIO()
    Image.new("RGBA", (8, 6), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def task():
    assets = [
        Asset(SliceResult(i, _png_bytes((40 * i, 0, 0, 255)), 8, 6, f"Shot{i + 1:03d}_demo.png"))
        for i in range(3)
    ]
    return ProcessingTask(
        id="abc", short_id="AB12", source=Path("demo.png"), custom_name="demo",
        rows=1, cols=3, aspect_w=4, aspect_h=3, assets=assets,
    )


@pytest.fixture
def gallery(qapp, task):
    widget = shot_gallery.ShotGalleryWidget()
    widget.show_task(task)
    return widget


class _FakeDialog:
    def __init__(self, chosen):
        self.chosen = chosen
        self.defaults = []

    def getSaveFileName(self, parent, caption, default_path, filters):
        self.defaults.append(default_path)
        return self.chosen, filters


def test_gallery_lists_every_shot(gallery, task):
    assert gallery.count() == 3
    assert gallery.asset_for_item(gallery.item(1)) is task.assets[1]


def test_save_writes_shot_bytes(gallery, task, tmp_path, monkeypatch):
    target = tmp_path / "picked.png"
    dialog = _FakeDialog(str(target))
    monkeypatch.setattr(shot_gallery, "QFileDialog", dialog)
    gallery.last_directory = str(tmp_path)
    messages = []
    gallery.status_message.connect(messages.append)

    gallery._on_item_double_clicked(gallery.item(2))

    assert target.read_bytes() == task.assets[2].result.data
    assert dialog.defaults == [str(tmp_path / "Shot003_demo.png")]
    assert messages == ["Saved picked.png"]


def test_cancelled_save_writes_nothing(gallery, task, tmp_path, monkeypatch):
    monkeypatch.setattr(shot_gallery, "QFileDialog", _FakeDialog(""))
    gallery.last_directory = str(tmp_path)

    gallery.save_asset(task.assets[0])

    assert list(tmp_path.iterdir()) == []


def test_copy_name_uses_clipboard(gallery, task):
    gallery.copy_asset_name(task.assets[1])
    assert QGuiApplication.clipboard().text() == "Shot002_demo.png"
