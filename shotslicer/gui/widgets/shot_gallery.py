from pathlib import Path
from typing import Optional
from PySide6.QtWidgets import QFileDialog, QListWidget, QListWidgetItem, QMenu, QMessageBox
from PySide6.QtCore import Qt, QSize, Signal
from PySide6.QtGui import QGuiApplication, QIcon, QPixmap

from shotslicer.core.task_queue import Asset, ProcessingTask


class ShotGalleryWidget(QListWidget):
    """Thumbnails of a task's shots, each with an export checkbox.

    Double-click saves a single shot; the context menu also copies its name.
    """

    asset_toggled = Signal(str, int)
    status_message = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.task: Optional[ProcessingTask] = None
        self.last_directory = str(Path.home())
        self._updating = False
        self.setViewMode(QListWidget.ViewMode.IconMode)
        self.setIconSize(QSize(128, 128))
        self.setSpacing(6)
        self.setResizeMode(QListWidget.ResizeMode.Adjust)
        self.setMovement(QListWidget.Movement.Static)
        self.setWrapping(True)
        self.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.itemChanged.connect(self._on_item_changed)
        self.itemDoubleClicked.connect(self._on_item_double_clicked)
        self.customContextMenuRequested.connect(self._show_context_menu)

    @property
    def task_id(self) -> Optional[str]:
        return self.task.id if self.task else None

    def show_task(self, task: Optional[ProcessingTask]):
        self._updating = True
        self.clear()
        self.task = task
        if task is not None:
            for asset in task.assets:
                pixmap = QPixmap()
                pixmap.loadFromData(asset.result.data, "PNG")
                item = QListWidgetItem(QIcon(pixmap), f"Shot {asset.result.shot_number:03d}")
                item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
                item.setCheckState(
                    Qt.CheckState.Checked if asset.selected else Qt.CheckState.Unchecked
                )
                item.setToolTip(f"{asset.name}\n{asset.result.width}×{asset.result.height}")
                item.setData(Qt.ItemDataRole.UserRole, asset.index)
                self.addItem(item)
        self._updating = False

    def asset_for_item(self, item: Optional[QListWidgetItem]) -> Optional[Asset]:
        if item is None or self.task is None:
            return None
        index = item.data(Qt.ItemDataRole.UserRole)
        for asset in self.task.assets:
            if asset.index == index:
                return asset
        return None

    def save_asset(self, asset: Asset):
        """Ask for a destination and write one shot's PNG bytes there."""
        default_path = str(Path(self.last_directory) / asset.name)
        path, _ = QFileDialog.getSaveFileName(self, "Save Shot", default_path, "PNG Image (*.png)")
        if not path:
            return
        try:
            Path(path).write_bytes(asset.result.data)
        except OSError as e:
            QMessageBox.warning(self, "Save Failed", f"Could not save {asset.name}:\n\n{e}")
            return
        self.last_directory = str(Path(path).parent)
        self.status_message.emit(f"Saved {Path(path).name}")

    def copy_asset_name(self, asset: Asset):
        QGuiApplication.clipboard().setText(asset.name)
        self.status_message.emit(f"Copied {asset.name}")

    def _show_context_menu(self, pos):
        asset = self.asset_for_item(self.itemAt(pos))
        if asset is None:
            return
        menu = QMenu(self)
        save_action = menu.addAction("Save Shot As...")
        copy_action = menu.addAction("Copy Name")
        chosen = menu.exec(self.viewport().mapToGlobal(pos))
        if chosen is save_action:
            self.save_asset(asset)
        elif chosen is copy_action:
            self.copy_asset_name(asset)

    def _on_item_double_clicked(self, item: QListWidgetItem):
        asset = self.asset_for_item(item)
        if asset is not None:
            self.save_asset(asset)

    def _on_item_changed(self, item: QListWidgetItem):
        if not self._updating and self.task_id is not None:
            self.asset_toggled.emit(self.task_id, item.data(Qt.ItemDataRole.UserRole))
