from pathlib import Path
from typing import List, Optional
from PySide6.QtWidgets import QListWidget, QListWidgetItem
from PySide6.QtCore import Qt, QSize, Signal
from PySide6.QtGui import QIcon

from shotslicer.core.errors import DecodeError
from shotslicer.core.image_loader import probe_dimensions
from shotslicer.core.task_queue import ProcessingTask, TaskStatus


STATUS_LABELS = {
    TaskStatus.PENDING: "⏳ Pending",
    TaskStatus.PROCESSING: "⚙️ Processing",
    TaskStatus.COMPLETED: "✅ Done",
    TaskStatus.ERROR: "❌ Error",
}


class TaskListWidget(QListWidget):
    """List widget showing queued tasks; accepts dropped image files."""

    SUPPORTED_FORMATS = {'.png', '.jpg', '.jpeg', '.bmp', '.gif', '.webp'}
    SIZE_ROLE = Qt.ItemDataRole.UserRole + 1

    files_dropped = Signal(list)
    task_toggled = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setAcceptDrops(True)
        self._updating = False
        self.set_view_mode(False)
        self.itemChanged.connect(self._on_item_changed)

    def set_view_mode(self, thumbnail_mode: bool):
        """Switch between thumbnail and list view."""
        if thumbnail_mode:
            self.setViewMode(QListWidget.ViewMode.IconMode)
            self.setIconSize(QSize(96, 96))
            self.setSpacing(8)
            self.setWrapping(True)
            self.setResizeMode(QListWidget.ResizeMode.Adjust)
            self.setMovement(QListWidget.Movement.Static)
        else:
            self.setViewMode(QListWidget.ViewMode.ListMode)
            self.setIconSize(QSize(48, 48))
            self.setSpacing(2)
            self.setWrapping(False)

    @staticmethod
    def describe(task: ProcessingTask) -> str:
        status = STATUS_LABELS[task.status]
        if task.status == TaskStatus.PROCESSING:
            status = f"{status} {int(task.progress)}%"
        elif task.status == TaskStatus.COMPLETED:
            status = f"{status} ({len(task.assets)} shots)"
        return (
            f"{task.custom_name} [{task.short_id}]\n"
            f"{task.cols}x{task.rows} | {task.aspect_w}:{task.aspect_h} | {status}"
        )

    @staticmethod
    def size_hint_text(task: ProcessingTask) -> str:
        try:
            width, height = probe_dimensions(task.source)
        except DecodeError:
            return str(task.source)
        return f"{task.source}\n{width}×{height} px"

    def load_tasks(self, tasks: List[ProcessingTask]):
        """Rebuild the list from the queue, keeping the current row."""
        current = self.currentRow()
        self._updating = True
        self.clear()
        for task in tasks:
            item = QListWidgetItem(self.describe(task))
            item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
            item.setCheckState(Qt.CheckState.Checked if task.selected else Qt.CheckState.Unchecked)
            item.setData(Qt.ItemDataRole.UserRole, task.id)
            item.setData(self.SIZE_ROLE, self.size_hint_text(task))
            item.setToolTip(task.error or item.data(self.SIZE_ROLE))

            # Try to set thumbnail
            icon = QIcon(str(task.source))
            if not icon.isNull():
                item.setIcon(icon)

            self.addItem(item)
        self._updating = False

        if 0 <= current < self.count():
            self.setCurrentRow(current)
        elif self.count():
            self.setCurrentRow(0)

    def update_task(self, task: ProcessingTask):
        """Refresh a single row's text without rebuilding the list."""
        item = self.find_item(task.id)
        if item is not None:
            self._updating = True
            item.setText(self.describe(task))
            item.setToolTip(task.error or item.data(self.SIZE_ROLE))
            item.setCheckState(Qt.CheckState.Checked if task.selected else Qt.CheckState.Unchecked)
            self._updating = False

    def find_item(self, task_id: str) -> Optional[QListWidgetItem]:
        for i in range(self.count()):
            item = self.item(i)
            if item.data(Qt.ItemDataRole.UserRole) == task_id:
                return item
        return None

    def current_task_id(self) -> Optional[str]:
        item = self.currentItem()
        if item is None:
            return None
        return item.data(Qt.ItemDataRole.UserRole)

    def _on_item_changed(self, item: QListWidgetItem):
        if not self._updating:
            self.task_toggled.emit(item.data(Qt.ItemDataRole.UserRole))

    # Drag and drop
    def _image_paths(self, event) -> List[Path]:
        paths = []
        for url in event.mimeData().urls():
            path = Path(url.toLocalFile())
            if path.suffix.lower() in self.SUPPORTED_FORMATS:
                paths.append(path)
        return paths

    def dragEnterEvent(self, event):
        if event.mimeData().hasUrls() and self._image_paths(event):
            event.acceptProposedAction()
        else:
            event.ignore()

    def dragMoveEvent(self, event):
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event):
        paths = self._image_paths(event)
        if paths:
            event.acceptProposedAction()
            self.files_dropped.emit(sorted(paths, key=lambda p: p.name.lower()))
        else:
            event.ignore()
