from pathlib import Path
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGroupBox,
    QLabel, QSpinBox, QComboBox, QLineEdit, QPushButton,
    QScrollArea, QMessageBox, QFileDialog, QSplitter
)
from PySide6.QtCore import Qt, QThreadPool, QUrl, Signal, Slot
from PySide6.QtGui import QDesktopServices

from shotslicer.gui.widgets.task_list_widget import TaskListWidget
from shotslicer.gui.widgets.grid_preview import GridPreviewWidget
from shotslicer.gui.widgets.shot_gallery import ShotGalleryWidget
from shotslicer.core.aspect_ratio import MAINSTREAM_RATIOS
from shotslicer.core.models import AspectRatio, GridSpec
from shotslicer.core.settings_manager import SettingsManager
from shotslicer.core.task_queue import TaskQueue, TaskStatus
from shotslicer.core.workers import DetectWorker, ExportWorker, SliceWorker

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.webp)"
CUSTOM_RATIO = "Custom"


def _spin(minimum: int, maximum: int, tooltip: str) -> QSpinBox:
    spin = QSpinBox()
    spin.setRange(minimum, maximum)
    spin.setToolTip(tooltip)
    return spin


class SliceTab(QWidget):
    """Tab for queueing grid images, slicing them and exporting the shots."""

    status_message = Signal(str)
    busy_changed = Signal(bool)

    def __init__(self, settings: SettingsManager, parent=None):
        super().__init__(parent)
        self.settings = settings
        self.queue = TaskQueue(settings.get_project_config())
        self.threadpool = QThreadPool()
        self._current_worker = None
        self._loading_task = False
        self._loading_config = False

        self.init_ui()
        self.load_settings()

    def init_ui(self):
        """Initialize the user interface."""
        main_layout = QHBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(10)

        # Left side: task queue
        left_widget = QWidget()
        left_layout = QVBoxLayout(left_widget)
        left_layout.setContentsMargins(0, 0, 0, 0)

        header_layout = QHBoxLayout()
        header_layout.addWidget(QLabel("<b>Task Queue:</b>"))
        header_layout.addStretch()

        self.view_toggle_btn = QPushButton("🖼️ Thumbnail View")
        self.view_toggle_btn.setToolTip("Switch between thumbnail and list view")
        self.view_toggle_btn.setCheckable(True)
        self.view_toggle_btn.clicked.connect(self.toggle_view_mode)
        header_layout.addWidget(self.view_toggle_btn)

        self.add_files_btn = QPushButton("➕ Add Images")
        self.add_files_btn.setToolTip("Add grid images to the queue (or drop them on the list)")
        self.add_files_btn.clicked.connect(self.browse_files)
        header_layout.addWidget(self.add_files_btn)
        left_layout.addLayout(header_layout)

        self.detected_label = QLabel("<i>Drop grid images here to begin</i>")
        self.detected_label.setStyleSheet("font-size: 10px; color: #666;")
        left_layout.addWidget(self.detected_label)

        self.task_list = TaskListWidget()
        self.task_list.files_dropped.connect(self.add_files)
        self.task_list.task_toggled.connect(self.on_task_toggled)
        self.task_list.currentRowChanged.connect(self.on_current_task_changed)
        left_layout.addWidget(self.task_list)

        button_layout = QHBoxLayout()
        self.select_all_btn = QPushButton("Select All")
        self.select_all_btn.clicked.connect(self.toggle_select_all)
        self.move_up_btn = QPushButton("▲")
        self.move_up_btn.setToolTip("Move task up")
        self.move_up_btn.clicked.connect(self.move_task_up)
        self.move_down_btn = QPushButton("▼")
        self.move_down_btn.setToolTip("Move task down")
        self.move_down_btn.clicked.connect(self.move_task_down)
        self.remove_btn = QPushButton("✕ Remove")
        self.remove_btn.clicked.connect(self.remove_task)
        button_layout.addWidget(self.select_all_btn)
        button_layout.addWidget(self.move_up_btn)
        button_layout.addWidget(self.move_down_btn)
        button_layout.addWidget(self.remove_btn)
        left_layout.addLayout(button_layout)

        main_layout.addWidget(left_widget, stretch=2)

        # Middle: preview and gallery
        splitter = QSplitter(Qt.Orientation.Vertical)
        self.grid_preview = GridPreviewWidget()
        splitter.addWidget(self.grid_preview)
        self.gallery = ShotGalleryWidget()
        self.gallery.asset_toggled.connect(self.on_asset_toggled)
        self.gallery.status_message.connect(self.status_message.emit)
        splitter.addWidget(self.gallery)
        main_layout.addWidget(splitter, stretch=3)

        # Right side: Settings (scrollable) + Fixed Buttons
        right_widget = QWidget()
        right_layout = QVBoxLayout(right_widget)
        right_layout.setContentsMargins(0, 0, 0, 0)
        right_layout.setSpacing(10)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)

        settings_widget = QWidget()
        settings_layout = QVBoxLayout(settings_widget)
        settings_layout.setAlignment(Qt.AlignmentFlag.AlignTop)

        # Naming Settings
        naming_group = QGroupBox("Naming")
        naming_layout = QVBoxLayout()

        project_layout = QHBoxLayout()
        project_layout.addWidget(QLabel("Project ID:"))
        self.project_id_edit = QLineEdit()
        self.project_id_edit.textChanged.connect(self.on_config_changed)
        project_layout.addWidget(self.project_id_edit)
        naming_layout.addLayout(project_layout)

        scene_layout = QHBoxLayout()
        scene_layout.addWidget(QLabel("Scene ID:"))
        self.scene_id_edit = QLineEdit()
        self.scene_id_edit.textChanged.connect(self.on_config_changed)
        scene_layout.addWidget(self.scene_id_edit)
        naming_layout.addLayout(scene_layout)

        naming_info = QLabel(
            "<i><small>Shot001_&lt;name&gt;_&lt;scene&gt;__&lt;project&gt;_001_&lt;id&gt;.png</small></i>"
        )
        naming_info.setWordWrap(True)
        naming_layout.addWidget(naming_info)

        naming_group.setLayout(naming_layout)
        settings_layout.addWidget(naming_group)
        self.naming_group = naming_group

        # Global grid settings
        global_group = QGroupBox("Global Grid")
        global_layout = QVBoxLayout()

        grid_layout = QHBoxLayout()
        grid_layout.addWidget(QLabel("Cols × Rows:"))
        self.cols_spin = _spin(1, 20, "Number of columns")
        self.cols_spin.valueChanged.connect(self.on_config_changed)
        grid_layout.addWidget(self.cols_spin)
        self.rows_spin = _spin(1, 20, "Number of rows")
        self.rows_spin.valueChanged.connect(self.on_config_changed)
        grid_layout.addWidget(self.rows_spin)
        global_layout.addLayout(grid_layout)

        ratio_layout = QHBoxLayout()
        ratio_layout.addWidget(QLabel("Ratio:"))
        self.ratio_combo = QComboBox()
        self.ratio_combo.addItems([f"{w}:{h}" for w, h in MAINSTREAM_RATIOS] + [CUSTOM_RATIO])
        self.ratio_combo.currentTextChanged.connect(self.on_ratio_preset_changed)
        ratio_layout.addWidget(self.ratio_combo)
        self.aspect_w_spin = _spin(1, 100, "Ratio width")
        self.aspect_w_spin.valueChanged.connect(self.on_config_changed)
        ratio_layout.addWidget(self.aspect_w_spin)
        self.aspect_h_spin = _spin(1, 100, "Ratio height")
        self.aspect_h_spin.valueChanged.connect(self.on_config_changed)
        ratio_layout.addWidget(self.aspect_h_spin)
        global_layout.addLayout(ratio_layout)

        global_group.setLayout(global_layout)
        settings_layout.addWidget(global_group)
        self.global_group = global_group

        # Selected task settings
        task_group = QGroupBox("Selected Task")
        task_layout = QVBoxLayout()

        name_layout = QHBoxLayout()
        name_layout.addWidget(QLabel("Name:"))
        self.task_name_edit = QLineEdit()
        self.task_name_edit.editingFinished.connect(self.on_task_name_edited)
        name_layout.addWidget(self.task_name_edit)
        task_layout.addLayout(name_layout)

        task_grid_layout = QHBoxLayout()
        task_grid_layout.addWidget(QLabel("Cols × Rows:"))
        self.task_cols_spin = _spin(1, 20, "Columns for this task")
        self.task_cols_spin.valueChanged.connect(self.on_task_params_changed)
        task_grid_layout.addWidget(self.task_cols_spin)
        self.task_rows_spin = _spin(1, 20, "Rows for this task")
        self.task_rows_spin.valueChanged.connect(self.on_task_params_changed)
        task_grid_layout.addWidget(self.task_rows_spin)
        task_layout.addLayout(task_grid_layout)

        task_ratio_layout = QHBoxLayout()
        task_ratio_layout.addWidget(QLabel("Ratio W:H:"))
        self.task_aspect_w_spin = _spin(1, 100, "Ratio width for this task")
        self.task_aspect_w_spin.valueChanged.connect(self.on_task_params_changed)
        task_ratio_layout.addWidget(self.task_aspect_w_spin)
        self.task_aspect_h_spin = _spin(1, 100, "Ratio height for this task")
        self.task_aspect_h_spin.valueChanged.connect(self.on_task_params_changed)
        task_ratio_layout.addWidget(self.task_aspect_h_spin)
        task_layout.addLayout(task_ratio_layout)

        self.task_error_label = QLabel("")
        self.task_error_label.setWordWrap(True)
        self.task_error_label.setStyleSheet("color: #E25252;")
        task_layout.addWidget(self.task_error_label)

        task_group.setLayout(task_layout)
        settings_layout.addWidget(task_group)
        self.task_group = task_group

        scroll.setWidget(settings_widget)
        right_layout.addWidget(scroll, stretch=1)

        # Fixed buttons at bottom (outside scroll area)
        self.slice_btn = QPushButton("🚀 Start Slicing")
        self.slice_btn.setMinimumHeight(45)
        self.slice_btn.setStyleSheet("""
            QPushButton {
                background-color: #5294E2;
                color: #FFFFFF;
                font-size: 14px;
                font-weight: bold;
            }
            QPushButton:hover {
                background-color: #6BA4F2;
            }
            QPushButton:disabled {
                background-color: #888888;
                color: #CCCCCC;
            }
        """)
        self.slice_btn.clicked.connect(self.start_slicing)
        right_layout.addWidget(self.slice_btn)

        export_layout = QHBoxLayout()
        self.export_zip_btn = QPushButton("📦 Export Zip")
        self.export_zip_btn.clicked.connect(self.export_zip)
        export_layout.addWidget(self.export_zip_btn)
        self.export_folder_btn = QPushButton("📁 Export Folder")
        self.export_folder_btn.clicked.connect(self.export_folder)
        export_layout.addWidget(self.export_folder_btn)
        right_layout.addLayout(export_layout)

        self.clear_btn = QPushButton("🗑️ Clear Workspace")
        self.clear_btn.clicked.connect(self.clear_tasks)
        right_layout.addWidget(self.clear_btn)

        main_layout.addWidget(right_widget, stretch=1)
        self.refresh_buttons()

    @Slot()
    def toggle_view_mode(self):
        """Toggle between thumbnail and list view."""
        is_thumbnail = self.view_toggle_btn.isChecked()
        self.task_list.set_view_mode(is_thumbnail)
        self.view_toggle_btn.setText("📋 List View" if is_thumbnail else "🖼️ Thumbnail View")

    def load_settings(self):
        """Load global settings."""
        self.apply_config_to_ui()
        thumbnails = self.settings.get("thumbnail_view")
        self.view_toggle_btn.setChecked(thumbnails)
        self.toggle_view_mode()
        self.gallery.last_directory = self.settings.get("export/last_directory") or str(Path.home())

    def apply_config_to_ui(self):
        config = self.queue.config
        self._loading_config = True
        self.project_id_edit.setText(config.project_id)
        self.scene_id_edit.setText(config.scene_id)
        self.rows_spin.setValue(config.rows)
        self.cols_spin.setValue(config.cols)
        self.aspect_w_spin.setValue(config.aspect_w)
        self.aspect_h_spin.setValue(config.aspect_h)
        preset = f"{config.aspect_w}:{config.aspect_h}"
        index = self.ratio_combo.findText(preset)
        self.ratio_combo.setCurrentIndex(index if index >= 0 else self.ratio_combo.count() - 1)
        self._loading_config = False

    def save_settings(self):
        """Save current settings."""
        self.settings.save_project_config(self.queue.config)
        self.settings.set("thumbnail_view", self.view_toggle_btn.isChecked())

    @Slot()
    def on_config_changed(self):
        if self._loading_config:
            return
        config = self.queue.config
        config.project_id = self.project_id_edit.text().strip() or "PRJ"
        config.scene_id = self.scene_id_edit.text().strip() or "SC01"
        config.rows = self.rows_spin.value()
        config.cols = self.cols_spin.value()
        config.aspect_w = self.aspect_w_spin.value()
        config.aspect_h = self.aspect_h_spin.value()

        preset = f"{config.aspect_w}:{config.aspect_h}"
        index = self.ratio_combo.findText(preset)
        self.ratio_combo.blockSignals(True)
        self.ratio_combo.setCurrentIndex(index if index >= 0 else self.ratio_combo.count() - 1)
        self.ratio_combo.blockSignals(False)

        self.save_settings()

    @Slot(str)
    def on_ratio_preset_changed(self, text: str):
        if self._loading_config or text == CUSTOM_RATIO:
            return
        w, h = (int(part) for part in text.split(":"))
        self._loading_config = True
        self.aspect_w_spin.setValue(w)
        self.aspect_h_spin.setValue(h)
        self._loading_config = False
        self.on_config_changed()

    # Queue management
    @Slot()
    def browse_files(self):
        start_dir = self.settings.get("last_directory") or str(Path.home())
        files, _ = QFileDialog.getOpenFileNames(self, "Add Grid Images", start_dir, IMAGE_FILTER)
        if files:
            paths = [Path(f) for f in files]
            self.settings.set("last_directory", str(paths[0].parent))
            self.add_files(paths)

    @Slot(list)
    def add_files(self, paths):
        if self._current_worker is not None:
            return
        worker = DetectWorker(self.queue, list(paths))
        worker.signals.progress.connect(self.status_message.emit)
        worker.signals.finished.connect(self.on_files_added)
        worker.signals.error.connect(self.on_worker_error)
        self.start_worker(worker)

    def on_files_added(self, new_tasks):
        self.finish_worker()
        skipped = "" if new_tasks else " (no readable images)"
        self.status_message.emit(f"Added {len(new_tasks)} image(s){skipped}")
        if self.queue.last_detected_info:
            self.detected_label.setText(f"✨ Auto-detected: {self.queue.last_detected_info}")
        self.apply_config_to_ui()
        self.save_settings()
        self.refresh_tasks()

    def refresh_tasks(self):
        self.task_list.load_tasks(self.queue.tasks)
        self.on_current_task_changed(self.task_list.currentRow())
        self.refresh_buttons()

    def refresh_buttons(self):
        idle = self._current_worker is None
        has_tasks = len(self.queue) > 0
        selected = self.queue.selected_asset_count()
        self.slice_btn.setEnabled(idle and has_tasks)
        self.export_zip_btn.setEnabled(idle and selected > 0)
        self.export_folder_btn.setEnabled(idle and selected > 0)
        self.add_files_btn.setEnabled(idle)
        self.clear_btn.setEnabled(idle)
        self.select_all_btn.setEnabled(idle)
        self.move_up_btn.setEnabled(idle)
        self.move_down_btn.setEnabled(idle)
        self.remove_btn.setEnabled(idle)
        # Workers read the config and task fields off the GUI thread
        self.naming_group.setEnabled(idle)
        self.global_group.setEnabled(idle)
        self.task_group.setEnabled(idle and self.current_task() is not None)
        self.task_list.setEnabled(idle)
        self.export_zip_btn.setText(f"📦 Export Zip ({selected})")
        self.select_all_btn.setText("Deselect All" if self.queue.is_all_selected() else "Select All")

    def current_task(self):
        task_id = self.task_list.current_task_id()
        if task_id is None:
            return None
        try:
            return self.queue.get_task(task_id)
        except KeyError:
            return None

    @Slot(int)
    def on_current_task_changed(self, row: int):
        task = self.current_task()
        self.task_group.setEnabled(task is not None and self._current_worker is None)
        self.gallery.show_task(task)
        if task is None:
            self.grid_preview.set_image(None)
            return

        self._loading_task = True
        self.task_name_edit.setText(task.custom_name)
        self.task_rows_spin.setValue(task.rows)
        self.task_cols_spin.setValue(task.cols)
        self.task_aspect_w_spin.setValue(task.aspect_w)
        self.task_aspect_h_spin.setValue(task.aspect_h)
        self.task_error_label.setText(task.error or "")
        self._loading_task = False

        self.grid_preview.set_image(str(task.source))
        self.grid_preview.set_layout(task.grid, task.ratio)

    @Slot()
    def on_task_name_edited(self):
        task = self.current_task()
        name = self.task_name_edit.text().strip()
        if task is not None and name and name != task.custom_name:
            self.queue.rename_task(task.id, name)
            self.task_list.update_task(task)

    @Slot()
    def on_task_params_changed(self):
        task = self.current_task()
        if self._loading_task or task is None:
            return
        self.queue.update_task_params(
            task.id,
            rows=self.task_rows_spin.value(),
            cols=self.task_cols_spin.value(),
            aspect_w=self.task_aspect_w_spin.value(),
            aspect_h=self.task_aspect_h_spin.value(),
        )
        self.task_list.update_task(task)
        self.grid_preview.set_layout(
            GridSpec(task.rows, task.cols), AspectRatio(task.aspect_w, task.aspect_h)
        )

    @Slot(str)
    def on_task_toggled(self, task_id: str):
        self.queue.toggle_task_selection(task_id)
        if task_id == self.task_list.current_task_id():
            self.gallery.show_task(self.queue.get_task(task_id))
        self.refresh_buttons()

    @Slot(str, int)
    def on_asset_toggled(self, task_id: str, index: int):
        self.queue.toggle_asset_selection(task_id, index)
        self.task_list.update_task(self.queue.get_task(task_id))
        self.refresh_buttons()

    @Slot()
    def toggle_select_all(self):
        self.queue.toggle_select_all()
        self.refresh_tasks()

    @Slot()
    def move_task_up(self):
        row = self.task_list.currentRow()
        if row > 0:
            self.queue.move_task_up(row)
            self.task_list.load_tasks(self.queue.tasks)
            self.task_list.setCurrentRow(row - 1)

    @Slot()
    def move_task_down(self):
        row = self.task_list.currentRow()
        if 0 <= row < len(self.queue) - 1:
            self.queue.move_task_down(row)
            self.task_list.load_tasks(self.queue.tasks)
            self.task_list.setCurrentRow(row + 1)

    @Slot()
    def remove_task(self):
        task = self.current_task()
        if task is not None and self._current_worker is None:
            self.queue.remove_task(task.id)
            self.refresh_tasks()

    @Slot()
    def clear_tasks(self):
        self.queue.clear()
        self.detected_label.setText("<i>Drop grid images here to begin</i>")
        self.refresh_tasks()

    # Slicing
    @Slot()
    def start_slicing(self):
        if not len(self.queue):
            QMessageBox.warning(self, "No Images", "Please add at least one grid image.")
            return

        apply_global = False
        mismatched = self.queue.mismatched_tasks()
        if mismatched:
            box = QMessageBox(self)
            box.setIcon(QMessageBox.Icon.Warning)
            box.setWindowTitle("Configuration Mismatch")
            box.setText(
                f"{len(mismatched)} task(s) use a grid or ratio that differs from the "
                "global settings.\n\nHow should they be sliced?"
            )
            individual_btn = box.addButton("Use Per-Task Settings", QMessageBox.ButtonRole.AcceptRole)
            global_btn = box.addButton("Apply Global Settings", QMessageBox.ButtonRole.ActionRole)
            box.addButton(QMessageBox.StandardButton.Cancel)
            box.exec()

            clicked = box.clickedButton()
            if clicked is global_btn:
                apply_global = True
            elif clicked is not individual_btn:
                return

        worker = SliceWorker(self.queue, apply_global)
        worker.signals.progress.connect(self.on_slice_progress)
        worker.signals.task_done.connect(self.on_task_done)
        worker.signals.finished.connect(self.on_slice_finished)
        worker.signals.error.connect(self.on_worker_error)

        self.slice_btn.setText("Processing...")
        self.start_worker(worker)

    def on_slice_progress(self, payload):
        task_id, percent = payload
        task = self.queue.get_task(task_id)
        self.task_list.update_task(task)
        self.slice_btn.setText(f"Processing {task.custom_name}… {int(percent)}%")

    def on_task_done(self, task_id):
        task = self.queue.get_task(task_id)
        self.task_list.update_task(task)
        if task_id == self.task_list.current_task_id():
            self.on_current_task_changed(self.task_list.currentRow())

    def on_slice_finished(self, completed):
        self.finish_worker()
        self.slice_btn.setText("🚀 Start Slicing")
        failed = [t for t in self.queue.tasks if t.status == TaskStatus.ERROR]
        self.refresh_tasks()

        msg = f"Sliced {completed} image(s) into {self.queue.selected_asset_count()} shots."
        if failed:
            details = "\n".join(f"• {t.custom_name}: {t.error}" for t in failed)
            QMessageBox.warning(self, "Slicing Finished With Errors", f"{msg}\n\nFailed:\n{details}")
        else:
            self.status_message.emit(msg)

    # Export
    @Slot()
    def export_zip(self):
        start_dir = self.settings.get("export/last_directory") or str(Path.home())
        folder = QFileDialog.getExistingDirectory(
            self, "Save Export Package To", start_dir, QFileDialog.Option.ShowDirsOnly
        )
        if folder:
            self.run_export(Path(folder), as_zip=True)

    @Slot()
    def export_folder(self):
        start_dir = self.settings.get("export/last_directory") or str(Path.home())
        folder = QFileDialog.getExistingDirectory(
            self, "Export Shots To Folder", start_dir, QFileDialog.Option.ShowDirsOnly
        )
        if folder:
            self.run_export(Path(folder), as_zip=False)

    def run_export(self, destination: Path, as_zip: bool):
        self.settings.set("export/last_directory", str(destination))
        worker = ExportWorker(list(self.queue.tasks), self.queue.config, destination, as_zip)
        worker.signals.progress.connect(self.status_message.emit)
        worker.signals.finished.connect(self.on_export_finished)
        worker.signals.error.connect(self.on_worker_error)
        self.start_worker(worker)

    def on_export_finished(self, output):
        self.finish_worker()
        if self.settings.get("export/open_after_export"):
            folder = Path(output)
            if folder.is_file():
                folder = folder.parent
            QDesktopServices.openUrl(QUrl.fromLocalFile(str(folder)))
        QMessageBox.information(self, "Export Complete", f"Shots exported successfully!\n\nOutput: {output}")

    # Worker plumbing
    def start_worker(self, worker):
        self._current_worker = worker
        self.refresh_buttons()
        self.busy_changed.emit(True)
        self.threadpool.start(worker)

    def finish_worker(self):
        self._current_worker = None
        self.busy_changed.emit(False)
        self.refresh_buttons()

    def on_worker_error(self, error_msg):
        self.finish_worker()
        self.slice_btn.setText("🚀 Start Slicing")
        self.refresh_tasks()
        QMessageBox.critical(self, "Processing Error", f"An error occurred:\n\n{error_msg}")
