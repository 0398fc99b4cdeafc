import traceback
from pathlib import Path
from typing import List
from PySide6.QtCore import QObject, QRunnable, Signal, Slot

from shotslicer.core.exporter import export_to_folder, export_zip
from shotslicer.core.models import ProjectConfig
from shotslicer.core.task_queue import ProcessingTask, TaskQueue


class WorkerSignals(QObject):
    """Signals for worker threads."""
    finished = Signal(object)
    error = Signal(str)
    progress = Signal(object)
    task_done = Signal(object)


class DetectWorker(QRunnable):
    """Worker for decoding new files and detecting their grids."""

    def __init__(self, queue: TaskQueue, files: List[Path]):
        super().__init__()
        self.queue = queue
        self.files = files
        self.signals = WorkerSignals()

    @Slot()
    def run(self):
        """Execute the detection."""
        try:
            self.signals.progress.emit(f"Analyzing {len(self.files)} image(s)...")
            new_tasks = self.queue.add_files(self.files)
            self.signals.finished.emit(new_tasks)
        except Exception as e:
            self.signals.error.emit(f"{str(e)}\n\n{traceback.format_exc()}")


class SliceWorker(QRunnable):
    """Worker for slicing every unfinished task in background thread."""

    def __init__(self, queue: TaskQueue, apply_global: bool = False):
        super().__init__()
        self.queue = queue
        self.apply_global = apply_global
        self.signals = WorkerSignals()

    def _on_progress(self, task: ProcessingTask, percent: float):
        # Emit progress with task id/percent
        self.signals.progress.emit((task.id, percent))

    def _on_task_done(self, task: ProcessingTask):
        self.signals.task_done.emit(task.id)

    @Slot()
    def run(self):
        """Execute the slicing."""
        try:
            completed = self.queue.run(
                apply_global=self.apply_global,
                on_progress=self._on_progress,
                on_task_done=self._on_task_done,
            )
            self.signals.finished.emit(completed)
        except Exception as e:
            self.signals.error.emit(f"{str(e)}\n\n{traceback.format_exc()}")


class ExportWorker(QRunnable):
    """Worker for writing selected shots to a zip package or a folder."""

    def __init__(self, tasks: List[ProcessingTask], config: ProjectConfig,
                 destination: Path, as_zip: bool = True):
        super().__init__()
        self.tasks = tasks
        self.config = config
        self.destination = destination
        self.as_zip = as_zip
        self.signals = WorkerSignals()

    @Slot()
    def run(self):
        """Execute the export."""
        try:
            self.signals.progress.emit("Exporting...")
            if self.as_zip:
                zip_path = export_zip(self.tasks, self.config, self.destination)
                self.signals.finished.emit(str(zip_path))
            else:
                count = export_to_folder(self.tasks, self.config, self.destination)
                self.signals.progress.emit(f"Exported {count} file(s)")
                self.signals.finished.emit(str(self.destination))
        except Exception as e:
            self.signals.error.emit(f"{str(e)}\n\n{traceback.format_exc()}")
