"""
Task queue - explicit batch state for slicing many grid images in sequence.
"""
import logging
import random
import string
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from shotslicer.core.aspect_ratio import resolve_aspect_ratio
from shotslicer.core.errors import SlicerError
from shotslicer.core.grid_detector import detect_grid_structure
from shotslicer.core.image_loader import decode_image
from shotslicer.core.models import (
    AspectRatio, GridSpec, NamingContext, ProjectConfig, SliceResult
)
from shotslicer.core.slice_engine import slice_image

logger = logging.getLogger(__name__)

RATIO_MISMATCH_THRESHOLD = 0.05
PROCESSING_START_PROGRESS = 10.0
SHORT_ID_ALPHABET = string.digits + string.ascii_uppercase


class TaskStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class Asset:
    """A slice result plus its export selection flag."""
    result: SliceResult
    selected: bool = True

    @property
    def index(self) -> int:
        return self.result.index

    @property
    def name(self) -> str:
        return self.result.name


@dataclass
class ProcessingTask:
    """One source image waiting to be, or already, sliced."""
    id: str
    short_id: str
    source: Path
    custom_name: str
    rows: int
    cols: int
    aspect_w: int
    aspect_h: int
    status: TaskStatus = TaskStatus.PENDING
    progress: float = 0.0
    assets: List[Asset] = field(default_factory=list)
    error: Optional[str] = None
    selected: bool = True

    @property
    def grid(self) -> GridSpec:
        return GridSpec.coerced(self.rows, self.cols)

    @property
    def ratio(self) -> AspectRatio:
        return AspectRatio.coerced(self.aspect_w, self.aspect_h)

    @property
    def selected_assets(self) -> List[Asset]:
        return [a for a in self.assets if a.selected]


def generate_short_id(rng: Optional[random.Random] = None) -> str:
    """Four upper-case base-36 characters."""
    rng = rng or random
    return "".join(rng.choice(SHORT_ID_ALPHABET) for _ in range(4))


def create_task(path: Path) -> ProcessingTask:
    """Decode an image, detect its grid and snap its cell ratio."""
    path = Path(path)
    image = decode_image(path)
    grid = detect_grid_structure(image)
    ratio = resolve_aspect_ratio(image.width / grid.cols, image.height / grid.rows)

    return ProcessingTask(
        id=uuid.uuid4().hex,
        short_id=generate_short_id(),
        source=path,
        custom_name=path.stem,
        rows=grid.rows,
        cols=grid.cols,
        aspect_w=ratio.w,
        aspect_h=ratio.h,
    )


def is_mismatched(task: ProcessingTask, config: ProjectConfig) -> bool:
    """True when a task's grid or ratio differs from the global settings."""
    grid_mismatch = task.rows != config.rows or task.cols != config.cols
    task_ratio = task.aspect_w / task.aspect_h
    global_ratio = config.aspect_w / config.aspect_h
    ratio_mismatch = abs(task_ratio - global_ratio) > RATIO_MISMATCH_THRESHOLD
    return grid_mismatch or ratio_mismatch


TaskProgressCallback = Callable[[ProcessingTask, float], None]
TaskDoneCallback = Callable[[ProcessingTask], None]


class TaskQueue:
    """Ordered list of tasks plus the global project configuration."""

    def __init__(self, config: Optional[ProjectConfig] = None):
        self.config = config or ProjectConfig()
        self.tasks: List[ProcessingTask] = []
        self.last_detected_info: Optional[str] = None

    def __len__(self):
        return len(self.tasks)

    def get_task(self, task_id: str) -> ProcessingTask:
        for task in self.tasks:
            if task.id == task_id:
                return task
        raise KeyError(task_id)

    # Adding and editing
    def add_files(self, paths: Iterable[Path]) -> List[ProcessingTask]:
        """Create tasks for image files; undecodable files are skipped."""
        was_empty = not self.tasks
        new_tasks = []
        for path in paths:
            try:
                new_tasks.append(create_task(path))
            except SlicerError as e:
                logger.warning("Skipping %s: %s", path, e)

        self.tasks.extend(new_tasks)

        # The first batch seeds the global settings
        if was_empty and new_tasks:
            first = new_tasks[0]
            self.config.rows = first.rows
            self.config.cols = first.cols
            self.config.aspect_w = first.aspect_w
            self.config.aspect_h = first.aspect_h
            self.last_detected_info = (
                f"{first.cols}x{first.rows} | {first.aspect_w}:{first.aspect_h}"
            )

        logger.info("Added %d task(s), queue size %d", len(new_tasks), len(self.tasks))
        return new_tasks

    def rename_task(self, task_id: str, name: str):
        self.get_task(task_id).custom_name = name

    def update_task_params(self, task_id: str, rows=None, cols=None,
                           aspect_w=None, aspect_h=None):
        """Override a task's slicing parameters; values are clamped to at least 1."""
        task = self.get_task(task_id)
        if rows is not None:
            task.rows = max(1, int(rows))
        if cols is not None:
            task.cols = max(1, int(cols))
        if aspect_w is not None:
            task.aspect_w = max(1, int(aspect_w))
        if aspect_h is not None:
            task.aspect_h = max(1, int(aspect_h))

    def move_task_up(self, index: int):
        if index <= 0 or index >= len(self.tasks):
            return
        self.tasks[index - 1], self.tasks[index] = self.tasks[index], self.tasks[index - 1]

    def move_task_down(self, index: int):
        if index < 0 or index >= len(self.tasks) - 1:
            return
        self.tasks[index], self.tasks[index + 1] = self.tasks[index + 1], self.tasks[index]

    def remove_task(self, task_id: str):
        self.tasks = [t for t in self.tasks if t.id != task_id]

    def clear(self):
        self.tasks = []
        self.last_detected_info = None

    def mismatched_tasks(self) -> List[ProcessingTask]:
        return [
            t for t in self.tasks
            if t.status != TaskStatus.COMPLETED and is_mismatched(t, self.config)
        ]

    # Processing
    def process_task(self, task: ProcessingTask, apply_global: bool = False,
                     on_progress: Optional[TaskProgressCallback] = None,
                     config: Optional[ProjectConfig] = None):
        """Slice one task, recording the outcome on the task itself.

        `config` defaults to the live global config; `run` passes a copy taken
        when the batch starts.
        """
        if config is None:
            config = self.config
        task.status = TaskStatus.PROCESSING
        task.progress = PROCESSING_START_PROGRESS
        task.error = None
        if on_progress:
            on_progress(task, task.progress)

        if apply_global:
            grid, ratio = config.grid, config.ratio
        else:
            grid, ratio = task.grid, task.ratio

        naming = NamingContext(
            image_name=task.custom_name,
            task_id=task.short_id,
            project_id=config.project_id,
            scene_id=config.scene_id,
        )

        def report(percent: float):
            task.progress = PROCESSING_START_PROGRESS + percent * 0.9
            if on_progress:
                on_progress(task, task.progress)

        logger.info("Processing %s (%dx%d, %s)", task.source.name, grid.cols, grid.rows, ratio)
        try:
            image = decode_image(task.source)
            results = slice_image(image, grid, ratio, naming, report)
        except SlicerError as e:
            task.status = TaskStatus.ERROR
            task.error = str(e)
            logger.error("Task %s failed: %s", task.short_id, e)
            return

        task.assets = [Asset(r) for r in results]
        task.status = TaskStatus.COMPLETED
        task.progress = 100.0
        logger.info("Task %s produced %d shot(s)", task.short_id, len(results))

    def run(self, apply_global: bool = False,
            on_progress: Optional[TaskProgressCallback] = None,
            on_task_done: Optional[TaskDoneCallback] = None) -> int:
        """Process every unfinished task in order; returns the number completed."""
        config = replace(self.config)
        completed = 0
        for task in list(self.tasks):
            if task.status == TaskStatus.COMPLETED:
                continue
            self.process_task(task, apply_global, on_progress, config)
            if task.status == TaskStatus.COMPLETED:
                completed += 1
            if on_task_done:
                on_task_done(task)
        return completed

    # Selection
    def toggle_task_selection(self, task_id: str):
        task = self.get_task(task_id)
        task.selected = not task.selected
        for asset in task.assets:
            asset.selected = task.selected

    def toggle_asset_selection(self, task_id: str, index: int):
        task = self.get_task(task_id)
        for asset in task.assets:
            if asset.index == index:
                asset.selected = not asset.selected
        task.selected = any(a.selected for a in task.assets)

    def toggle_select_all(self):
        all_selected = all(
            t.selected and all(a.selected for a in t.assets) for t in self.tasks
        )
        target = not all_selected
        for task in self.tasks:
            task.selected = target
            for asset in task.assets:
                asset.selected = target

    def selected_asset_count(self) -> int:
        return sum(len(t.selected_assets) for t in self.tasks)

    def is_all_selected(self) -> bool:
        if not self.tasks:
            return False
        return all(
            t.selected and (not t.assets or all(a.selected for a in t.assets))
            for t in self.tasks
        )
