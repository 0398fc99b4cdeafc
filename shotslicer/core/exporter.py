import logging
import zipfile
from pathlib import Path
from typing import Iterable, List, Tuple

from shotslicer.core.errors import ExportError
from shotslicer.core.models import ProjectConfig
from shotslicer.core.task_queue import Asset, ProcessingTask

logger = logging.getLogger(__name__)


def package_name(config: ProjectConfig) -> str:
    return f"{config.project_id}_{config.scene_id}_Export_Package.zip"


def task_folder_name(task: ProcessingTask, config: ProjectConfig) -> str:
    return f"{config.project_id}_{config.scene_id}_{task.custom_name}_{task.short_id}"


def collect_selected(tasks: Iterable[ProcessingTask],
                     config: ProjectConfig) -> List[Tuple[str, Asset]]:
    """(folder name, asset) pairs for every selected shot, in task order."""
    entries = []
    for task in tasks:
        folder = task_folder_name(task, config)
        for asset in task.selected_assets:
            entries.append((folder, asset))
    return entries


def export_zip(tasks: Iterable[ProcessingTask], config: ProjectConfig,
               destination_dir: Path) -> Path:
    """Write selected shots into a zip with one folder per task."""
    entries = collect_selected(tasks, config)
    if not entries:
        raise ExportError("No shots selected for export")

    destination_dir = Path(destination_dir)
    destination_dir.mkdir(parents=True, exist_ok=True)
    zip_path = destination_dir / package_name(config)

    # PNG data is already compressed
    with zipfile.ZipFile(zip_path, 'w', compression=zipfile.ZIP_STORED) as zf:
        for folder, asset in entries:
            zf.writestr(f"{folder}/{asset.name}", asset.result.data)

    logger.info("Exported %d shot(s) to %s", len(entries), zip_path)
    return zip_path


def export_to_folder(tasks: Iterable[ProcessingTask], config: ProjectConfig,
                     output_dir: Path) -> int:
    """Write selected shots as plain files; returns the number written."""
    entries = collect_selected(tasks, config)
    if not entries:
        raise ExportError("No shots selected for export")

    output_dir = Path(output_dir)
    for folder, asset in entries:
        target_dir = output_dir / folder
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / asset.name).write_bytes(asset.result.data)

    logger.info("Wrote %d shot(s) under %s", len(entries), output_dir)
    return len(entries)
