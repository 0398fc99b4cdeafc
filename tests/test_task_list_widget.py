from shotslicer.core.task_queue import TaskQueue
from shotslicer.gui.widgets.task_list_widget import TaskListWidget


def test_tooltip_shows_source_dimensions(qapp, write_grid_png):
    queue = TaskQueue()
    queue.add_files([write_grid_png("wide.png", width=900, height=300, rows=1, cols=3)])
    widget = TaskListWidget()

    widget.load_tasks(queue.tasks)

    assert widget.item(0).toolTip().endswith("900×300 px")


def test_error_replaces_tooltip_until_cleared(qapp, write_grid_png):
    queue = TaskQueue()
    queue.add_files([write_grid_png("sheet.png")])
    task = queue.tasks[0]
    widget = TaskListWidget()
    widget.load_tasks(queue.tasks)

    task.error = "Cannot decode image"
    widget.update_task(task)
    assert widget.item(0).toolTip() == "Cannot decode image"

    task.error = None
    widget.update_task(task)
    assert widget.item(0).toolTip().endswith("600×600 px")


def test_missing_source_falls_back_to_path(qapp, write_grid_png):
    queue = TaskQueue()
    path = write_grid_png("gone.png")
    queue.add_files([path])
    path.unlink()

    assert TaskListWidget.size_hint_text(queue.tasks[0]) == str(path)
