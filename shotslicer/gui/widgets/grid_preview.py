from typing import Optional
from PySide6.QtWidgets import QWidget, QSizePolicy
from PySide6.QtCore import Qt, QRectF
from PySide6.QtGui import QPainter, QPixmap, QPen, QColor

from shotslicer.core.errors import DegenerateInputError
from shotslicer.core.models import AspectRatio, GridSpec
from shotslicer.core.slice_engine import compute_crop_geometry


class GridPreviewWidget(QWidget):
    """Source image with cell boundaries and fitted crop rectangles drawn on top."""

    GRID_COLOR = QColor(82, 148, 226)
    CROP_COLOR = QColor(255, 196, 0)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.pixmap: Optional[QPixmap] = None
        self.grid: Optional[GridSpec] = None
        self.ratio: Optional[AspectRatio] = None
        self.setMinimumHeight(180)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

    def set_image(self, path: Optional[str]):
        self.pixmap = QPixmap(path) if path else None
        if self.pixmap is not None and self.pixmap.isNull():
            self.pixmap = None
        self.update()

    def set_layout(self, grid: GridSpec, ratio: AspectRatio):
        self.grid = grid
        self.ratio = ratio
        self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(30, 30, 30))

        if self.pixmap is None:
            painter.setPen(QColor(140, 140, 140))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "No image selected")
            return

        # Fit the image inside the widget
        img_w, img_h = self.pixmap.width(), self.pixmap.height()
        scale = min(self.width() / img_w, self.height() / img_h)
        draw_w, draw_h = img_w * scale, img_h * scale
        origin_x = (self.width() - draw_w) / 2
        origin_y = (self.height() - draw_h) / 2
        painter.drawPixmap(QRectF(origin_x, origin_y, draw_w, draw_h), self.pixmap,
                           QRectF(0, 0, img_w, img_h))

        if self.grid is None or self.ratio is None:
            return

        try:
            geometry = compute_crop_geometry(img_w, img_h, self.grid, self.ratio)
        except DegenerateInputError:
            return

        def to_widget(box):
            left, top, right, bottom = box
            return QRectF(origin_x + left * scale, origin_y + top * scale,
                          (right - left) * scale, (bottom - top) * scale)

        grid_pen = QPen(self.GRID_COLOR, 1, Qt.PenStyle.DashLine)
        crop_pen = QPen(self.CROP_COLOR, 2)
        for r in range(self.grid.rows):
            for c in range(self.grid.cols):
                painter.setPen(grid_pen)
                painter.drawRect(to_widget(geometry.cell_box(r, c)))
                painter.setPen(crop_pen)
                painter.drawRect(to_widget(geometry.crop_box(r, c)))
