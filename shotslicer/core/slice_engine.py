"""
Slicing engine: crop geometry, per-cell rendering and PNG encoding.

Every cell of a task is cropped to the same target aspect ratio with a "fit"
crop (largest centered rectangle of that ratio inside the cell), scaled onto a
canvas of identical size and encoded to PNG. Cells are processed strictly in
row-major order and progress is reported once per cell.
"""
import io
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

from PIL import Image

from shotslicer.core.errors import DegenerateInputError, EncodeError, SurfaceError
from shotslicer.core.image_loader import RasterImage
from shotslicer.core.models import (
    AspectRatio, GridSpec, NamingContext, SliceResult, round_half_up
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
Box = Tuple[float, float, float, float]

BACKGROUND = (0, 0, 0, 255)


@dataclass(frozen=True)
class CropGeometry:
    """Cell size, fitted crop size and output size shared by all cells of a task."""
    image_width: int
    image_height: int
    rows: int
    cols: int
    cell_width: float
    cell_height: float
    extract_width: float
    extract_height: float

    @property
    def offset_x(self) -> float:
        return (self.cell_width - self.extract_width) / 2

    @property
    def offset_y(self) -> float:
        return (self.cell_height - self.extract_height) / 2

    @property
    def output_size(self) -> Tuple[int, int]:
        return (round_half_up(self.extract_width), round_half_up(self.extract_height))

    def cell_box(self, row: int, col: int) -> Box:
        left = col * self.cell_width
        top = row * self.cell_height
        return (left, top, left + self.cell_width, top + self.cell_height)

    def crop_box(self, row: int, col: int) -> Box:
        """Source rectangle for a cell, clamped to the image against float drift."""
        left = col * self.cell_width + self.offset_x
        top = row * self.cell_height + self.offset_y
        right = min(left + self.extract_width, float(self.image_width))
        bottom = min(top + self.extract_height, float(self.image_height))
        return (max(0.0, left), max(0.0, top), right, bottom)


def _validate(width: int, height: int, grid: GridSpec, ratio: AspectRatio):
    if grid.rows <= 0 or grid.cols <= 0:
        raise DegenerateInputError(f"Grid must be at least 1x1, got {grid.cols}x{grid.rows}")
    if ratio.w <= 0 or ratio.h <= 0:
        raise DegenerateInputError(f"Aspect ratio components must be positive, got {ratio}")
    if width <= 0 or height <= 0:
        raise DegenerateInputError(f"Image must have pixels, got {width}x{height}")


def compute_crop_geometry(width: int, height: int, grid: GridSpec,
                          ratio: AspectRatio) -> CropGeometry:
    """Fit the target ratio inside one cell without exceeding its bounds."""
    _validate(width, height, grid, ratio)

    cell_width = width / grid.cols
    cell_height = height / grid.rows
    target_value = ratio.w / ratio.h
    cell_value = cell_width / cell_height

    if cell_value > target_value:
        extract_height = cell_height
        extract_width = cell_height * target_value
    else:
        extract_width = cell_width
        extract_height = cell_width / target_value

    return CropGeometry(
        image_width=width,
        image_height=height,
        rows=grid.rows,
        cols=grid.cols,
        cell_width=cell_width,
        cell_height=cell_height,
        extract_width=extract_width,
        extract_height=extract_height,
    )


def build_shot_name(index: int, naming: NamingContext) -> str:
    """Output file name for the cell at 0-based row-major `index`."""
    shot_num = f"{index + 1:03d}"
    return (
        f"Shot{shot_num}_{naming.image_name}_{naming.scene_id}"
        f"__{naming.project_id}_{shot_num}_{naming.task_id}.png"
    )


def _create_canvas(size: Tuple[int, int]) -> Image.Image:
    w, h = size
    if w <= 0 or h <= 0:
        raise SurfaceError(f"Output canvas would be empty ({w}x{h})")
    try:
        return Image.new("RGBA", (w, h), BACKGROUND)
    except (ValueError, MemoryError) as e:
        raise SurfaceError(f"Cannot allocate {w}x{h} canvas: {e}") from e


def _encode_png(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    try:
        img.save(buffer, format="PNG")
    except (OSError, ValueError) as e:
        raise EncodeError(str(e)) from e
    return buffer.getvalue()


def render_cell(source: Image.Image, geometry: CropGeometry, row: int, col: int,
                background: Image.Image) -> Image.Image:
    """Composite one cell's crop over a copy of the black background."""
    canvas = background.copy()
    crop = source.resize(
        geometry.output_size,
        Image.Resampling.BILINEAR,
        box=geometry.crop_box(row, col),
    )
    canvas.alpha_composite(crop)
    return canvas


def iter_slices(image: RasterImage, grid: GridSpec, ratio: AspectRatio,
                naming: NamingContext,
                on_progress: Optional[ProgressCallback] = None) -> Iterator[SliceResult]:
    """Yield a SliceResult per successfully encoded cell, in row-major order."""
    geometry = compute_crop_geometry(image.width, image.height, grid, ratio)
    background = _create_canvas(geometry.output_size)
    out_w, out_h = geometry.output_size
    source = image.to_pil()
    total = grid.rows * grid.cols

    logger.debug(
        "Slicing %dx%d image into %dx%d cells of %.2fx%.2f, output %dx%d",
        image.width, image.height, grid.cols, grid.rows,
        geometry.cell_width, geometry.cell_height, out_w, out_h,
    )

    for r in range(grid.rows):
        for c in range(grid.cols):
            index = r * grid.cols + c
            canvas = render_cell(source, geometry, r, c, background)
            try:
                data = _encode_png(canvas)
            except EncodeError as e:
                logger.warning("Skipping shot %d of %s: %s", index + 1, naming.image_name, e)
                data = None

            # Progress for a cell is reported before its result is handed out
            if on_progress is not None:
                on_progress((index + 1) / total * 100)

            if data is not None:
                yield SliceResult(
                    index=index,
                    data=data,
                    width=out_w,
                    height=out_h,
                    name=build_shot_name(index, naming),
                )


def slice_image(image: RasterImage, grid: GridSpec, ratio: AspectRatio,
                naming: NamingContext,
                on_progress: Optional[ProgressCallback] = None) -> List[SliceResult]:
    """Slice every cell of `image` and return the results in row-major order."""
    return list(iter_slices(image, grid, ratio, naming, on_progress))
