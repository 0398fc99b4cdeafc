"""
Decoding of source images into an owned RGBA pixel buffer.
"""
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image

from shotslicer.core.errors import DecodeError

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, str, Path]


@dataclass(frozen=True)
class RasterImage:
    """Decoded RGBA pixels, shape (height, width, 4), read-only."""
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @staticmethod
    def from_array(array: np.ndarray) -> 'RasterImage':
        """Wrap a grayscale, RGB or RGBA uint8 array, copying it."""
        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Unsupported pixel array shape: {arr.shape}")
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr.astype(np.uint8), alpha], axis=-1)
        pixels = np.ascontiguousarray(arr, dtype=np.uint8).copy()
        pixels.setflags(write=False)
        return RasterImage(pixels)

    @staticmethod
    def from_pil(img: Image.Image) -> 'RasterImage':
        return RasterImage.from_array(np.asarray(img.convert("RGBA")))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels), "RGBA")


def _open(source: ImageSource) -> Image.Image:
    if isinstance(source, (bytes, bytearray)):
        return Image.open(io.BytesIO(bytes(source)))
    return Image.open(Path(source))


def decode_image(source: ImageSource) -> RasterImage:
    """Decode raw bytes or an image file into a RasterImage."""
    try:
        with _open(source) as img:
            img.load()
            raster = RasterImage.from_pil(img)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Cannot decode image: {e}") from e

    if raster.width == 0 or raster.height == 0:
        raise DecodeError("Image has no pixels")

    logger.debug("Decoded image %dx%d", raster.width, raster.height)
    return raster


def probe_dimensions(source: ImageSource) -> Tuple[int, int]:
    """Read width and height from the image header only."""
    try:
        with _open(source) as img:
            return img.size
    except (OSError, ValueError) as e:
        raise DecodeError(f"Cannot read image header: {e}") from e
