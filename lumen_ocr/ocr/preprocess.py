"""Image preprocessing ahead of recognition.

The normalizer turns any RGBA raster into a contrast-stretched grayscale
image with soft thresholding: near-white and near-black pixels are pushed
to the extremes while midtones (anti-aliased glyph edges) pass through.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np
from PIL import Image

from ..errors import InvalidImageError

# Luminosity weights (ITU-R BT.601).
RED_WEIGHT = 0.299
GREEN_WEIGHT = 0.587
BLUE_WEIGHT = 0.114

CONTRAST_MIDPOINT = 128
CONTRAST_FACTOR = 1.5
WHITE_CUTOFF = 200
BLACK_CUTOFF = 100


@dataclass
class RasterImage:
    """RGBA pixel grid, shape (height, width, 4), dtype uint8."""

    pixels: np.ndarray

    def __post_init__(self):
        arr = self.pixels
        if not isinstance(arr, np.ndarray):
            raise InvalidImageError(f"Expected a numpy array, got {type(arr).__name__}")
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise InvalidImageError(f"Expected an (height, width, 4) array, got shape {arr.shape}")
        if arr.dtype != np.uint8:
            raise InvalidImageError(f"Expected uint8 pixels, got {arr.dtype}")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @classmethod
    def from_pil(cls, im: Image.Image) -> "RasterImage":
        """Build a raster from a PIL image of any mode."""
        if im.mode != "RGBA":
            im = im.convert("RGBA")
        return cls(np.array(im, dtype=np.uint8))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)

    def copy(self) -> "RasterImage":
        return RasterImage(self.pixels.copy())


def _round_half_up(values: np.ndarray) -> np.ndarray:
    # Half-up, unlike np.round (half-to-even).
    return np.floor(values + 0.5)


def _stretch(rgb: np.ndarray) -> np.ndarray:
    """Luminosity grayscale followed by the clamped contrast stretch."""
    rgb = rgb.astype(np.float64)
    gray = _round_half_up(
        RED_WEIGHT * rgb[..., 0] + GREEN_WEIGHT * rgb[..., 1] + BLUE_WEIGHT * rgb[..., 2]
    )
    enhanced = _round_half_up((gray - CONTRAST_MIDPOINT) * CONTRAST_FACTOR + CONTRAST_MIDPOINT)
    return np.clip(enhanced, 0, 255)


def _normalize_band(src: np.ndarray, dst: np.ndarray) -> None:
    clamped = _stretch(src[..., :3])
    out = np.where(clamped > WHITE_CUTOFF, 255, np.where(clamped < BLACK_CUTOFF, 0, clamped))
    out = out.astype(np.uint8)
    dst[..., 0] = out
    dst[..., 1] = out
    dst[..., 2] = out
    if dst is not src:
        dst[..., 3] = src[..., 3]


def luminosity(image: RasterImage) -> np.ndarray:
    """Return the contrast-stretched gray values before thresholding."""
    return _stretch(image.pixels[..., :3]).astype(np.uint8)


def normalize(image: RasterImage, *, inplace: bool = False, workers: int = 1) -> RasterImage:
    """Convert a raster into the grayscale form the recognizer reads best.

    Every pixel is processed independently, so with ``workers > 1`` the rows
    are split into bands and handled on a thread pool; the output does not
    depend on the partitioning. Alpha is left untouched.
    """
    src = image.pixels
    dst = src if inplace else np.empty_like(src)
    height = src.shape[0]

    if src.size == 0:
        return image if inplace else RasterImage(dst)

    if workers <= 1 or height < 2:
        _normalize_band(src, dst)
    else:
        bands = np.array_split(np.arange(height), min(workers, height))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(_normalize_band, src[rows[0] : rows[-1] + 1], dst[rows[0] : rows[-1] + 1])
                for rows in bands
                if len(rows)
            ]
            for future in futures:
                future.result()

    return image if inplace else RasterImage(dst)


def normalize_pil(im: Image.Image, *, workers: int = 1) -> Image.Image:
    """PIL convenience wrapper; always returns an RGBA image."""
    return normalize(RasterImage.from_pil(im), inplace=True, workers=workers).to_pil()
