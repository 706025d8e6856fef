"""Document loaders for PDFs and images (bytes -> page rasters)."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import List

from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFPageCountError, PDFSyntaxError
from PIL import Image, UnidentifiedImageError

from ..errors import InvalidImageError
from ..ocr.preprocess import RasterImage


@dataclass
class PageImage:
    page: int
    raster: RasterImage

    @property
    def width(self) -> int:
        return self.raster.width

    @property
    def height(self) -> int:
        return self.raster.height


def _to_page(idx: int, im: Image.Image) -> PageImage:
    width, height = im.size
    if width < 1 or height < 1:
        raise InvalidImageError(f"Page {idx} has zero area ({width}x{height})")
    return PageImage(page=idx, raster=RasterImage.from_pil(im))


def load_pages_from_bytes(file_bytes: bytes, *, dpi: int = 300) -> List[PageImage]:
    """Decode PDF or image bytes into one RGBA raster per page."""
    if not file_bytes:
        raise InvalidImageError("Empty file payload")

    if file_bytes[:4] == b"%PDF":
        try:
            pages = convert_from_bytes(file_bytes, dpi=dpi)
        except (PDFPageCountError, PDFSyntaxError) as exc:
            raise InvalidImageError(f"Could not render PDF: {exc}") from exc
        if not pages:
            raise InvalidImageError("Empty PDF")
        return [_to_page(idx, page) for idx, page in enumerate(pages, start=1)]

    try:
        im = Image.open(io.BytesIO(file_bytes))
        im.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise InvalidImageError(f"Could not decode image: {exc}") from exc
    return [_to_page(1, im)]


def encode_png(raster: RasterImage) -> bytes:
    """Encode a raster losslessly for handoff to the recognition engine."""
    buf = io.BytesIO()
    raster.to_pil().save(buf, format="PNG")
    return buf.getvalue()
