"""OCR package (preprocessing, engine adapter, page pipeline)."""

from .preprocess import RasterImage, normalize, normalize_pil

__all__ = ["RasterImage", "normalize", "normalize_pil"]
