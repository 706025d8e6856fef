"""IO helpers (loaders and writers)."""

from .loaders import PageImage, encode_png, load_pages_from_bytes
from .writers import write_json, write_text

__all__ = [
    "PageImage",
    "encode_png",
    "load_pages_from_bytes",
    "write_json",
    "write_text",
]
