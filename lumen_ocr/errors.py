"""Exception classes for lumen_ocr.

Everything raised on purpose by the library derives from LumenOcrError.
Text cleaning never raises; only preprocessing, recognition and
configuration can fail.
"""

from __future__ import annotations


class LumenOcrError(Exception):
    """Base exception for all lumen_ocr errors."""


class InvalidImageError(LumenOcrError, ValueError):
    """Raised when input bytes or arrays cannot be turned into a raster image."""


class RecognitionError(LumenOcrError, RuntimeError):
    """Raised when the recognition engine fails or times out."""


class RulesetError(LumenOcrError, ValueError):
    """Raised for a malformed cleaning ruleset."""


class ConfigurationError(LumenOcrError, ValueError):
    """Raised for invalid configuration values."""


class ProcessingCancelled(LumenOcrError):
    """Raised when a running job is cancelled between stages."""
