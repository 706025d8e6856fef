from .cleaning.classify import LineVerdict, classify
from .cleaning.filter import ArtifactFilter, clean
from .errors import (
    ConfigurationError,
    InvalidImageError,
    LumenOcrError,
    ProcessingCancelled,
    RecognitionError,
    RulesetError,
)
from .ocr.engine import OcrResult, analyze_bytes
from .ocr.preprocess import RasterImage, normalize
from .ocr.tesseract import RecognitionResult
from .pipeline.analyze import DocumentResult, analyze_document_bytes
from .pipeline.schemas import PipelineResult

__version__ = "0.1.0"

__all__ = [
    "ArtifactFilter",
    "LineVerdict",
    "classify",
    "clean",
    "RasterImage",
    "normalize",
    "RecognitionResult",
    "OcrResult",
    "analyze_bytes",
    "DocumentResult",
    "analyze_document_bytes",
    "PipelineResult",
    "LumenOcrError",
    "InvalidImageError",
    "RecognitionError",
    "RulesetError",
    "ConfigurationError",
    "ProcessingCancelled",
]
