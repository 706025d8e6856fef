"""Pipeline package (end-to-end analysis)."""

from .analyze import DocumentResult, analyze_document_bytes
from .schemas import PipelineResult

__all__ = ["DocumentResult", "PipelineResult", "analyze_document_bytes"]
