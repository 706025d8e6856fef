"""Document-level entry point: bytes in, schema result out."""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
import threading

from ..cleaning.filter import ArtifactFilter
from ..cleaning.rules import RuleHit, load_ruleset, resolve_ruleset
from ..config import cleaning_settings, ocr_settings
from ..io.loaders import load_pages_from_bytes
from ..ocr.engine import OcrResult, ProgressFn, analyze_pages
from .schemas import PageOutput, PipelineResult, RuleTraceEntry


@dataclass
class DocumentResult:
    """Bundle the OCR result and its serializable schema."""
    ocr: OcrResult
    schema: PipelineResult

    def to_dict(self) -> dict:
        return self.schema.to_dict()


def _trace_for_pages(result: OcrResult) -> List[RuleTraceEntry]:
    return [_entry(page.page, hit) for page in result.pages for hit in page.trace]


def _entry(page: int, hit: RuleHit) -> RuleTraceEntry:
    return RuleTraceEntry(
        page=page,
        rule=hit.rule,
        stage=hit.stage,
        action=hit.action,
        text=hit.text,
        count=hit.count,
    )


def analyze_document_bytes(
    file_bytes: bytes,
    *,
    lang: Optional[str] = None,
    psm: Optional[int] = None,
    ruleset_path: Optional[str] = None,
    debug: bool = False,
    progress: Optional[ProgressFn] = None,
    cancel: Optional[threading.Event] = None,
) -> DocumentResult:
    """Analyze PDF/image bytes; with `debug`, include raw text and a rule trace."""
    settings = ocr_settings()
    cleaning = cleaning_settings()
    debug = debug or settings.debug
    if ruleset_path:
        ruleset = load_ruleset(Path(ruleset_path))
    else:
        ruleset = resolve_ruleset(cleaning.ruleset)
    cleaner = ArtifactFilter(ruleset, max_passes=cleaning.max_passes)

    pages = load_pages_from_bytes(file_bytes, dpi=settings.dpi)
    ocr_result = analyze_pages(
        pages,
        lang=lang,
        psm=psm,
        cleaner=cleaner,
        trace=debug,
        progress=progress,
        cancel=cancel,
    )

    schema = PipelineResult(
        text=ocr_result.text,
        language=ocr_result.lang,
        ruleset_version=ruleset.version,
        pages=[
            PageOutput(
                page=p.page,
                width=p.width,
                height=p.height,
                text=p.text,
                raw_text=p.raw_text if debug else None,
                confidence=p.confidence,
            )
            for p in ocr_result.pages
        ],
        trace=_trace_for_pages(ocr_result) if debug else None,
    )
    return DocumentResult(ocr=ocr_result, schema=schema)
