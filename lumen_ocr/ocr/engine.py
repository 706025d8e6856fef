"""OCR pipeline for page images.

Each page goes through the same fixed sequence, exactly once:
normalize the raster, recognize it with Tesseract, clean the text.
`analyze_bytes` is the single entry point for raw PDF/image bytes.
"""

#=== Imports =============================================================
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from ..cleaning.filter import ArtifactFilter
from ..cleaning.rules import RuleHit, resolve_ruleset
from ..config import cleaning_settings, ocr_settings
from ..errors import ProcessingCancelled
from ..io.loaders import PageImage, load_pages_from_bytes
from .preprocess import normalize
from .tesseract import RecognitionResult, recognize

LOGGER = logging.getLogger("lumen_ocr.ocr.engine")

ProgressFn = Callable[[float], None]

# Share of a page's progress spent before recognition starts, and where
# recognition ends and cleaning begins.
PREPARE_SHARE = 0.25
RECOGNIZE_END = 0.95

#=== Helpers =============================================================

def _recognize(image, **kwargs) -> RecognitionResult:
    """Indirection point for tests; delegates to the tesseract adapter."""
    return recognize(image, **kwargs)


def _check_cancel(cancel: Optional[threading.Event], stage: str) -> None:
    if cancel is not None and cancel.is_set():
        LOGGER.info("Cancelled before %s", stage)
        raise ProcessingCancelled(f"Cancelled before {stage}")


class _Progress:
    """Maps per-page stage progress onto one monotone [0, 1] scale."""

    def __init__(self, callback: Optional[ProgressFn], total_pages: int) -> None:
        self.callback = callback
        self.total_pages = max(total_pages, 1)
        self.last = 0.0

    def report(self, page_index: int, fraction: float) -> None:
        if self.callback is None:
            return
        fraction = min(max(fraction, 0.0), 1.0)
        value = (page_index + fraction) / self.total_pages
        if value < self.last:
            return
        self.last = value
        self.callback(value)

#=== Public API ===================================================================

@dataclass
class PageText:
    page: int
    width: int
    height: int
    raw_text: str
    text: str
    confidence: Optional[float] = None
    trace: List[RuleHit] = field(default_factory=list)


@dataclass
class OcrResult:
    """Cleaned text for a document plus the per-page details."""
    text: str
    raw_text: str
    lang: str
    pages: List[PageText] = field(default_factory=list)


def process_page(
    page: PageImage,
    *,
    cleaner: ArtifactFilter,
    lang: str = "eng",
    psm: int = 3,
    oem: int = 3,
    workers: int = 1,
    trace: bool = False,
    cancel: Optional[threading.Event] = None,
    progress: Optional[ProgressFn] = None,
) -> PageText:
    report = progress or (lambda _value: None)

    _check_cancel(cancel, "preprocessing")
    report(0.0)
    normalized = normalize(page.raster, workers=workers)
    report(PREPARE_SHARE)

    _check_cancel(cancel, "recognition")
    result = _recognize(
        normalized.to_pil(),
        lang=lang,
        psm=psm,
        oem=oem,
        progress=lambda p: report(PREPARE_SHARE + (RECOGNIZE_END - PREPARE_SHARE) * p),
    )

    _check_cancel(cancel, "cleaning")
    report(RECOGNIZE_END)
    hits: List[RuleHit] = []
    if trace:
        text, hits = cleaner.clean_with_trace(result.text)
    else:
        text = cleaner.clean(result.text)
    report(1.0)

    LOGGER.info(
        "Page %s: %s raw chars -> %s clean chars (confidence=%s)",
        page.page,
        len(result.text),
        len(text),
        result.confidence,
    )
    return PageText(
        page=page.page,
        width=page.width,
        height=page.height,
        raw_text=result.text,
        text=text,
        confidence=result.confidence,
        trace=hits,
    )


def analyze_pages(
    pages: Sequence[PageImage],
    *,
    lang: Optional[str] = None,
    psm: Optional[int] = None,
    cleaner: Optional[ArtifactFilter] = None,
    trace: bool = False,
    progress: Optional[ProgressFn] = None,
    cancel: Optional[threading.Event] = None,
) -> OcrResult:
    """Process pages in order; with `trace`, each page keeps the rule hits of its clean."""
    settings = ocr_settings()
    lang = lang or settings.lang
    psm = psm if psm is not None else settings.psm
    if cleaner is None:
        cleaning = cleaning_settings()
        cleaner = ArtifactFilter(resolve_ruleset(cleaning.ruleset), max_passes=cleaning.max_passes)

    tracker = _Progress(progress, len(pages))
    page_items: List[PageText] = []
    for idx, page in enumerate(pages):
        page_items.append(
            process_page(
                page,
                cleaner=cleaner,
                lang=lang,
                psm=psm,
                oem=settings.oem,
                workers=settings.workers,
                trace=trace,
                cancel=cancel,
                progress=lambda value, idx=idx: tracker.report(idx, value),
            )
        )

    return OcrResult(
        text="\n".join(p.text for p in page_items if p.text),
        raw_text="\n".join(p.raw_text for p in page_items),
        lang=lang,
        pages=page_items,
    )


def analyze_bytes(
    file_bytes: bytes,
    *,
    lang: Optional[str] = None,
    psm: Optional[int] = None,
    cleaner: Optional[ArtifactFilter] = None,
    progress: Optional[ProgressFn] = None,
    cancel: Optional[threading.Event] = None,
) -> OcrResult:
    """Run preprocessing, OCR and cleaning on PDF/image bytes."""
    pages = load_pages_from_bytes(file_bytes, dpi=ocr_settings().dpi)
    return analyze_pages(pages, lang=lang, psm=psm, cleaner=cleaner, progress=progress, cancel=cancel)
