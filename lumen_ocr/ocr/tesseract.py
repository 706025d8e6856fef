"""Tesseract recognition engine adapter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import pytesseract

from ..errors import RecognitionError

LOGGER = logging.getLogger("lumen_ocr.ocr.tesseract")

ProgressFn = Callable[[float], None]


@dataclass(frozen=True)
class RecognitionResult:
    """Raw engine output. Only `text` is handed to the cleaner."""

    text: str
    confidence: Optional[float]
    word_count: int
    lang: str


def _lines_from_data(data: Dict[str, list]) -> Tuple[List[str], List[float]]:
    """Rebuild text lines from image_to_data output, in reading order."""
    lines: Dict[Tuple[int, int, int], List[Tuple[int, str]]] = {}
    confs: List[float] = []
    n = len(data.get("text", []))
    for i in range(n):
        text = (data["text"][i] or "").strip()
        if not text:
            continue
        key = (
            int(data.get("block_num", [0] * n)[i]),
            int(data.get("par_num", [0] * n)[i]),
            int(data.get("line_num", [0] * n)[i]),
        )
        lines.setdefault(key, []).append((int(data.get("word_num", [0] * n)[i]), text))
        conf = float(data["conf"][i]) if data.get("conf") is not None else -1.0
        # Tesseract reports -1 for entries it did not score.
        if conf >= 0:
            confs.append(conf)

    out: List[str] = []
    last_block = None
    for key in sorted(lines):
        if last_block is not None and key[0] != last_block:
            out.append("")
        last_block = key[0]
        words = [w for _, w in sorted(lines[key])]
        out.append(" ".join(words))
    return out, confs


def recognize(
    image,
    *,
    lang: str = "eng",
    psm: int = 3,
    oem: int = 3,
    timeout: int = 0,
    progress: Optional[ProgressFn] = None,
) -> RecognitionResult:
    """Run Tesseract on a (preprocessed) PIL image.

    `progress` receives 0.0 before the engine starts and 1.0 once its
    output has been parsed.
    """
    if progress:
        progress(0.0)
    cfg = f"--oem {oem} --psm {psm}"
    try:
        data = pytesseract.image_to_data(
            image, lang=lang, config=cfg, timeout=timeout, output_type=pytesseract.Output.DICT
        )
    except pytesseract.TesseractNotFoundError as exc:
        raise RecognitionError("Tesseract is not installed or not on PATH") from exc
    except pytesseract.TesseractError as exc:
        raise RecognitionError(f"Tesseract failed: {exc.message}") from exc
    except RuntimeError as exc:
        # pytesseract signals its own timeout with a bare RuntimeError.
        raise RecognitionError(f"Tesseract did not finish: {exc}") from exc

    lines, confs = _lines_from_data(data)
    text = "\n".join(lines)
    confidence = sum(confs) / len(confs) if confs else None
    word_count = sum(len(line.split()) for line in lines)
    LOGGER.debug("Recognized %s words (confidence=%s)", word_count, confidence)
    if progress:
        progress(1.0)
    return RecognitionResult(text=text, confidence=confidence, word_count=word_count, lang=lang)
