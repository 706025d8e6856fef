"""Cleaning of raw recognized text.

`clean` strips scanning artifacts in four fixed stages: structural line
removal, inline rewriting, whitespace normalization and line-level
classification. The whole pass repeats until the text stops changing, so
cleaning an already cleaned text is a no-op.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import List, Optional, Tuple

from ..config import CleaningThresholds, cleaning_settings
from .classify import LineVerdict, default_thresholds, explain
from .rules import RuleHit, Ruleset, apply_stage, default_ruleset

LOGGER = logging.getLogger("lumen_ocr.cleaning")

_SPACES_RE = re.compile(r" {2,}")


class ArtifactFilter:
    def __init__(
        self,
        ruleset: Optional[Ruleset] = None,
        thresholds: Optional[CleaningThresholds] = None,
        *,
        max_passes: Optional[int] = None,
    ) -> None:
        self.ruleset = ruleset or default_ruleset()
        self.thresholds = thresholds or default_thresholds()
        self.max_passes = max_passes if max_passes is not None else cleaning_settings().max_passes
        if self.max_passes < 1:
            raise ValueError(f"max_passes must be >= 1, got {self.max_passes}")

    def clean(self, text: str) -> str:
        return self._run(text, None)

    def clean_with_trace(self, text: str) -> Tuple[str, List[RuleHit]]:
        """Clean text and return every rule hit, in order, across all passes."""
        trace: List[RuleHit] = []
        return self._run(text, trace), trace

    def _run(self, text: str, trace: Optional[List[RuleHit]]) -> str:
        if not text:
            return ""
        current = text.replace("\r\n", "\n").replace("\r", "\n")
        for _ in range(self.max_passes):
            cleaned = self._single_pass(current, trace)
            if cleaned == current:
                return cleaned
            current = cleaned
        LOGGER.debug("Cleaning did not settle after %s passes", self.max_passes)
        return current

    def _single_pass(self, text: str, trace: Optional[List[RuleHit]]) -> str:
        text = apply_stage(text, self.ruleset, "structural", trace=trace)
        text = apply_stage(text, self.ruleset, "inline", trace=trace)
        text = apply_stage(text, self.ruleset, "whitespace", trace=trace)
        return self._filter_lines(text, trace)

    def _filter_lines(self, text: str, trace: Optional[List[RuleHit]]) -> str:
        kept = []
        for line in text.split("\n"):
            line = line.strip()
            if not line:
                continue
            verdict, reason = explain(
                line,
                thresholds=self.thresholds,
                noise_shapes=self.ruleset.noise_shapes,
            )
            if verdict is LineVerdict.KEEP:
                kept.append(line)
                continue
            LOGGER.debug("Dropped line (%s): %r", reason, line)
            if trace is not None:
                trace.append(RuleHit(reason or "classifier", "classify", "drop_line", text=line))
        return _SPACES_RE.sub(" ", "\n".join(kept).strip())


@lru_cache(maxsize=1)
def _default_filter() -> ArtifactFilter:
    return ArtifactFilter()


def clean(
    raw_text: str,
    *,
    ruleset: Optional[Ruleset] = None,
    thresholds: Optional[CleaningThresholds] = None,
) -> str:
    """Clean raw recognized text with the default (or a given) ruleset."""
    if ruleset is None and thresholds is None:
        return _default_filter().clean(raw_text)
    return ArtifactFilter(ruleset, thresholds).clean(raw_text)
