"""Keep/drop classification of single lines of recognized text."""

from __future__ import annotations

import enum
import string
from functools import lru_cache
from typing import Optional, Sequence, Tuple

from ..config import CleaningThresholds, cleaning_thresholds
from .rules import NoiseShape, default_ruleset


class LineVerdict(enum.Enum):
    KEEP = "keep"
    DROP = "drop"


@lru_cache(maxsize=1)
def default_thresholds() -> CleaningThresholds:
    return cleaning_thresholds()


def _is_allowed_short(word: str, allowlist) -> bool:
    return word.strip(string.punctuation).lower() in allowlist


def explain(
    line: str,
    *,
    thresholds: Optional[CleaningThresholds] = None,
    noise_shapes: Optional[Sequence[NoiseShape]] = None,
) -> Tuple[LineVerdict, Optional[str]]:
    """Classify a line and name the rule that dropped it (None when kept).

    Rules are checked cheapest first and the first one that fires wins:
    short-word flood, noise shape, alphabetic density, average word length.
    """
    t = thresholds or default_thresholds()
    shapes = default_ruleset().noise_shapes if noise_shapes is None else noise_shapes

    line = line.strip()
    if not line:
        return LineVerdict.DROP, "empty"

    words = line.split()
    word_count = len(words)

    if word_count >= t.short_word_min_words:
        short = [
            w
            for w in words
            if len(w) <= t.short_word_max_length and not _is_allowed_short(w, t.short_word_allowlist)
        ]
        if len(short) / word_count > t.short_word_ratio:
            return LineVerdict.DROP, "short_word_flood"

    for shape in shapes:
        if shape.matches(line):
            return LineVerdict.DROP, shape.name

    alpha = sum(1 for ch in line if ch.isalpha())
    if alpha / len(line) <= t.alpha_ratio:
        return LineVerdict.DROP, "alpha_density"

    if word_count >= t.avg_word_min_words:
        # Mean over words outside the allowlist.
        lengths = [len(w) for w in words if not _is_allowed_short(w, t.short_word_allowlist)]
        if lengths and sum(lengths) / len(lengths) < t.min_avg_word_length:
            return LineVerdict.DROP, "avg_word_length"

    return LineVerdict.KEEP, None


def classify(
    line: str,
    *,
    thresholds: Optional[CleaningThresholds] = None,
    noise_shapes: Optional[Sequence[NoiseShape]] = None,
) -> LineVerdict:
    return explain(line, thresholds=thresholds, noise_shapes=noise_shapes)[0]
