"""Canonical output schemas for pipeline outputs."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import List, Optional


@dataclass
class RuleTraceEntry:
    page: int
    rule: str
    stage: str
    action: str
    text: str = ""
    count: int = 1


@dataclass
class PageOutput:
    page: int
    width: int
    height: int
    text: str
    raw_text: Optional[str] = None
    confidence: Optional[float] = None


@dataclass
class PipelineResult:
    text: str
    language: str
    ruleset_version: int
    pages: List[PageOutput] = field(default_factory=list)
    trace: Optional[List[RuleTraceEntry]] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        if self.trace is None:
            data.pop("trace")
        return data
