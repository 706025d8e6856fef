"""Versioned rewrite rules for OCR artifact cleaning (YAML rulesets)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Pattern, Tuple

import yaml

from ..errors import RulesetError

RULESET_DIR = Path(__file__).with_name("rulesets")
SUPPORTED_VERSIONS = {1}

STAGES = ("structural", "inline", "whitespace")
ACTIONS = ("drop_line", "substitute")


@dataclass(frozen=True)
class RewriteRule:
    name: str
    stage: str
    action: str
    pattern: str
    replacement: str = ""
    flags: Optional[str] = None
    description: Optional[str] = None

    @property
    def regex(self) -> Pattern[str]:
        return _compile(self.pattern, self.flags)


@dataclass(frozen=True)
class NoiseShape:
    name: str
    pattern: str
    flags: Optional[str] = None
    description: Optional[str] = None

    def matches(self, line: str) -> bool:
        return _compile(self.pattern, self.flags).search(line) is not None


@dataclass(frozen=True)
class RuleHit:
    """One rule firing: a dropped line, or the number of substitutions made."""

    rule: str
    stage: str
    action: str
    text: str = ""
    count: int = 1


@dataclass
class Ruleset:
    version: int
    rules: List[RewriteRule] = field(default_factory=list)
    noise_shapes: List[NoiseShape] = field(default_factory=list)
    source: Optional[str] = None

    def stage(self, name: str) -> List[RewriteRule]:
        return [rule for rule in self.rules if rule.stage == name]

    def rule(self, name: str) -> RewriteRule:
        for rule in self.rules:
            if rule.name == name:
                return rule
        raise KeyError(name)


def _parse_flags(flag_str: Optional[str]) -> int:
    if not flag_str:
        return 0
    mapping = {
        "I": re.IGNORECASE,
        "M": re.MULTILINE,
        "S": re.DOTALL,
        "X": re.VERBOSE,
        "A": re.ASCII,
    }
    flags = 0
    for ch in flag_str:
        if ch not in mapping:
            raise RulesetError(f"Unknown regex flag {ch!r} in {flag_str!r}")
        flags |= mapping[ch]
    return flags


@lru_cache(maxsize=256)
def _compile(pattern: str, flags: Optional[str]) -> Pattern[str]:
    try:
        return re.compile(pattern, _parse_flags(flags))
    except re.error as exc:
        raise RulesetError(f"Invalid pattern {pattern!r}: {exc}") from exc


def _rule_from_item(item: Dict[str, Any], index: int) -> RewriteRule:
    if not isinstance(item, dict):
        raise RulesetError(f"Rule #{index} must be a mapping")
    name = item.get("name") or f"rule_{index}"
    stage = item.get("stage")
    action = item.get("action", "substitute")
    pattern = item.get("pattern")
    if stage not in STAGES:
        raise RulesetError(f"Rule {name!r}: stage must be one of {STAGES}, got {stage!r}")
    if action not in ACTIONS:
        raise RulesetError(f"Rule {name!r}: action must be one of {ACTIONS}, got {action!r}")
    if not pattern:
        raise RulesetError(f"Rule {name!r} has no pattern")
    rule = RewriteRule(
        name=name,
        stage=stage,
        action=action,
        pattern=str(pattern),
        replacement=str(item.get("replacement") or ""),
        flags=item.get("flags"),
        description=item.get("description"),
    )
    _compile(rule.pattern, rule.flags)
    return rule


def _shape_from_item(item: Dict[str, Any], index: int) -> NoiseShape:
    if not isinstance(item, dict) or not item.get("pattern"):
        raise RulesetError(f"Noise shape #{index} needs a pattern")
    shape = NoiseShape(
        name=item.get("name") or f"shape_{index}",
        pattern=str(item["pattern"]),
        flags=item.get("flags"),
        description=item.get("description"),
    )
    _compile(shape.pattern, shape.flags)
    return shape


def parse_ruleset(data: Any, *, source: Optional[str] = None) -> Ruleset:
    if not isinstance(data, dict):
        raise RulesetError("Ruleset must be a mapping with 'version' and 'rules'")
    version = data.get("version")
    if version not in SUPPORTED_VERSIONS:
        raise RulesetError(f"Unsupported ruleset version {version!r}")
    raw_rules = data.get("rules") or []
    if not isinstance(raw_rules, list):
        raise RulesetError("'rules' must be a list")
    raw_shapes = data.get("noise_shapes") or []
    if not isinstance(raw_shapes, list):
        raise RulesetError("'noise_shapes' must be a list")

    rules = [_rule_from_item(item, i) for i, item in enumerate(raw_rules)]
    # Keep file order inside a stage; stages always run in STAGES order.
    rules.sort(key=lambda r: STAGES.index(r.stage))
    shapes = [_shape_from_item(item, i) for i, item in enumerate(raw_shapes)]
    return Ruleset(version=version, rules=rules, noise_shapes=shapes, source=source)


def load_ruleset(path: Path) -> Ruleset:
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise RulesetError(f"Ruleset file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise RulesetError(f"Invalid YAML in ruleset: {path}") from exc
    return parse_ruleset(data, source=str(path))


@lru_cache(maxsize=1)
def default_ruleset() -> Ruleset:
    return load_ruleset(RULESET_DIR / "default.yaml")


def resolve_ruleset(name_or_path: Optional[str]) -> Ruleset:
    """Return a packaged ruleset by name ("default") or load one from a path."""
    if not name_or_path or name_or_path == "default":
        return default_ruleset()
    packaged = RULESET_DIR / f"{name_or_path}.yaml"
    if packaged.exists():
        return load_ruleset(packaged)
    return load_ruleset(Path(name_or_path))


def apply_rule(text: str, rule: RewriteRule) -> Tuple[str, List[RuleHit]]:
    """Apply a single rule and report what it did."""
    hits: List[RuleHit] = []
    if rule.action == "drop_line":
        kept = []
        for line in text.split("\n"):
            if rule.regex.search(line):
                hits.append(RuleHit(rule.name, rule.stage, rule.action, text=line))
            else:
                kept.append(line)
        return "\n".join(kept), hits

    new_text, count = rule.regex.subn(rule.replacement, text)
    if count:
        hits.append(RuleHit(rule.name, rule.stage, rule.action, count=count))
    return new_text, hits


def apply_rules(
    text: str,
    rules: Iterable[RewriteRule],
    *,
    trace: Optional[List[RuleHit]] = None,
) -> str:
    for rule in rules:
        text, hits = apply_rule(text, rule)
        if trace is not None:
            trace.extend(hits)
    return text


def apply_stage(
    text: str,
    ruleset: Ruleset,
    stage: str,
    *,
    trace: Optional[List[RuleHit]] = None,
) -> str:
    if stage not in STAGES:
        raise ValueError(f"Unknown stage: {stage}")
    return apply_rules(text, ruleset.stage(stage), trace=trace)
