"""Configuration loading (defaults.yaml + environment overrides)."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

import yaml

from ..errors import ConfigurationError

DEFAULTS_PATH = Path(__file__).with_name("defaults.yaml")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _env_int(name: str) -> int | None:
    value = _get_env(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc


@dataclass(frozen=True)
class CleaningThresholds:
    """Tunable constants used by the line classifier."""

    short_word_max_length: int = 2
    short_word_ratio: float = 0.6
    short_word_min_words: int = 4
    alpha_ratio: float = 0.5
    min_avg_word_length: float = 2.5
    avg_word_min_words: int = 3
    short_word_allowlist: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        for name in ("short_word_ratio", "alpha_ratio"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be between 0.0 and 1.0, got {value}")
        for name in ("short_word_max_length", "short_word_min_words", "avg_word_min_words"):
            value = getattr(self, name)
            if value < 1:
                raise ConfigurationError(f"{name} must be >= 1, got {value}")
        if self.min_avg_word_length <= 0:
            raise ConfigurationError(
                f"min_avg_word_length must be positive, got {self.min_avg_word_length}"
            )


@dataclass(frozen=True)
class OcrSettings:
    lang: str = "eng"
    psm: int = 3
    oem: int = 3
    dpi: int = 300
    workers: int = 1
    debug: bool = False


@dataclass(frozen=True)
class CleaningSettings:
    ruleset: str = "default"
    max_passes: int = 8


@lru_cache(maxsize=1)
def _read_defaults() -> Dict[str, Any]:
    return yaml.safe_load(DEFAULTS_PATH.read_text(encoding="utf-8")) or {}


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration as a nested dict.

    Values from `path` (if given) are merged over the packaged defaults,
    one section at a time.
    """
    data = copy.deepcopy(_read_defaults())
    if path is not None:
        try:
            override = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        except FileNotFoundError as exc:
            raise ConfigurationError(f"Config file not found: {path}") from exc
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in config file: {path}") from exc
        if not isinstance(override, dict):
            raise ConfigurationError(f"Config file must contain a mapping: {path}")
        for section, values in override.items():
            if isinstance(values, dict):
                data.setdefault(section, {}).update(values)
            else:
                data[section] = values
    return data


def cleaning_thresholds(config: Optional[Dict[str, Any]] = None) -> CleaningThresholds:
    section = (config or load_config()).get("cleaning", {})
    try:
        return CleaningThresholds(
            short_word_max_length=int(section.get("short_word_max_length", 2)),
            short_word_ratio=float(section.get("short_word_ratio", 0.6)),
            short_word_min_words=int(section.get("short_word_min_words", 4)),
            alpha_ratio=float(section.get("alpha_ratio", 0.5)),
            min_avg_word_length=float(section.get("min_avg_word_length", 2.5)),
            avg_word_min_words=int(section.get("avg_word_min_words", 3)),
            short_word_allowlist=frozenset(
                str(w).lower() for w in section.get("short_word_allowlist") or []
            ),
        )
    except ConfigurationError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid cleaning threshold: {exc}") from exc


def ocr_settings(config: Optional[Dict[str, Any]] = None) -> OcrSettings:
    """Resolve OCR settings: defaults.yaml first, then LUMEN_OCR_* variables."""
    config = config or load_config()
    ocr = config.get("ocr", {})

    psm = _env_int("LUMEN_OCR_PSM")
    dpi = _env_int("LUMEN_OCR_DPI")
    workers = _env_int("LUMEN_OCR_WORKERS")
    settings = OcrSettings(
        lang=_get_env("LUMEN_OCR_LANG") or str(ocr.get("lang", "eng")),
        psm=psm if psm is not None else int(ocr.get("psm", 3)),
        oem=int(ocr.get("oem", 3)),
        dpi=dpi if dpi is not None else int(ocr.get("dpi", 300)),
        workers=workers if workers is not None else int(ocr.get("workers", 1)),
        debug=_env_bool("LUMEN_OCR_DEBUG", default=False),
    )
    if settings.workers < 1:
        raise ConfigurationError(f"workers must be >= 1, got {settings.workers}")
    return settings


def cleaning_settings(config: Optional[Dict[str, Any]] = None) -> CleaningSettings:
    """Resolve the ruleset name and pass limit used by the text cleaner.

    Only LUMEN_OCR_RULESET is consulted; the OCR variables never affect cleaning.
    """
    section = (config or load_config()).get("cleaning", {})
    try:
        max_passes = int(section.get("max_passes", 8))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid max_passes: {exc}") from exc
    if max_passes < 1:
        raise ConfigurationError(f"max_passes must be >= 1, got {max_passes}")
    return CleaningSettings(
        ruleset=_get_env("LUMEN_OCR_RULESET") or str(section.get("ruleset", "default")),
        max_passes=max_passes,
    )
