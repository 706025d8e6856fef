from pathlib import Path

import pytest
import yaml

from lumen_ocr.config import cleaning_settings, cleaning_thresholds, load_config, ocr_settings
from lumen_ocr.errors import ConfigurationError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "LUMEN_OCR_LANG",
        "LUMEN_OCR_PSM",
        "LUMEN_OCR_DPI",
        "LUMEN_OCR_WORKERS",
        "LUMEN_OCR_RULESET",
        "LUMEN_OCR_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_yaml_has_expected_keys():
    path = Path(__file__).resolve().parents[1] / "lumen_ocr" / "config" / "defaults.yaml"
    data = yaml.safe_load(path.read_text())

    assert "ocr" in data
    assert "cleaning" in data
    assert data["ocr"]["dpi"] == 300
    assert data["ocr"]["psm"] == 3
    assert data["ocr"]["lang"] == "eng"
    assert data["cleaning"]["short_word_ratio"] == 0.6
    assert data["cleaning"]["alpha_ratio"] == 0.5
    assert data["cleaning"]["min_avg_word_length"] == 2.5


def test_cleaning_thresholds_defaults():
    t = cleaning_thresholds()
    assert t.short_word_max_length == 2
    assert t.short_word_min_words == 4
    assert t.avg_word_min_words == 3
    assert {"a", "i", "am"} <= t.short_word_allowlist


def test_ocr_settings_defaults():
    settings = ocr_settings()
    assert settings.lang == "eng"
    assert settings.workers == 1
    assert settings.debug is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("LUMEN_OCR_LANG", "eng+deu")
    monkeypatch.setenv("LUMEN_OCR_PSM", "6")
    monkeypatch.setenv("LUMEN_OCR_WORKERS", "4")
    monkeypatch.setenv("LUMEN_OCR_DEBUG", "yes")
    settings = ocr_settings()
    assert settings.lang == "eng+deu"
    assert settings.psm == 6
    assert settings.workers == 4
    assert settings.debug is True


def test_blank_env_is_ignored(monkeypatch):
    monkeypatch.setenv("LUMEN_OCR_LANG", "   ")
    assert ocr_settings().lang == "eng"


@pytest.mark.parametrize("name, value", [("LUMEN_OCR_PSM", "six"), ("LUMEN_OCR_WORKERS", "0")])
def test_invalid_env(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError):
        ocr_settings()


def test_config_file_merges_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("cleaning:\n  alpha_ratio: 0.4\nocr:\n  dpi: 200\n", encoding="utf-8")
    config = load_config(path)
    assert config["ocr"]["dpi"] == 200
    assert config["ocr"]["lang"] == "eng"
    assert cleaning_thresholds(config).alpha_ratio == 0.4
    assert cleaning_thresholds(config).short_word_ratio == 0.6
    assert ocr_settings(config).dpi == 200


def test_invalid_config_files(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "missing.yaml")

    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(listing)

    bad_value = tmp_path / "bad.yaml"
    bad_value.write_text("cleaning:\n  alpha_ratio: 3\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        cleaning_thresholds(load_config(bad_value))

    not_a_number = tmp_path / "nan.yaml"
    not_a_number.write_text("cleaning:\n  short_word_ratio: lots\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        cleaning_thresholds(load_config(not_a_number))


def test_cleaning_settings_defaults():
    settings = cleaning_settings()
    assert settings.ruleset == "default"
    assert settings.max_passes == 8


def test_cleaning_settings_ignore_ocr_env(monkeypatch):
    monkeypatch.setenv("LUMEN_OCR_WORKERS", "abc")
    monkeypatch.setenv("LUMEN_OCR_PSM", "six")
    monkeypatch.setenv("LUMEN_OCR_RULESET", "custom")
    settings = cleaning_settings()
    assert settings.max_passes == 8
    assert settings.ruleset == "custom"


def test_invalid_max_passes(tmp_path):
    path = tmp_path / "passes.yaml"
    path.write_text("cleaning:\n  max_passes: 0\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        cleaning_settings(load_config(path))
