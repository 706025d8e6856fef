import io
import json
import types
from pathlib import Path

import pytest
from PIL import Image

import lumen_ocr.cli as cli
from lumen_ocr.errors import InvalidImageError

RAW = "ES ERNE RE EEE\nThe quick brown fox jumps over the lazy dog.\n(3) random\n"


def _fake_analyze(seen=None):
    def fake_analyze(_bytes, lang=None, psm=None, ruleset_path=None, debug=False):
        if seen is not None:
            seen.update(lang=lang, psm=psm, ruleset_path=ruleset_path, debug=debug)

        class Dummy:
            schema = types.SimpleNamespace(text="Clean text")

            def to_dict(self):
                return {"text": "Clean text", "language": lang or "eng", "debug": debug}

        return Dummy()

    return fake_analyze


def test_cli_prints_text(monkeypatch, tmp_path, capsys):
    sample = tmp_path / "doc.png"
    sample.write_bytes(b"png")
    seen = {}

    monkeypatch.setattr(cli, "analyze_document_bytes", _fake_analyze(seen))
    monkeypatch.setattr("sys.argv", ["lumen-ocr", "extract", str(sample), "--lang", "deu", "--psm", "6"])

    cli.main()
    assert capsys.readouterr().out.strip() == "Clean text"
    assert seen == {"lang": "deu", "psm": 6, "ruleset_path": None, "debug": False}


def test_cli_outputs_json(monkeypatch, tmp_path, capsys):
    sample = tmp_path / "doc.pdf"
    sample.write_bytes(b"%PDF-1.4")

    monkeypatch.setattr(cli, "analyze_document_bytes", _fake_analyze())
    monkeypatch.setattr("sys.argv", ["lumen-ocr", "extract", str(sample), "--json"])

    cli.main()
    data = json.loads(capsys.readouterr().out)
    assert data["text"] == "Clean text"
    assert data["language"] == "eng"


def test_cli_bare_path_shorthand(monkeypatch, tmp_path, capsys):
    sample = tmp_path / "doc.png"
    sample.write_bytes(b"png")

    monkeypatch.setattr(cli, "analyze_document_bytes", _fake_analyze())
    monkeypatch.setattr("sys.argv", ["lumen-ocr", str(sample)])

    cli.main()
    assert capsys.readouterr().out.strip() == "Clean text"


def test_cli_writes_output_file(monkeypatch, tmp_path):
    sample = tmp_path / "doc.png"
    sample.write_bytes(b"png")
    out_json = tmp_path / "out" / "result.json"
    out_text = tmp_path / "out" / "result.txt"

    monkeypatch.setattr(cli, "analyze_document_bytes", _fake_analyze())

    monkeypatch.setattr("sys.argv", ["lumen-ocr", "extract", str(sample), "--debug", "--output", str(out_json)])
    cli.main()
    assert json.loads(out_json.read_text(encoding="utf-8"))["debug"] is True

    monkeypatch.setattr("sys.argv", ["lumen-ocr", "extract", str(sample), "--output", str(out_text)])
    cli.main()
    assert out_text.read_text(encoding="utf-8") == "Clean text\n"


def test_cli_reports_failures(monkeypatch, tmp_path):
    sample = tmp_path / "doc.png"
    sample.write_bytes(b"png")

    def broken(_bytes, **_kwargs):
        raise InvalidImageError("Could not decode image")

    monkeypatch.setattr(cli, "analyze_document_bytes", broken)
    monkeypatch.setattr("sys.argv", ["lumen-ocr", "extract", str(sample)])

    with pytest.raises(SystemExit) as excinfo:
        cli.main()
    assert "extract failed" in str(excinfo.value)


def test_cli_missing_file(monkeypatch, tmp_path):
    monkeypatch.setattr("sys.argv", ["lumen-ocr", "extract", str(tmp_path / "nope.png")])
    with pytest.raises(SystemExit):
        cli.main()


def test_cli_requires_command(monkeypatch):
    monkeypatch.setattr("sys.argv", ["lumen-ocr"])
    with pytest.raises(SystemExit):
        cli.main()


def test_cli_clean_file(monkeypatch, tmp_path, capsys):
    raw = tmp_path / "raw.txt"
    raw.write_text(RAW, encoding="utf-8")

    monkeypatch.setattr("sys.argv", ["lumen-ocr", "clean", str(raw)])
    cli.main()
    assert capsys.readouterr().out == "The quick brown fox jumps over the lazy dog.\n"


def test_cli_clean_stdin(monkeypatch, tmp_path):
    out = tmp_path / "clean.txt"

    monkeypatch.setattr("sys.stdin", io.StringIO("1) apple pie\n||||\n"))
    monkeypatch.setattr("sys.argv", ["lumen-ocr", "clean", "-", "--output", str(out)])
    cli.main()
    assert out.read_text(encoding="utf-8") == "apple pie\n"


def test_cli_normalize(monkeypatch, tmp_path: Path):
    src = tmp_path / "scan.png"
    Image.new("RGB", (6, 4), (0, 255, 0)).save(src)
    dst = tmp_path / "out" / "scan.png"

    monkeypatch.setattr("sys.argv", ["lumen-ocr", "normalize", str(src), str(dst)])
    cli.main()

    with Image.open(dst) as im:
        assert im.size == (6, 4)
        assert im.getpixel((0, 0)) == (161, 161, 161, 255)
