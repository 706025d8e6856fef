"""Command line interface: extract text, clean text, normalize images."""

import argparse
import json
import logging
import sys
from pathlib import Path

from .cleaning.filter import ArtifactFilter
from .cleaning.rules import load_ruleset, resolve_ruleset
from .config import cleaning_settings, ocr_settings
from .errors import LumenOcrError
from .io.loaders import encode_png, load_pages_from_bytes
from .io.writers import write_json, write_text
from .ocr.preprocess import normalize
from .pipeline.analyze import analyze_document_bytes

COMMANDS = {"extract", "clean", "normalize"}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract clean text from scanned page images.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="cmd")

    extract = sub.add_parser("extract", help="Preprocess, OCR and clean a PDF or image")
    extract.add_argument("path", nargs="?", help="Path to PDF or image")
    extract.add_argument("--output", type=Path, default=None, help="Write result to file")
    extract.add_argument("--lang", default=None, help="OCR language(s), e.g. eng, deu, eng+deu")
    extract.add_argument("--psm", type=int, default=None, help="Tesseract page segmentation mode")
    extract.add_argument("--ruleset", default=None, help="Path to a YAML cleaning ruleset")
    extract.add_argument("--json", action="store_true", help="Emit the JSON schema instead of text")
    extract.add_argument("--debug", action="store_true", help="Include raw text and rule trace (JSON)")

    clean = sub.add_parser("clean", help="Clean already recognized text")
    clean.add_argument("path", nargs="?", default="-", help="Text file, or - for stdin")
    clean.add_argument("--output", type=Path, default=None, help="Write cleaned text to file")
    clean.add_argument("--ruleset", default=None, help="Path to a YAML cleaning ruleset")

    norm = sub.add_parser("normalize", help="Write the preprocessed image as PNG")
    norm.add_argument("path", help="Path to image (first page of a PDF)")
    norm.add_argument("output", type=Path, help="Output PNG path")
    return parser


def _run_extract(args) -> None:
    if not args.path:
        raise SystemExit("Provide a file path")
    payload = Path(args.path).read_bytes()
    result = analyze_document_bytes(
        payload,
        lang=args.lang,
        psm=args.psm,
        ruleset_path=args.ruleset,
        debug=args.debug,
    )
    if args.json or args.debug:
        data = result.to_dict()
        if args.output:
            write_json(args.output, data)
        else:
            print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if args.output:
        write_text(args.output, result.schema.text)
    else:
        print(result.schema.text)


def _run_clean(args) -> None:
    if args.path == "-":
        raw = sys.stdin.read()
    else:
        raw = Path(args.path).read_text(encoding="utf-8")
    settings = cleaning_settings()
    ruleset = load_ruleset(Path(args.ruleset)) if args.ruleset else resolve_ruleset(settings.ruleset)
    cleaned = ArtifactFilter(ruleset, max_passes=settings.max_passes).clean(raw)
    if args.output:
        write_text(args.output, cleaned)
    else:
        print(cleaned)


def _run_normalize(args) -> None:
    pages = load_pages_from_bytes(Path(args.path).read_bytes(), dpi=ocr_settings().dpi)
    normalized = normalize(pages[0].raster, workers=ocr_settings().workers)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_bytes(encode_png(normalized))


def main() -> None:
    parser = _build_parser()

    # Shorthand: `lumen-ocr /path/to/scan.jpg` runs `extract`.
    argv = sys.argv[1:]
    if argv and argv[0] not in COMMANDS and not argv[0].startswith("-"):
        argv.insert(0, "extract")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.cmd is None:
        raise SystemExit("Provide a command or a file path")

    handlers = {"extract": _run_extract, "clean": _run_clean, "normalize": _run_normalize}
    try:
        handlers[args.cmd](args)
    except (LumenOcrError, FileNotFoundError) as exc:
        raise SystemExit(f"{args.cmd} failed: {exc}") from exc


if __name__ == "__main__":
    main()
