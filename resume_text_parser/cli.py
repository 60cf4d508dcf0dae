from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .errors import ResumeParserError
from .parser import load_skill_table, parse, parse_pdf

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse a résumé PDF (or its extracted text) into structured JSON."
    )
    parser.add_argument("source", type=Path, help="Path to the résumé PDF")
    parser.add_argument(
        "-o",
        "--output",
        default="resume.json",
        help="Output JSON file path, or '-' for stdout",
    )
    parser.add_argument(
        "--text",
        action="store_true",
        help="Treat SOURCE as already-extracted plain text instead of a PDF.",
    )
    parser.add_argument(
        "--latinize",
        action="store_true",
        help="Transliterate accented letters and typographic dashes/bullets "
        "to ASCII instead of blanking them.",
    )
    parser.add_argument(
        "--skill-table",
        type=Path,
        default=None,
        help="Optional JSON object mapping a skill category to extra keywords.",
    )
    parser.add_argument("--indent", type=int, default=2, help="JSON indentation")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline details")
    return parser


def load_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def load_options(args: argparse.Namespace) -> dict:
    options: dict = {"latinize": args.latinize}
    if args.skill_table:
        overrides = load_json(args.skill_table)
        if not isinstance(overrides, dict):
            raise ValueError(f"{args.skill_table} must contain a JSON object")
        options["skill_categories"] = load_skill_table(overrides)
    return options


def write_record(record: dict, output: str, indent: int) -> None:
    payload = json.dumps(record, indent=indent, ensure_ascii=False)
    if output == "-":
        sys.stdout.write(payload + "\n")
        return
    Path(output).write_text(payload, encoding="utf-8")
    logger.info("Resume parsed and saved to %s", output)


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        options = load_options(args)
        if args.text:
            record = parse(args.source.read_text(encoding="utf-8"), **options)
        else:
            record = parse_pdf(args.source, **options)
        write_record(record, args.output, args.indent)
    except (ResumeParserError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
