"""Command-line wrapper around ``validate_ai_json``.

Prints the serialized result as JSON. Exit status is 0 when the payload is
valid, 1 when it is not, and 2 when an options, schema or expectations
document cannot be loaded.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from . import __version__
from .config_loader import load_expectations, load_options, load_schema
from .engine import Cleanroom
from .exceptions import DocumentLoadError
from .json_engine import encode_with_backend
from .schemas import CurlyQuoteMode

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_LOAD_ERROR = 2


def load_text_or_file(value: str) -> str:
    """Read stdin for ``-``, the file contents when ``value`` names a file, else ``value`` itself."""
    if value == "-":
        return sys.stdin.read()
    path = Path(value)
    try:
        if path.is_file():
            return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        # too long or otherwise not a usable path: treat as literal text
        pass
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="json-cleanroom",
        description="Extract, repair and validate JSON produced by language models.",
    )
    parser.add_argument("--input", required=True, help="Raw text, a file path, or '-' for stdin")
    parser.add_argument("--schema", help="Schema document (JSON or YAML)")
    parser.add_argument("--expectations", help="Expectations document (JSON or YAML)")
    parser.add_argument("--options", help="ValidateOptions document (JSON or YAML)")

    parser.add_argument("--strict", action="store_true", help="Stop at the first error")
    parser.add_argument("--no-extract", action="store_true", help="Only accept the whole input as the payload")
    parser.add_argument("--no-trailing-commas", action="store_true", help="Do not tolerate trailing commas")
    parser.add_argument("--allow-scalars", action="store_true", help="Accept bare top-level scalars")
    parser.add_argument("--no-repair", action="store_true", help="Disable all repair passes")
    parser.add_argument("--no-json5-like", action="store_true", help="Disable the JSON5-style repair passes")
    parser.add_argument("--no-fix-single-quotes", action="store_true")
    parser.add_argument("--no-strip-comments", action="store_true")
    parser.add_argument("--no-quote-unquoted-keys", action="store_true")
    parser.add_argument("--no-constants", action="store_true", help="Keep True/False/None/NaN/Infinity as-is")
    parser.add_argument("--max-repairs", type=int, help="Absolute repair budget")
    parser.add_argument("--repairs-percent", type=float, help="Repair budget as a fraction of payload length")
    parser.add_argument(
        "--normalize-curly-quotes",
        choices=[mode.value for mode in CurlyQuoteMode],
        help="Typographic quote handling",
    )

    parser.add_argument("--indent", type=int, default=2, help="Output indentation (default: 2)")
    parser.add_argument("--ensure-ascii", action="store_true", help="Escape non-ASCII characters in the output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log pipeline decisions to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def option_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Map command-line flags onto ``ValidateOptions`` fields; unset flags are omitted."""
    overrides: Dict[str, Any] = {}
    flags = {
        "strict": ("strict", True),
        "no_extract": ("extract_json", False),
        "no_trailing_commas": ("tolerate_trailing_commas", False),
        "allow_scalars": ("allow_bare_top_level_scalars", True),
        "no_repair": ("enable_safe_repairs", False),
        "no_json5_like": ("allow_json5_like", False),
        "no_fix_single_quotes": ("fix_single_quotes", False),
        "no_strip_comments": ("strip_js_comments", False),
        "no_quote_unquoted_keys": ("quote_unquoted_keys", False),
    }
    for flag, (field, value) in flags.items():
        if getattr(args, flag):
            overrides[field] = value
    if args.no_constants:
        overrides["replace_constants"] = False
        overrides["replace_nans_infinities"] = False
    if args.max_repairs is not None:
        overrides["max_total_repairs"] = args.max_repairs
    if args.repairs_percent is not None:
        overrides["max_repairs_percent"] = args.repairs_percent
    if args.normalize_curly_quotes:
        overrides["normalize_curly_quotes"] = args.normalize_curly_quotes
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        cleanroom = Cleanroom(
            options=load_options(args.options) if args.options else None,
            schema=load_schema(args.schema) if args.schema else None,
            expectations=load_expectations(args.expectations) if args.expectations else None,
        )
    except DocumentLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    overrides = option_overrides(args)
    if overrides:
        try:
            cleanroom = cleanroom.with_options(**overrides)
        except ValidationError as e:
            print(f"Error: invalid option value: {e}", file=sys.stderr)
            return EXIT_LOAD_ERROR

    result = cleanroom.validate(load_text_or_file(args.input))
    output, backend = encode_with_backend(result.to_dict(), ensure_ascii=args.ensure_ascii, indent=args.indent)
    print(output)
    logging.getLogger(__name__).debug("Result encoded with backend %s", backend)
    return EXIT_VALID if result.valid else EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
