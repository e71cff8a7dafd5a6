#!/usr/bin/env python3

import argparse
import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from billcheck.application.bills import (
    BillCheckResult,
    BillRules,
    check_bill_file,
    check_bill_image,
    load_bill_rules,
    parse_bill_data,
)
from billcheck.receipt.bill_parser import BillParseError
from billcheck.receipt.formatter import format_bill_report
from billcheck.receipt.parse_summary import check_parsed_receipt, parsing_stats
from billcheck.runtime import get_logger
from billcheck.runtime.bill_pipeline import default_ocr_url

logger = get_logger(__name__)

EXIT_VALID = 0
EXIT_FAILURE = 1
EXIT_INVALID = 2


def _coerce_exit_code(code: object) -> int:
    """Map argparse exits to 0 or 1; exit code 2 means an invalid bill."""
    if code is None or code == 0:
        return EXIT_VALID
    return EXIT_FAILURE


def _print_error(error: str) -> None:
    for line in error.splitlines():
        print(line)


def _print_json(data: dict[str, Any]) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _resolve_rules(rule_paths: Sequence[str] | None) -> BillRules | None:
    """Load rules with any --rules files layered on top; None if one is missing."""
    paths = [Path(p) for p in rule_paths or ()]
    for path in paths:
        if not path.exists():
            print(f"Error: rules file not found: {path}")
            return None
    return load_bill_rules(paths)


def _report_check(result: BillCheckResult, as_json: bool) -> int:
    if result.validation is None:
        assert result.error is not None
        logger.error("%s", result.error)
        if as_json:
            _print_json(result.to_dict())
        else:
            _print_error(f"Error: {result.error}")
            if result.status == "ocr_unavailable":
                print("Make sure the OCR service is running before scanning bills.")
        return EXIT_FAILURE

    if as_json:
        _print_json(result.to_dict())
    else:
        print(format_bill_report(result.receipt, result.validation))
        if result.ocr_confidence is not None:
            print(f"\nOCR confidence: {result.ocr_confidence:.1f}%")

    return EXIT_VALID if result.status == "valid" else EXIT_INVALID


def cmd_check(args: argparse.Namespace) -> int:
    rules = _resolve_rules(args.rules)
    if rules is None:
        return EXIT_FAILURE
    return _report_check(check_bill_file(Path(args.file), rules), args.json)


def cmd_scan(args: argparse.Namespace) -> int:
    rules = _resolve_rules(args.rules)
    if rules is None:
        return EXIT_FAILURE
    return _report_check(check_bill_image(Path(args.image), args.ocr_url, rules), args.json)


def cmd_parse(args: argparse.Namespace) -> int:
    rules = _resolve_rules(args.rules)
    if rules is None:
        return EXIT_FAILURE

    path = Path(args.file)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: Bill file not found: {path}")
        return EXIT_FAILURE
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Error: Cannot read {path}: {exc}")
        return EXIT_FAILURE

    try:
        receipt = parse_bill_data(text, rules)
    except BillParseError as exc:
        print(f"Error: {exc}")
        return EXIT_FAILURE

    check = check_parsed_receipt(receipt, rules.jurisdiction)
    _print_json(
        {
            "bill": receipt.to_dict(),
            "stats": parsing_stats(receipt).to_dict(),
            "check": {"isValid": check.is_valid, "issues": check.issues},
        }
    )
    return EXIT_VALID


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Check shop bills for arithmetic, tax and date consistency",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  check <file>               Parse and validate OCR text from a file
  scan <image>               OCR an image, then parse and validate it
  parse <file>               Print the parsed bill as JSON with parse stats

Exit codes:
  0 = bill is valid
  1 = usage, input or OCR failure
  2 = bill failed validation
""",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    rules_help = "Extra TOML rules file layered over the defaults (repeatable)"

    check_parser = subparsers.add_parser("check", help="Validate OCR text from a file")
    check_parser.add_argument("file", help="Path to a UTF-8 text file with OCR output")
    check_parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    check_parser.add_argument("--rules", action="append", metavar="PATH", help=rules_help)

    scan_parser = subparsers.add_parser("scan", help="OCR and validate a bill image")
    scan_parser.add_argument("image", help="Path to bill image")
    scan_parser.add_argument(
        "--ocr-url",
        default=default_ocr_url(),
        help="OCR service URL (default: $OCR_SERVICE_URL or http://localhost:8001)",
    )
    scan_parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    scan_parser.add_argument("--rules", action="append", metavar="PATH", help=rules_help)

    parse_parser = subparsers.add_parser("parse", help="Parse OCR text without validating")
    parse_parser.add_argument("file", help="Path to a UTF-8 text file with OCR output")
    parse_parser.add_argument("--rules", action="append", metavar="PATH", help=rules_help)

    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return _coerce_exit_code(exc.code)

    if args.command is None:
        parser.print_help()
        return EXIT_FAILURE

    if args.command == "check":
        return cmd_check(args)
    elif args.command == "scan":
        return cmd_scan(args)
    elif args.command == "parse":
        return cmd_parse(args)

    return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
