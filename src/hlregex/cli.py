#!/usr/bin/env python3
"""Command line access to hlregex, mostly for checking grammar patterns.

Usage:
    hlregex normalize PATTERN
    hlregex match PATTERN SUBJECT [-i]
    hlregex encode PATTERN [-i] [--format json|binary]
    hlregex decode DATA [--format json|binary]

Example:
    # See what PCRE2 will actually be given
    hlregex normalize '\\o{101}bc'

    # Try a rule against a line of text
    hlregex match '(\\w+)=(\\d+)' 'width=80'
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from loguru import logger

from hlregex.errors import RegexError
from hlregex.escapes import convert_octal_escapes
from hlregex.regex import compile_regex
from hlregex.regex_source import RegexSource

EXIT_OK = 0
EXIT_NO_MATCH = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hlregex",
        description="Compile, match and serialize syntax-highlighting regexes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("normalize", help="Convert octal escapes the way the compiler does")
    p.add_argument("pattern")

    p = sub.add_parser("match", help="Match a pattern once against a subject")
    p.add_argument("pattern")
    p.add_argument("subject")
    p.add_argument(
        "-i", "--ignore-case",
        action="store_true",
        help="Compile the pattern case-insensitively"
    )

    p = sub.add_parser("encode", help="Serialize a pattern definition")
    p.add_argument("pattern")
    p.add_argument("-i", "--ignore-case", action="store_true")
    p.add_argument(
        "--format",
        choices=["json", "binary"],
        default="json",
        help="Output format; binary is printed as hex (default: json)"
    )

    p = sub.add_parser("decode", help="Deserialize a pattern definition")
    p.add_argument("data", help="JSON document, or hex for --format binary")
    p.add_argument("--format", choices=["json", "binary"], default="json")

    return parser


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the command line.

    Args:
        verbose: Whether to enable verbose debug logging
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level="DEBUG" if verbose else "WARNING",
        colorize=True
    )


def _show(data: bytes) -> str:
    return repr(data)[2:-1]


def _run(args: argparse.Namespace) -> int:
    if args.command == "normalize":
        print(convert_octal_escapes(args.pattern))
        return EXIT_OK

    if args.command == "match":
        source = RegexSource.from_text(args.pattern, not args.ignore_case)
        result = compile_regex(source).match(args.subject.encode("utf-8"))
        if result is None:
            print("no match")
            return EXIT_NO_MATCH
        print(f"match: {_show(result[0])}")
        for i, capture in enumerate(result[1:], start=1):
            print(f"group {i}: {_show(capture)}")
        return EXIT_OK

    if args.command == "encode":
        source = RegexSource.from_text(args.pattern, not args.ignore_case)
        if args.format == "json":
            print(source.to_json())
        else:
            print(source.to_bytes().hex())
        return EXIT_OK

    if args.command == "decode":
        if args.format == "json":
            source = RegexSource.from_json(args.data)
        else:
            try:
                data = bytes.fromhex(args.data)
            except ValueError as e:
                logger.error(f"Invalid hex input: {e}")
                return EXIT_ERROR
            source = RegexSource.from_bytes(data)
        print(f"pattern: {_show(source.pattern)}")
        print(f"case_sensitive: {str(source.case_sensitive).lower()}")
        return EXIT_OK

    raise AssertionError(f"unhandled command {args.command!r}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 on success or match, 1 on no match, 2 on error)
    """
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose)
    try:
        return _run(args)
    except RegexError as e:
        logger.error(str(e))
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
