"""
Command-line interface.

Usage:
    pywire [--suffix S] [--strict] [--check | --stdout] [-I PATH]... FILE...
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from .analyzer import InjectionAnalyzer, wire_output_path
from .config import WireConfig
from .errors import WiringError
from .typemodel.session import SessionCache

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pywire",
        description="Generate explicit dependency wiring for injector functions.",
    )
    parser.add_argument("files", nargs="+", type=Path, metavar="FILE", help="Source files declaring injectors")
    parser.add_argument(
        "--suffix",
        default="_gen",
        help="Suffix inserted before the extension of generated files (default: %(default)s)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when two providers produce the same type",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--check",
        action="store_true",
        help="Write nothing; fail if a generated file is missing or out of date",
    )
    mode.add_argument(
        "--stdout",
        action="store_true",
        help="Print generated code instead of writing files",
    )

    parser.add_argument(
        "-I",
        "--search-path",
        dest="search_paths",
        action="append",
        type=Path,
        default=[],
        metavar="PATH",
        help="Extra directory to resolve imports from (repeatable)",
    )
    parser.add_argument("--no-header", action="store_true", help="Omit the generated-code header comment")
    parser.add_argument("--line-length", type=int, default=88, help="Wrap imports beyond this length")

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="count", default=0, help="More output (repeatable)")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only report errors")
    return parser


def _configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _process(analyzer: InjectionAnalyzer, path: Path, args: argparse.Namespace) -> bool:
    """Generate one file; returns False if it failed."""
    if args.stdout:
        code = analyzer.code_for(path)
        if code is not None:
            sys.stdout.write(code)
        return True

    if args.check:
        code = analyzer.code_for(path)
        if code is None:
            return True
        output = wire_output_path(path, analyzer.config.output_suffix)
        if not output.is_file() or output.read_text(encoding="utf-8") != code:
            logger.error("%s is missing or out of date", output)
            return False
        logger.info("%s is up to date", output)
        return True

    analyzer.write_code(path)
    return True


def main(argv: Sequence[str] | None = None) -> int:
    """
    Run the generator over the given files.

    Returns:
        0 if every file succeeded, 1 otherwise.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.quiet)

    try:
        config = WireConfig(
            output_suffix=args.suffix,
            strict=args.strict,
            search_paths=tuple(args.search_paths),
            line_length=args.line_length,
            header=not args.no_header,
        )
    except ValueError as e:
        parser.error(str(e))

    # One session for the whole batch; it is rebuilt only when a file is not a root yet
    cache = SessionCache(config.search_paths)
    try:
        cache.session_for(path for path in args.files if path.is_file())
    except WiringError as e:
        logger.debug("Falling back to per-file sessions: %s", e)

    failed = 0
    for path in args.files:
        try:
            analyzer = InjectionAnalyzer(cache.session_for([path]), config)
            if not _process(analyzer, path, args):
                failed += 1
        except WiringError as e:
            logger.error("%s", e)
            failed += 1
        except OSError as e:
            logger.error("%s: %s", path, e.strerror or e)
            failed += 1

    if failed:
        logger.error("%d of %d file(s) failed", failed, len(args.files))
        return 1
    return 0
