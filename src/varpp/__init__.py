import argparse
import json
import logging
import sys
from collections.abc import Sequence
from typing import TextIO, cast

from varpp.conditionals import validate_configuration
from varpp.diag import ConfigurationError
from varpp.options import PreprocessOptions
from varpp.preprocessor import (
    PreprocessResult,
    get_code,
    preprocess,
    preprocess_source,
    read_source,
    select_configurations,
)

__all__ = [
    "PreprocessOptions",
    "PreprocessResult",
    "get_code",
    "main",
    "preprocess",
    "preprocess_source",
]

_BASELINE_LABEL = "<baseline>"


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Split C/C++ source into one directive-free variant per configuration."
    )
    parser.add_argument("input", help="path to a source file, or - to read from stdin")
    parser.add_argument(
        "-c",
        "--config",
        dest="configs",
        action="append",
        default=[],
        help="only emit this configuration key (repeatable, '' for the baseline)",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=1,
        help="number of worker threads used to select configurations",
    )
    parser.add_argument(
        "--no-macros",
        dest="expand_macros",
        action="store_false",
        help="drop #define lines without substituting the macros",
    )
    parser.add_argument(
        "--list-configs",
        action="store_true",
        help="print the configuration keys instead of the code",
    )
    parser.add_argument(
        "--dump-processed",
        action="store_true",
        help="print the cleaned, macro-expanded text before selection",
    )
    parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="output format",
    )
    parser.add_argument(
        "--diag-format",
        choices=("human", "json"),
        default="human",
        help="diagnostic output format",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="WARNING",
        help="logging threshold for messages written to stderr",
    )
    return parser


def _print_diagnostic(error: ConfigurationError, diag_format: str) -> None:
    if diag_format == "json":
        print(json.dumps(error.diagnostic.as_dict(), separators=(",", ":")), file=sys.stderr)
    else:
        print(error, file=sys.stderr)


def _configure_logging(level: str) -> None:
    """Send package log records at or above ``level`` to the current stderr."""
    logger = logging.getLogger("varpp")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def _config_label(configuration: str) -> str:
    return configuration if configuration else _BASELINE_LABEL


def main(argv: Sequence[str] | None = None, *, stdin: TextIO | None = None) -> int:
    parser = _build_arg_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else sys.argv[1:])
    except SystemExit as error:
        return cast(int, error.code)
    _configure_logging(args.log_level)
    try:
        options = PreprocessOptions(
            jobs=args.jobs,
            expand_macros=args.expand_macros,
            diag_format=args.diag_format,
        )
    except ValueError as error:
        print(f"varpp: error: {error}", file=sys.stderr)
        return 2
    try:
        filename, source = read_source(args.input, stdin=stdin)
    except (OSError, UnicodeError) as error:
        print(f"varpp: I/O error: {error}", file=sys.stderr)
        return 1
    try:
        requested = [validate_configuration(cfg, filename=filename) for cfg in args.configs]
    except ConfigurationError as error:
        _print_diagnostic(error, args.diag_format)
        return 1
    result = preprocess_source(source, options=options)
    if args.dump_processed:
        print(result.processed, end="")
        return 0
    if args.list_configs:
        if args.format == "json":
            print(json.dumps(list(result.configurations)))
        else:
            for configuration in result.configurations:
                print(_config_label(configuration))
        return 0
    configurations = requested if requested else list(result.configurations)
    codes = select_configurations(result, configurations, jobs=options.jobs)
    if args.format == "json":
        print(json.dumps({"filename": filename, "configurations": codes}))
        return 0
    for configuration, code in codes.items():
        print(f"// configuration: {_config_label(configuration)}")
        print(code, end="")
    return 0
