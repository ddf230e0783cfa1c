"""Command-line interface: ``restructure [OPTION]... CFG.dot``."""
from __future__ import annotations

import argparse
import json
import pathlib
import sys

from restructure import dot, render
from restructure.core import (
    ConfigConstants,
    LibraryConfiguration,
    LoggerConfigurator,
    RestructureConfiguration,
    StructuringStatistics,
    clear_logs,
    configure_loggers,
    getLogger,
)
from restructure.driver import StructuringDriver
from restructure.errors import InputError, PatternError
from restructure.patterns import PatternLibrary

logger = getLogger("Restructure.cli")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="restructure",
        description="Recover control flow structures from control flow graphs (e.g. *.dot -> *.json).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Structure a graph with the bundled primitives
  restructure foo.dot

  # Use custom primitives, in the given priority order
  restructure -prims list.dot,if.dot,pre_loop.dot foo.dot

  # Flat list output written to a file
  restructure --format list -o foo.json foo.dot
        """,
    )
    parser.add_argument("graph", help="Control flow graph in Graphviz DOT format")
    parser.add_argument(
        "-prims",
        "--prims",
        dest="prims",
        default="",
        help="Comma-separated list of control flow primitive descriptions (*.dot)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress non-error messages"
    )
    parser.add_argument("-o", "--output", help="Output file path (default: stdout)")
    parser.add_argument(
        "--format",
        choices=ConfigConstants.OUTPUT_FORMATS,
        default=None,
        help="Primitives keyed by node (map) or in recovery order (list)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Search the patterns of each step with this many threads",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Stop after this many reductions",
    )
    parser.add_argument("--config", help="Options file (JSON)")
    parser.add_argument("--library", help="Pattern library description (JSON)")
    parser.add_argument("--log-dir", help="Directory of the log file")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Level of the Restructure loggers (default: per-logger configuration)",
    )
    parser.add_argument(
        "--clear-logs",
        action="store_true",
        help="Remove the log directory before running",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2)",
    )
    return parser


def load_library(
    args: argparse.Namespace, config: RestructureConfiguration
) -> PatternLibrary:
    if args.prims:
        paths = [p.strip() for p in args.prims.split(",") if p.strip()]
        return dot.read_library(paths)
    library_file = pathlib.Path(args.library) if args.library else config.library_file
    return LibraryConfiguration.from_file(library_file).build_library()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = RestructureConfiguration(args.config)
    log_dir = pathlib.Path(args.log_dir) if args.log_dir else config.log_dir
    if args.clear_logs:
        clear_logs(log_dir)
    configure_loggers(log_dir, quiet=args.quiet)
    if args.log_level:
        LoggerConfigurator.set_tree_level(args.log_level)

    fmt = args.format or config.output_format
    workers = args.workers if args.workers is not None else config.workers
    max_steps = args.max_steps if args.max_steps is not None else config.max_steps

    try:
        library = load_library(args, config)
    except (PatternError, FileNotFoundError, json.JSONDecodeError) as e:
        logger.error("Unable to load control flow primitives: %s", e)
        return 1

    try:
        graph = dot.read_graph(args.graph)
        stats = StructuringStatistics()
        driver = StructuringDriver(graph, library, workers=workers, stats=stats)
    except (InputError, ValueError) as e:
        logger.error("%s: %s", args.graph, e)
        return 1

    result = driver.run(max_steps=max_steps)
    text = render.dumps(result, fmt=fmt, indent=args.indent)
    if args.output:
        pathlib.Path(args.output).write_text(text + "\n", encoding="utf-8")
    else:
        sys.stdout.write(text + "\n")

    if not args.quiet:
        stats.report()
    if result.error is not None:
        logger.error("%s: %s", args.graph, result.error)
        logger.debug("Residual graph:\n%s", dot.write_graph(result.graph))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
