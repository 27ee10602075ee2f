#!/usr/bin/env python
import argparse
import logging
import sys
from typing import List, Optional

from core.exceptions import ReorderError
from inout.config_parser import parse_config
from pipeline.config import PipelineConfig
from pipeline.run import run_pipeline
from utils.logging_config import setup_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reorder the entries of a coordinate sparse-matrix file.")
    parser.add_argument("input_file", help="Path to the coordinate matrix file.")
    parser.add_argument("-o", dest="output_file", default=None,
                        help="Write the reordered matrix here (omit to only time the run).")
    parser.add_argument("-t", "--type", dest="data_type", default=None,
                        choices=["real", "complex", "integer", "binary"],
                        help="Element type of the matrix (default: real).")
    parser.add_argument("-s", "--sort", dest="order", default=None,
                        choices=["row-major", "col-major"],
                        help="Target entry order (default: row-major).")
    parser.add_argument("--strategy", default=None, choices=["cycle", "fused", "scatter"],
                        help="How the order is applied (default: cycle).")
    parser.add_argument("--workers", type=int, default=None,
                        help="Worker pool size for parallel reading and scatter (default: 1).")
    parser.add_argument("--mmap", action="store_true",
                        help="Read the input through a memory map.")
    parser.add_argument("--comments", default=None, choices=["leading", "anywhere"],
                        help="Accept %% comments only before the header, or anywhere.")
    parser.add_argument("--precision", type=int, default=None, choices=[32, 64],
                        help="Float and index width in bits (default: 64).")
    parser.add_argument("--config", default=None, help="Optional YAML configuration file.")
    parser.add_argument("--log-file", default=None, help="Also write log output to this file.")
    parser.add_argument("--summary", action="store_true", help="Print a run summary.")
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging.")
    return parser


def resolve_config(args: argparse.Namespace) -> PipelineConfig:
    """Defaults, then the YAML file, then command-line flags."""
    config = PipelineConfig()
    if args.config:
        config = config.merged(parse_config(args.config))
    overrides = {
        "data_type": args.data_type,
        "order": args.order,
        "strategy": args.strategy,
        "workers": args.workers,
        "reader": "mmap" if args.mmap else None,
        "comments": args.comments,
        "log_file": args.log_file,
    }
    if args.precision is not None:
        overrides["precision"] = {"float": args.precision, "index": args.precision}
    return config.merged(overrides)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Read, reorder and optionally write a coordinate matrix.

    Returns the process exit status: 0 on success, 1 on any parse, write,
    integrity, configuration or file-system error.
    """
    args = build_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose else logging.INFO

    try:
        setup_logging(level=level, log_file=args.log_file)
        config = resolve_config(args)
        if args.workers is not None and args.workers < 1:
            raise ReorderError(f"--workers must be at least 1, got {args.workers}")
        if config.log_file and config.log_file != args.log_file:
            setup_logging(level=level, log_file=config.log_file)
        logger.debug("Effective configuration: %s", config)

        result = run_pipeline(config, args.input_file, args.output_file)
    except ReorderError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1
    except OSError as e:
        logger.error("I/O error: %s", e)
        return 1

    if args.summary:
        stats = result.stats
        print(f"Reordered {stats['nvals']} entries ({config.order.value}, {config.strategy.value}) "
              f"in {stats['elapsed']:.3f} s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
