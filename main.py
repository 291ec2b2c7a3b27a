#!/usr/bin/env python3
# ========================
# main.py
# ========================

"""
Command Line Entry Point for the Collection Engine

Loads a JSON or CSV collection, runs an operation chain over it and prints the result as JSON.

Example:
    python main.py data/orders.json --step 'whereIn=["status", ["paid", "shipped"]]' --step groupBy=region
"""

import argparse
import json
import logging
import sys

from src.collection import ChainRunner, CollectionLoader, Ray, parse_step
from src.utils import Config, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Query and transform a JSON or CSV collection")
    parser.add_argument("input_file", help="Path to a .json or .csv file")
    parser.add_argument(
        "--step", "-s",
        action="append",
        default=[],
        help="Operation to apply, as 'op' or 'op=<json args>'. Repeat for a chain."
    )
    parser.add_argument("--lenient", action="store_true", help="Skip entries with the wrong shape instead of failing")
    parser.add_argument("--log-level", default=None, help="Logging level (defaults to LOG_LEVEL)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file under RAY_LOG_DIR")
    return parser


def main(argv=None) -> int:
    """Main execution function."""
    args = build_parser().parse_args(argv)
    config = Config()

    setup_logging(
        log_level=args.log_level or config.LOG_LEVEL,
        log_file=args.log_file,
        log_dir=config.LOG_DIR
    )
    logger = logging.getLogger(__name__)
    config.warn_invalid_settings()

    try:
        collection = CollectionLoader(args.input_file).load()
        steps = [parse_step(step) for step in args.step]

        strict = config.STRICT_SHAPES and not args.lenient
        runner = ChainRunner(engine=Ray(strict=strict), allow_callables=False, config=config)
        outcome = runner.run(collection, steps)

        print(json.dumps(outcome['result'], indent=config.JSON_INDENT, default=str))
        return 0

    except Exception as e:
        logger.error(f"Chain execution failed: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    exit_code = main()
    sys.exit(exit_code)
