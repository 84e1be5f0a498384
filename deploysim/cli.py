"""Command-line entry point: estimate yearly downtime and availability."""

import argparse
import logging
import os

from .monte_carlo import MonteCarloConfig, MonteCarloRunner

LOG_LEVEL_ENV = "DEPLOYSIM_LOG"

logger = logging.getLogger(__name__)


def log_level_from_env() -> int:
    """Read the log level from the DEPLOYSIM_LOG environment variable.

    Accepts any standard level name (debug, info, warning, ...). Unknown
    names fall back to warning.
    """
    level_name = os.environ.get(LOG_LEVEL_ENV, "warning").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        return logging.WARNING
    return level


def setup_logging() -> None:
    logging.basicConfig(
        level=log_level_from_env(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    defaults = MonteCarloConfig()
    parser = argparse.ArgumentParser(
        description="Estimate yearly downtime of a three-node service with "
        "cache fallback under randomly timed bad releases."
    )
    parser.add_argument(
        "--trials", type=int, default=defaults.num_trials,
        help=f"Number of simulated years (default: {defaults.num_trials})",
    )
    parser.add_argument(
        "--workers", type=int, default=os.cpu_count() or 1,
        help="Number of worker processes (default: CPU count)",
    )
    parser.add_argument(
        "--chunk-size", type=int, default=defaults.chunk_size,
        help=f"Trials per unit of work (default: {defaults.chunk_size})",
    )
    parser.add_argument("--seed", type=int, default=None, help="Base random seed")
    parser.add_argument(
        "--summary", action="store_true",
        help="Print a statistical summary after the estimate",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    setup_logging()
    args = build_parser().parse_args(argv)

    config = MonteCarloConfig(
        num_trials=args.trials,
        parallel_workers=args.workers,
        chunk_size=args.chunk_size,
        base_seed=args.seed,
    )
    results = MonteCarloRunner(config).run()

    average = results.average_downtime()
    percent = results.availability_percent()
    print(f"Unavailable sum: {results.downtime_sum}")
    print(f"Average unavailable time: {average} ({float(average)})")
    print(f"Percent: {percent}({float(percent)})")

    if args.summary:
        print()
        print(results.summary())
    return 0
