"""Main application for FeedVol."""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from typing import Optional, Sequence

from dotenv import load_dotenv

from .collector import FeedCollector
from .config import VolConfig
from .engine import ConsolidationEngine
from .errors import ConfigurationError
from .estimator import build_estimator
from .feeds import PriceFeed, build_feeds
from .grid import BucketGrid
from .periods import ensure_utc, get_current_utc, parse_utc_timestamp
from .pipeline import run_estimation
from .report import format_report
from .types import EstimationReport
from .util import setup_logging

logger = logging.getLogger(__name__)


class VolatilityApp:
    """
    Wires one estimation run together.

    Component graph:
    BucketGrid.initialize --> FeedCollector (4 feeds, concurrent)
                                   |
                     run_estimation: reround -> prune -> ConsolidationEngine
                                   |
                             VolatilityEstimator --> EstimationReport
    """

    def __init__(self, config: VolConfig, feeds: Optional[Sequence[PriceFeed]] = None):
        """
        Initialize the application.

        Args:
            config: Run configuration (validated here)
            feeds: Feeds to use instead of the configured HTTP feeds

        Raises:
            ConfigurationError: configuration is invalid
        """
        config.validate()
        self.config = config

        self.collector = FeedCollector(
            feeds if feeds is not None else build_feeds(config),
            timeout_seconds=config.feed_timeout_seconds,
        )
        self.engine = ConsolidationEngine(config.consolidation_policy)
        self.estimator = build_estimator(
            base=config.estimator_base,
            divisor=config.variance_divisor,
            zero_policy=config.zero_policy,
        )

    async def run(self) -> EstimationReport:
        """Run one estimation and return the report."""
        granularity = self.config.granularity
        periods = self.config.no_of_periods
        now = self.config.now or get_current_utc()

        logger.info(
            f"Estimating volatility: {periods} {granularity.value} buckets ending {now:%Y-%m-%d %H:%M:%S}"
        )

        grid = BucketGrid.initialize(now, periods, granularity)
        try:
            outcomes = await self.collector.collect(grid, granularity, periods)
        finally:
            await self.collector.close()

        if not any(o.ok for o in outcomes):
            logger.warning("No feed returned data")

        return run_estimation(
            grid,
            periods,
            granularity,
            engine=self.engine,
            estimator=self.estimator,
            reround=self.config.reround,
            feeds=outcomes,
        )


def _parse_now(value: str) -> datetime:
    ts = parse_utc_timestamp(value)
    if ts is not None:
        return ts
    try:
        return ensure_utc(datetime.fromisoformat(value))
    except ValueError:
        raise ConfigurationError(f"--now is not an ISO timestamp: '{value}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feedvol",
        description="Estimate short-horizon volatility from four price feeds",
    )
    parser.add_argument("--periods", type=int, help="Number of buckets to retain (NO_OF_PERIODS)")
    parser.add_argument("--timespan", help="second, minute, hour or day (TIMESPAN)")
    parser.add_argument("--now", help="Reference instant, ISO format, UTC (default: now)")
    parser.add_argument("--base", help="levels or returns (VOL_BASE)")
    parser.add_argument("--divisor", help="sample or population (VOL_DIVISOR)")
    parser.add_argument("--consolidation", help="max or min (CONSOLIDATION)")
    parser.add_argument("--env-file", default=".env", help="dotenv file to load first")
    parser.add_argument("--log-level", help="Log level (LOG_LEVEL)")
    return parser


def load_config(args: argparse.Namespace) -> VolConfig:
    """Load configuration from the environment and apply CLI overrides."""
    config = VolConfig.from_env()

    if args.periods is not None:
        config.no_of_periods = args.periods
    if args.timespan:
        config.timespan = args.timespan
    if args.now:
        config.now = _parse_now(args.now)
    if args.base:
        config.vol_base = args.base
    if args.divisor:
        config.vol_divisor = args.divisor
    if args.consolidation:
        config.consolidation = args.consolidation
    if args.log_level:
        config.log_level = args.log_level

    config.validate()
    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the application."""
    args = build_parser().parse_args(argv)
    load_dotenv(args.env_file)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        setup_logging("feedvol")
        logger.error(f"Invalid configuration: {e}")
        return 2

    setup_logging("feedvol", level=config.log_level)

    app = VolatilityApp(config)
    report = asyncio.run(app.run())
    print(format_report(report))
    return 0


if __name__ == "__main__":
    sys.exit(main())
