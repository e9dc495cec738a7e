#!/usr/bin/env python3
"""
Jupiter round-trip arbitrage monitor CLI.

Polls the quote API for a start -> middle -> start cycle (arbitrage mode) or a
single-direction price (price mode) and prints the results.

Usage:
    python3 run_monitor.py
    python3 run_monitor.py --interval 10 --iterations 5 --profit 0.3
    python3 run_monitor.py --mode price --config configs/monitor.yaml
"""

import argparse
import asyncio
import sys
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from dotenv import load_dotenv

import logging_config
from jupiter_arbitrage.config import (
    ConfigError,
    MonitorConfig,
    apply_env_overrides,
    apply_overrides,
    load_config,
)
from jupiter_arbitrage.evaluator import OpportunityEvaluator
from jupiter_arbitrage.metrics import MonitorMetrics
from jupiter_arbitrage.monitor import CancelSignal, MonitorLoop
from jupiter_arbitrage.opportunity_math import bps_to_pct
from jupiter_arbitrage.price_monitor import PriceMonitor
from jupiter_arbitrage.quote_client import QuoteClient
from jupiter_arbitrage.reporting import ConsoleReporter
from jupiter_arbitrage.utils import get_logger

logger = get_logger(__name__)


def _decimal_arg(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Jupiter round-trip arbitrage monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check SOL -> USDC -> SOL every 5 seconds until Ctrl+C
  python3 run_monitor.py

  # Ten checks, 10 seconds apart, 0.3% minimum profit
  python3 run_monitor.py --interval 10 --iterations 10 --profit 0.3

  # Watch the SOL/USDC price instead
  python3 run_monitor.py --mode price
        """,
    )

    parser.add_argument("--config", help="Path to config YAML file")
    parser.add_argument(
        "--mode",
        choices=["arbitrage", "price"],
        default="arbitrage",
        help="What to monitor (default: arbitrage)",
    )
    parser.add_argument("--interval", type=float, help="Seconds between checks")
    parser.add_argument(
        "--iterations", type=int, help="Number of checks, 0 for unbounded"
    )
    parser.add_argument(
        "--profit", type=_decimal_arg, help="Minimum profit percent to report"
    )
    parser.add_argument(
        "--amount", type=_decimal_arg, help="Start amount in human units"
    )
    parser.add_argument("--slippage", type=int, help="Slippage tolerance in bps")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single check and exit (overrides --iterations)",
    )
    parser.add_argument(
        "--metrics-port", type=int, help="Serve Prometheus metrics on this port"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: from config, INFO)",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> MonitorConfig:
    """Defaults < YAML < environment < command line."""
    config = apply_env_overrides(load_config(args.config))
    return apply_overrides(
        config,
        poll_interval_sec=args.interval,
        max_iterations=1 if args.once else args.iterations,
        min_profit_percent=args.profit,
        start_amount=args.amount,
        slippage_bps=args.slippage,
        metrics__enabled=True if args.metrics_port is not None else None,
        metrics__port=args.metrics_port,
        logging__level=args.log_level,
    )


async def run(config: MonitorConfig, mode: str) -> int:
    """Run the selected monitor until the iteration cap or a signal."""
    metrics = MonitorMetrics() if config.metrics.enabled else None
    if metrics is not None:
        await metrics.start_server(port=config.metrics.port, host=config.metrics.host)

    tokens = config.token_infos()
    fee_calculator = config.fee_calculator()
    reporter = ConsoleReporter(tokens, fee_calculator)
    start = tokens[config.start_token]
    middle = tokens[config.middle_token]

    cancel = CancelSignal()
    cancel.install_signal_handlers()

    try:
        async with QuoteClient(
            base_url=config.quote_api_url,
            max_attempts=config.max_attempts,
            retry_delay_sec=config.retry_delay_sec,
            request_timeout_sec=config.request_timeout_sec,
            metrics=metrics,
        ) as client:
            if mode == "price":
                price_monitor = PriceMonitor(
                    client,
                    start,
                    middle,
                    amount=config.start_amount,
                    slippage_bps=config.slippage_bps,
                    history_size=config.history_size,
                    metrics=metrics,
                )
                loop = MonitorLoop(
                    price_monitor,
                    name="price",
                    history_size=config.history_size,
                    metrics=metrics,
                )

                def on_result(point):
                    reporter.report_price(point, price_monitor.pair)

                details = {"Pair": price_monitor.pair}
            else:
                evaluator = OpportunityEvaluator(
                    client, fee_calculator, slippage_bps=config.slippage_bps, metrics=metrics
                )
                loop = MonitorLoop.for_cycle(
                    evaluator,
                    start,
                    middle,
                    config.start_amount,
                    config.min_profit_percent,
                    history_size=config.history_size,
                    metrics=metrics,
                )
                on_result = reporter.report_opportunity
                details = {
                    "Cycle": f"{start.symbol} -> {middle.symbol} -> {start.symbol}",
                    "Start amount": f"{config.start_amount} {start.symbol}",
                    "Min profit": f"{config.min_profit_percent}%",
                }

            details["Slippage"] = f"{bps_to_pct(Decimal(config.slippage_bps))}%"
            reporter.report_start(
                mode, config.poll_interval_sec, config.max_iterations, details
            )
            stats = await loop.run(
                config.interval_ms,
                max_iterations=config.max_iterations,
                on_opportunity=on_result,
                cancel_signal=cancel,
                on_error=reporter.report_error,
            )
            reporter.report_summary(stats)
    finally:
        cancel.remove_signal_handlers()
        if metrics is not None:
            logger.info(f"Metrics summary: {metrics.get_metrics_summary()}")
            await metrics.stop_server()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for config error, 130 if interrupted)
    """
    load_dotenv()
    args = parse_args(argv)

    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1

    if config.logging.level == "DEBUG":
        logging_config.setup_debug()
    else:
        logging_config.setup(config.logging.level)

    try:
        return asyncio.run(run(config, args.mode))
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
