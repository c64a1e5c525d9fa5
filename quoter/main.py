"""
quoter.main
Simulated market maker for one US stock (Alpha Vantage GLOBAL_QUOTE).

Usage:
  python -m quoter.main                 # AAPL with the demo key
  python -m quoter.main MSFT            # another symbol, key from env/keys.env or demo
  python -m quoter.main MSFT YOURKEY

Press Enter (or Ctrl+C) to stop. Exit code is always 0.
"""
from __future__ import annotations

import argparse
import signal
import sys
import threading
from typing import List, Optional

from quoter.config.settings import APP_NAME, DEFAULT_SYMBOL
from quoter.core.app_config import StrategyConfig
from quoter.core.errors import ConfigError
from quoter.core.logging_setup import setup_logging
from quoter.core.portfolio import Portfolio
from quoter.services.report import ConsoleReporter
from quoter.services.trader import PollingLoop


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="quoter", description=APP_NAME)
    ap.add_argument("symbol", nargs="?", default=DEFAULT_SYMBOL, help="ticker symbol")
    ap.add_argument("api_key", nargs="?", default=None, help="Alpha Vantage API key (default: env, keys.env, then demo)")
    return ap.parse_args(argv)


def _watch_stdin(loop: PollingLoop) -> None:
    try:
        sys.stdin.readline()
    except (OSError, ValueError):
        pass
    loop.stop()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger = setup_logging()
    try:
        config = StrategyConfig.from_args(args.symbol, args.api_key)
    except ConfigError as exc:
        logger.error("Bad configuration: %s", exc)
        return 2

    reporter = ConsoleReporter()
    portfolio = Portfolio()
    logger.info("Starting %s for %s", APP_NAME, config.symbol)
    reporter.balance("Beginning", portfolio)
    reporter.banner(config, portfolio)

    loop = PollingLoop(config, reporter=reporter, portfolio=portfolio)

    def _on_signal(signum, frame):
        loop.stop()

    signal.signal(signal.SIGINT, _on_signal)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _on_signal)

    print("\nPress Enter to stop...\n", flush=True)
    loop.start()
    threading.Thread(target=_watch_stdin, args=(loop,), name="StdinWatcher", daemon=True).start()

    # Short joins keep the main thread responsive to signals.
    while not loop.join(timeout=0.5):
        pass

    logger.info("Market maker stopped")
    reporter.balance("Ending", portfolio)
    return 0


if __name__ == "__main__":
    sys.exit(main())
