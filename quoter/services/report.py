"""Console rendering of cycle reports. Everything here goes to stdout."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from quoter.config import settings
from quoter.core.app_config import StrategyConfig
from quoter.core.keys import mask_key
from quoter.core.portfolio import Portfolio
from quoter.services.trader import CycleReport, LatencyClass

RULE = "=" * 40

_STATUS = {
    LatencyClass.FAST: "FAST",
    LatencyClass.MODERATE: "MODERATE",
    LatencyClass.SLOW: "SLOW (optimize needed)",
}


def _px(value: Optional[float]) -> str:
    return "n/a" if value is None else f"${value:.2f}"


def format_stats(report: CycleReport, config: StrategyConfig) -> str:
    q = report.quote
    lines = [
        "",
        RULE,
        f"[Cycle #{report.cycle} @ {report.ts.strftime('%H:%M:%S')}]",
        RULE,
        f"Symbol:      {report.symbol}",
        f"Mid Price:   ${q.mid_price:.2f}",
        f"Our Bid:     ${q.our_bid:.2f} ({config.share_size} shares)",
        f"Our Ask:     ${q.our_ask:.2f} ({config.share_size} shares)",
        f"Spread:      ${q.spread_dollars:.4f} ({config.spread_bps:g} bps)",
        f"Profit/RT:   ${q.profit_per_round_trip:.2f} per round trip",
        f"Latency:     {report.latency_us} μs",
        RULE,
    ]
    return "\n".join(lines)


def format_order_book(report: CycleReport, config: StrategyConfig) -> str:
    q = report.quote
    snap = report.snapshot
    lines = [
        "",
        "=== SIMULATED ORDER BOOK ===",
        f"Market ASK:  {_px(snap.day_high)}",
        f"Our ASK:     ${q.our_ask:.2f} [{config.share_size} shares]  <-- SELL",
        f"------------ MID: ${q.mid_price:.2f} ------------",
        f"Our BID:     ${q.our_bid:.2f} [{config.share_size} shares]  <-- BUY",
        f"Market BID:  {_px(snap.day_low)}",
    ]
    if snap.range_bps is not None:
        lines.append(f"Day range:   {snap.range_bps:.1f} bps")
    return "\n".join(lines)


def format_performance(report: CycleReport) -> str:
    return "\n".join([
        "",
        "Performance:",
        f"   Cycle time:  {report.latency_ms:.3f} ms",
        f"   Status:      {_STATUS[report.latency_class]}",
    ])


def format_banner(config: StrategyConfig, portfolio: Portfolio) -> str:
    lines = [
        f"Portfolio: {portfolio.name}",
        "",
        f"*** {settings.APP_NAME.upper()} - US STOCKS ***",
        "",
        "Configuration:",
        f"  Symbol:     {config.symbol}",
        f"  Spread:     {config.spread_bps:g} bps",
        f"  Order Size: {config.share_size} shares",
        f"  API Key:    {'DEMO (limited)' if config.is_demo else 'Custom ' + mask_key(config.api_key)}",
    ]
    if config.is_demo:
        lines += [
            "",
            f"Using DEMO key (limited to {settings.DEMO_DAILY_CALL_CAP} requests/day)",
            f"   Get FREE key at: {settings.FREE_KEY_URL}",
        ]
    return "\n".join(lines)


def format_balance(label: str, portfolio: Portfolio) -> str:
    return f"{label} balance: ${portfolio.cash:,.2f}"


class ConsoleReporter:
    def __init__(self, out: Optional[TextIO] = None):
        self.out = out or sys.stdout

    def _emit(self, text: str) -> None:
        print(text, file=self.out, flush=True)

    def banner(self, config: StrategyConfig, portfolio: Portfolio) -> None:
        self._emit(format_banner(config, portfolio))

    def balance(self, label: str, portfolio: Portfolio) -> None:
        self._emit(format_balance(label, portfolio))

    def cycle(self, report: CycleReport, config: StrategyConfig) -> None:
        self._emit(format_stats(report, config))
        self._emit(format_order_book(report, config))
        self._emit(format_performance(report))
        self._emit("\nNext: Implement order placement with broker API")

    def no_data(self, config: StrategyConfig, consecutive: int) -> None:
        self._emit(f"\nWaiting for market data... ({consecutive} in a row)")

    def waiting(self, seconds: float) -> None:
        self._emit(f"\nWaiting {seconds:g} seconds (API rate limit)...")
