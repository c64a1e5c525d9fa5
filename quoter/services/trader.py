from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

import pytz

from quoter.config import settings
from quoter.core.app_config import StrategyConfig
from quoter.core.errors import ApiError, TransportFailure, UnexpectedFormat
from quoter.core.portfolio import Portfolio
from quoter.core.runtime_state import StopToken
from quoter.services.market_data import MarketDataClient, build_quote_url
from quoter.services.pricing import MarketSnapshot, QuoteResult, build_snapshot, derive_quote

logger = logging.getLogger(__name__)

NY = pytz.timezone(settings.TZ)

Fetch = Callable[[str], str]


class LatencyClass(str, Enum):
    FAST = "FAST"
    MODERATE = "MODERATE"
    SLOW = "SLOW"


def classify_latency(latency_ms: float) -> LatencyClass:
    if latency_ms < settings.LATENCY_FAST_MS:
        return LatencyClass.FAST
    if latency_ms < settings.LATENCY_MODERATE_MS:
        return LatencyClass.MODERATE
    return LatencyClass.SLOW


@dataclass(frozen=True)
class CycleReport:
    cycle: int
    ts: datetime
    symbol: str
    snapshot: MarketSnapshot
    quote: QuoteResult
    latency_us: int
    latency_class: LatencyClass

    @property
    def latency_ms(self) -> float:
        return self.latency_us / 1000.0


class _SilentReporter:
    def cycle(self, report: CycleReport, config: StrategyConfig) -> None:
        pass

    def no_data(self, config: StrategyConfig, consecutive: int) -> None:
        pass

    def waiting(self, seconds: float) -> None:
        pass


class PollingLoop:
    """
    Fetch -> parse -> quote -> report -> wait, until the stop token is set.
    Exactly one request in flight at a time; the only suspension points are
    the inter-cycle wait and the no-data recovery wait, both on the token.
    """

    def __init__(
        self,
        config: StrategyConfig,
        fetch: Optional[Fetch] = None,
        reporter=None,
        portfolio: Optional[Portfolio] = None,
        stop_token: Optional[StopToken] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.config = config
        self.portfolio = portfolio or Portfolio()
        self.reporter = reporter or _SilentReporter()
        self._client: Optional[MarketDataClient] = None
        if fetch is None:
            self._client = MarketDataClient()
            fetch = self._client.fetch
        self._fetch = fetch
        self._stop = stop_token or StopToken()
        self._clock = clock
        self._url = build_quote_url(config.symbol, config.api_key)
        self._lock = threading.Lock()
        self._latest: Optional[CycleReport] = None
        self._cycle_count = 0
        self._consecutive_no_data = 0
        self._thread: Optional[threading.Thread] = None

    # --------------- Public control ---------------
    def start(self):
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self.run, name="PollingLoop", daemon=True)
        self._thread.start()

    def stop(self):
        self._stop.stop()

    def join(self, timeout: Optional[float] = None) -> bool:
        if self._thread is None:
            return True
        self._thread.join(timeout=timeout)
        return not self._thread.is_alive()

    @property
    def running(self) -> bool:
        return self._stop.running

    @property
    def cycle_count(self) -> int:
        with self._lock:
            return self._cycle_count

    @property
    def consecutive_no_data(self) -> int:
        return self._consecutive_no_data

    def latest(self) -> Optional[CycleReport]:
        with self._lock:
            return self._latest

    # --------------- Core loop ---------------
    def run(self):
        try:
            while self._stop.running:
                try:
                    report = self.run_once()
                except Exception:
                    # Keep polling; an unexpected error counts as a no-data cycle.
                    logger.exception("Unhandled error in quote cycle")
                    report = None

                if self._stop.stopped:
                    break

                if report is None:
                    self._on_no_data()
                    if self._stop.wait(self.config.recovery_seconds):
                        break
                    continue

                wait = self.config.cycle_wait_seconds
                self._emit("waiting", wait)
                if self._stop.wait(wait):
                    break
        finally:
            if self._client is not None:
                self._client.close()
            logger.info("Polling loop stopped after %d cycles", self.cycle_count)

    def run_once(self) -> Optional[CycleReport]:
        """One Polling + Reporting pass. Returns None when no quote was produced."""
        if self._stop.stopped:
            return None

        start = self._clock()
        try:
            body = self._fetch(self._url)
        except TransportFailure as exc:
            logger.warning("Transport failure: %s", exc)
            return None
        if not body:
            logger.warning("Transport failure: empty response")
            return None

        try:
            snapshot = build_snapshot(body)
        except ApiError as exc:
            logger.warning("API Error/Note: %s", exc.raw)
            return None
        except UnexpectedFormat as exc:
            logger.warning("Unexpected response (%s): %s", exc, exc.raw)
            return None

        quote = derive_quote(snapshot, self.config)
        if quote is None:
            logger.warning("No quote for snapshot %r", snapshot)
            return None

        latency_us = int((self._clock() - start) * 1_000_000)
        with self._lock:
            self._cycle_count += 1
            report = CycleReport(
                cycle=self._cycle_count,
                ts=datetime.now(NY),
                symbol=self.config.symbol,
                snapshot=snapshot,
                quote=quote,
                latency_us=latency_us,
                latency_class=classify_latency(latency_us / 1000.0),
            )
            self._latest = report
        self._consecutive_no_data = 0
        # Output trouble does not undo a counted cycle.
        self._emit("cycle", report, self.config)
        return report

    # --------------- Helpers ---------------
    def _emit(self, event: str, *args) -> None:
        try:
            getattr(self.reporter, event)(*args)
        except Exception:
            logger.exception("Reporter failed on %s", event)

    def _on_no_data(self):
        self._consecutive_no_data += 1
        self._emit("no_data", self.config, self._consecutive_no_data)
        if self._consecutive_no_data > self.config.no_data_advisory_threshold:
            if self.config.is_demo:
                logger.warning(
                    "%d cycles without data: DEMO key limit may be reached. Get a free key at %s",
                    self._consecutive_no_data, settings.FREE_KEY_URL,
                )
            else:
                logger.warning(
                    "%d cycles without data: API key may be rate-limited",
                    self._consecutive_no_data,
                )
