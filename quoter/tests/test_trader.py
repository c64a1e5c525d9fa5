from __future__ import annotations

import threading
import time
from typing import List

import pytest

from quoter.core.app_config import StrategyConfig
from quoter.core.errors import TransportFailure
from quoter.core.runtime_state import StopToken
from quoter.services import trader
from quoter.services.trader import LatencyClass, PollingLoop, classify_latency

from conftest import GOOD_BODY, NOTE_BODY


def _cfg(**overrides) -> StrategyConfig:
    base = dict(
        symbol="AAPL",
        api_key="demo",
        spread_bps=5.0,
        share_size=100,
        wait_seconds_demo=30.0,
        wait_seconds_full=30.0,
        recovery_seconds=0.0,
    )
    base.update(overrides)
    return StrategyConfig(**base)


class RecordingReporter:
    def __init__(self):
        self.cycles = []
        self.no_data_counts: List[int] = []
        self.waits: List[float] = []
        self.waiting_event = threading.Event()

    def cycle(self, report, config):
        self.cycles.append(report)

    def no_data(self, config, consecutive):
        self.no_data_counts.append(consecutive)

    def waiting(self, seconds):
        self.waits.append(seconds)
        self.waiting_event.set()


class ScriptedFetch:
    """Replays bodies (or raises exceptions) in order, then stops the loop."""

    def __init__(self, script, stop_token: StopToken):
        self.script = list(script)
        self.stop_token = stop_token
        self.urls: List[str] = []

    def __call__(self, url: str) -> str:
        self.urls.append(url)
        if not self.script:
            self.stop_token.stop()
            raise TransportFailure("script exhausted")
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def test_classify_latency():
    assert classify_latency(0.0) == LatencyClass.FAST
    assert classify_latency(99.9) == LatencyClass.FAST
    assert classify_latency(100.0) == LatencyClass.MODERATE
    assert classify_latency(499.9) == LatencyClass.MODERATE
    assert classify_latency(500.0) == LatencyClass.SLOW


def test_run_once_success_publishes_report():
    reporter = RecordingReporter()
    ticks = iter([10.0, 10.25])
    loop = PollingLoop(_cfg(), fetch=lambda url: GOOD_BODY, reporter=reporter, clock=lambda: next(ticks))

    report = loop.run_once()

    assert report is not None
    assert report.cycle == 1
    assert report.symbol == "AAPL"
    assert report.snapshot.last_price == 190.00
    assert report.latency_us == 250_000
    assert report.latency_class == LatencyClass.MODERATE
    assert loop.cycle_count == 1
    assert loop.latest() is report
    assert reporter.cycles == [report]


def test_query_url_carries_function_symbol_and_key():
    seen = []
    loop = PollingLoop(_cfg(symbol="MSFT", api_key="K123"), fetch=lambda url: seen.append(url) or GOOD_BODY)

    loop.run_once()

    assert seen == ["https://www.alphavantage.co/query?function=GLOBAL_QUOTE&symbol=MSFT&apikey=K123"]


@pytest.mark.parametrize(
    "fetch",
    [
        lambda url: NOTE_BODY,
        lambda url: "<html>oops</html>",
        lambda url: "",
    ],
)
def test_run_once_without_data_does_not_count(fetch):
    loop = PollingLoop(_cfg(), fetch=fetch)

    assert loop.run_once() is None
    assert loop.cycle_count == 0
    assert loop.latest() is None


def test_run_once_transport_failure():
    def boom(url):
        raise TransportFailure("connection reset")

    loop = PollingLoop(_cfg(), fetch=boom)

    assert loop.run_once() is None
    assert loop.cycle_count == 0


def test_cycle_count_advances_only_on_success():
    token = StopToken()
    reporter = RecordingReporter()
    script = [NOTE_BODY, GOOD_BODY, TransportFailure("x"), "garbage", GOOD_BODY, NOTE_BODY]
    fetch = ScriptedFetch(script, token)
    loop = PollingLoop(_cfg(wait_seconds_demo=0.0), fetch=fetch, reporter=reporter, stop_token=token)

    loop.run()

    assert [r.cycle for r in reporter.cycles] == [1, 2]
    assert loop.cycle_count == 2
    assert reporter.no_data_counts == [1, 1, 2, 1]
    assert len(fetch.urls) == len(script) + 1


def test_repeated_errors_never_stop_the_loop(caplog):
    token = StopToken()
    reporter = RecordingReporter()
    fetch = ScriptedFetch([NOTE_BODY] * 12, token)
    loop = PollingLoop(_cfg(no_data_advisory_threshold=5), fetch=fetch, reporter=reporter, stop_token=token)

    with caplog.at_level("WARNING", logger=trader.__name__):
        loop.run()

    assert loop.cycle_count == 0
    assert reporter.no_data_counts == list(range(1, 13))
    advisories = [r for r in caplog.records if "DEMO key limit" in r.getMessage()]
    assert len(advisories) == 12 - 5


def test_unexpected_exception_is_logged_and_loop_continues(caplog):
    token = StopToken()
    fetch = ScriptedFetch([RuntimeError("bad day"), GOOD_BODY], token)
    loop = PollingLoop(_cfg(wait_seconds_demo=0.0), fetch=fetch, stop_token=token)

    with caplog.at_level("ERROR", logger=trader.__name__):
        loop.run()

    assert loop.cycle_count == 1
    assert any("Unhandled error" in r.getMessage() for r in caplog.records)


def test_stop_during_wait_is_prompt():
    reporter = RecordingReporter()
    loop = PollingLoop(_cfg(wait_seconds_demo=30.0), fetch=lambda url: GOOD_BODY, reporter=reporter)

    loop.start()
    assert reporter.waiting_event.wait(timeout=5.0)
    started = time.monotonic()
    loop.stop()
    loop.stop()

    assert loop.join(timeout=5.0)
    assert time.monotonic() - started < 2.0
    assert loop.cycle_count == 1
    assert not loop.running


def test_stop_before_start_never_fetches():
    calls = []
    loop = PollingLoop(_cfg(), fetch=lambda url: calls.append(url) or GOOD_BODY)

    loop.stop()
    loop.run()

    assert calls == []
    assert loop.cycle_count == 0


def test_stop_token_is_monotonic():
    token = StopToken()
    assert token.running
    assert token.wait(0.0) is False

    token.stop()
    token.stop()

    assert token.stopped
    assert token.wait(10.0) is True


class RecordingStopToken(StopToken):
    """Records every wait instead of sleeping; stops after ``limit`` waits."""

    def __init__(self, limit: int):
        super().__init__()
        self.limit = limit
        self.waits: List[float] = []

    def wait(self, seconds: float) -> bool:
        self.waits.append(seconds)
        if len(self.waits) >= self.limit:
            self.stop()
        return self.stopped


class BrokenPipeReporter(RecordingReporter):
    def cycle(self, report, config):
        raise BrokenPipeError("stdout closed")


def test_wait_interval_follows_cycle_outcome():
    """No-data cycles take the recovery wait; counted cycles take the rate-limit wait."""

    token = RecordingStopToken(limit=4)
    script = [NOTE_BODY, GOOD_BODY, TransportFailure("reset"), GOOD_BODY]
    fetch = ScriptedFetch(script, token)
    cfg = _cfg(wait_seconds_demo=15.0, recovery_seconds=5.0)
    loop = PollingLoop(cfg, fetch=fetch, stop_token=token)

    loop.run()

    assert token.waits == [5.0, 15.0, 5.0, 15.0]
    assert loop.cycle_count == 2


def test_full_key_uses_full_wait():
    token = RecordingStopToken(limit=1)
    cfg = _cfg(api_key="CUSTOM", wait_seconds_full=12.0, recovery_seconds=5.0)
    loop = PollingLoop(cfg, fetch=lambda url: GOOD_BODY, stop_token=token)

    loop.run()

    assert token.waits == [12.0]


def test_reporter_failure_keeps_cycle_and_rate_limit_wait(caplog):
    """A broken output stream must not turn a counted cycle into a no-data cycle."""

    token = RecordingStopToken(limit=1)
    reporter = BrokenPipeReporter()
    cfg = _cfg(wait_seconds_demo=15.0, recovery_seconds=5.0)
    loop = PollingLoop(cfg, fetch=lambda url: GOOD_BODY, reporter=reporter, stop_token=token)

    with caplog.at_level("ERROR", logger=trader.__name__):
        loop.run()

    assert loop.cycle_count == 1
    assert loop.consecutive_no_data == 0
    assert reporter.no_data_counts == []
    assert reporter.waits == [15.0]
    assert token.waits == [15.0]
    assert any("Reporter failed on cycle" in r.getMessage() for r in caplog.records)


def test_stop_during_recovery_wait_is_prompt():
    reporter = RecordingReporter()
    no_data_seen = threading.Event()
    reporter.no_data = lambda config, consecutive: no_data_seen.set()
    loop = PollingLoop(_cfg(recovery_seconds=30.0), fetch=lambda url: NOTE_BODY, reporter=reporter)

    loop.start()
    assert no_data_seen.wait(timeout=5.0)
    started = time.monotonic()
    loop.stop()

    assert loop.join(timeout=5.0)
    assert time.monotonic() - started < 2.0
    assert loop.cycle_count == 0
