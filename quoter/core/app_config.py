from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Optional

from quoter.config import settings
from quoter.core.errors import ConfigError
from quoter.core.keys import is_demo_key, resolve_api_key


@dataclass(frozen=True)
class StrategyConfig:
    """Read-only strategy knobs shared with the polling loop."""

    symbol: str = settings.DEFAULT_SYMBOL
    api_key: str = settings.DEMO_API_KEY
    spread_bps: float = settings.SPREAD_BPS_DEFAULT
    share_size: int = settings.SHARE_SIZE_DEFAULT
    wait_seconds_demo: float = settings.WAIT_SECONDS_DEMO
    wait_seconds_full: float = settings.WAIT_SECONDS_FULL
    recovery_seconds: float = settings.RECOVERY_SECONDS
    no_data_advisory_threshold: int = settings.NO_DATA_ADVISORY_THRESHOLD

    def __post_init__(self):
        if not self.symbol or not self.symbol.strip():
            raise ConfigError("symbol must be non-empty")
        if not self.api_key:
            raise ConfigError("api_key must be non-empty")
        if not math.isfinite(self.spread_bps) or self.spread_bps <= 0:
            raise ConfigError(f"spread_bps must be > 0, got {self.spread_bps!r}")
        if int(self.share_size) != self.share_size or self.share_size <= 0:
            raise ConfigError(f"share_size must be a positive integer, got {self.share_size!r}")
        for name in ("wait_seconds_demo", "wait_seconds_full", "recovery_seconds"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be >= 0")
        if self.no_data_advisory_threshold < 0:
            raise ConfigError("no_data_advisory_threshold must be >= 0")

    @property
    def is_demo(self) -> bool:
        return is_demo_key(self.api_key)

    @property
    def cycle_wait_seconds(self) -> float:
        # Demo key gets the longer wait to stay under its daily cap.
        return self.wait_seconds_demo if self.is_demo else self.wait_seconds_full

    @staticmethod
    def from_args(symbol: Optional[str] = None, api_key: Optional[str] = None) -> "StrategyConfig":
        spread_raw = os.environ.get(settings.SPREAD_BPS_ENV)
        size_raw = os.environ.get(settings.SHARE_SIZE_ENV)
        try:
            spread = float(spread_raw) if spread_raw else settings.SPREAD_BPS_DEFAULT
            size = int(size_raw) if size_raw else settings.SHARE_SIZE_DEFAULT
        except ValueError as exc:
            raise ConfigError(f"invalid strategy override: {exc}") from exc
        return StrategyConfig(
            symbol=(symbol or settings.DEFAULT_SYMBOL).strip().upper(),
            api_key=resolve_api_key(api_key),
            spread_bps=spread,
            share_size=size,
        )
