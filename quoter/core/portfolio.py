from __future__ import annotations

import threading
from typing import Tuple

from quoter.config import settings
from quoter.core.errors import PortfolioError


class Portfolio:
    """
    Cash and share balance. Nothing in the quote loop trades, so the loop only
    reads it; any future fill goes through ``apply_fill`` so cash and shares
    always move together under one lock.
    """

    def __init__(self, name: str = settings.PORTFOLIO_NAME,
                 cash: float = settings.STARTING_CASH, shares: int = 0):
        if cash < 0 or shares < 0:
            raise PortfolioError("starting balance must be non-negative")
        self.name = name
        self._cash = float(cash)
        self._shares = int(shares)
        self._lock = threading.Lock()

    @property
    def cash(self) -> float:
        with self._lock:
            return self._cash

    @property
    def shares(self) -> int:
        with self._lock:
            return self._shares

    def balance(self) -> Tuple[float, int]:
        with self._lock:
            return self._cash, self._shares

    def apply_fill(self, cash_delta: float, share_delta: int) -> Tuple[float, int]:
        with self._lock:
            new_cash = self._cash + cash_delta
            new_shares = self._shares + int(share_delta)
            if new_cash < 0:
                raise PortfolioError(f"fill would overdraw cash: {new_cash:.2f}")
            if new_shares < 0:
                raise PortfolioError(f"fill would leave negative shares: {new_shares}")
            self._cash, self._shares = new_cash, new_shares
            return self._cash, self._shares

    def __repr__(self) -> str:
        cash, shares = self.balance()
        return f"Portfolio(name={self.name!r}, cash={cash:.2f}, shares={shares})"
