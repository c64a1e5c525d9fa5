from __future__ import annotations

import pytest

GOOD_BODY = """{
    "Global Quote": {
        "01. symbol": "AAPL",
        "02. open": "189.10",
        "03. high": "192.00",
        "04. low": "188.00",
        "05. price": "190.00",
        "06. volume": "51234567",
        "07. latest trading day": "2026-10-16",
        "08. previous close": "189.50",
        "09. change": "0.5000",
        "10. change percent": "0.2639%"
    }
}"""

NOTE_BODY = """{
    "Note": "Thank you for using Alpha Vantage! Our standard API call frequency is 5 calls per minute and 500 calls per day."
}"""

ERROR_BODY = """{
    "Error Message": "Invalid API call. Please retry or visit the documentation for GLOBAL_QUOTE."
}"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for name in ("ALPHAVANTAGE_API_KEY", "QUOTER_SPREAD_BPS", "QUOTER_SHARE_SIZE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("QUOTER_KEYS_PATH", str(tmp_path))
