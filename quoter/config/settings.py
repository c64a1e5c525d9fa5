"""
Unified settings module

- Endpoint and query constants for the Alpha Vantage GLOBAL_QUOTE call
- Strategy defaults (spread, order size) and polling cadence
- Field keys and error markers scanned out of the quote payload
"""

from __future__ import annotations

from dataclasses import dataclass


# ---- App metadata ----
@dataclass(frozen=True)
class AppInfo:
    name: str = "Simulated Market Maker"
    version: str = "1.0.0"
    description: str = "Synthetic bid/ask quoter for a single US equity"


APP_INFO = AppInfo()
APP_NAME = APP_INFO.name
APP_VERSION = APP_INFO.version

# ---- Data source ----
BASE_URL = "https://www.alphavantage.co/query"
QUOTE_FUNCTION = "GLOBAL_QUOTE"
HTTP_TIMEOUT_SECONDS = 10
FREE_KEY_URL = "https://www.alphavantage.co/support/#api-key"

# ---- Keys ----
DEMO_API_KEY = "demo"
DEMO_DAILY_CALL_CAP = 25
API_KEY_ENV = "ALPHAVANTAGE_API_KEY"
KEYS_PATH_ENV = "QUOTER_KEYS_PATH"
KEYS_ENV_FILENAME = "keys.env"

# ---- Symbol ----
DEFAULT_SYMBOL = "AAPL"

# ---- Strategy ----
SPREAD_BPS_DEFAULT = 5.0
SHARE_SIZE_DEFAULT = 100
SPREAD_BPS_ENV = "QUOTER_SPREAD_BPS"
SHARE_SIZE_ENV = "QUOTER_SHARE_SIZE"

# ---- Cadence (free tier: 5 calls/minute) ----
WAIT_SECONDS_DEMO = 15.0
WAIT_SECONDS_FULL = 12.0
RECOVERY_SECONDS = 5.0
NO_DATA_ADVISORY_THRESHOLD = 5

# ---- Latency classes ----
LATENCY_FAST_MS = 100.0
LATENCY_MODERATE_MS = 500.0

# ---- Payload keys ----
PRICE_FIELD = "05. price"
LOW_FIELD = "04. low"
HIGH_FIELD = "03. high"
API_ERROR_MARKERS = ("Error Message", "Note", "Information")

# ---- Portfolio ----
PORTFOLIO_NAME = "Iman"
STARTING_CASH = 1_000_000.0

# ---- Timezone ----
TIMEZONE = "America/New_York"
TZ = TIMEZONE  # alias

# ---- Logging ----
LOG_LEVEL_ENV = "QUOTER_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
