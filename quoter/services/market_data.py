from __future__ import annotations

import logging
import urllib.parse
from typing import Optional

import requests

from quoter.config import settings
from quoter.core.errors import TransportFailure

logger = logging.getLogger(__name__)


def build_quote_url(symbol: str, api_key: str, base_url: str = settings.BASE_URL) -> str:
    query = urllib.parse.urlencode(
        {"function": settings.QUOTE_FUNCTION, "symbol": symbol, "apikey": api_key}
    )
    return f"{base_url}?{query}"


class MarketDataClient:
    """
    Single blocking GET per call over a reused session. No retries: the
    polling loop's own wait is the retry.
    """

    def __init__(self, timeout: float = settings.HTTP_TIMEOUT_SECONDS,
                 session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": f"quoter/{settings.APP_VERSION}",
            "Accept": "application/json",
        })

    def fetch(self, url: str) -> str:
        try:
            response = self.session.get(url, timeout=self.timeout, verify=True)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TransportFailure(f"HTTP error: {exc}") from exc
        body = response.text
        if not body or not body.strip():
            raise TransportFailure("empty response body")
        logger.debug("fetched %d bytes", len(body))
        return body

    def close(self) -> None:
        self.session.close()
