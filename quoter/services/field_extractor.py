"""Targeted key lookup over a flat, quoted key/value text payload.

Alpha Vantage answers ``{"Global Quote": {"05. price": "123.45", ...}}``.
Only three fields are needed, so the text is scanned instead of decoded.
Callers depend on ``extract`` alone; swap the body for a real decoder if the
payload ever grows nesting that matters.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Optional, Pattern

_QUOTE = '"'


@lru_cache(maxsize=32)
def _key_pattern(field_key: str) -> Pattern[str]:
    # Exact quoted key, optionally carrying the "NN. " ordinal prefix, and
    # only where it is followed by the key/value delimiter.
    return re.compile(r'"(?:\d+\.\s*)?' + re.escape(field_key) + r'"\s*:')


def extract(raw_text: str, field_key: str) -> Optional[str]:
    """Return the quoted value of ``field_key`` in ``raw_text``, or None.

    ``""`` is a legitimate result (present but empty) and differs from None.
    """
    if not raw_text or not field_key:
        return None
    match = _key_pattern(field_key).search(raw_text)
    if match is None:
        return None
    pos = match.end()
    while pos < len(raw_text) and raw_text[pos].isspace():
        pos += 1
    if pos >= len(raw_text) or raw_text[pos] != _QUOTE:
        return None
    close = raw_text.find(_QUOTE, pos + 1)
    if close == -1:
        return None
    return raw_text[pos + 1:close]


def has_key(raw_text: str, field_key: str) -> bool:
    """True when ``field_key`` appears as a quoted key, whatever its value."""
    if not raw_text or not field_key:
        return False
    return _key_pattern(field_key).search(raw_text) is not None
