"""
keys.py

- `resolve_api_key(explicit, path)` picks the key: explicit argument, then
  ALPHAVANTAGE_API_KEY from the environment, then from keys.env, then demo.
- `get_keys_dict(path)` returns the raw keys.env dict (no loading into env).
- `mask_key(key)` for anything printed to the console.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values

from quoter.config.settings import (
    API_KEY_ENV,
    DEMO_API_KEY,
    KEYS_ENV_FILENAME,
    KEYS_PATH_ENV,
)


def _keys_file(path: Optional[str] = None) -> Path:
    base = Path(path or os.environ.get(KEYS_PATH_ENV) or ".")
    return base / KEYS_ENV_FILENAME


def get_keys_dict(path: Optional[str] = None) -> Dict[str, str]:
    p = _keys_file(path)
    if not p.exists():
        return {}
    return {k: v for k, v in (dotenv_values(p) or {}).items() if v is not None}


def resolve_api_key(explicit: Optional[str] = None, path: Optional[str] = None) -> str:
    if explicit and explicit.strip():
        return explicit.strip()
    env_val = os.environ.get(API_KEY_ENV, "").strip()
    if env_val:
        return env_val
    file_val = get_keys_dict(path).get(API_KEY_ENV, "").strip()
    if file_val:
        return file_val
    return DEMO_API_KEY


def is_demo_key(key: str) -> bool:
    return key == DEMO_API_KEY


def mask_key(val: str, tail: int = 4) -> str:
    if not val:
        return "(missing)"
    if is_demo_key(val):
        return val
    s = str(val)
    return f"••••{s[-tail:]}" if len(s) >= tail else "••••"
