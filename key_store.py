"""
key_store.py — single source of truth for the provider API key.

Key names are lower-case; the environment variable is the upper-case
equivalent. Some keys also accept a legacy variable name:

  gemini_api_key  →  GEMINI_API_KEY  (falls back to GOOGLE_API_KEY)

Values are read fresh from the environment on every call, so the key is
looked up once per request and never cached in the process.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

_ALIASES: dict[str, tuple[str, ...]] = {
    "gemini_api_key": ("GOOGLE_API_KEY",),
}


def get(key_name: str) -> Optional[str]:
    """
    Return the value for key_name from the environment.
    Returns None if not set anywhere (blank values count as unset).
    """
    for env_name in (key_name.upper(), *_ALIASES.get(key_name, ())):
        value = os.getenv(env_name, "").strip()
        if value:
            if env_name != key_name.upper():
                logger.debug("key_store: %s resolved via legacy %s", key_name, env_name)
            return value
    return None


def mask(value: Optional[str]) -> str:
    """Return a display-safe version of a key: first 4 + last 4 chars."""
    if not value:
        return "not set"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}…{value[-4:]}"
