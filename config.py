"""
Central configuration — reads from .env file.

Every value here is a plain module attribute so tests (and anything else)
can monkeypatch config.X and all code reading it sees the new value.

The Gemini API key is deliberately NOT here: key_store.py reads it fresh
on every request so a rotated key takes effect without a restart.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ── Model fallback chain ──────────────────────────────────────────────────────
# Comma-separated Gemini model ids, strongest first, cheapest/fastest last.
# Individual entries can be switched off with ENABLE_<MODEL>=false, e.g.
#   ENABLE_GEMINI_2_5_PRO=false
MODEL_CHAIN: list[str] = [
    m.strip()
    for m in os.getenv(
        "MODEL_CHAIN", "gemini-2.5-pro,gemini-2.5-flash,gemini-2.0-flash"
    ).split(",")
    if m.strip()
]

# Only the first (slowest, most expensive) model gets a latency guard.
PRIMARY_TIMEOUT_MS: int     = int(os.getenv("PRIMARY_TIMEOUT_MS", "9000"))
PRIMARY_TIMEOUT_SECS: float = PRIMARY_TIMEOUT_MS / 1000

# ── Generation ────────────────────────────────────────────────────────────────
GENERATION_TEMPERATURE: float = float(os.getenv("GENERATION_TEMPERATURE", "0.4"))
MAX_OUTPUT_TOKENS: int        = int(os.getenv("MAX_OUTPUT_TOKENS", "2048"))

# ── HTTP server ───────────────────────────────────────────────────────────────
HOST: str         = os.getenv("HOST", "0.0.0.0")
PORT: int         = int(os.getenv("PORT", "8888"))
ANALYZE_PATH: str = os.getenv("ANALYZE_PATH", "/api/analyze")

# Path the old serverless deployment used; kept so existing frontends work unchanged
LEGACY_ANALYZE_PATH: str = "/.netlify/functions/analyze"

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str       = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE: str | None = os.getenv("LOG_FILE", "").strip() or None
