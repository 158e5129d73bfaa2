"""
Shared pytest fixtures.

Every test starts with no API key and no per-model ENABLE_* flags in the
environment, so a developer's own .env / shell can't leak into results.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Strip API keys and model toggles from the environment for every test."""
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("ENABLE_GEMINI"):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def api_key(monkeypatch) -> str:
    """Set a fake Gemini key and return it."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key-1234")
    return "test-gemini-key-1234"
