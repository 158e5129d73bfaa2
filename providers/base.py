"""
Shared types and base class for all text-generation providers.

A provider wraps exactly one call to one model. It never retries; retry and
fallback policy lives entirely in providers/manager.py.
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

from analysis_models import AnalysisResult

logger = logging.getLogger(__name__)


class UpstreamError(RuntimeError):
    """The provider call raised, timed out, or came back without any text."""


class MalformedResponseError(ValueError):
    """The provider answered, but the text is not an analysis-shaped JSON object."""


# ── Response extraction ────────────────────────────────────────────────────────

# ```json / ```JSON / bare ``` at the start, ``` at the end
_FENCE_OPEN  = re.compile(r"^```[A-Za-z]*")
_FENCE_CLOSE = re.compile(r"```$")


def strip_code_fences(raw: str) -> str:
    """Remove a leading/trailing markdown code fence and surrounding whitespace."""
    text = raw.strip()
    text = _FENCE_OPEN.sub("", text, count=1)
    text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def _reject_constant(name: str):
    """NaN / Infinity are not valid JSON for browser clients."""
    raise ValueError(f"non-standard constant {name}")


def extract_analysis(raw: str, model_id: str) -> AnalysisResult:
    """
    Parse JSON from a model response, handling markdown fences gracefully,
    and check it has the pros / cons / factors shape.
    Raises MalformedResponseError on parse failure or wrong shape.
    """
    text = strip_code_fences(raw)
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        # ValueError covers JSONDecodeError and NaN/Infinity; RecursionError is absurd nesting
        logger.error("[%s] Non-JSON response: %s", model_id, raw[:300])
        raise MalformedResponseError(f"[{model_id}] JSON parse error: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"[{model_id}] expected a JSON object, got {type(data).__name__}"
        )
    for key, kind in (("pros", list), ("cons", list), ("factors", dict)):
        if key not in data:
            raise MalformedResponseError(f"[{model_id}] response is missing '{key}'")
        if not isinstance(data[key], kind):
            raise MalformedResponseError(
                f"[{model_id}] '{key}' must be a JSON {'array' if kind is list else 'object'}"
            )

    return AnalysisResult(pros=data["pros"], cons=data["cons"], factors=data["factors"])


# ── Abstract base ──────────────────────────────────────────────────────────────

class TextProvider(ABC):
    """Base class all text providers must implement."""

    name: str           # e.g. "google"
    model_id: str       # e.g. "gemini-2.5-pro"

    @abstractmethod
    async def _generate(self, prompt: str) -> Optional[str]:
        """Issue one generation request and return the raw text (None if absent)."""
        ...

    @property
    def full_name(self) -> str:
        return f"{self.name}/{self.model_id}"

    async def generate(self, prompt: str, timeout: Optional[float] = None) -> str:
        """
        Run one generation and return non-empty text.

        With a timeout the in-flight call is cancelled when the deadline passes,
        so nothing from an abandoned attempt can arrive later.
        Every failure is raised as UpstreamError.
        """
        try:
            if timeout is None:
                text = await self._generate(prompt)
            else:
                text = await asyncio.wait_for(self._generate(prompt), timeout)
        except UpstreamError:
            raise
        except asyncio.TimeoutError as exc:
            raise UpstreamError(f"[{self.model_id}] timed out after {timeout:g}s") from exc
        except Exception as exc:
            raise UpstreamError(f"[{self.model_id}] {type(exc).__name__}: {exc}") from exc

        if not text or not text.strip():
            raise UpstreamError(f"[{self.model_id}] empty response")
        return text
