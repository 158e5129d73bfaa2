"""
Provider Manager — builds the ordered model chain and runs the fallback loop.

Chain:
  Candidates come from config.MODEL_CHAIN, strongest first. They are tried
  strictly in that order, each at most once per request:

    ATTEMPTING(0) → ATTEMPTING(1) → … → SUCCEEDED(result) | EXHAUSTED(errors)

  Only the first candidate runs under a deadline (config.PRIMARY_TIMEOUT_SECS);
  later ones are bounded by the provider alone. A timeout, a provider error
  and unparseable output are all just a failed attempt: log it, move on.
  The first shape-valid result is returned immediately.

Per-model enable/disable via environment variables (all default to true):
  ENABLE_GEMINI_2_5_PRO=true/false
  ENABLE_GEMINI_2_5_FLASH=true/false
  ENABLE_GEMINI_2_0_FLASH=true/false
"""
from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass
from typing import Optional, Union

import config
from analysis_models import (
    AnalysisRequest,
    AnalysisResult,
    AttemptOutcome,
    ChainReport,
    ConfigurationError,
)
from prompt_builder import build_prompt
from providers.base import MalformedResponseError, TextProvider, UpstreamError, extract_analysis

logger = logging.getLogger(__name__)


class ChainExhaustedError(RuntimeError):
    """Every candidate failed. `detail` is the last failure, `outcomes` all of them."""

    def __init__(self, detail: str, outcomes: list[AttemptOutcome]):
        super().__init__(detail)
        self.detail = detail
        self.outcomes = outcomes


# Tagged outcome of a single attempt
@dataclass
class Success:
    result: AnalysisResult


@dataclass
class Failure:
    reason: str


Attempt = Union[Success, Failure]


def _model_enabled(env_key: str, default: bool = True) -> bool:
    """Check whether a specific model is enabled via an environment variable."""
    raw = os.getenv(env_key, "true" if default else "false")
    return raw.strip().lower() not in ("false", "0", "no")


def model_env_flag(model_id: str) -> str:
    """gemini-2.5-pro → ENABLE_GEMINI_2_5_PRO"""
    return "ENABLE_" + re.sub(r"[^A-Z0-9]+", "_", model_id.upper()).strip("_")


def build_chain(api_key: str, client=None) -> list[TextProvider]:
    """
    Instantiate one provider per enabled model in config.MODEL_CHAIN, in order.
    All providers share `client` (a fresh genai.Client if not given); closing
    it is the caller's job.
    Raises ConfigurationError if nothing is left to try.
    """
    from google import genai
    from providers.gemini_provider import GeminiProvider

    if client is None:
        client = genai.Client(api_key=api_key)
    chain: list[TextProvider] = []
    for model in config.MODEL_CHAIN:
        env_flag = model_env_flag(model)
        if not _model_enabled(env_flag):
            logger.info("Skipped model %s (disabled by %s)", model, env_flag)
            continue
        chain.append(GeminiProvider(api_key, model, client=client))

    if not chain:
        raise ConfigurationError(
            "No models available. Set MODEL_CHAIN or re-enable at least one ENABLE_<MODEL> flag."
        )
    return chain


async def _attempt(provider: TextProvider, prompt: str, timeout: Optional[float]) -> Attempt:
    try:
        raw = await provider.generate(prompt, timeout=timeout)
        return Success(extract_analysis(raw, provider.model_id))
    except (UpstreamError, MalformedResponseError) as exc:
        return Failure(str(exc))


async def run_chain(
    providers: list[TextProvider],
    prompt: str,
    primary_timeout: Optional[float] = None,
) -> ChainReport:
    """
    Try each provider in order until one returns a valid analysis.

    Returns:
        ChainReport with the winning result and every attempt made.
    Raises:
        ChainExhaustedError carrying the last failure reason.
    """
    outcomes: list[AttemptOutcome] = []
    last_error = "no models configured"

    for index, provider in enumerate(providers):
        timeout = primary_timeout if index == 0 else None
        t0 = time.monotonic()
        attempt = await _attempt(provider, prompt, timeout)
        latency_ms = int((time.monotonic() - t0) * 1000)

        if isinstance(attempt, Success):
            outcomes.append(AttemptOutcome(provider.model_id, True, latency_ms=latency_ms))
            logger.info("[%s] OK — latency=%dms", provider.model_id, latency_ms)
            return ChainReport(result=attempt.result, outcomes=outcomes)

        last_error = attempt.reason
        outcomes.append(AttemptOutcome(provider.model_id, False, attempt.reason, latency_ms))
        logger.warning(
            "[%s] Failed after %dms: %s", provider.model_id, latency_ms, attempt.reason
        )

    logger.error(
        "All %d model(s) failed: %s",
        len(outcomes), "; ".join(o.summary for o in outcomes),
    )
    raise ChainExhaustedError(last_error, outcomes)


# ── Core analysis function ────────────────────────────────────────────────────

async def analyse_product(request: AnalysisRequest, api_key: str) -> ChainReport:
    """
    Build the prompt and chain for request, then run the fallback loop.
    The request's genai.Client is closed before returning, whatever the outcome.
    """
    from google import genai

    prompt = build_prompt(request)
    client = genai.Client(api_key=api_key)
    try:
        chain = build_chain(api_key, client=client)
        logger.info(
            "Analysing %r (%s, %s) via %s",
            request.product_name, request.target_market, request.business_model,
            " → ".join(p.model_id for p in chain),
        )
        report = await run_chain(chain, prompt, primary_timeout=config.PRIMARY_TIMEOUT_SECS)
    finally:
        await client.aio.aclose()

    if report.failures:
        logger.info(
            "Fell back to %s after %d failed attempt(s)", report.winner, len(report.failures)
        )
    return report
