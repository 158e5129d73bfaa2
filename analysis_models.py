"""
analysis_models.py — request/response types shared by the server and providers.

Everything here lives for exactly one request: built from the inbound JSON,
handed to the provider chain, serialised back out, then dropped.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_TARGET_MARKET  = "USA"
DEFAULT_BUSINESS_MODEL = "Amazon FBA"


class ConfigurationError(RuntimeError):
    """Server is missing something it needs (API key, model chain). Maps to 500."""


class ValidationError(ValueError):
    """Inbound request is malformed or incomplete. Maps to 400."""


# ── Request ────────────────────────────────────────────────────────────────────

def _optional_str(payload: dict, key: str, default: str) -> str:
    value = payload.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string.")
    return value.strip() or default


@dataclass(frozen=True)
class AnalysisRequest:
    product_name: str
    target_market: str = DEFAULT_TARGET_MARKET
    business_model: str = DEFAULT_BUSINESS_MODEL

    @classmethod
    def from_payload(cls, payload: Any) -> "AnalysisRequest":
        """
        Build a request from the decoded JSON body (camelCase wire keys).
        Raises ValidationError if productName is missing or blank.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object.")

        name = payload.get("productName")
        if name is not None and not isinstance(name, str):
            raise ValidationError("productName must be a string.")
        if not name or not name.strip():
            raise ValidationError("productName is required.")

        return cls(
            product_name=name.strip(),
            target_market=_optional_str(payload, "targetMarket", DEFAULT_TARGET_MARKET),
            business_model=_optional_str(payload, "businessModel", DEFAULT_BUSINESS_MODEL),
        )


# ── Result ─────────────────────────────────────────────────────────────────────

@dataclass
class AnalysisResult:
    """Shape-validated model output. Factor contents are passed through as-is."""
    pros: list[str]
    cons: list[str]
    factors: dict[str, Any]     # factor name → {"score": number, "reason": str}

    def to_dict(self) -> dict:
        return {"pros": self.pros, "cons": self.cons, "factors": self.factors}


@dataclass
class AttemptOutcome:
    """One entry in the per-request attempt log."""
    model_id: str
    succeeded: bool
    error: Optional[str] = None
    latency_ms: int = 0

    @property
    def summary(self) -> str:
        status = "ok" if self.succeeded else f"failed ({self.error})"
        return f"{self.model_id}: {status} in {self.latency_ms}ms"


@dataclass
class ChainReport:
    """What the fallback chain hands back on success."""
    result: AnalysisResult
    outcomes: list[AttemptOutcome] = field(default_factory=list)

    @property
    def winner(self) -> str:
        return self.outcomes[-1].model_id if self.outcomes else ""

    @property
    def failures(self) -> list[AttemptOutcome]:
        return [o for o in self.outcomes if not o.succeeded]
