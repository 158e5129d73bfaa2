"""
prompt_builder.py — turns an AnalysisRequest into the prompt sent to every model.

Pure and deterministic: the same request always yields byte-identical text,
so every candidate in the fallback chain sees exactly the same prompt.
"""
from __future__ import annotations

from analysis_models import AnalysisRequest

# Ordered (name, rubric) pairs. Order here is the order the model sees them.
FACTOR_SPEC: tuple[tuple[str, str], ...] = (
    ("riskScore",
     "Overall risk of launching this product (1 = very low risk, 10 = very high risk). "
     "Consider competition, capital required and likelihood of returns."),
    ("seasonality",
     "How steady demand is across the year (1 = extremely seasonal, 10 = evergreen, "
     "sells consistently all year)."),
    ("differentiation",
     "How easily the product can be made meaningfully different from existing listings "
     "(1 = pure commodity, 10 = many clear ways to stand out)."),
    ("audienceSize",
     "Size of the reachable customer base in the target market "
     "(1 = tiny niche, 10 = mass market)."),
    ("marketingAngle",
     "Strength of a clear, compelling marketing story or hook "
     "(1 = hard to market, 10 = obvious viral angle)."),
    ("urgency",
     "How urgently customers feel they need it (1 = pure nice-to-have, "
     "10 = solves an immediate, painful problem)."),
    ("longevity",
     "Expected lifespan of demand (1 = short-lived fad, 10 = durable long-term demand)."),
    ("brandingPotential",
     "Potential to build a recognisable brand and product line around it "
     "(1 = unbrandable, 10 = strong brand and upsell potential)."),
    ("complianceRisk",
     "Regulatory, certification, safety or IP exposure (1 = minimal, "
     "10 = heavy compliance burden or high legal risk)."),
)

FACTOR_NAMES: tuple[str, ...] = tuple(name for name, _ in FACTOR_SPEC)

_PERSONA = (
    "You are a senior e-commerce market analyst who evaluates product ideas "
    "for online sellers."
)

_OUTPUT_RULES = """Return a single JSON object with exactly these top-level keys:
  "pros":    an array of 3 short strings
  "cons":    an array of 3 short strings
  "factors": an object keyed by the factor names above; each value is
             {"score": <number from 1 to 10>, "reason": "<one sentence>"}

Respond with the JSON object only. Do not add any explanation or prose before
or after it, and do not wrap it in markdown code fences."""


def _factor_lines() -> str:
    return "\n".join(
        f"{i}. {name}: {rubric}" for i, (name, rubric) in enumerate(FACTOR_SPEC, start=1)
    )


def build_prompt(request: AnalysisRequest) -> str:
    """Return the full analysis prompt for request."""
    return (
        f"{_PERSONA}\n\n"
        f"Assess the market viability of the following product.\n"
        f"Product: {request.product_name}\n"
        f"Target market: {request.target_market}\n"
        f"Business model: {request.business_model}\n\n"
        f"Score the product on each of these factors:\n"
        f"{_factor_lines()}\n\n"
        f"{_OUTPUT_RULES}\n"
    )
