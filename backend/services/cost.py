import logging
from typing import Optional

from models.schemas import CostRates, ProviderUsage

logger = logging.getLogger(__name__)


def estimate_cost(usage: ProviderUsage, rates: CostRates) -> Optional[float]:
    """
    Returns the estimated cost of a call, or None when the provider never
    reported usage. Zero tokens means "unknown", not "free".
    """
    if usage.input_tokens == 0 and usage.output_tokens == 0:
        return None
    return (
        usage.input_tokens / 1_000_000 * rates.input_per_million
        + usage.output_tokens / 1_000_000 * rates.output_per_million
    )


def log_estimated_cost(provider: str, model: str, usage: ProviderUsage, rates: CostRates) -> Optional[float]:
    cost = estimate_cost(usage, rates)
    if cost is None:
        logger.debug("No usage metadata from %s; skipping cost estimate", provider)
        return None
    logger.info(
        "Estimated cost: $%.4f (%s/%s, %d input + %d output tokens)",
        cost, provider, model, usage.input_tokens, usage.output_tokens,
    )
    return cost
