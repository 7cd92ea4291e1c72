"""Summary and reporting functions for posterior samples of θ.

IUPM is a linear rescaling of θ, so every summary accepts a scale
factor applied before statistics are computed.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Optional
import numpy as np
from numpy.typing import NDArray

from ..utils.numerics import InputValidationError


@dataclass
class PosteriorSummary:
    """Summary statistics of a (rescaled) posterior sample."""

    mean: float
    std: float
    median: float
    lower: float
    upper: float
    interval: float
    n_samples: int
    scale: float = 1.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def summarize_samples(
    theta: NDArray[np.floating],
    scale: float = 1.0,
    interval: float = 0.95,
) -> PosteriorSummary:
    """Compute mean, spread and an equal-tailed credible interval.

    Args:
        theta: Posterior samples of θ
        scale: Linear factor applied to θ (e.g. to report IUPM)
        interval: Credible mass in (0, 1)

    Returns:
        PosteriorSummary of scale * theta
    """
    if not 0.0 < interval < 1.0:
        raise InputValidationError([f"interval = {interval} must be in (0, 1)"])
    values = scale * np.asarray(theta, dtype=float)
    if values.size == 0:
        raise InputValidationError(["cannot summarize an empty sample"])

    tail = 50.0 * (1.0 - interval)
    lower, upper = np.percentile(values, [tail, 100.0 - tail])
    return PosteriorSummary(
        mean=float(np.mean(values)),
        std=float(np.std(values)),
        median=float(np.median(values)),
        lower=float(lower),
        upper=float(upper),
        interval=interval,
        n_samples=int(values.size),
        scale=scale,
    )


def format_summary(
    summary: PosteriorSummary,
    acceptance_rate: Optional[float] = None,
    per_chain_acceptance: Optional[Dict[int, float]] = None,
    label: str = "theta",
) -> str:
    """Render a short text report."""
    lines = [
        "=" * 60,
        "POSTERIOR SUMMARY",
        "=" * 60,
        f"  {label} mean:    {summary.mean:.4g}",
        f"  {label} median:  {summary.median:.4g}",
        f"  {label} std:     {summary.std:.4g}",
        f"  {summary.interval:.0%} interval: [{summary.lower:.4g}, {summary.upper:.4g}]",
        f"  samples:   {summary.n_samples}",
    ]
    if acceptance_rate is not None:
        lines.append(f"  acceptance rate: {acceptance_rate:.1%}")
    if per_chain_acceptance:
        for chain_id, rate in per_chain_acceptance.items():
            lines.append(f"    chain {chain_id}: {rate:.1%}")
    return "\n".join(lines)
