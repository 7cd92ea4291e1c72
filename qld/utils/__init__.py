"""QLD utility modules."""

from .config import SamplerConfig, DEFAULT_PROPOSAL_SD, DEFAULT_PRIOR_RATE
from .numerics import (
    QLDError,
    InputValidationError,
    NumericalError,
    AcceptanceStats,
    log_binomial_coefficient,
    check_finite_positive,
    validate_count,
    validate_seed,
)

__all__ = [
    "SamplerConfig",
    "DEFAULT_PROPOSAL_SD",
    "DEFAULT_PRIOR_RATE",
    "QLDError",
    "InputValidationError",
    "NumericalError",
    "AcceptanceStats",
    "log_binomial_coefficient",
    "check_finite_positive",
    "validate_count",
    "validate_seed",
]
