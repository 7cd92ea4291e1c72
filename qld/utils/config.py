"""Configuration classes for the QLD sampler."""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any

from .numerics import InputValidationError, validate_count, validate_seed

# Random-walk scale in log(theta); targets roughly 64% acceptance
DEFAULT_PROPOSAL_SD = 0.4

# Rate of the exponential prior on theta
DEFAULT_PRIOR_RATE = 1e-4


@dataclass
class SamplerConfig:
    """Settings for a multi-chain Metropolis-Hastings run.

    Attributes:
        n_burnin: Burn-in iterations per chain (discarded)
        n_samples: Recorded iterations per chain
        n_chains: Number of independent chains
        proposal_sd: Standard deviation of the log-space random walk
        prior_rate: Rate λ of the exponential prior on θ
        seed: Master seed; per-chain streams are spawned from it
        n_workers: Worker processes (1 runs chains sequentially)
    """

    n_burnin: int = 500
    n_samples: int = 2000
    n_chains: int = 4
    proposal_sd: float = DEFAULT_PROPOSAL_SD
    prior_rate: float = DEFAULT_PRIOR_RATE
    seed: Optional[int] = None
    n_workers: int = 1

    def validate(self) -> tuple[bool, list[str]]:
        """Validate configuration values.

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        errors = []
        errors += validate_count(self.n_burnin, "n_burnin")
        errors += validate_count(self.n_samples, "n_samples")
        errors += validate_count(self.n_chains, "n_chains")
        errors += validate_count(self.n_workers, "n_workers")
        errors += validate_seed(self.seed)

        if not self.proposal_sd > 0:
            errors.append(f"proposal_sd = {self.proposal_sd} must be > 0")

        if not self.prior_rate >= 0:
            errors.append(f"prior_rate = {self.prior_rate} must be >= 0")

        return len(errors) == 0, errors

    def check(self) -> "SamplerConfig":
        """Raise InputValidationError if the configuration is invalid."""
        valid, errors = self.validate()
        if not valid:
            raise InputValidationError(errors)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
