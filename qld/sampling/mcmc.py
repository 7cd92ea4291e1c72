"""Metropolis-Hastings sampler for the dilution rate θ.

The random walk is performed in log(θ), which keeps θ positive without
bounds checks. Because the proposal is symmetric in log space but the
target is a density over θ, the acceptance ratio carries the Jacobian
term log(θ') - log(θ).
"""

from dataclasses import dataclass
from typing import Callable, Dict, NamedTuple, Optional
import logging
import numpy as np
from numpy.typing import NDArray

from .random_source import RandomSource, NumpyRandomSource
from ..utils.config import DEFAULT_PROPOSAL_SD
from ..utils.numerics import InputValidationError, AcceptanceStats, validate_count

logger = logging.getLogger(__name__)


class MHStepResult(NamedTuple):
    """Outcome of a single MH update."""

    theta: float
    accepted: int  # 1 if the proposal was accepted, else 0
    log_prob: float  # log-posterior at the returned theta


@dataclass
class ChainResult:
    """Samples recorded during the sampling phase of one chain."""

    theta: NDArray[np.floating]  # Shape: (n_samples,)
    accepted: NDArray[np.uint8]  # Shape: (n_samples,)
    chain_id: int = 1
    initial_theta: float = float('nan')

    @property
    def n_samples(self) -> int:
        return len(self.theta)

    @property
    def acceptance(self) -> AcceptanceStats:
        return AcceptanceStats.from_flags(self.accepted)

    @property
    def acceptance_rate(self) -> float:
        return self.acceptance.rate

    def to_dict(self) -> Dict[str, object]:
        return {
            "chain_id": self.chain_id,
            "initial_theta": self.initial_theta,
            "theta": self.theta.tolist(),
            "accepted": self.accepted.tolist(),
        }


class MetropolisHastings:
    """Random-walk MH update in log(θ) with a fixed proposal scale."""

    def __init__(
        self,
        log_prob_fn: Callable[[float], float],
        proposal_sd: float = DEFAULT_PROPOSAL_SD,
    ):
        """Initialize MH kernel.

        Args:
            log_prob_fn: Unnormalized log-posterior of θ
            proposal_sd: Standard deviation of the step in log(θ); not adapted
        """
        self.log_prob_fn = log_prob_fn
        self.proposal_sd = proposal_sd

    def step(
        self,
        theta: float,
        random_source: RandomSource,
        current_log_prob: Optional[float] = None,
    ) -> MHStepResult:
        """Propose and accept/reject one move.

        Draws one standard normal for the proposal, then one uniform on
        (0, 1] for the acceptance test. A log acceptance ratio of -inf or
        NaN is always rejected.

        Args:
            theta: Current value, θ > 0
            random_source: Source of the two draws
            current_log_prob: Cached log-posterior at theta, if known

        Returns:
            MHStepResult with the new theta and the accept flag
        """
        if current_log_prob is None:
            current_log_prob = self.log_prob_fn(theta)

        l_theta = np.log(theta)
        l_theta_prime = l_theta + self.proposal_sd * random_source.standard_normal()
        with np.errstate(over='ignore', invalid='ignore'):
            theta_prime = float(np.exp(l_theta_prime))
            proposal_log_prob = self.log_prob_fn(theta_prime)
            l_alpha = proposal_log_prob - current_log_prob + l_theta_prime - l_theta

        if np.log(random_source.uniform_nonzero()) < l_alpha:
            return MHStepResult(theta_prime, 1, proposal_log_prob)
        return MHStepResult(theta, 0, current_log_prob)


class ChainSampler:
    """One MCMC chain: a burn-in phase followed by a recorded sampling phase.

    The chain owns its random source and its current θ. Calling run()
    again continues from the current θ with freshly allocated output.
    """

    def __init__(
        self,
        log_prob_fn: Callable[[float], float],
        random_source: Optional[RandomSource] = None,
        proposal_sd: float = DEFAULT_PROPOSAL_SD,
        chain_id: int = 1,
        initial_theta: Optional[float] = None,
    ):
        """Initialize chain.

        Args:
            log_prob_fn: Unnormalized log-posterior of θ
            random_source: Exclusive source for this chain (fresh if None)
            proposal_sd: Log-space proposal scale
            chain_id: Positive label carried into the result
            initial_theta: Starting θ; drawn as exp(N(0, 1)) if None
        """
        self.random_source = random_source if random_source is not None else NumpyRandomSource()
        self.kernel = MetropolisHastings(log_prob_fn, proposal_sd)
        self.chain_id = chain_id

        if initial_theta is None:
            initial_theta = float(np.exp(self.random_source.standard_normal()))
        elif not initial_theta > 0:
            raise InputValidationError([f"initial_theta must be > 0, got {initial_theta}"])
        self.theta = initial_theta
        self.initial_theta = initial_theta
        self._log_prob: Optional[float] = None

    def _update(self) -> int:
        result = self.kernel.step(self.theta, self.random_source, self._log_prob)
        self.theta = result.theta
        self._log_prob = result.log_prob
        return result.accepted

    def run(self, n_burnin: int, n_samples: int) -> ChainResult:
        """Run burn-in, then record n_samples MH updates.

        Args:
            n_burnin: Burn-in iterations, >= 1 (discarded)
            n_samples: Recorded iterations, >= 1

        Returns:
            ChainResult with theta and accept flags from the sampling phase

        Raises:
            InputValidationError: If either count is not a positive integer
        """
        errors = validate_count(n_burnin, "n_burnin") + validate_count(n_samples, "n_samples")
        if errors:
            raise InputValidationError(errors)

        start_theta = self.theta
        for _ in range(n_burnin):
            self._update()

        theta_samples = np.empty(n_samples, dtype=float)
        accepted = np.empty(n_samples, dtype=np.uint8)
        for i in range(n_samples):
            accepted[i] = self._update()
            theta_samples[i] = self.theta

        result = ChainResult(
            theta=theta_samples,
            accepted=accepted,
            chain_id=self.chain_id,
            initial_theta=start_theta,
        )
        logger.debug(
            "Chain %d: %d burn-in + %d samples, acceptance %.3f",
            self.chain_id, n_burnin, n_samples, result.acceptance_rate,
        )
        return result
