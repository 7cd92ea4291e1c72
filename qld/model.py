"""Quantal dilution model: likelihood, prior and log-posterior of θ.

Each well at dilution d is positive with probability 1 - exp(-d θ)
(single-hit Poisson model). With pos positive wells out of n,

    log L_i(θ) = log C(n, pos) + pos log(1 - exp(-d θ)) + (pos - n) d θ

and θ carries an exponential prior with rate λ, of which only the
linear term -λθ is kept.

NOTE: the log-posterior returned here is normalization-incomplete. The
prior's log-normalizing constant is dropped because it cancels in
Metropolis-Hastings ratios; absolute values are not comparable across
different prior rates or used for evidence calculations.
"""

import numpy as np
from scipy.special import xlogy

from .data import DilutionDataset
from .utils.config import DEFAULT_PRIOR_RATE
from .utils.numerics import log_binomial_coefficient


class QuantalDilutionPosterior:
    """Unnormalized log-posterior of θ for one dilution dataset.

    The combinatorial constants depend only on the data, so they are
    computed once at construction. Instances are callable and hold no
    mutable state, so one instance can be shared between chains.
    """

    def __init__(self, dataset: DilutionDataset, prior_rate: float = DEFAULT_PRIOR_RATE):
        """
        Args:
            dataset: Dilution observations
            prior_rate: Rate λ of the exponential prior on θ
        """
        self.dataset = dataset
        self.prior_rate = prior_rate
        self._log_comb = np.array([
            log_binomial_coefficient(n, k)
            for n, k in zip(dataset.total_wells, dataset.positive_wells)
        ])
        self._log_comb_total = float(np.sum(self._log_comb))

    @property
    def log_comb(self) -> np.ndarray:
        """Per-dilution log binomial coefficients."""
        return self._log_comb.copy()

    def log_likelihood(self, theta: float) -> float:
        """Quantal-binomial log-likelihood, including the combinatorial terms.

        Returns -inf at θ = 0 whenever any well is positive.
        """
        pos = self.dataset.positive_wells
        n = self.dataset.total_wells
        dtheta = self.dataset.dilution_fraction * theta
        # xlogy keeps 0 * log(0) at 0 for dilutions without positive wells
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            terms = xlogy(pos, -np.expm1(-dtheta)) + (pos - n) * dtheta
        return self._log_comb_total + float(np.sum(terms))

    def log_prior(self, theta: float) -> float:
        """Linear exponential-prior term, applied once per dilution."""
        return -self.prior_rate * theta * self.dataset.n_dilutions

    def __call__(self, theta: float) -> float:
        return self.log_likelihood(theta) + self.log_prior(theta)


def log_posterior(
    theta: float,
    dataset: DilutionDataset,
    prior_rate: float = DEFAULT_PRIOR_RATE,
) -> float:
    """Unnormalized log-posterior of θ (see module notes).

    Only meaningful inside ratios such as the MH acceptance ratio.

    Args:
        theta: Rate parameter, θ > 0
        dataset: Dilution observations
        prior_rate: Rate λ of the exponential prior

    Returns:
        Log-posterior up to an additive constant; may be -inf
    """
    return QuantalDilutionPosterior(dataset, prior_rate)(theta)
