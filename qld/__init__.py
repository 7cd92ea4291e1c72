"""Bayesian estimation of infectious units from quantal limited-dilution assays.

A quantal limited-dilution (QLD) assay scores, at each dilution, how many
of the wells tested turned positive. Under the single-hit Poisson model a
well at dilution d is positive with probability 1 - exp(-d θ). This
package samples the posterior of θ with random-walk Metropolis-Hastings
in log space; infectious units per million (IUPM) are a linear rescaling
of θ.

Key modules:
    data: DilutionDataset, the immutable assay data
    model: Quantal-binomial likelihood and exponential prior
    sampling: MH kernel, single chain and multi-chain drivers
    analysis: Posterior summaries
    api: Array-in, array-out entry points
    run_analysis: Command-line pipeline

Example usage:
    >>> from qld import DilutionDataset, run_chains
    >>> data = DilutionDataset([6, 3, 1], [6, 6, 6], [1.0, 0.2, 0.04])
    >>> result = run_chains(data, n_chains=4, n_burnin=500, n_samples=2000, seed=1)
    >>> print(f"median theta: {result.summary()['posterior']['median']:.2f}")
"""

__version__ = "1.0.0"

from .utils.config import SamplerConfig, DEFAULT_PROPOSAL_SD, DEFAULT_PRIOR_RATE
from .utils.numerics import (
    QLDError,
    InputValidationError,
    NumericalError,
    log_binomial_coefficient,
)

from .data import DilutionObservation, DilutionDataset
from .model import QuantalDilutionPosterior, log_posterior

from .sampling import (
    RandomSource,
    NumpyRandomSource,
    MetropolisHastings,
    ChainSampler,
    ChainResult,
    MultiChainRunner,
    MultiChainResult,
    run_chains,
)

from .analysis import PosteriorSummary, summarize_samples
from .api import run_single_chain, run_multi_chain

__all__ = [
    "__version__",
    "SamplerConfig",
    "DEFAULT_PROPOSAL_SD",
    "DEFAULT_PRIOR_RATE",
    "QLDError",
    "InputValidationError",
    "NumericalError",
    "log_binomial_coefficient",
    "DilutionObservation",
    "DilutionDataset",
    "QuantalDilutionPosterior",
    "log_posterior",
    "RandomSource",
    "NumpyRandomSource",
    "MetropolisHastings",
    "ChainSampler",
    "ChainResult",
    "MultiChainRunner",
    "MultiChainResult",
    "run_chains",
    "PosteriorSummary",
    "summarize_samples",
    "run_single_chain",
    "run_multi_chain",
]
