"""MCMC sampling modules for QLD rate inference."""

from .random_source import RandomSource, NumpyRandomSource, spawn_random_sources
from .mcmc import MetropolisHastings, MHStepResult, ChainSampler, ChainResult
from .multichain import MultiChainRunner, MultiChainResult, run_chains

__all__ = [
    "RandomSource",
    "NumpyRandomSource",
    "spawn_random_sources",
    "MetropolisHastings",
    "MHStepResult",
    "ChainSampler",
    "ChainResult",
    "MultiChainRunner",
    "MultiChainResult",
    "run_chains",
]
