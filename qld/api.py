"""Array-in, array-out entry points for host bindings.

Both functions validate every input before any random draw, so a
failing call raises InputValidationError and returns nothing.
"""

from typing import Optional, Sequence, Tuple
import numpy as np
from numpy.typing import NDArray

from .data import DilutionDataset
from .model import QuantalDilutionPosterior
from .sampling.mcmc import ChainSampler
from .sampling.multichain import MultiChainRunner
from .sampling.random_source import RandomSource, NumpyRandomSource, SeedLike
from .utils.config import SamplerConfig, DEFAULT_PRIOR_RATE, DEFAULT_PROPOSAL_SD
from .utils.numerics import InputValidationError, validate_count, validate_seed


def run_single_chain(
    positive_wells: Sequence[float],
    total_wells: Sequence[float],
    dilution_fraction: Sequence[float],
    n_burnin: int,
    n_sample: int,
    seed: SeedLike = None,
    random_source: Optional[RandomSource] = None,
) -> Tuple[NDArray[np.floating], NDArray[np.uint8]]:
    """Sample θ with one chain.

    Args:
        positive_wells: Positive well counts per dilution
        total_wells: Total well counts per dilution
        dilution_fraction: Dilution fraction per dilution
        n_burnin: Burn-in iterations, > 0
        n_sample: Recorded iterations, > 0
        seed: Seed for the default random source
        random_source: Source to use instead of a seeded numpy generator

    Returns:
        Tuple of (theta samples, accept flags), each of length n_sample

    Raises:
        InputValidationError: On mismatched arrays, non-positive counts or a
            negative seed
    """
    errors = validate_count(n_burnin, "n_burnin") + validate_count(n_sample, "n_sample")
    if random_source is None:
        errors += validate_seed(seed)
    if errors:
        raise InputValidationError(errors)
    dataset = DilutionDataset(positive_wells, total_wells, dilution_fraction)

    if random_source is None:
        random_source = NumpyRandomSource(seed)
    sampler = ChainSampler(
        QuantalDilutionPosterior(dataset, DEFAULT_PRIOR_RATE),
        random_source=random_source,
        proposal_sd=DEFAULT_PROPOSAL_SD,
    )
    result = sampler.run(n_burnin, n_sample)
    return result.theta, result.accepted


def run_multi_chain(
    positive_wells: Sequence[float],
    total_wells: Sequence[float],
    dilution_fraction: Sequence[float],
    n_burnin: int,
    n_sample: int,
    n_chains: int,
    seed: SeedLike = None,
    n_workers: int = 1,
) -> Tuple[NDArray[np.floating], NDArray[np.integer], NDArray[np.uint8]]:
    """Sample θ with several independent chains.

    Args:
        positive_wells: Positive well counts per dilution
        total_wells: Total well counts per dilution
        dilution_fraction: Dilution fraction per dilution
        n_burnin: Burn-in iterations per chain, > 0
        n_sample: Recorded iterations per chain, > 0
        n_chains: Number of chains, > 0
        seed: Master seed for the per-chain random streams
        n_workers: Worker processes (1 = sequential)

    Returns:
        Tuple of (theta, chain_id, accepted), each of length
        n_chains * n_sample; chain ids are 1-based and contiguous

    Raises:
        InputValidationError: On mismatched arrays or non-positive counts
    """
    config = SamplerConfig(
        n_burnin=n_burnin,
        n_samples=n_sample,
        n_chains=n_chains,
        seed=seed,
        n_workers=n_workers,
    ).check()
    dataset = DilutionDataset(positive_wells, total_wells, dilution_fraction)

    result = MultiChainRunner(dataset, config).run()
    return result.theta, result.chain_id, result.accepted
