"""Multi-chain driver: independent chains merged into one ordered sample.

Chains share only the read-only dataset. Each chain gets its own
RandomSource spawned from a master seed, so a run is reproducible and
gives the same output whether chains run sequentially or in worker
processes.
"""

from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
import logging
import numpy as np
from numpy.typing import NDArray

from .mcmc import ChainSampler, ChainResult
from .random_source import RandomSource, SeedLike, spawn_random_sources
from ..analysis.summary import summarize_samples
from ..data import DilutionDataset
from ..model import QuantalDilutionPosterior
from ..utils.config import SamplerConfig
from ..utils.numerics import (
    NumericalError,
    AcceptanceStats,
    check_finite_positive,
)

logger = logging.getLogger(__name__)


@dataclass
class MultiChainResult:
    """Concatenated output of several chains.

    theta, chain_id and accepted are parallel arrays of length
    n_chains * n_samples. All samples of chain c precede those of
    chain c + 1; within a chain, sampling order is preserved.
    """

    theta: NDArray[np.floating]
    chain_id: NDArray[np.integer]
    accepted: NDArray[np.uint8]
    chains: List[ChainResult] = field(default_factory=list)

    @classmethod
    def from_chains(cls, chains: List[ChainResult]) -> "MultiChainResult":
        chains = sorted(chains, key=lambda c: c.chain_id)
        return cls(
            theta=np.concatenate([c.theta for c in chains]),
            chain_id=np.concatenate([
                np.full(c.n_samples, c.chain_id, dtype=np.int64) for c in chains
            ]),
            accepted=np.concatenate([c.accepted for c in chains]),
            chains=chains,
        )

    @property
    def n_chains(self) -> int:
        return len(self.chains)

    @property
    def n_samples(self) -> int:
        """Samples per chain."""
        return self.chains[0].n_samples if self.chains else 0

    @property
    def acceptance_rate(self) -> float:
        return AcceptanceStats.from_flags(self.accepted).rate

    def per_chain_acceptance(self) -> Dict[int, float]:
        return {c.chain_id: c.acceptance_rate for c in self.chains}

    def get_chain(self, chain_id: int) -> NDArray[np.floating]:
        """θ samples of one chain (1-based id)."""
        return self.theta[self.chain_id == chain_id]

    def summary(self, scale: float = 1.0, interval: float = 0.95) -> Dict[str, object]:
        """Pooled posterior summary plus acceptance rates.

        Args:
            scale: Linear factor converting θ to the reported unit (e.g. IUPM)
            interval: Width of the equal-tailed credible interval
        """
        return {
            "posterior": summarize_samples(self.theta, scale=scale, interval=interval).to_dict(),
            "acceptance_rate": self.acceptance_rate,
            "per_chain_acceptance": self.per_chain_acceptance(),
            "n_chains": self.n_chains,
            "n_samples": self.n_samples,
        }


def _run_chain(
    dataset: DilutionDataset,
    prior_rate: float,
    proposal_sd: float,
    random_source: RandomSource,
    chain_id: int,
    n_burnin: int,
    n_samples: int,
) -> ChainResult:
    """Build and run one chain; module-level so worker processes can pickle it."""
    posterior = QuantalDilutionPosterior(dataset, prior_rate)
    sampler = ChainSampler(
        posterior,
        random_source=random_source,
        proposal_sd=proposal_sd,
        chain_id=chain_id,
    )
    return sampler.run(n_burnin, n_samples)


class MultiChainRunner:
    """Runs independent ChainSamplers over one dataset and merges them."""

    def __init__(
        self,
        dataset: DilutionDataset,
        config: Optional[SamplerConfig] = None,
        random_source_factory: Optional[Callable[[int], RandomSource]] = None,
    ):
        """Initialize runner.

        Args:
            dataset: Shared, read-only dilution data
            config: Sampler settings (defaults if None)
            random_source_factory: Maps a 1-based chain id to that chain's
                source. Defaults to streams spawned from config.seed.
                Sources must be picklable when n_workers > 1.
        """
        self.dataset = dataset
        self.config = config if config is not None else SamplerConfig()
        self.random_source_factory = random_source_factory

    def _random_sources(self, n_chains: int, seed: SeedLike) -> List[RandomSource]:
        if self.random_source_factory is not None:
            return [self.random_source_factory(c) for c in range(1, n_chains + 1)]
        return spawn_random_sources(seed, n_chains)

    def run(
        self,
        n_chains: Optional[int] = None,
        n_burnin: Optional[int] = None,
        n_samples: Optional[int] = None,
    ) -> MultiChainResult:
        """Run all chains and concatenate their samples in chain order.

        Arguments left as None fall back to the runner's config.

        Returns:
            MultiChainResult with theta, chain_id and accepted arrays

        Raises:
            InputValidationError: Before any sampling, on invalid counts
            NumericalError: If a chain produced non-finite or non-positive θ
        """
        config = SamplerConfig(
            n_burnin=self.config.n_burnin if n_burnin is None else n_burnin,
            n_samples=self.config.n_samples if n_samples is None else n_samples,
            n_chains=self.config.n_chains if n_chains is None else n_chains,
            proposal_sd=self.config.proposal_sd,
            prior_rate=self.config.prior_rate,
            seed=self.config.seed,
            n_workers=self.config.n_workers,
        ).check()

        sources = self._random_sources(config.n_chains, config.seed)
        tasks = [
            (
                self.dataset, config.prior_rate, config.proposal_sd,
                source, chain_id, config.n_burnin, config.n_samples,
            )
            for chain_id, source in enumerate(sources, start=1)
        ]

        logger.info(
            "Running %d chain(s): %d burn-in + %d samples each, %d worker(s)",
            config.n_chains, config.n_burnin, config.n_samples, config.n_workers,
        )

        n_workers = min(config.n_workers, config.n_chains)
        if n_workers == 1:
            chains = [_run_chain(*task) for task in tasks]
        else:
            with ProcessPoolExecutor(max_workers=n_workers) as executor:
                futures = [executor.submit(_run_chain, *task) for task in tasks]
                chains = [future.result() for future in futures]

        for chain in chains:
            n_bad = check_finite_positive(chain.theta)
            if n_bad:
                raise NumericalError(n_bad, chain_id=chain.chain_id)

        result = MultiChainResult.from_chains(chains)
        logger.info("Sampling complete, overall acceptance %.3f", result.acceptance_rate)
        return result


def run_chains(
    dataset: DilutionDataset,
    n_chains: int,
    n_burnin: int,
    n_samples: int,
    seed: SeedLike = None,
    n_workers: int = 1,
    proposal_sd: Optional[float] = None,
    prior_rate: Optional[float] = None,
) -> MultiChainResult:
    """Convenience function to run the multi-chain sampler.

    Args:
        dataset: Dilution observations
        n_chains: Number of independent chains
        n_burnin: Burn-in iterations per chain
        n_samples: Recorded iterations per chain
        seed: Master seed
        n_workers: Worker processes
        proposal_sd: Log-space proposal scale (default 0.4)
        prior_rate: Exponential prior rate (default 1e-4)

    Returns:
        MultiChainResult
    """
    config = SamplerConfig(
        n_burnin=n_burnin,
        n_samples=n_samples,
        n_chains=n_chains,
        seed=seed,
        n_workers=n_workers,
    )
    if proposal_sd is not None:
        config.proposal_sd = proposal_sd
    if prior_rate is not None:
        config.prior_rate = prior_rate
    return MultiChainRunner(dataset, config).run()
