"""Random number sources for the Metropolis-Hastings sampler.

Each chain owns its own source; nothing in the sampler touches global
numpy random state, so chains are independent and reproducible.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Union
import numpy as np


SeedLike = Union[None, int, np.random.SeedSequence]


class RandomSource(ABC):
    """Base class for the two draws the sampler needs."""

    @abstractmethod
    def standard_normal(self) -> float:
        """Draw from N(0, 1)."""
        pass

    @abstractmethod
    def uniform_nonzero(self) -> float:
        """Draw uniformly from (0, 1]; never returns exactly 0."""
        pass


class NumpyRandomSource(RandomSource):
    """RandomSource backed by a numpy Generator (PCG64 by default)."""

    def __init__(self, seed: SeedLike = None, generator: Optional[np.random.Generator] = None):
        """
        Args:
            seed: Seed or SeedSequence; ignored if generator is given
            generator: Pre-built generator to wrap
        """
        self.generator = generator if generator is not None else np.random.default_rng(seed)

    def standard_normal(self) -> float:
        return float(self.generator.standard_normal())

    def uniform_nonzero(self) -> float:
        # random() is on [0, 1); reflect it onto (0, 1]
        return 1.0 - float(self.generator.random())


def spawn_random_sources(seed: SeedLike, n: int) -> List[NumpyRandomSource]:
    """Create n statistically independent sources from one master seed.

    Args:
        seed: Master seed (None draws fresh OS entropy)
        n: Number of sources

    Returns:
        List of NumpyRandomSource, one per chain
    """
    if not isinstance(seed, np.random.SeedSequence):
        seed = np.random.SeedSequence(seed)
    return [NumpyRandomSource(child) for child in seed.spawn(n)]
