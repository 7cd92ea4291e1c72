"""Shared fixtures for QLD tests."""

import pytest

from qld.data import DilutionDataset
from qld.sampling.random_source import RandomSource


class ScriptedRandomSource(RandomSource):
    """Replays fixed draws; raises if the sampler asks for more."""

    def __init__(self, normals, uniforms):
        self.normals = list(normals)
        self.uniforms = list(uniforms)
        self.n_normal_calls = 0
        self.n_uniform_calls = 0

    def standard_normal(self) -> float:
        self.n_normal_calls += 1
        return self.normals.pop(0)

    def uniform_nonzero(self) -> float:
        self.n_uniform_calls += 1
        return self.uniforms.pop(0)


@pytest.fixture
def scripted_source():
    """Factory for ScriptedRandomSource."""
    return ScriptedRandomSource


@pytest.fixture
def single_negative_dilution():
    """Zero of five wells positive at dilution 0.5.

    The posterior of θ is then exponential with rate 2.5 + 1e-4.
    """
    return DilutionDataset([0], [5], [0.5])


@pytest.fixture
def dilution_series():
    """Typical three-step dilution series."""
    return DilutionDataset([6, 3, 1], [6, 6, 6], [1.0, 0.2, 0.04])
