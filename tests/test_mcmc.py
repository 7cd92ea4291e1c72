"""Tests for the Metropolis-Hastings kernel and single-chain sampler."""

import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from qld.model import QuantalDilutionPosterior
from qld.sampling.mcmc import MetropolisHastings, ChainSampler, ChainResult
from qld.sampling.random_source import NumpyRandomSource, spawn_random_sources
from qld.utils.config import DEFAULT_PRIOR_RATE
from qld.utils.numerics import InputValidationError


class TestNumpyRandomSource:
    """Tests for the default random source."""

    def test_uniform_in_half_open_interval(self):
        source = NumpyRandomSource(seed=3)
        draws = np.array([source.uniform_nonzero() for _ in range(5000)])
        assert np.all(draws > 0.0)
        assert np.all(draws <= 1.0)

    def test_seeded_is_reproducible(self):
        a = NumpyRandomSource(seed=11)
        b = NumpyRandomSource(seed=11)
        assert [a.standard_normal() for _ in range(5)] == [b.standard_normal() for _ in range(5)]

    def test_spawned_sources_differ(self):
        first, second = spawn_random_sources(5, 2)
        assert first.standard_normal() != second.standard_normal()


class TestMetropolisHastings:
    """Tests for a single MH update."""

    def test_accepts_when_log_u_below_ratio(self, single_negative_dilution, scripted_source):
        """From θ = 1 with z = 1: log α = -(2.5 + λ)(e^0.4 - 1) + 0.4."""
        kernel = MetropolisHastings(QuantalDilutionPosterior(single_negative_dilution))
        l_alpha = -(2.5 + DEFAULT_PRIOR_RATE) * (np.exp(0.4) - 1.0) + 0.4
        assert np.log(0.4) < l_alpha < np.log(0.5)

        result = kernel.step(1.0, scripted_source([1.0], [0.4]))
        assert result.accepted == 1
        assert_allclose(result.theta, np.exp(0.4))

    def test_rejects_when_log_u_above_ratio(self, single_negative_dilution, scripted_source):
        kernel = MetropolisHastings(QuantalDilutionPosterior(single_negative_dilution))
        result = kernel.step(1.0, scripted_source([1.0], [0.5]))
        assert result.accepted == 0
        assert result.theta == 1.0

    def test_jacobian_term(self, scripted_source):
        """With a flat target only the log-Jacobian remains in log α."""
        kernel = MetropolisHastings(lambda theta: 0.0, proposal_sd=1.0)
        # log α = z = -1; log(0.3) = -1.20 < -1 accepts, log(0.4) = -0.92 rejects
        assert kernel.step(2.0, scripted_source([-1.0], [0.3])).accepted == 1
        assert kernel.step(2.0, scripted_source([-1.0], [0.4])).accepted == 0

    def test_equal_log_u_and_ratio_rejects(self, single_negative_dilution, scripted_source):
        """Acceptance requires log(u) strictly below log α."""
        kernel = MetropolisHastings(QuantalDilutionPosterior(single_negative_dilution))
        result = kernel.step(1.0, scripted_source([0.0], [1.0]))
        assert result.accepted == 0

    def test_minus_infinity_always_rejected(self, scripted_source):
        kernel = MetropolisHastings(lambda theta: 0.0 if theta < 2.0 else -np.inf)
        result = kernel.step(1.0, scripted_source([5.0], [1e-300]))
        assert result.accepted == 0
        assert result.theta == 1.0

    def test_nan_always_rejected(self, scripted_source):
        kernel = MetropolisHastings(lambda theta: 0.0 if theta < 2.0 else np.nan)
        result = kernel.step(1.0, scripted_source([5.0], [1e-300]))
        assert result.accepted == 0

    def test_draw_order(self, scripted_source):
        """One normal and then one uniform per step."""
        source = scripted_source([0.1], [0.5])
        MetropolisHastings(lambda theta: 0.0).step(1.0, source)
        assert source.n_normal_calls == 1
        assert source.n_uniform_calls == 1

    def test_returns_log_prob_of_new_state(self, single_negative_dilution, scripted_source):
        post = QuantalDilutionPosterior(single_negative_dilution)
        kernel = MetropolisHastings(post)
        result = kernel.step(1.0, scripted_source([1.0], [0.4]))
        assert_allclose(result.log_prob, post(result.theta))


class TestChainSampler:
    """Tests for ChainSampler."""

    def test_initial_theta_from_normal_draw(self, single_negative_dilution, scripted_source):
        """Initial θ is exp of the first standard-normal draw."""
        source = scripted_source([-0.3], [])
        sampler = ChainSampler(QuantalDilutionPosterior(single_negative_dilution), source)
        assert_allclose(sampler.theta, np.exp(-0.3))
        assert sampler.theta > 0

    def test_output_lengths(self, single_negative_dilution):
        sampler = ChainSampler(
            QuantalDilutionPosterior(single_negative_dilution), NumpyRandomSource(1)
        )
        result = sampler.run(n_burnin=10, n_samples=25)
        assert isinstance(result, ChainResult)
        assert len(result.theta) == 25
        assert len(result.accepted) == 25
        assert set(np.unique(result.accepted)) <= {0, 1}

    def test_burnin_draws_consumed(self, single_negative_dilution, scripted_source):
        """Burn-in runs its updates; only sampling updates are recorded."""
        n_burnin, n_samples = 3, 2
        n_steps = n_burnin + n_samples
        source = scripted_source([0.0] * (n_steps + 1), [0.5] * n_steps)
        sampler = ChainSampler(QuantalDilutionPosterior(single_negative_dilution), source)
        result = sampler.run(n_burnin, n_samples)
        assert source.n_normal_calls == n_steps + 1
        assert source.n_uniform_calls == n_steps
        assert len(result.theta) == n_samples

    def test_deterministic_for_fixed_seed(self, dilution_series):
        post = QuantalDilutionPosterior(dilution_series)
        a = ChainSampler(post, NumpyRandomSource(42)).run(50, 200)
        b = ChainSampler(post, NumpyRandomSource(42)).run(50, 200)
        assert_array_equal(a.theta, b.theta)
        assert_array_equal(a.accepted, b.accepted)

    def test_theta_changes_only_on_accept(self, dilution_series):
        result = ChainSampler(
            QuantalDilutionPosterior(dilution_series), NumpyRandomSource(7)
        ).run(20, 500)
        moved = result.theta[1:] != result.theta[:-1]
        assert_array_equal(moved, result.accepted[1:] == 1)

    def test_rerun_allocates_fresh_output(self, single_negative_dilution):
        """A second run continues from the current θ with new buffers."""
        sampler = ChainSampler(
            QuantalDilutionPosterior(single_negative_dilution), NumpyRandomSource(2)
        )
        first = sampler.run(5, 30)
        last_theta = sampler.theta
        second = sampler.run(1, 10)
        assert len(first.theta) == 30
        assert len(second.theta) == 10
        assert second.initial_theta == last_theta
        assert second.theta is not first.theta

    def test_explicit_initial_theta(self, single_negative_dilution, scripted_source):
        source = scripted_source([], [])
        sampler = ChainSampler(
            QuantalDilutionPosterior(single_negative_dilution), source, initial_theta=2.0
        )
        assert sampler.theta == 2.0
        assert source.n_normal_calls == 0

    def test_nonpositive_initial_theta_rejected(self, single_negative_dilution):
        with pytest.raises(InputValidationError):
            ChainSampler(QuantalDilutionPosterior(single_negative_dilution), initial_theta=0.0)

    @pytest.mark.parametrize("n_burnin, n_samples", [(0, 10), (10, 0), (-1, 10), (True, 10), (2.0, 10)])
    def test_invalid_counts(self, single_negative_dilution, scripted_source, n_burnin, n_samples):
        """Invalid counts fail before any MH update."""
        source = scripted_source([0.0], [])
        sampler = ChainSampler(QuantalDilutionPosterior(single_negative_dilution), source)
        with pytest.raises(InputValidationError):
            sampler.run(n_burnin, n_samples)
        assert source.n_uniform_calls == 0

    def test_acceptance_rate_sanity(self, single_negative_dilution):
        """Proposal scale is neither degenerate nor always rejecting."""
        post = QuantalDilutionPosterior(single_negative_dilution)
        results = [
            ChainSampler(post, source, chain_id=i + 1).run(n_burnin=500, n_samples=2000)
            for i, source in enumerate(spawn_random_sources(2019, 4))
        ]
        pooled = np.mean(np.concatenate([r.accepted for r in results]))
        assert 0.3 <= pooled <= 0.9
        for result in results:
            assert np.all(result.theta > 0)
            assert np.all(np.isfinite(result.theta))

    def test_posterior_mean(self, single_negative_dilution):
        """θ | data ~ Exponential(2.5 + λ), mean 0.4."""
        post = QuantalDilutionPosterior(single_negative_dilution)
        samples = np.concatenate([
            ChainSampler(post, source).run(500, 5000).theta
            for source in spawn_random_sources(123, 4)
        ])
        assert_allclose(np.mean(samples), 1.0 / (2.5 + DEFAULT_PRIOR_RATE), atol=0.05)
