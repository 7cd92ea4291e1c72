"""Numerical utilities and error types for QLD computations."""

from dataclasses import dataclass
from typing import List, Optional, Sequence
import numpy as np
from numpy.typing import NDArray


class QLDError(Exception):
    """Base class for all errors raised by the qld package."""


class InputValidationError(QLDError, ValueError):
    """Raised when sampler inputs are malformed.

    Always raised before any sampling starts, so a failed call never
    produces partial output.

    Attributes:
        errors: Individual validation messages
    """

    def __init__(self, errors: Sequence[str], message: Optional[str] = None):
        self.errors = list(errors)
        if message is None:
            message = "Invalid input: " + "; ".join(self.errors)
        super().__init__(message)


class NumericalError(QLDError):
    """Raised when sampler output contains non-finite or non-positive theta.

    The random walk is performed in log space, so sampled theta values
    are positive and finite by construction.
    """

    def __init__(
        self,
        n_bad: int,
        chain_id: Optional[int] = None,
        message: Optional[str] = None,
    ):
        self.n_bad = n_bad
        self.chain_id = chain_id

        if message is None:
            chain_str = f" in chain {chain_id}" if chain_id is not None else ""
            message = f"{n_bad} non-finite or non-positive theta samples{chain_str}"

        super().__init__(message)


def log_binomial_coefficient(n: float, k: float) -> float:
    """Log of the binomial coefficient C(n, k) as a difference of log sums.

    log C(n, k) = sum_{j=k+1}^{n} log(j) - sum_{i=2}^{n-k} log(i)

    Both ranges step by one from a real start value, so non-integral
    well counts are accepted. Avoids overflow of factorials for large n.
    Empty ranges contribute 0, hence log C(n, n) == 0.

    Args:
        n: Total number of trials (wells)
        k: Number of successes (positive wells), k <= n

    Returns:
        log C(n, k)
    """
    return _log_range_sum(k + 1.0, n) - _log_range_sum(2.0, n - k)


# Terms evaluated per block in _log_range_sum; bounds memory for large counts
_LOG_SUM_CHUNK = 65536


def _log_range_sum(start: float, stop: float) -> float:
    """Sum of log(start + i) over i = 0, 1, ... while start + i <= stop."""
    if stop < start:
        return 0.0
    n_terms = int(np.floor(stop - start)) + 1
    total = 0.0
    for offset in range(0, n_terms, _LOG_SUM_CHUNK):
        block = start + np.arange(offset, min(offset + _LOG_SUM_CHUNK, n_terms), dtype=float)
        total += float(np.sum(np.log(block)))
    return total


def check_finite_positive(values: NDArray[np.floating]) -> int:
    """Count entries that are not finite and strictly positive."""
    values = np.asarray(values, dtype=float)
    return int(np.count_nonzero(~(np.isfinite(values) & (values > 0.0))))


def validate_count(value, name: str) -> List[str]:
    """Check that an iteration or chain count is a positive integer.

    Args:
        value: Candidate count
        name: Name used in the error message

    Returns:
        List of error messages (empty if valid)
    """
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
        return [f"{name} must be an integer, got {value!r}"]
    if value <= 0:
        return [f"{name} must be positive, got {value}"]
    return []


def validate_seed(seed, name: str = "seed") -> List[str]:
    """Check that a seed is None, a non-negative integer or a SeedSequence."""
    if seed is None or isinstance(seed, np.random.SeedSequence):
        return []
    if isinstance(seed, (bool, np.bool_)) or not isinstance(seed, (int, np.integer)):
        return [f"{name} must be a non-negative integer or None, got {seed!r}"]
    if seed < 0:
        return [f"{name} must be non-negative, got {seed}"]
    return []


@dataclass
class AcceptanceStats:
    """Accept/reject counts for a block of MH updates."""

    n_accepted: int
    n_total: int

    @property
    def rate(self) -> float:
        """Fraction of accepted proposals (NaN for an empty block)."""
        if self.n_total == 0:
            return float('nan')
        return self.n_accepted / self.n_total

    @classmethod
    def from_flags(cls, accepted: NDArray) -> "AcceptanceStats":
        accepted = np.asarray(accepted)
        return cls(n_accepted=int(np.sum(accepted)), n_total=int(accepted.size))
