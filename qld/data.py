"""Dilution assay data containers.

A quantal limited-dilution assay is scored as, for each dilution, the
number of positive wells out of the wells tested. The dataset is
immutable once built: its arrays are flagged read-only so a single
instance can be shared by any number of chains.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence
import numpy as np
from numpy.typing import NDArray

from .utils.numerics import InputValidationError


@dataclass(frozen=True)
class DilutionObservation:
    """One dilution level of the assay.

    Attributes:
        positive_wells: Number of wells scored positive
        total_wells: Number of wells tested
        dilution_fraction: Proportion of the original material in each well
    """

    positive_wells: float
    total_wells: float
    dilution_fraction: float


def _as_readonly(values: Sequence[float]) -> NDArray[np.floating]:
    # Properties hand out views; a view of a read-only owner cannot be
    # flipped back to writeable
    arr = np.array(values, dtype=float).ravel()
    arr.flags.writeable = False
    return arr


class DilutionDataset:
    """Ordered, read-only collection of dilution observations."""

    def __init__(
        self,
        positive_wells: Sequence[float],
        total_wells: Sequence[float],
        dilution_fraction: Sequence[float],
    ):
        """Build and validate a dataset from three parallel sequences.

        Args:
            positive_wells: Positive well counts, one per dilution
            total_wells: Total well counts, one per dilution
            dilution_fraction: Dilution fractions, one per dilution

        Raises:
            InputValidationError: If lengths differ, are zero, or any
                value is out of range
        """
        pos = _as_readonly(positive_wells)
        tot = _as_readonly(total_wells)
        dil = _as_readonly(dilution_fraction)

        errors = validate_arrays(pos, tot, dil)
        if errors:
            raise InputValidationError(errors)

        self._positive_wells = pos
        self._total_wells = tot
        self._dilution_fraction = dil

    @classmethod
    def from_observations(
        cls, observations: Sequence[DilutionObservation]
    ) -> "DilutionDataset":
        return cls(
            [obs.positive_wells for obs in observations],
            [obs.total_wells for obs in observations],
            [obs.dilution_fraction for obs in observations],
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Sequence[float]]) -> "DilutionDataset":
        """Build from a mapping with the three column names as keys."""
        missing = [
            key for key in ("positive_wells", "total_wells", "dilution_fraction")
            if key not in data
        ]
        if missing:
            raise InputValidationError([f"missing field '{key}'" for key in missing])
        return cls(
            data["positive_wells"],
            data["total_wells"],
            data["dilution_fraction"],
        )

    def to_dict(self) -> Dict[str, List[float]]:
        return {
            "positive_wells": self._positive_wells.tolist(),
            "total_wells": self._total_wells.tolist(),
            "dilution_fraction": self._dilution_fraction.tolist(),
        }

    @property
    def positive_wells(self) -> NDArray[np.floating]:
        return self._positive_wells.view()

    @property
    def total_wells(self) -> NDArray[np.floating]:
        return self._total_wells.view()

    @property
    def dilution_fraction(self) -> NDArray[np.floating]:
        return self._dilution_fraction.view()

    @property
    def n_dilutions(self) -> int:
        return len(self._positive_wells)

    def __len__(self) -> int:
        return self.n_dilutions

    def __getitem__(self, i: int) -> DilutionObservation:
        return DilutionObservation(
            positive_wells=float(self._positive_wells[i]),
            total_wells=float(self._total_wells[i]),
            dilution_fraction=float(self._dilution_fraction[i]),
        )

    def __iter__(self) -> Iterator[DilutionObservation]:
        for i in range(self.n_dilutions):
            yield self[i]

    def __reduce__(self):
        # Rebuild through __init__ so unpickled copies are read-only too
        return (
            DilutionDataset,
            (self._positive_wells, self._total_wells, self._dilution_fraction),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, DilutionDataset):
            return NotImplemented
        return (
            np.array_equal(self._positive_wells, other._positive_wells)
            and np.array_equal(self._total_wells, other._total_wells)
            and np.array_equal(self._dilution_fraction, other._dilution_fraction)
        )

    def __repr__(self) -> str:
        return (
            f"DilutionDataset(positive_wells={self._positive_wells.tolist()}, "
            f"total_wells={self._total_wells.tolist()}, "
            f"dilution_fraction={self._dilution_fraction.tolist()})"
        )


def validate_arrays(
    positive_wells: NDArray[np.floating],
    total_wells: NDArray[np.floating],
    dilution_fraction: NDArray[np.floating],
) -> List[str]:
    """Check the three dataset columns for consistency.

    Returns:
        List of error messages (empty if valid)
    """
    n_pos, n_tot, n_dil = len(positive_wells), len(total_wells), len(dilution_fraction)
    if not (n_pos == n_tot == n_dil):
        return [
            "all input vectors must be of the same size "
            f"(positive_wells={n_pos}, total_wells={n_tot}, dilution_fraction={n_dil})"
        ]
    if n_pos == 0:
        return ["at least one dilution is required"]

    errors = []
    for name, arr in (
        ("positive_wells", positive_wells),
        ("total_wells", total_wells),
        ("dilution_fraction", dilution_fraction),
    ):
        if not np.all(np.isfinite(arr)):
            errors.append(f"{name} contains non-finite values")

    if np.any(positive_wells < 0):
        errors.append("positive_wells must be non-negative")
    if np.any(positive_wells > total_wells):
        bad = np.flatnonzero(positive_wells > total_wells).tolist()
        errors.append(f"positive_wells exceeds total_wells at dilutions {bad}")
    if np.any(dilution_fraction <= 0):
        errors.append("dilution_fraction must be positive")

    return errors
