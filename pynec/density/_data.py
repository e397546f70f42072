"""Read-only dataset for one NEC model evaluation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import numpy as np
from numpy.typing import NDArray

from pynec.density._common import DimensionError, DomainError


def _frozen(arr: NDArray) -> NDArray:
    arr = np.array(arr, dtype=np.float64)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Dataset:
    """Observations, covariates and design matrices.

    Parameters
    ----------
    response : array, shape ``(N,)``
        Observed response ``Y``.  Success counts for the binomial family.
    concentration : array, shape ``(N,)``
        Concentration covariate ``C``.
    design : mapping
        Predictor name (``'top'``, ``'beta'``, ...) to its ``N x K`` design
        matrix.  A 1-D array is taken as a single column.
    trials : array, shape ``(N,)``, optional
        Binomial trial counts.  Must be given for count data.
    prior_only : bool
        Drop the likelihood term (prior-predictive mode).

    All arrays are copied to read-only float64 on construction, so a
    Dataset can be shared between concurrent evaluations.

    Raises
    ------
    DimensionError
        On mismatched lengths or row counts, or an empty design matrix.
    DomainError
        If binomial counts are negative, non-integer, or exceed trials.
    """

    response: NDArray[np.floating]
    concentration: NDArray[np.floating]
    design: Mapping[str, NDArray[np.floating]] = field(default_factory=dict)
    trials: NDArray[np.floating] | None = None
    prior_only: bool = False

    def __post_init__(self) -> None:
        response = _frozen(self.response)
        conc = _frozen(self.concentration)

        if response.ndim != 1 or conc.ndim != 1:
            raise DimensionError("response and concentration must be 1-D arrays")
        n_obs = response.shape[0]
        if n_obs < 1:
            raise DimensionError("need at least one observation")
        if conc.shape[0] != n_obs:
            raise DimensionError(
                f"concentration must have length {n_obs}, got {conc.shape[0]}"
            )

        design = {}
        for name, matrix in self.design.items():
            matrix = np.array(matrix, dtype=np.float64)
            if matrix.ndim == 1:
                matrix = matrix.reshape(-1, 1)
            if matrix.ndim != 2:
                raise DimensionError(f"design matrix must be 2-D, got {matrix.ndim}-D", block=name)
            if matrix.shape[0] != n_obs:
                raise DimensionError(
                    f"design matrix must have {n_obs} rows, got {matrix.shape[0]}", block=name
                )
            if matrix.shape[1] < 1:
                raise DimensionError("design matrix needs at least one column", block=name)
            design[name] = _frozen(matrix)

        trials = None
        if self.trials is not None:
            trials = _frozen(self.trials)
            if trials.shape != (n_obs,):
                raise DimensionError(f"trials must have shape ({n_obs},), got {trials.shape}")
            _check_counts(response, trials)

        object.__setattr__(self, "response", response)
        object.__setattr__(self, "concentration", conc)
        object.__setattr__(self, "design", MappingProxyType(design))
        object.__setattr__(self, "trials", trials)
        object.__setattr__(self, "prior_only", bool(self.prior_only))

    @property
    def n_obs(self) -> int:
        return int(self.response.shape[0])

    def n_columns(self, name: str) -> int:
        """Number of columns ``K`` of the design matrix for *name*."""
        return int(self.design[name].shape[1])

    def replace(self, **changes) -> Dataset:
        """Copy with some fields replaced (e.g. ``prior_only=True``)."""
        kwargs = dict(
            response=self.response,
            concentration=self.concentration,
            design=dict(self.design),
            trials=self.trials,
            prior_only=self.prior_only,
        )
        kwargs.update(changes)
        return Dataset(**kwargs)


def _check_counts(successes: NDArray, trials: NDArray) -> None:
    for name, arr in (("response", successes), ("trials", trials)):
        bad = np.flatnonzero((arr < 0) | (arr != np.round(arr)))
        if bad.size:
            raise DomainError(f"{name} must be non-negative integers", block=name, index=int(bad[0]))
    bad = np.flatnonzero(successes > trials)
    if bad.size:
        raise DomainError("response must not exceed trials", block="response", index=int(bad[0]))
