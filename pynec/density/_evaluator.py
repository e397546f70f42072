"""Log-density evaluation for NEC regression models.

The evaluator is a pure function of ``(Dataset, unconstrained vector)``:

1.  constrain the vector block by block (adding log-Jacobians if asked),
2.  evaluate the curve to get the fitted mean ``mu``,
3.  add every block prior, renormalised over the block's support when its
    transform restricts it,
4.  add the log-Jacobian,
5.  add the likelihood unless the dataset is in prior-only mode.

A numpy vector gives a float.  A torch tensor runs the same code on
tensors and returns a 0-d tensor, so reverse-mode gradients come from
``backward()``; :meth:`DensityEvaluator.evaluate_with_gradient` does this
for you.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pynec.density._backend import namespace
from pynec.density._common import (
    ConstrainedValues,
    MissingFieldError,
    ParameterLabel,
)
from pynec.density._data import Dataset
from pynec.density._likelihood import binomial_logit_loglik, gaussian_loglik
from pynec.density._mean import fitted_mean
from pynec.density._spec import ModelSpec, model_spec

logger = logging.getLogger(__name__)


class DensityEvaluator:
    """Unnormalised log-posterior of one model on one dataset.

    Parameters
    ----------
    spec : ModelSpec or str
        Model specification, or the name of a registered model
        (``'nechorme'``, ``'necsigm'``).
    data : Dataset
        Observations and design matrices.  Never modified.

    Raises
    ------
    MissingFieldError
        If a design matrix (or binomial ``trials``) is missing from *data*.
    ValueError
        If a block prior puts no mass on its transform's support.
    """

    def __init__(self, spec: ModelSpec | str, data: Dataset) -> None:
        if isinstance(spec, str):
            spec = model_spec(spec)
        if spec.family == "binomial" and data.trials is None:
            raise MissingFieldError("binomial model needs trials", block="trials")

        self.spec = spec
        self.data = data
        self.params = spec.parameter_set(data)

        # per-element log prior mass of each block's support; hyperparameters only
        self._log_mass: dict[str, float] = {}
        for block in self.params:
            if block.prior is None or not block.transform.is_bounded:
                self._log_mass[block.name] = 0.0
                continue
            mass = block.prior.log_measure(*block.transform.support)
            if not math.isfinite(mass):
                raise ValueError(
                    f"prior {block.prior} has no mass on the support of block {block.name!r}"
                )
            self._log_mass[block.name] = mass

        logger.debug(
            "Built %s evaluator: N=%d, %d unconstrained parameters, prior_only=%s",
            spec.name, data.n_obs, self.params.size, data.prior_only,
        )

    # -- static schema ----------------------------------------------------

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def n_params(self) -> int:
        """Length of the unconstrained vector."""
        return self.params.size

    def parameter_names(self) -> list[ParameterLabel]:
        """``(block, index)`` labels in flattening order."""
        return self.params.names()

    def dims(self) -> dict[str, tuple[int, ...]]:
        return self.params.dims()

    # -- transforms -------------------------------------------------------

    def unconstrain_initial_values(self, values: Mapping[str, ArrayLike]) -> NDArray[np.floating]:
        """Unconstrained vector for named constrained starting values."""
        logger.debug("Unconstraining initial values for %s: %s", self.name, sorted(values))
        return self.params.unconstrain(values)

    def constrain_for_report(self, u: Any) -> ConstrainedValues:
        """Constrained values without Jacobian terms, for posterior summaries."""
        values, _ = self.params.constrain(u, jacobian=False)
        return values

    def fitted_mean(self, u: Any) -> Any:
        """Fitted mean ``mu`` (length N) at the unconstrained point *u*."""
        values, _ = self.params.constrain(u, jacobian=False)
        return self._mean(values, namespace(u))

    def _mean(self, values: ConstrainedValues, xp) -> Any:
        conc = xp.asarray(self.data.concentration)
        return fitted_mean(self.spec.curve, values, self.data.design, conc)

    # -- density ----------------------------------------------------------

    def log_prior(self, values: ConstrainedValues, propto: bool = False) -> Any:
        """Sum of block priors.

        Every element of a block on a bounded transform is renormalised over
        the transform's support, so a block of size K subtracts K times the
        log prior mass.  The correction is constant and skipped with *propto*.
        """
        total = 0.0
        for block in self.params:
            if block.prior is None:
                continue
            total = total + block.prior.log_density(values[block.name], propto=propto)
            if not propto:
                total = total - block.size * self._log_mass[block.name]
        return total

    def log_likelihood(self, values: ConstrainedValues, mu: Any, propto: bool = False) -> Any:
        if self.spec.family == "gaussian":
            return gaussian_loglik(self.data.response, mu, values["sigma"], propto=propto)
        return binomial_logit_loglik(self.data.response, self.data.trials, mu, propto=propto)

    def evaluate(self, u: Any, jacobian: bool = True, propto: bool = False) -> Any:
        """Log-density at the unconstrained point *u*.

        Parameters
        ----------
        u : array or torch.Tensor
            Unconstrained vector of length :attr:`n_params`.
        jacobian : bool
            Include the log-Jacobian of the constraining transforms
            (needed when sampling in unconstrained space).
        propto : bool
            Drop every term that does not depend on the parameters: prior
            normalising constants, truncation corrections and data-only
            likelihood constants.  Differences between points are unchanged.

        Returns
        -------
        float, or 0-d tensor when *u* is a tensor.

        Raises
        ------
        DimensionError
            If *u* has the wrong length.
        DomainError
            If the likelihood is undefined at this point.  A value outside a
            prior's support is not an error; it gives ``-inf``.
        """
        xp = namespace(u)
        values, log_jac = self.params.constrain(u, jacobian=jacobian)
        mu = self._mean(values, xp)

        lp = self.log_prior(values, propto=propto)
        lp = lp + log_jac
        if not self.data.prior_only:
            lp = lp + self.log_likelihood(values, mu, propto=propto)
        return xp.scalar(lp)

    __call__ = evaluate

    def evaluate_with_gradient(
        self,
        u: ArrayLike,
        jacobian: bool = True,
        propto: bool = False,
    ) -> tuple[float, NDArray[np.floating]]:
        """Log-density and its gradient by torch reverse mode.

        Requires ``pip install pynec[gpu]`` (PyTorch).  Runs in float64 on
        the CPU.
        """
        import torch

        theta = torch.tensor(np.asarray(u, dtype=np.float64), dtype=torch.float64, requires_grad=True)
        lp = self.evaluate(theta, jacobian=jacobian, propto=propto)
        lp.backward()
        return float(lp.detach()), theta.grad.detach().cpu().numpy()


def nec_model(name: str, data: Dataset) -> DensityEvaluator:
    """Evaluator for the registered model *name* on *data*.

    Examples
    --------
    >>> import numpy as np
    >>> design = {p: np.ones(3) for p in ("top", "beta", "nec", "d")}
    >>> data = Dataset(np.array([9, 6, 4]), np.array([0.0, 0.5, 1.0]), design,
    ...                trials=np.full(3, 10))
    >>> ev = nec_model("necsigm", data)
    >>> [str(label) for label in ev.parameter_names()]
    ['b_top.1', 'b_beta.1', 'b_nec.1', 'b_d.1']
    """
    return DensityEvaluator(model_spec(name), data)
