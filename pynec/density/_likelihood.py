"""Likelihood families for the fitted mean.

The mean function already returns the parameter on the scale each family
expects: the Gaussian location, or the binomial logit.  No further link is
applied here.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy import special

from pynec.density._backend import first_true, namespace
from pynec.density._common import DomainError

_LOG_SQRT_2PI = 0.5 * math.log(2.0 * math.pi)


def _check_finite(mu: Any, what: str) -> None:
    xp = namespace(mu)
    bad = first_true(xp, ~xp.isfinite(mu))
    if bad is not None:
        raise DomainError(f"{what} must be finite", block="mu", index=bad)


def gaussian_loglik(
    y: NDArray[np.floating],
    mu: Any,
    sigma: Any,
    propto: bool = False,
) -> Any:
    """Sum of ``Normal(y | mu, sigma)`` log-densities.

    *propto* drops the ``log(sqrt(2 pi))`` term; ``log(sigma)`` is kept since
    sigma is a parameter.

    Raises
    ------
    DomainError
        If ``sigma <= 0`` or any ``mu`` is not finite.
    """
    xp = namespace(mu, sigma)
    if not float(xp.to_numpy(sigma)) > 0:
        raise DomainError("scale parameter must be positive", block="sigma")
    _check_finite(mu, "location parameter")
    z = (xp.asarray(y) - mu) / sigma
    const = 0.0 if propto else _LOG_SQRT_2PI
    return xp.sum(-0.5 * z * z - const) - len(y) * xp.log(sigma)


def log_choose(trials: NDArray, successes: NDArray) -> float:
    """``sum(log C(trials, successes))``; data-only, computed in float."""
    trials = np.asarray(trials, dtype=np.float64)
    successes = np.asarray(successes, dtype=np.float64)
    return float(np.sum(
        special.gammaln(trials + 1.0)
        - special.gammaln(successes + 1.0)
        - special.gammaln(trials - successes + 1.0)
    ))


def binomial_logit_loglik(
    successes: NDArray[np.floating],
    trials: NDArray[np.floating],
    eta: Any,
    propto: bool = False,
) -> Any:
    """Sum of ``Binomial(successes | trials, inv_logit(eta))`` log-masses.

    Uses ``k * eta - n * log(1 + exp(eta))`` so large ``|eta|`` stays stable.
    *propto* drops the data-only binomial coefficient.

    Raises
    ------
    DomainError
        If any ``eta`` is not finite.
    """
    xp = namespace(eta)
    _check_finite(eta, "logit probability")
    k = xp.asarray(successes)
    n = xp.asarray(trials)
    kernel = xp.sum(k * eta - n * xp.softplus(eta))
    if propto:
        return kernel
    return log_choose(trials, successes) + kernel


VALID_FAMILIES = ("gaussian", "binomial")
