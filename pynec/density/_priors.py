"""Prior distributions for parameter blocks.

Each prior evaluates its full (normalised) log-density elementwise and
returns the sum, using the numeric namespace of its argument so the result
stays differentiable under torch.  Values agree with ``scipy.stats``
``logpdf``; ``propto=True`` drops the terms fixed by the hyperparameters.
Values outside a prior's support give ``-inf``.

``log_measure(lower, upper)`` gives the log prior mass of an interval.  It
only depends on the fixed hyperparameters, so it is computed once in float
with ``scipy.stats`` and used to renormalise priors on blocks whose
transform restricts the support (e.g. ``normal(0, 100)`` on a block
constrained to be non-negative).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy import stats

from pynec.density._backend import namespace

_LOG_SQRT_2PI = 0.5 * math.log(2.0 * math.pi)


class Prior:
    """Base class for block priors."""

    def log_density(self, x: Any, propto: bool = False) -> Any:
        """Summed log-density of the elements of *x*.

        With *propto* the terms that depend only on the hyperparameters are
        dropped.
        """
        raise NotImplementedError

    def dist(self):
        """Equivalent frozen ``scipy.stats`` distribution."""
        raise NotImplementedError

    def log_measure(self, lower: float = -math.inf, upper: float = math.inf) -> float:
        """``log P(lower < X < upper)`` under this prior."""
        has_lower = math.isfinite(lower)
        has_upper = math.isfinite(upper)
        if not (has_lower or has_upper):
            return 0.0
        d = self.dist()
        if has_lower and not has_upper:
            return float(d.logsf(lower))
        if has_upper and not has_lower:
            return float(d.logcdf(upper))
        with np.errstate(divide="ignore"):
            return float(np.log(d.cdf(upper) - d.cdf(lower)))


@dataclass(frozen=True)
class Normal(Prior):
    """Normal prior with location ``mu`` and scale ``sigma``."""

    mu: float = 0.0
    sigma: float = 1.0

    def __post_init__(self) -> None:
        if not self.sigma > 0:
            raise ValueError(f"sigma must be positive, got {self.sigma}")

    def log_density(self, x: Any, propto: bool = False) -> Any:
        xp = namespace(x)
        z = (x - self.mu) / self.sigma
        const = 0.0 if propto else -math.log(self.sigma) - _LOG_SQRT_2PI
        return xp.sum(const - 0.5 * z * z)

    def dist(self):
        return stats.norm(loc=self.mu, scale=self.sigma)

    def __str__(self) -> str:
        return f"normal({self.mu:g}, {self.sigma:g})"


@dataclass(frozen=True)
class StudentT(Prior):
    """Student-t prior with ``nu`` degrees of freedom, location and scale."""

    nu: float = 3.0
    mu: float = 0.0
    sigma: float = 1.0

    def __post_init__(self) -> None:
        if not self.nu > 0:
            raise ValueError(f"nu must be positive, got {self.nu}")
        if not self.sigma > 0:
            raise ValueError(f"sigma must be positive, got {self.sigma}")

    def log_density(self, x: Any, propto: bool = False) -> Any:
        xp = namespace(x)
        nu = self.nu
        const = 0.0 if propto else (
            math.lgamma((nu + 1.0) / 2.0)
            - math.lgamma(nu / 2.0)
            - 0.5 * math.log(nu * math.pi)
            - math.log(self.sigma)
        )
        z = (x - self.mu) / self.sigma
        return xp.sum(const - 0.5 * (nu + 1.0) * xp.log1p(z * z / nu))

    def dist(self):
        return stats.t(df=self.nu, loc=self.mu, scale=self.sigma)

    def __str__(self) -> str:
        return f"student_t({self.nu:g}, {self.mu:g}, {self.sigma:g})"


@dataclass(frozen=True)
class Gamma(Prior):
    """Gamma prior with shape ``alpha`` and rate ``beta``.

    Negative values are outside the support and give ``-inf``.
    """

    alpha: float = 1.0
    beta: float = 1.0

    def __post_init__(self) -> None:
        if not self.alpha > 0:
            raise ValueError(f"alpha must be positive, got {self.alpha}")
        if not self.beta > 0:
            raise ValueError(f"beta must be positive, got {self.beta}")

    def log_density(self, x: Any, propto: bool = False) -> Any:
        xp = namespace(x)
        inside = x >= 0
        # masked argument keeps log() and its gradient finite off the support
        safe = xp.where(inside, x, xp.ones_like(x))
        const = 0.0 if propto else self.alpha * math.log(self.beta) - math.lgamma(self.alpha)
        lp = const + (self.alpha - 1.0) * xp.log(safe) - self.beta * safe
        return xp.sum(xp.where(inside, lp, xp.zeros_like(lp) - math.inf))

    def dist(self):
        return stats.gamma(a=self.alpha, scale=1.0 / self.beta)

    def __str__(self) -> str:
        return f"gamma({self.alpha:g}, {self.beta:g})"


@dataclass(frozen=True)
class Uniform(Prior):
    """Uniform prior on ``[lower, upper]``; ``-inf`` outside."""

    lower: float = 0.0
    upper: float = 1.0

    def __post_init__(self) -> None:
        if not self.lower < self.upper:
            raise ValueError(f"lower must be < upper, got {self.lower} and {self.upper}")

    def log_density(self, x: Any, propto: bool = False) -> Any:
        xp = namespace(x)
        inside = (x >= self.lower) & (x <= self.upper)
        zero = xp.zeros_like(x)
        log_width = 0.0 if propto else math.log(self.upper - self.lower)
        return xp.sum(xp.where(inside, zero - log_width, zero - math.inf))

    def dist(self):
        return stats.uniform(loc=self.lower, scale=self.upper - self.lower)

    def __str__(self) -> str:
        return f"uniform({self.lower:g}, {self.upper:g})"
