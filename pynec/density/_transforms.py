"""Bijections between unconstrained reals and constrained parameter domains.

``constrain`` maps an unconstrained vector to the constrained domain and,
when asked, returns the log absolute Jacobian determinant of that map so the
caller can add it to a density expressed in unconstrained coordinates.
``unconstrain`` is the exact inverse and is only used when seeding from
user-supplied values, so it always works on plain float64 arrays.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import special

from pynec.density._backend import namespace
from pynec.density._common import DomainError


class Transform:
    """Base class.  Subclasses define the constrained support."""

    @property
    def support(self) -> tuple[float, float]:
        """``(lower, upper)`` of the constrained domain."""
        return (-math.inf, math.inf)

    @property
    def is_bounded(self) -> bool:
        lower, upper = self.support
        return math.isfinite(lower) or math.isfinite(upper)

    def constrain(self, u: Any, jacobian: bool = False) -> tuple[Any, Any | None]:
        raise NotImplementedError

    def unconstrain(self, value: ArrayLike) -> NDArray[np.floating]:
        raise NotImplementedError


class Identity(Transform):
    """No restriction: constrained value equals the unconstrained one."""

    def constrain(self, u: Any, jacobian: bool = False) -> tuple[Any, Any | None]:
        if not jacobian:
            return u, None
        xp = namespace(u)
        return u, xp.sum(xp.zeros_like(u))

    def unconstrain(self, value: ArrayLike) -> NDArray[np.floating]:
        return np.asarray(value, dtype=np.float64)

    def __repr__(self) -> str:
        return "Identity()"


class LowerBound(Transform):
    """``value = bound + exp(u)``; log-Jacobian is ``sum(u)``."""

    def __init__(self, bound: float = 0.0) -> None:
        if not math.isfinite(bound):
            raise ValueError(f"bound must be finite, got {bound}")
        self.bound = float(bound)

    @property
    def support(self) -> tuple[float, float]:
        return (self.bound, math.inf)

    def constrain(self, u: Any, jacobian: bool = False) -> tuple[Any, Any | None]:
        xp = namespace(u)
        value = self.bound + xp.exp(u)
        if not jacobian:
            return value, None
        return value, xp.sum(u)

    def unconstrain(self, value: ArrayLike) -> NDArray[np.floating]:
        value = np.asarray(value, dtype=np.float64)
        bad = np.flatnonzero(~(value.ravel() > self.bound))
        if bad.size:
            raise DomainError(
                f"value {value.ravel()[bad[0]]!r} must be greater than lower bound {self.bound}",
                index=int(bad[0]),
            )
        return np.log(value - self.bound)

    def __repr__(self) -> str:
        return f"LowerBound({self.bound})"


class Interval(Transform):
    """Scaled logistic map onto ``(lower, upper)``.

    ``value = lower + (upper - lower) * sigmoid(u)``; the log-Jacobian is
    ``sum(log(upper - lower) + log_sigmoid(u) + log_sigmoid(-u))``.
    """

    def __init__(self, lower: float, upper: float) -> None:
        if not (math.isfinite(lower) and math.isfinite(upper)):
            raise ValueError("Interval bounds must be finite")
        if not lower < upper:
            raise ValueError(f"lower must be < upper, got {lower} and {upper}")
        self.lower = float(lower)
        self.upper = float(upper)

    @property
    def support(self) -> tuple[float, float]:
        return (self.lower, self.upper)

    def constrain(self, u: Any, jacobian: bool = False) -> tuple[Any, Any | None]:
        xp = namespace(u)
        width = self.upper - self.lower
        value = self.lower + width * xp.sigmoid(u)
        if not jacobian:
            return value, None
        log_jac = xp.sum(math.log(width) + xp.log_sigmoid(u) + xp.log_sigmoid(-u))
        return value, log_jac

    def unconstrain(self, value: ArrayLike) -> NDArray[np.floating]:
        value = np.asarray(value, dtype=np.float64)
        inside = (value > self.lower) & (value < self.upper)
        bad = np.flatnonzero(~inside.ravel())
        if bad.size:
            raise DomainError(
                f"value {value.ravel()[bad[0]]!r} must lie in ({self.lower}, {self.upper})",
                index=int(bad[0]),
            )
        return special.logit((value - self.lower) / (self.upper - self.lower))

    def __repr__(self) -> str:
        return f"Interval({self.lower}, {self.upper})"
