"""NEC concentration-response mean functions.

Each curve maps per-observation linear predictors and the concentration
covariate to the fitted mean.  Below the no-effect concentration the
response is the untouched baseline; at and above it an exponential decay
in ``(C - nec)`` switches on through an exact Heaviside step,
``step(x) = 1 if x >= 0 else 0``.

Both curves belong to one threshold-decay family

.. math::
    \\mu = b(C) \\cdot \\exp\\bigl(-\\beta (C - \\eta)^{d} \\, \\mathrm{step}(C - \\eta)\\bigr)

with ``d = 1`` for the hormesis curve.  The power term is evaluated on a
masked base so a negative ``C - nec`` never reaches ``pow``; this keeps
both the values and torch gradients free of NaN.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable

from pynec.density._backend import namespace


# ---------------------------------------------------------------------------
# Threshold decay
# ---------------------------------------------------------------------------

def step(x: Any) -> Any:
    """Heaviside step, 1 at and above zero."""
    xp = namespace(x)
    return xp.where(x >= 0, xp.ones_like(x), xp.zeros_like(x))


def _threshold_decay(conc: Any, beta: Any, nec: Any, shape: Any | None = None) -> Any:
    """``beta * (conc - nec)^shape * step(conc - nec)``, elementwise."""
    xp = namespace(conc, beta, nec, shape)
    diff = conc - nec
    if shape is None:
        return beta * diff * step(diff)
    above = diff >= 0
    base = xp.where(above, diff, xp.ones_like(diff))
    return xp.where(above, beta * base**shape, xp.zeros_like(diff))


# ---------------------------------------------------------------------------
# Curves
# ---------------------------------------------------------------------------

def nec_hormesis(conc: Any, top: Any, beta: Any, nec: Any, slope: Any) -> Any:
    """NEC curve with a linear hormesis term.

    .. math::
        \\mu = (top + slope \\cdot C) \\exp\\bigl(-\\beta (C - nec)\\,\\mathrm{step}(C - nec)\\bigr)

    Parameters
    ----------
    conc : array
        Concentration for each observation.
    top : array
        Baseline response (linear predictor).
    beta : array
        Decay rate above the threshold.
    nec : array
        No-effect concentration.
    slope : array
        Hormesis slope; ``0`` gives a flat baseline.

    Returns
    -------
    array
        Fitted mean, same type as the inputs.
    """
    xp = namespace(conc, top, beta, nec, slope)
    conc = xp.asarray(conc)
    return (top + slope * conc) * xp.exp(-_threshold_decay(conc, beta, nec))


def nec_sigmoidal(conc: Any, top: Any, beta: Any, nec: Any, d: Any) -> Any:
    """NEC curve with a power-law decay above the threshold.

    .. math::
        \\mu = top \\cdot \\exp\\bigl(-\\beta (C - nec)^{d}\\,\\mathrm{step}(C - nec)\\bigr)

    Parameters
    ----------
    conc, top, beta, nec : array
        Same as :func:`nec_hormesis`.
    d : array
        Shape exponent of the decay.

    Returns
    -------
    array
    """
    xp = namespace(conc, top, beta, nec, d)
    conc = xp.asarray(conc)
    return top * xp.exp(-_threshold_decay(conc, beta, nec, d))


# ---------------------------------------------------------------------------
# Curve registry: name -> (function, predictor names)
# ---------------------------------------------------------------------------

_CURVE_MAP: dict[str, tuple[Callable, list[str]]] = {
    "hormesis": (nec_hormesis, ["top", "beta", "nec", "slope"]),
    "sigmoidal": (nec_sigmoidal, ["top", "beta", "nec", "d"]),
}

VALID_CURVES = tuple(_CURVE_MAP.keys())


def linear_predictors(
    values: Mapping[str, Any],
    design: Mapping[str, Any],
    predictors: list[str],
) -> dict[str, Any]:
    """``nlp_p = X_p @ b_p`` for every predictor ``p``.

    *values* holds the block vectors keyed ``b_<p>``; *design* the matching
    ``N x K`` matrices keyed by ``p``.
    """
    out = {}
    for p in predictors:
        coef = values[f"b_{p}"]
        xp = namespace(coef)
        out[p] = xp.matmul(xp.asarray(design[p]), coef)
    return out


def fitted_mean(
    curve: str,
    values: Mapping[str, Any],
    design: Mapping[str, Any],
    conc: Any,
) -> Any:
    """Evaluate *curve* for constrained block values and dataset covariates."""
    func, predictors = _CURVE_MAP[curve]
    nlp = linear_predictors(values, design, predictors)
    return func(conc, **nlp)
