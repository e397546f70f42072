"""
pynec: Bayesian no-effect-concentration models for Python.

Provides the numerical core behind NEC concentration-response fitting:
constrained parameter transforms, threshold curves with hormesis or
power-law decay, and a log-density (with gradients through torch) that an
external sampler or optimiser can drive.

Usage:
    from pynec import density
"""

__version__ = "0.1.0"

from pynec import density

__all__ = [
    "__version__",
    "density",
]
