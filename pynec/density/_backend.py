"""Numeric namespaces for generic log-density code.

Everything downstream of the unconstrained vector is written against a
small namespace object instead of calling ``numpy`` directly.  A numpy
float64 vector selects :class:`NumpyOps`; a torch tensor selects
:class:`TorchOps`, so the same code path builds an autograd graph and
gradients come from torch's reverse mode.

torch is imported lazily and is only required when a tensor is passed in.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy import special


class NumpyOps:
    """Plain float64 arithmetic."""

    name = "numpy"

    def asarray(self, x: Any) -> NDArray[np.floating]:
        return np.asarray(x, dtype=np.float64)

    def exp(self, x):
        return np.exp(x)

    def log(self, x):
        with np.errstate(divide="ignore"):
            return np.log(x)

    def log1p(self, x):
        return np.log1p(x)

    def sigmoid(self, x):
        return special.expit(x)

    def log_sigmoid(self, x):
        return -np.logaddexp(0.0, -x)

    def softplus(self, x):
        return np.logaddexp(0.0, x)

    def where(self, cond, a, b):
        return np.where(cond, a, b)

    def ones_like(self, x):
        return np.ones_like(x)

    def zeros_like(self, x):
        return np.zeros_like(x)

    def matmul(self, a, b):
        return np.matmul(a, b)

    def sum(self, x):
        return np.sum(x)

    def isfinite(self, x):
        return np.isfinite(x)

    def scalar(self, x) -> float:
        return float(x)

    def to_numpy(self, x) -> NDArray:
        return np.asarray(x)


class TorchOps:
    """torch tensor arithmetic; keeps the autograd graph intact."""

    name = "torch"

    def __init__(self, like: Any) -> None:
        import torch

        self._torch = torch
        self.dtype = like.dtype
        self.device = like.device

    def asarray(self, x: Any):
        if is_tensor(x):
            return x.to(dtype=self.dtype, device=self.device)
        return self._torch.as_tensor(np.asarray(x), dtype=self.dtype, device=self.device)

    def exp(self, x):
        return self._torch.exp(x)

    def log(self, x):
        return self._torch.log(x)

    def log1p(self, x):
        return self._torch.log1p(x)

    def sigmoid(self, x):
        return self._torch.sigmoid(x)

    def log_sigmoid(self, x):
        return self._torch.nn.functional.logsigmoid(x)

    def softplus(self, x):
        return self._torch.nn.functional.softplus(x)

    def where(self, cond, a, b):
        return self._torch.where(cond, a, b)

    def ones_like(self, x):
        return self._torch.ones_like(x)

    def zeros_like(self, x):
        return self._torch.zeros_like(x)

    def matmul(self, a, b):
        return self._torch.matmul(a, b)

    def sum(self, x):
        return self._torch.sum(x)

    def isfinite(self, x):
        return self._torch.isfinite(x)

    def scalar(self, x):
        if is_tensor(x):
            return x
        return self._torch.as_tensor(x, dtype=self.dtype, device=self.device)

    def to_numpy(self, x) -> NDArray:
        if is_tensor(x):
            return x.detach().cpu().numpy()
        return np.asarray(x)


_NUMPY = NumpyOps()


def is_tensor(x: Any) -> bool:
    """True for torch tensors, checked without importing torch."""
    return type(x).__module__.split(".")[0] == "torch"


def namespace(*xs: Any) -> NumpyOps | TorchOps:
    """Select the numeric namespace for *xs*: torch if any of them is a tensor."""
    for x in xs:
        if is_tensor(x):
            return TorchOps(x)
    return _NUMPY


def first_true(xp: NumpyOps | TorchOps, mask) -> int | None:
    """Index of the first ``True`` element of a 1-D mask, or ``None``."""
    hits = np.flatnonzero(xp.to_numpy(mask))
    if hits.size == 0:
        return None
    return int(hits[0])
