"""Shared error and result types for NEC log-density evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class EvalError(ValueError):
    """Base class for failures that abort a single evaluation.

    Carries its own location instead of relying on ambient state:
    ``block`` is the parameter block involved (if any) and ``index`` the
    observation or element index (if any).
    """

    def __init__(
        self,
        message: str,
        *,
        block: str | None = None,
        index: int | None = None,
    ) -> None:
        self.reason = message
        self.block = block
        self.index = index
        where = []
        if block is not None:
            where.append(f"block {block!r}")
        if index is not None:
            where.append(f"index {index}")
        if where:
            message = f"{message} ({', '.join(where)})"
        super().__init__(message)


class DimensionError(EvalError):
    """Vector length or matrix shape does not match the declared dimension."""


class DomainError(EvalError):
    """Value outside a constrained support, or an undefined arithmetic operation."""


class MissingFieldError(EvalError):
    """A required named initial value was not supplied."""


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ParameterLabel:
    """Label of one element of the flat parameter vector.

    ``index`` is 1-based for vector blocks and ``None`` for scalar blocks.
    """

    block: str
    index: int | None = None

    def __str__(self) -> str:
        if self.index is None:
            return self.block
        return f"{self.block}.{self.index}"


@dataclass(frozen=True)
class ConstrainedValues:
    """Constrained parameter values keyed by block name, in declaration order.

    Values are numpy arrays for plain evaluation and torch tensors when the
    unconstrained vector was a tensor.  Scalar blocks hold 0-d values.
    """

    values: dict[str, Any]

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def __iter__(self):
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def names(self) -> list[str]:
        return list(self.values)

    def to_array(self) -> NDArray[np.floating]:
        """Flatten into one float64 vector in declaration order."""
        parts = [np.ravel(_to_numpy(v)) for v in self.values.values()]
        if not parts:
            return np.empty(0, dtype=np.float64)
        return np.concatenate(parts).astype(np.float64)

    def summary(self) -> str:
        """Human-readable listing of the constrained values."""
        lines = ["Constrained parameter values:", ""]
        for name, value in self.values.items():
            arr = _to_numpy(value)
            if arr.ndim == 0:
                lines.append(f"  {name:>12s} = {float(arr):>12.6f}")
                continue
            for i, v in enumerate(arr.ravel(), start=1):
                label = f"{name}.{i}"
                lines.append(f"  {label:>12s} = {float(v):>12.6f}")
        return "\n".join(lines)


def _to_numpy(value: Any) -> NDArray[np.floating]:
    """Detach a torch tensor (if it is one) and return a numpy array."""
    if hasattr(value, "detach"):
        value = value.detach().cpu().numpy()
    return np.asarray(value, dtype=np.float64)
