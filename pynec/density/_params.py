"""Named, ordered parameter blocks and the flat unconstrained vector.

The unconstrained vector carries no names: block order is part of the
external contract.  ``constrain`` slices it in declaration order and
``unconstrain`` writes it back in the same order.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pynec.density._backend import namespace
from pynec.density._common import (
    ConstrainedValues,
    DimensionError,
    DomainError,
    MissingFieldError,
    ParameterLabel,
)
from pynec.density._priors import Prior
from pynec.density._transforms import Identity, Transform


@dataclass(frozen=True)
class ParameterBlock:
    """One named parameter block.

    Scalar blocks (e.g. the dispersion ``sigma``) always have ``size == 1``
    and constrain to a 0-d value.
    """

    name: str
    size: int
    transform: Transform = field(default_factory=Identity)
    prior: Prior | None = None
    scalar: bool = False

    def __post_init__(self) -> None:
        if self.size < 1:
            raise DimensionError(f"block size must be >= 1, got {self.size}", block=self.name)
        if self.scalar and self.size != 1:
            raise DimensionError("scalar block must have size 1", block=self.name)

    @property
    def shape(self) -> tuple[int, ...]:
        return () if self.scalar else (self.size,)


class ParameterSet:
    """Ordered aggregation of :class:`ParameterBlock`.

    Parameters
    ----------
    blocks : sequence of ParameterBlock
        Blocks in flattening order.  Names must be unique.
    """

    def __init__(self, blocks) -> None:
        blocks = tuple(blocks)
        names = [b.name for b in blocks]
        if len(set(names)) != len(names):
            raise ValueError(f"block names must be unique, got {names}")
        self.blocks = blocks
        offsets = np.cumsum([0] + [b.size for b in blocks])
        self._slices = {
            b.name: slice(int(offsets[i]), int(offsets[i + 1])) for i, b in enumerate(blocks)
        }
        self.size = int(offsets[-1])

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self):
        return iter(self.blocks)

    def __getitem__(self, name: str) -> ParameterBlock:
        for b in self.blocks:
            if b.name == name:
                return b
        raise KeyError(name)

    def dims(self) -> dict[str, tuple[int, ...]]:
        """Constrained shape of every block, in order."""
        return {b.name: b.shape for b in self.blocks}

    def names(self) -> list[ParameterLabel]:
        """Labels of the flat vector elements, in flattening order."""
        labels: list[ParameterLabel] = []
        for b in self.blocks:
            if b.scalar:
                labels.append(ParameterLabel(b.name))
            else:
                labels.extend(ParameterLabel(b.name, i) for i in range(1, b.size + 1))
        return labels

    def constrain(self, u: Any, jacobian: bool = False) -> tuple[ConstrainedValues, Any]:
        """Split *u* into blocks and map each to its constrained domain.

        Returns the constrained values and the summed log-Jacobian (``0.0``
        when *jacobian* is false).
        """
        xp = namespace(u)
        if xp.name == "numpy":
            u = xp.asarray(u)
        if len(u.shape) != 1 or u.shape[0] != self.size:
            raise DimensionError(
                f"unconstrained vector must have length {self.size}, got shape {tuple(u.shape)}"
            )

        values: dict[str, Any] = {}
        total = 0.0
        for b in self.blocks:
            value, log_jac = b.transform.constrain(u[self._slices[b.name]], jacobian)
            values[b.name] = value.reshape(()) if b.scalar else value
            if log_jac is not None:
                total = total + log_jac
        return ConstrainedValues(values), total

    def unconstrain(self, initial_values: Mapping[str, ArrayLike]) -> NDArray[np.floating]:
        """Map named constrained values back to one flat unconstrained vector."""
        out = np.empty(self.size, dtype=np.float64)
        for b in self.blocks:
            if b.name not in initial_values:
                raise MissingFieldError(f"variable {b.name} missing", block=b.name)
            value = np.asarray(initial_values[b.name], dtype=np.float64)
            if value.size != b.size or (not b.scalar and value.ndim != 1):
                raise DimensionError(
                    f"expected shape {b.shape}, got {value.shape}", block=b.name
                )
            try:
                out[self._slices[b.name]] = np.ravel(b.transform.unconstrain(value))
            except DomainError as exc:
                raise DomainError(
                    f"error transforming variable {b.name}: {exc.reason}",
                    block=b.name,
                    index=exc.index,
                ) from exc
        return out
