# polychain/polynomial.py
"""
Single-precision polynomial model.

Coefficients are stored as [a0, a1, a2, ...] for a0 + a1*x + a2*x^2 + ...
All arithmetic happens in float32, so a term computed by one worker is the
same bit pattern as the same term computed by any other worker.
"""
from __future__ import annotations
from typing import Iterable, Sequence, Tuple

import numpy as np

F32 = np.float32


class Polynomial:
    """Immutable polynomial. Each participant builds its own from its own copy."""

    __slots__ = ("_coefficients",)

    def __init__(self, coefficients: Iterable[float]):
        arr = np.array(list(coefficients), dtype=F32)
        arr.setflags(write=False)
        self._coefficients = arr

    @property
    def coefficients(self) -> Tuple[float, ...]:
        return tuple(float(c) for c in self._coefficients)

    @property
    def degree(self) -> int:
        return len(self._coefficients) - 1

    @property
    def n_terms(self) -> int:
        return len(self._coefficients)

    def evaluate(self, x: float) -> float:
        """Direct evaluation, ascending index order, running power of x."""
        xf = F32(x)
        result = F32(0.0)
        power = F32(1.0)
        for c in self._coefficients:
            result = F32(result + c * power)
            power = F32(power * xf)
        return float(result)

    __call__ = evaluate

    def term_value(self, i: int, x: float) -> float:
        """a_i * x^i by repeated multiplication; 0 for indices outside [0, degree]."""
        if i < 0 or i >= len(self._coefficients):
            return 0.0
        xf = F32(x)
        power = F32(1.0)
        for _ in range(i):
            power = F32(power * xf)
        return float(F32(self._coefficients[i] * power))

    def __len__(self) -> int:
        return len(self._coefficients)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Polynomial):
            return NotImplemented
        return np.array_equal(self._coefficients, other._coefficients)

    def __hash__(self) -> int:
        return hash(self._coefficients.tobytes())

    def __repr__(self) -> str:
        return f"Polynomial({list(self.coefficients)})"

    def __str__(self) -> str:
        parts = []
        for i in range(len(self._coefficients) - 1, -1, -1):
            c = float(self._coefficients[i])
            if c == 0:
                continue
            if i == 0:
                parts.append(f"{c:.6f}")
            elif i == 1:
                parts.append(f"{c:.6f}*x")
            else:
                parts.append(f"{c:.6f}*x^{i}")
        return " + ".join(parts) if parts else "0"


def sum_terms(values: Sequence[float]) -> float:
    """Left-to-right float32 sum, the order every worker uses for its partial."""
    total = F32(0.0)
    for v in values:
        total = F32(total + F32(v))
    return float(total)
