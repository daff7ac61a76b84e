# polychain/contracts.py
"""
Typed contracts for the chain evaluation protocol.
Everything that crosses a worker boundary is described here.

Laws:
  - No request is broadcast without schema validation.
  - Every value is immutable once built.
  - Ranges are derived, never transmitted.
"""
from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple
from enum import Enum
import math

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# Channel tags. Verification traffic never shares a tag with the chain.
ACCUMULATE = 0
VERIFY_REQUEST = 2
VERIFY_RESPONSE = 3


class ConfigurationError(ValueError):
    """Missing, unparseable or empty input. Fatal, detected before broadcast."""


class RunAborted(RuntimeError):
    """A participant terminated the distributed run abnormally."""

    def __init__(self, message: str, exit_codes: Optional[Dict[int, int]] = None):
        super().__init__(message)
        self.exit_codes = dict(exit_codes or {})


def as_f32(value: Any) -> float:
    """Round a number to single precision and hand it back as a Python float."""
    with np.errstate(over="ignore", under="ignore"):
        return float(np.float32(value))


def checked_f32(value: Any) -> float:
    """
    as_f32 for input values. A finite number that overflows to inf, or a
    non-zero one that underflows to 0, is out of range and rejected.
    """
    v = float(value)
    out = as_f32(v)
    if math.isfinite(v) and not math.isfinite(out):
        raise ValueError(f"{value!r} is out of single-precision range")
    if v != 0.0 and out == 0.0:
        raise ValueError(f"{value!r} underflows single precision")
    return out


class EvaluationRequest(BaseModel):
    """
    Frozen input contract: the point and the coefficients a0..an.
    Values are rounded to float32 on the way in so every copy is bit-identical.
    """
    model_config = ConfigDict(frozen=True)

    x: float
    coefficients: Tuple[float, ...] = Field(..., min_length=1)

    @field_validator("x")
    @classmethod
    def _x_f32(cls, v: float) -> float:
        return checked_f32(v)

    @field_validator("coefficients")
    @classmethod
    def _coefficients_f32(cls, v: Tuple[float, ...]) -> Tuple[float, ...]:
        return tuple(checked_f32(c) for c in v)

    @property
    def n_terms(self) -> int:
        return len(self.coefficients)

    @staticmethod
    def build(x: Any, coefficients: Any) -> "EvaluationRequest":
        """Validate raw values. Raises ConfigurationError on any violation."""
        coeffs = tuple(coefficients)
        try:
            return EvaluationRequest(x=x, coefficients=coeffs)
        except ValidationError as exc:
            if not coeffs:
                raise ConfigurationError("No polynomial coefficients provided.") from exc
            raise ConfigurationError(f"Invalid evaluation request: {exc}") from exc


@dataclass(frozen=True)
class TermRange:
    """Half-open slice [start, end_exclusive) of term indices owned by one worker."""
    start: int
    end_exclusive: int

    @property
    def empty(self) -> bool:
        return self.end_exclusive <= self.start

    def __len__(self) -> int:
        return max(0, self.end_exclusive - self.start)

    def indices(self) -> range:
        return range(self.start, max(self.start, self.end_exclusive))


@dataclass(frozen=True)
class VerificationResult:
    """Directly computed reference value, produced once by the coordinator."""
    reference: float


class Role(str, Enum):
    HEAD = "head"
    MIDDLE = "middle"
    TAIL = "tail"
    SOLO = "solo"  # head and tail collapsed, N == 1

    @staticmethod
    def for_rank(rank: int, size: int) -> "Role":
        if size < 1 or not 0 <= rank < size:
            raise ValueError(f"rank {rank} outside a chain of {size} workers")
        if size == 1:
            return Role.SOLO
        if rank == 0:
            return Role.HEAD
        if rank == size - 1:
            return Role.TAIL
        return Role.MIDDLE

    @property
    def receives(self) -> bool:
        return self in (Role.MIDDLE, Role.TAIL)

    @property
    def forwards(self) -> bool:
        return self in (Role.HEAD, Role.MIDDLE)

    @property
    def reports(self) -> bool:
        return self in (Role.TAIL, Role.SOLO)


@dataclass(frozen=True)
class WorkerReport:
    """What one worker computed during a run."""
    rank: int
    role: Role
    term_range: TermRange
    terms: Tuple[Tuple[int, float], ...]
    partial: float
    accumulated: float
    x: float
    reference: Optional[float] = None
    difference: Optional[float] = None

    def to_message(self) -> Dict[str, Any]:
        d = asdict(self)
        d["role"] = self.role.value
        return {"kind": "REPORT", "worker_id": self.rank, "payload": d}

    @staticmethod
    def from_message(msg: Dict[str, Any]) -> "WorkerReport":
        d = dict(msg["payload"])
        d["role"] = Role(d["role"])
        d["term_range"] = TermRange(**d["term_range"])
        d["terms"] = tuple((int(i), float(v)) for i, v in d["terms"])
        return WorkerReport(**d)
