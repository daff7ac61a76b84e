# polychain/config.py
"""
Launch configuration.

Defaults come from the environment (POLYCHAIN_WORKERS, POLYCHAIN_TRANSPORT);
explicit values, e.g. from the command line, win. Invalid values raise
ConfigurationError on construction.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional
import os

from polychain.contracts import ConfigurationError

TRANSPORTS = ("local", "mpi")


def _default_workers() -> int:
    raw = os.getenv("POLYCHAIN_WORKERS")
    if raw:
        try:
            return int(raw)
        except ValueError as exc:
            raise ConfigurationError(f"POLYCHAIN_WORKERS is not an integer: {raw!r}") from exc
    return min(4, os.cpu_count() or 2)


def _default_transport() -> str:
    return os.getenv("POLYCHAIN_TRANSPORT", "local")


@dataclass
class RunConfig:
    """How a run is launched. Nothing here changes what gets computed."""
    workers: int = field(default_factory=_default_workers)
    transport: str = field(default_factory=_default_transport)
    start_method: Optional[str] = None  # None -> multiprocessing default
    join_timeout: float = 30.0
    tolerance: float = 1e-4
    verbose: bool = True

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {self.workers}")
        if self.transport not in TRANSPORTS:
            raise ConfigurationError(
                f"unknown transport {self.transport!r} (expected one of {', '.join(TRANSPORTS)})"
            )
        if self.join_timeout <= 0:
            raise ConfigurationError("join_timeout must be positive")
