# polychain/cli.py
"""
Command line: polychain [-n N] [--transport local|mpi] <x> <a0> [a1 ...]

Only the coordinator parses. Bad input prints usage and ends the run with
status 1 before anything is broadcast.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, List, Optional, Sequence
import argparse
import sys

from polychain.config import TRANSPORTS, RunConfig
from polychain.contracts import ConfigurationError, EvaluationRequest, RunAborted
from polychain.report import usage

if TYPE_CHECKING:
    from polychain.transport import Transport


def parse_arguments(values: Sequence[str]) -> EvaluationRequest:
    """<x> <a0> [a1 ...] -> validated request. Raises ConfigurationError."""
    if len(values) < 2:
        raise ConfigurationError("Insufficient arguments provided.")
    try:
        x = float(values[0])
        coefficients = [float(v) for v in values[1:]]
    except ValueError as exc:
        raise ConfigurationError(f"Error parsing arguments: {exc}") from exc
    return EvaluationRequest.build(x, coefficients)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="polychain",
        description="Evaluate a polynomial across a chain of workers and verify the result.",
    )
    ap.add_argument("-n", "--workers", type=int, default=None,
                    help="Number of local worker processes (local transport only)")
    ap.add_argument("--transport", choices=TRANSPORTS, default=None,
                    help="local: multiprocessing on this machine; mpi: launched by mpiexec")
    ap.add_argument("--start-method", default=None,
                    help="multiprocessing start method (fork, spawn, forkserver)")
    ap.add_argument("-q", "--quiet", action="store_true", help="Only print the final block")
    ap.add_argument("values", nargs="*", metavar="VALUE", help="x followed by a0 a1 ... an")
    return ap


def _fail(exc: Exception, prog: str) -> None:
    print(f"Error: {exc}", file=sys.stderr, flush=True)
    print(usage(prog), flush=True)


def main(argv: Optional[List[str]] = None, transport: Optional["Transport"] = None) -> int:
    """Entry point. `transport` is only used with --transport mpi; by default COMM_WORLD."""
    ap = build_parser()
    args = ap.parse_args(argv)

    overrides = {}
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.transport is not None:
        overrides["transport"] = args.transport
    if args.start_method is not None:
        overrides["start_method"] = args.start_method
    try:
        config = RunConfig(verbose=not args.quiet, **overrides)
    except ConfigurationError as exc:
        _fail(exc, ap.prog)
        return 1

    if config.transport == "mpi":
        return _main_mpi(args.values, config, ap.prog, transport)

    try:
        request = parse_arguments(args.values)
    except ConfigurationError as exc:
        _fail(exc, ap.prog)
        return 1

    # local import keeps `polychain --help` free of multiprocessing setup
    from polychain.runner import run_local

    try:
        outcome = run_local(request, config)
    except RunAborted as exc:
        print(f"[ABORT] {exc}", file=sys.stderr, flush=True)
        return 1

    if args.quiet:
        from polychain.report import emit, final_lines
        emit(final_lines(outcome.tail.x, outcome.result, outcome.reference, outcome.difference))
    if not outcome.verified(config.tolerance):
        print(f"[WARN] difference {outcome.difference:.6f} exceeds tolerance {config.tolerance:g}",
              file=sys.stderr, flush=True)
    return 0


def _main_mpi(values: Sequence[str], config: RunConfig, prog: str,
              transport: Optional["Transport"] = None) -> int:
    from polychain.runner import run_mpi
    from polychain.transport import COORDINATOR, MPITransport

    transport = transport or MPITransport()
    request = None
    if transport.rank == COORDINATOR:
        try:
            request = parse_arguments(values)
        except ConfigurationError as exc:
            _fail(exc, prog)
            transport.abort(1)
    run_mpi(request, config, transport=transport)
    return 0
