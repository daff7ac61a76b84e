# polychain/runner.py
"""
Execution harness: N participants, one chain.

Runs locally with multiprocessing (one process per rank over a QueueFabric)
or under mpiexec with MPITransport. Both paths execute the same
participant_main.

Usage:
    python -m polychain -n 4 2.0 1 2 3 4
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import multiprocessing as mp
import queue
import sys

from polychain.accumulator import ChainWorker
from polychain.broadcast import broadcast_parameters
from polychain.config import RunConfig
from polychain.contracts import (
    ConfigurationError, EvaluationRequest, RunAborted, WorkerReport,
)
from polychain.polynomial import Polynomial
from polychain.report import emit, header_lines
from polychain.transport import COORDINATOR, MPITransport, QueueFabric, Transport
from polychain.verification import serve_reference


def participant_main(
    transport: Transport,
    request: Optional[EvaluationRequest] = None,
    verbose: bool = True,
) -> WorkerReport:
    """
    Everything one rank does in a run:
    broadcast -> chain step -> (coordinator) serve verification.

    A ConfigurationError at the coordinator aborts the whole run.
    """
    if transport.rank == COORDINATOR:
        try:
            if request is None or not request.coefficients:
                raise ConfigurationError("No polynomial coefficients provided.")
            if verbose:
                emit(header_lines(Polynomial(request.coefficients), request.x, transport.size))
            request = broadcast_parameters(transport, request)
        except ConfigurationError as exc:
            print(f"Error: {exc}", file=sys.stderr, flush=True)
            transport.abort(1)
            raise
    else:
        request = broadcast_parameters(transport)

    worker = ChainWorker(transport, request, verbose=verbose)
    report = worker.run()

    if transport.rank == COORDINATOR and transport.size > 1:
        serve_reference(transport, worker.poly, worker.x)
    return report


# ─────────────── local processes ───────────────

def worker_proc(
    transport: Transport,
    request: Optional[EvaluationRequest],
    out_q: "mp.Queue",
    verbose: bool,
) -> None:
    """
    Worker process: one rank of the chain.
    Pushes its report to out_q, then signals exit.
    """
    try:
        report = participant_main(transport, request, verbose=verbose)
        out_q.put(report.to_message())
    except RunAborted as exc:
        print(f"[ABORT] rank {transport.rank}: {exc}", file=sys.stderr, flush=True)
        raise SystemExit(1)
    finally:
        out_q.put({"kind": "WORKER_EXIT", "worker_id": transport.rank})


@dataclass(frozen=True)
class RunOutcome:
    """Every worker's report for one run, rank order."""
    reports: List[WorkerReport]

    @property
    def tail(self) -> WorkerReport:
        return self.reports[-1]

    @property
    def result(self) -> float:
        return self.tail.accumulated

    @property
    def reference(self) -> float:
        return self.tail.reference

    @property
    def difference(self) -> float:
        return self.tail.difference

    def verified(self, tolerance: float = 1e-4) -> bool:
        return self.difference is not None and self.difference <= tolerance


def run_local(request: Optional[EvaluationRequest], config: Optional[RunConfig] = None) -> RunOutcome:
    """
    Launch config.workers processes on one machine and run the chain.
    Raises RunAborted if any participant exits non-zero.
    """
    config = config or RunConfig(transport="local")
    n = config.workers
    ctx = mp.get_context(config.start_method)

    fabric = QueueFabric(n, ctx)
    out_q = ctx.Queue()

    if config.verbose:
        print(f"[LAUNCH] {n} worker(s), start method: {ctx.get_start_method()}", flush=True)

    workers = []
    for rank in range(n):
        p = ctx.Process(
            target=worker_proc,
            args=(fabric.endpoint(rank), request if rank == COORDINATOR else None, out_q, config.verbose),
            daemon=True,
        )
        p.start()
        workers.append(p)

    # Drain until every worker has said goodbye
    reports: Dict[int, WorkerReport] = {}
    exited = 0
    while exited < n:
        try:
            msg: Dict[str, Any] = out_q.get(timeout=config.join_timeout)
        except queue.Empty:
            if not any(p.is_alive() for p in workers):
                break
            continue
        if msg.get("kind") == "WORKER_EXIT":
            exited += 1
            if config.verbose:
                print(f"  [EXIT] Worker {msg['worker_id']} finished", flush=True)
        elif msg.get("kind") == "REPORT":
            report = WorkerReport.from_message(msg)
            reports[report.rank] = report

    for p in workers:
        p.join(timeout=config.join_timeout)

    codes = {rank: p.exitcode for rank, p in enumerate(workers)}
    failed = {rank: code for rank, code in codes.items() if code != 0}
    if failed:
        for p in workers:
            if p.is_alive():
                p.terminate()
        raise RunAborted(f"run aborted, exit codes: {failed}", failed)
    if len(reports) != n:
        missing = sorted(set(range(n)) - set(reports))
        raise RunAborted(f"no report from rank(s) {missing}", codes)

    return RunOutcome([reports[r] for r in range(n)])


# ─────────────── MPI ───────────────

def run_mpi(request: Optional[EvaluationRequest], config: Optional[RunConfig] = None,
            transport: Optional[Transport] = None) -> WorkerReport:
    """
    Run this process's rank under mpiexec. Only rank 0 needs a request.
    Returns this rank's report.
    """
    config = config or RunConfig(transport="mpi")
    transport = transport or MPITransport()
    return participant_main(
        transport,
        request if transport.rank == COORDINATOR else None,
        verbose=config.verbose,
    )
