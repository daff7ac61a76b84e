from __future__ import annotations

import queue
import threading
from typing import Dict, List, Optional

import pytest

from polychain.contracts import EvaluationRequest, WorkerReport
from polychain.runner import participant_main
from polychain.transport import QueueFabric


class ThreadContext:
    """Stands in for a multiprocessing context so a fabric can back threads."""
    Queue = queue.Queue
    Barrier = threading.Barrier


def run_threaded(request: Optional[EvaluationRequest], n: int, timeout: float = 10.0) -> List[WorkerReport]:
    """Run every rank of the chain as a thread on one QueueFabric."""
    fabric = QueueFabric(n, ThreadContext())
    reports: Dict[int, WorkerReport] = {}
    errors: Dict[int, BaseException] = {}

    def target(rank: int) -> None:
        try:
            reports[rank] = participant_main(
                fabric.endpoint(rank),
                request if rank == 0 else None,
                verbose=False,
            )
        except BaseException as exc:  # collected and re-raised below
            errors[rank] = exc

    threads = [threading.Thread(target=target, args=(r,), daemon=True) for r in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout)
    assert not any(t.is_alive() for t in threads), "chain stalled"
    if errors:
        raise next(iter(errors.values()))
    return [reports[r] for r in range(n)]


@pytest.fixture
def cubic() -> EvaluationRequest:
    return EvaluationRequest(x=2.0, coefficients=(1, 2, 3, 4))


@pytest.fixture
def run_chain():
    return run_threaded


@pytest.fixture
def thread_ctx():
    return ThreadContext()
