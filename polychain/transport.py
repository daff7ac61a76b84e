# polychain/transport.py
"""
Message-passing backends.

Two transports implement the same blocking primitives:

  QueueTransport   multiprocessing queues, one per directed chain edge,
                   a broadcast inbox per worker, a shared verification
                   request queue polled by the coordinator.
  MPITransport     mpi4py COMM_WORLD, for runs launched under mpiexec.

The protocol code only ever sees the Transport interface.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Tuple
import multiprocessing as mp
import threading

from polychain.contracts import (
    ACCUMULATE, VERIFY_REQUEST, VERIFY_RESPONSE, RunAborted,
)

COORDINATOR = 0


class Transport:
    """Blocking point-to-point and collective primitives for one participant."""

    rank: int
    size: int

    def bcast(self, value: Any = None, root: int = COORDINATOR) -> Any:
        raise NotImplementedError

    def send(self, value: Any, dest: int, tag: int) -> None:
        raise NotImplementedError

    def recv(self, source: int, tag: int) -> Any:
        raise NotImplementedError

    def recv_any(self, tag: int) -> Tuple[Any, int]:
        """Receive from whichever participant sends first. Returns (value, source)."""
        raise NotImplementedError

    def abort(self, code: int = 1) -> None:
        """Terminate the whole run. Does not return."""
        raise NotImplementedError


# ─────────────── local processes ───────────────

@dataclass(frozen=True)
class _Abort:
    code: int


class QueueFabric:
    """
    All queues backing one local run. Built by the launcher before any
    worker starts, then handed to each process as a QueueTransport.
    """

    def __init__(self, size: int, ctx: Any = None):
        if size < 1:
            raise ValueError(f"size must be >= 1, got {size}")
        ctx = ctx or mp.get_context()
        self.size = size
        # edge k carries the running sum from rank k to rank k+1
        self.chain: List[Any] = [ctx.Queue() for _ in range(size - 1)]
        self.inbox: List[Any] = [ctx.Queue() for _ in range(size)]
        self.barrier = ctx.Barrier(size)
        self.verify_requests = ctx.Queue()
        self.verify_responses: List[Any] = [ctx.Queue() for _ in range(size)]

    def endpoint(self, rank: int) -> "QueueTransport":
        return QueueTransport(rank, self)


class QueueTransport(Transport):
    """Transport endpoint of one rank on a QueueFabric."""

    def __init__(self, rank: int, fabric: QueueFabric):
        if not 0 <= rank < fabric.size:
            raise ValueError(f"rank {rank} outside [0, {fabric.size})")
        self.rank = rank
        self.size = fabric.size
        self.fabric = fabric

    def bcast(self, value: Any = None, root: int = COORDINATOR) -> Any:
        if root != COORDINATOR:
            raise ValueError("QueueTransport only broadcasts from the coordinator")
        if self.rank == root:
            for r in range(self.size):
                if r != root:
                    self.fabric.inbox[r].put(value)
        else:
            value = self.fabric.inbox[self.rank].get()
            if isinstance(value, _Abort):
                raise RunAborted(
                    f"rank {self.rank}: run aborted by coordinator",
                    {COORDINATOR: value.code},
                )
        try:
            self.fabric.barrier.wait()
        except threading.BrokenBarrierError as exc:
            raise RunAborted(f"rank {self.rank}: broadcast barrier broken") from exc
        return value

    def send(self, value: Any, dest: int, tag: int) -> None:
        if tag == ACCUMULATE:
            if dest != self.rank + 1:
                raise ValueError(f"rank {self.rank} can only forward to {self.rank + 1}, not {dest}")
            self.fabric.chain[self.rank].put(value)
        elif tag == VERIFY_REQUEST:
            if dest != COORDINATOR:
                raise ValueError("verification requests go to the coordinator")
            self.fabric.verify_requests.put((self.rank, value))
        elif tag == VERIFY_RESPONSE:
            self.fabric.verify_responses[dest].put(value)
        else:
            raise ValueError(f"unknown tag {tag}")

    def recv(self, source: int, tag: int) -> Any:
        if tag == ACCUMULATE:
            if source != self.rank - 1:
                raise ValueError(f"rank {self.rank} can only receive from {self.rank - 1}, not {source}")
            return self.fabric.chain[source].get()
        if tag == VERIFY_RESPONSE:
            return self.fabric.verify_responses[self.rank].get()
        if tag == VERIFY_REQUEST:
            raise ValueError("verification requests are only taken with recv_any")
        raise ValueError(f"unknown tag {tag}")

    def recv_any(self, tag: int) -> Tuple[Any, int]:
        if tag != VERIFY_REQUEST:
            raise ValueError("wildcard receive only exists for verification requests")
        src, value = self.fabric.verify_requests.get()
        return value, src

    def abort(self, code: int = 1) -> None:
        for r in range(self.size):
            if r != self.rank:
                self.fabric.inbox[r].put(_Abort(code))
        self.fabric.barrier.abort()
        raise SystemExit(code)


# ─────────────── MPI ───────────────

class MPITransport(Transport):
    """
    mpi4py COMM_WORLD. The worker count is whatever mpiexec launched.
    `comm` and `mpi` can be injected; by default mpi4py is imported here.
    """

    def __init__(self, comm: Any = None, mpi: Any = None):
        if mpi is None:
            try:
                from mpi4py import MPI as mpi
            except ImportError as exc:
                raise RuntimeError(
                    "MPI transport requires mpi4py (pip install 'polychain[mpi]')"
                ) from exc
        self.mpi = mpi
        self.comm = comm if comm is not None else mpi.COMM_WORLD
        self.rank = int(self.comm.Get_rank())
        self.size = int(self.comm.Get_size())

    def bcast(self, value: Any = None, root: int = COORDINATOR) -> Any:
        return self.comm.bcast(value, root=root)

    def send(self, value: Any, dest: int, tag: int) -> None:
        self.comm.send(value, dest=dest, tag=tag)

    def recv(self, source: int, tag: int) -> Any:
        return self.comm.recv(source=source, tag=tag)

    def recv_any(self, tag: int) -> Tuple[Any, int]:
        status = self.mpi.Status()
        value = self.comm.recv(source=self.mpi.ANY_SOURCE, tag=tag, status=status)
        return value, int(status.Get_source())

    def abort(self, code: int = 1) -> None:
        self.comm.Abort(code)
        raise SystemExit(code)
