# polychain/accumulator.py
"""
Pipelined accumulator: one running sum walks the chain 0 -> N-1.

Role is fixed at construction from (rank, N):

  HEAD    compute -> send
  MIDDLE  recv -> compute -> send
  TAIL    recv -> compute -> verify -> report
  SOLO    compute -> verify -> report        (N == 1)

A worker never sends before it has received, so rank k always sees a sum
that already covers ranks 0..k-1.
"""
from __future__ import annotations
from typing import List, Optional, Tuple

from polychain.contracts import (
    ACCUMULATE, EvaluationRequest, Role, TermRange, WorkerReport, as_f32,
)
from polychain.partition import term_range
from polychain.polynomial import Polynomial, sum_terms
from polychain.report import emit, final_lines, sum_line, term_line
from polychain.transport import Transport
from polychain.verification import request_reference


class ChainWorker:
    """One participant's step in the chain."""

    def __init__(self, transport: Transport, request: EvaluationRequest, verbose: bool = True):
        self.transport = transport
        self.rank = transport.rank
        self.size = transport.size
        self.role = Role.for_rank(self.rank, self.size)
        self.x = request.x
        self.poly = Polynomial(request.coefficients)
        self.term_range: TermRange = term_range(self.rank, self.size, self.poly.n_terms)
        self.verbose = verbose

    def _say(self, lines) -> None:
        if self.verbose:
            emit(lines)

    def compute_partial(self) -> Tuple[List[Tuple[int, float]], float]:
        """Terms owned by this rank and their float32 sum. Empty range -> 0."""
        terms: List[Tuple[int, float]] = []
        for i in self.term_range.indices():
            value = self.poly.term_value(i, self.x)
            terms.append((i, value))
            self._say(term_line(self.rank, i, value))
        return terms, sum_terms([v for _, v in terms])

    def receive(self) -> Optional[float]:
        if not self.role.receives:
            return None
        return float(self.transport.recv(source=self.rank - 1, tag=ACCUMULATE))

    def forward(self, accumulated: float) -> None:
        if self.role.forwards:
            self.transport.send(accumulated, dest=self.rank + 1, tag=ACCUMULATE)

    def run(self) -> WorkerReport:
        received = self.receive()
        terms, partial = self.compute_partial()
        accumulated = partial if received is None else sum_terms([received, partial])
        self._say(sum_line(self.rank, partial, None if received is None else accumulated))
        self.forward(accumulated)

        reference: Optional[float] = None
        difference: Optional[float] = None
        if self.role.reports:
            reference = request_reference(self.transport, self.poly, self.x).reference
            difference = as_f32(abs(accumulated - reference))
            self._say(final_lines(self.x, accumulated, reference, difference))

        return WorkerReport(
            rank=self.rank,
            role=self.role,
            term_range=self.term_range,
            terms=tuple(terms),
            partial=partial,
            accumulated=accumulated,
            x=self.x,
            reference=reference,
            difference=difference,
        )
