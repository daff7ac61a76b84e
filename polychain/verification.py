# polychain/verification.py
"""
Verification exchange: tail <-> coordinator, outside the chain.

  tail         --VERIFY_REQUEST-->   coordinator (wildcard receive)
  tail   <--VERIFY_RESPONSE--        coordinator (direct evaluation)

The coordinator does not know the tail's rank in advance; it learns it from
the source of the request. One request is served per run.
"""
from __future__ import annotations

from polychain.contracts import VERIFY_REQUEST, VERIFY_RESPONSE, VerificationResult
from polychain.polynomial import Polynomial
from polychain.transport import COORDINATOR, Transport

REQUEST_SIGNAL = 1


def request_reference(transport: Transport, poly: Polynomial, x: float) -> VerificationResult:
    """Called by the tail. Blocks until the coordinator answers."""
    if transport.rank == COORDINATOR:
        return VerificationResult(reference=poly.evaluate(x))
    transport.send(REQUEST_SIGNAL, dest=COORDINATOR, tag=VERIFY_REQUEST)
    reference = transport.recv(source=COORDINATOR, tag=VERIFY_RESPONSE)
    return VerificationResult(reference=float(reference))


def serve_reference(transport: Transport, poly: Polynomial, x: float) -> int:
    """
    Called by the coordinator once its own chain step is done.
    Returns the rank that asked.
    """
    _signal, source = transport.recv_any(VERIFY_REQUEST)
    transport.send(poly.evaluate(x), dest=source, tag=VERIFY_RESPONSE)
    return source
