# polychain/broadcast.py
"""
Parameter broadcast: coordinator -> every worker.

Three collectives, always in this order:
  1. the evaluation point x
  2. the coefficient count (so receivers can size the vector)
  3. the coefficient vector
"""
from __future__ import annotations
from typing import Optional

from polychain.contracts import ConfigurationError, EvaluationRequest
from polychain.transport import COORDINATOR, Transport


def broadcast_parameters(
    transport: Transport,
    request: Optional[EvaluationRequest] = None,
) -> EvaluationRequest:
    """
    Blocking collective. The coordinator passes its validated request,
    everyone else passes nothing; all return an identical EvaluationRequest.

    Raises ConfigurationError at the coordinator, before anything is sent,
    when there is no request or it carries no coefficients.
    """
    if transport.rank == COORDINATOR:
        if request is None or not request.coefficients:
            raise ConfigurationError("No polynomial coefficients provided.")
        transport.bcast(request.x)
        transport.bcast(len(request.coefficients))
        transport.bcast(tuple(request.coefficients))
        return request

    x = transport.bcast(None)
    count = transport.bcast(None)
    coefficients = transport.bcast(None)
    # values were validated and rounded at the coordinator
    return EvaluationRequest.model_construct(x=x, coefficients=tuple(coefficients[:count]))
