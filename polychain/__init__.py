# polychain/: Coordinator / Chain-of-Workers polynomial evaluation
from .contracts import (
    ConfigurationError, EvaluationRequest, Role, RunAborted, TermRange,
    VerificationResult, WorkerReport,
)
from .polynomial import Polynomial
from .partition import partition, term_range
from .config import RunConfig
from .runner import RunOutcome, participant_main, run_local, run_mpi

__version__ = "0.1.0"
