# polychain/partition.py
"""
Static term partitioner.

Every worker runs the same formula on (rank, n_workers, n_terms) and gets its
own slice without talking to anyone. There is exactly one implementation of
the formula and every participant calls it.
"""
from __future__ import annotations
from typing import List

from polychain.contracts import TermRange


def terms_per_worker(n_terms: int, n_workers: int) -> int:
    """Ceiling division of the term count over the worker count."""
    if n_workers < 1:
        raise ValueError(f"n_workers must be >= 1, got {n_workers}")
    if n_terms < 0:
        raise ValueError(f"n_terms must be >= 0, got {n_terms}")
    return (n_terms + n_workers - 1) // n_workers


def term_range(rank: int, n_workers: int, n_terms: int) -> TermRange:
    """
    Contiguous slice owned by `rank`.

    Ranks past the last chunk get an empty range anchored at their computed
    start; they contribute 0 to the chain.
    """
    if not 0 <= rank < n_workers:
        raise ValueError(f"rank {rank} outside [0, {n_workers})")
    chunk = terms_per_worker(n_terms, n_workers)
    start = rank * chunk
    end = min(start + chunk, n_terms)
    return TermRange(start=start, end_exclusive=max(start, end))


def partition(n_terms: int, n_workers: int) -> List[TermRange]:
    """All ranges, rank order."""
    return [term_range(r, n_workers, n_terms) for r in range(n_workers)]
