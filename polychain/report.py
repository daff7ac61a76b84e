# polychain/report.py
"""Line formats for everything a participant prints."""
from __future__ import annotations
from typing import List, Optional

from polychain.polynomial import Polynomial

SEPARATOR = "-" * 48


def fmt_x(x: float) -> str:
    return f"{x:g}"


def header_lines(poly: Polynomial, x: float, n_workers: int) -> List[str]:
    """Printed once by the coordinator before broadcast."""
    return [
        f"Polynomial: {poly}",
        f"Degree: {poly.degree}",
        f"Evaluation point: x = {fmt_x(x)}",
        f"Number of processes: {n_workers}",
    ]


def term_line(rank: int, index: int, value: float) -> str:
    return f"Process {rank}: computed term {index} (a{index}*x^{index}) = {value:.6f}"


def sum_line(rank: int, partial: float, accumulated: Optional[float] = None) -> str:
    """Head prints only its partial; everyone downstream adds the running total."""
    line = f"Process {rank}: partial sum = {partial:.6f}"
    if accumulated is not None:
        line += f", accumulated sum = {accumulated:.6f}"
    return line


def final_lines(x: float, accumulated: float, reference: float, difference: float) -> List[str]:
    return [
        SEPARATOR,
        f"FINAL RESULT: P({x:.6f}) = {accumulated:.6f}",
        f"Verification (direct computation): {reference:.6f}",
        f"Difference: {difference:.6f}",
    ]


def usage(prog: str = "polychain") -> str:
    return "\n".join([
        f"Usage: {prog} [-n N] [--transport local|mpi] <x> <coefficients...>",
        "  x            - Point at which to evaluate polynomial",
        "  coefficients - Polynomial coefficients (a0 a1 a2 ...)",
        "",
        "Example: ",
        f"  mpiexec -n 4 {prog} --transport mpi 2.0 1 2 3 4",
        f"  {prog} -n 4 2.0 1 2 3 4",
        "  This computes P(2.0) for polynomial 4x^3 + 3x^2 + 2x + 1",
    ])


def emit(lines) -> None:
    if isinstance(lines, str):
        lines = [lines]
    for line in lines:
        print(line, flush=True)
