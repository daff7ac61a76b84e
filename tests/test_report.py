from polychain.polynomial import Polynomial
from polychain.report import final_lines, header_lines, sum_line, term_line, usage


def test_term_line():
    assert term_line(2, 3, 32.0) == "Process 2: computed term 3 (a3*x^3) = 32.000000"


def test_sum_lines():
    assert sum_line(0, 5.0) == "Process 0: partial sum = 5.000000"
    assert sum_line(1, 12.0, 17.0) == "Process 1: partial sum = 12.000000, accumulated sum = 17.000000"


def test_final_block():
    lines = final_lines(2.0, 49.0, 49.0, 0.0)
    assert lines == [
        "-" * 48,
        "FINAL RESULT: P(2.000000) = 49.000000",
        "Verification (direct computation): 49.000000",
        "Difference: 0.000000",
    ]
    assert final_lines(-1.5, 0.0, 0.0, 0.0)[1] == "FINAL RESULT: P(-1.500000) = 0.000000"


def test_header():
    assert header_lines(Polynomial([1, 2]), 2.0, 3) == [
        "Polynomial: 2.000000*x + 1.000000",
        "Degree: 1",
        "Evaluation point: x = 2",
        "Number of processes: 3",
    ]


def test_usage_names_program():
    text = usage("prog")
    assert text.startswith("Usage: prog ")
    assert "mpiexec -n 4 prog" in text
