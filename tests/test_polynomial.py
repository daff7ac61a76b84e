import numpy as np
import pytest

from polychain.polynomial import Polynomial, sum_terms


def test_evaluate():
    assert Polynomial([1.0]).evaluate(0.0) == 1.0
    assert Polynomial([0.0, 1.0]).evaluate(0.0) == 0.0
    assert Polynomial([1.0, 2.0]).evaluate(2.0) == 5.0
    assert Polynomial([1.0, 2.0, -4.0]).evaluate(-1.0) == -5.0
    assert Polynomial([1, 2, 3, 4]).evaluate(2.0) == 49.0
    assert Polynomial([1, 2, 3, 4])(2.0) == 49.0


def test_evaluate_matches_numpy_in_single_precision():
    coeffs = [0.5, -1.25, 3.0, 2.0, -0.75]
    expected = np.polynomial.polynomial.polyval(np.float32(1.5), np.array(coeffs, dtype=np.float32))
    assert Polynomial(coeffs).evaluate(1.5) == pytest.approx(float(expected), abs=1e-4)


def test_degree():
    assert Polynomial([7.0]).degree == 0
    assert Polynomial([1, 2, 3, 4]).degree == 3
    assert len(Polynomial([1, 2, 3, 4])) == 4


def test_term_value():
    p = Polynomial([1, 2, 3, 4])
    assert [p.term_value(i, 2.0) for i in range(4)] == [1.0, 4.0, 12.0, 32.0]
    assert p.term_value(0, 0.0) == 1.0
    assert p.term_value(2, -1.0) == 3.0


@pytest.mark.parametrize("index", [-1, 4, 100])
def test_term_value_out_of_range_is_zero(index):
    assert Polynomial([1, 2, 3, 4]).term_value(index, 2.0) == 0.0


def test_terms_sum_to_evaluation():
    p = Polynomial([0.5, -1.25, 3.0, 2.0, -0.75])
    total = sum_terms([p.term_value(i, 1.5) for i in range(p.n_terms)])
    assert total == pytest.approx(p.evaluate(1.5), abs=1e-4)


def test_values_are_single_precision():
    p = Polynomial([0.1])
    assert p.coefficients[0] == float(np.float32(0.1))
    assert p.coefficients[0] != 0.1


def test_immutable():
    p = Polynomial([1, 2, 3])
    with pytest.raises(ValueError):
        p._coefficients[0] = 5.0
    with pytest.raises(AttributeError):
        p.other = 1


def test_str():
    assert str(Polynomial([1, 2, 3, 4])) == "4.000000*x^3 + 3.000000*x^2 + 2.000000*x + 1.000000"
    assert str(Polynomial([5, 0, 1])) == "1.000000*x^2 + 5.000000"
    assert str(Polynomial([0, 0])) == "0"


def test_equality():
    assert Polynomial([1, 2]) == Polynomial((1.0, 2.0))
    assert Polynomial([1, 2]) != Polynomial([1, 2, 0])
    assert hash(Polynomial([1, 2])) == hash(Polynomial([1.0, 2.0]))
