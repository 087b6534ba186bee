import numpy
import pytest
from pyhyb.utils.linalg import (
        diagonalise_sorted,
        permutation_parity,
        signed_log_det,
        signed_log_sum
        )


@pytest.mark.unit
def test_permutation_parity():
    assert permutation_parity([]) == 1
    assert permutation_parity([0.3]) == 1
    assert permutation_parity([3.0, 2.0, 1.0]) == 1
    assert permutation_parity([1.0, 2.0]) == -1
    assert permutation_parity([2.0, 3.0, 1.0]) == -1
    assert permutation_parity([1.0, 2.0, 3.0]) == -1


@pytest.mark.unit
def test_signed_log_det():
    A = numpy.array([[0.0, 2.0], [3.0, 1.0]])
    (sign, logdet) = signed_log_det(A)
    assert sign == -1.0
    assert logdet == pytest.approx(numpy.log(6.0))
    assert signed_log_det(numpy.zeros((0, 0))) == (1.0, 0.0)
    (sign, logdet) = signed_log_det(numpy.ones((2, 2)))
    assert sign == 0.0


@pytest.mark.unit
def test_signed_log_sum():
    (sign, log) = signed_log_sum([1, -1, 1], numpy.log([2.0, 5.0, 1.0]))
    assert sign == -1.0
    assert log == pytest.approx(numpy.log(2.0))
    # large logs do not overflow.
    (sign, log) = signed_log_sum([1, 1], [1000.0, 1000.0])
    assert sign == 1.0
    assert log == pytest.approx(1000.0+numpy.log(2.0))
    assert signed_log_sum([0, 0], [1.0, 2.0]) == (0.0, -numpy.inf)
    assert signed_log_sum([1, -1], [3.0, 3.0])[0] == 0.0


@pytest.mark.unit
def test_diagonalise_sorted():
    H = numpy.array([[2.0, 1.0], [1.0, 2.0]])
    (eigs, eigv) = diagonalise_sorted(H)
    assert eigs == pytest.approx([1.0, 3.0])
    assert numpy.linalg.norm(numpy.dot(H, eigv)-eigv*eigs) == pytest.approx(0.0)
