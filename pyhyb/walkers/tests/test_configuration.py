import numpy
import pytest
from pyhyb.systems.operators import n
from pyhyb.updates.insert import InsertMove
from pyhyb.utils.testing import get_test_configuration
from pyhyb.walkers.configuration import OperatorInsertion, reordering_sign


@pytest.mark.unit
def test_reordering_sign():
    assert reordering_sign([numpy.array([1.0])], [numpy.array([2.0])]) == 1
    assert reordering_sign([numpy.array([2.0])], [numpy.array([1.0])]) == -1
    assert reordering_sign([numpy.zeros(0)], [numpy.zeros(0)]) == 1
    # blocks commute as pairs.
    x = [numpy.array([0.5]), numpy.array([2.5])]
    y = [numpy.array([1.5]), numpy.array([3.5])]
    assert reordering_sign(x, y) == reordering_sign(x[::-1], y[::-1])


def flat_configuration(beta=2.0, eps=0.0):
    delta = -0.5*numpy.ones((101, 1, 1))
    return get_test_configuration(eps*n('up', 0), {'up': [0]}, beta,
                                  {'up': delta}, n_tau=101)


@pytest.mark.unit
def test_first_order_weights_positive():
    (config, rng) = flat_configuration()
    move = InsertMove(0, config)
    for (x, y) in [(0.3, 1.4), (1.4, 0.3)]:
        ratio = move.evaluate((x, 0), (y, 0))
        # |Delta| * beta^2 * Tr[c c^+] / Z
        assert ratio == pytest.approx(0.5*config.beta**2/2.0)
        move.reject()


@pytest.mark.unit
def test_commit():
    (config, rng) = flat_configuration()
    move = InsertMove(0, config)
    move.evaluate((0.3, 0), (1.4, 0))
    move.accept()
    assert config.version == 1
    assert config.total_order == 1
    assert config.order(0) == 1
    assert config.times == [0.3, 1.4]
    assert config.has_time(1.4)
    assert not config.has_time(1.5)
    assert config.sign == 1.0
    assert config.check_consistency()
    (ops, first) = config.with_insertion(OperatorInsertion(0.9, 0, 0, True),
                                         OperatorInsertion(0.1, 0, 0, False))
    assert [o.tau for o in ops] == [0.1, 0.3, 0.9, 1.4]
    assert first == 0
    (ops, first) = config.with_removal(1.4, 0.3)
    assert ops == ()
    assert first == 0
    assert config.weight_sign() == 1.0
