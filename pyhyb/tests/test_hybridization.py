import numpy
import pytest
from pyhyb.hybridization import (
        HybridizationModel,
        bath_hybridization_tau
        )
from pyhyb.systems.operators import n
from pyhyb.utils.testing import bath_weiss_field


@pytest.mark.unit
def test_insufficient_tau_points():
    with pytest.raises(ValueError):
        HybridizationModel(10.0, {'up': [0]}, 50, 99)
    model = HybridizationModel(10.0, {'up': [0]}, 50, 100)
    assert model.n_tau == 100
    with pytest.raises(ValueError):
        HybridizationModel(-1.0, {'up': [0]}, 10, 20)
    with pytest.raises(ValueError):
        HybridizationModel(1.0, {'up': []}, 10, 20)


@pytest.mark.unit
def test_weiss_field():
    beta = 10.0
    eps_d = 0.3
    eps = numpy.array([-0.4, 0.6])
    V = numpy.array([0.5, 0.7])
    model = HybridizationModel(beta, {'up': [0], 'down': [0]}, 500, 1001)
    g0 = bath_weiss_field(beta, 500, eps_d, eps, V)
    h_loc = model.set_weiss_field({'up': g0, 'down': g0}, 2.0*n('up', 0)*n('down', 0))
    ref = bath_hybridization_tau(model.tau, beta, eps, [V])
    for b in range(2):
        err = numpy.max(numpy.abs(model.delta_tau[b]-ref))
        assert err == pytest.approx(0.0, abs=1e-4)
        assert numpy.max(numpy.abs(model.g0_iw[b]-g0)) == pytest.approx(0.0, abs=1e-6)
    # quadratic part of the local Hamiltonian recovered from the tail.
    quadratic = h_loc - 2.0*n('up', 0)*n('down', 0)
    assert len(quadratic.terms) == 2
    for spin in ('up', 'down'):
        key = ((True, (spin, 0)), (False, (spin, 0)))
        assert quadratic.terms[key] == pytest.approx(eps_d, abs=1e-5)


@pytest.mark.unit
def test_antiperiodicity():
    beta = 4.0
    model = HybridizationModel(beta, {'up': [0, 1]}, 10, 41)
    eps = numpy.array([-0.3, 0.5])
    V = numpy.array([[0.5, 0.2], [0.1, 0.8]])
    model.set_delta_tau({'up': bath_hybridization_tau(model.tau, beta, eps, V)})
    for t in [0.05, 1.3, 3.9]:
        assert numpy.linalg.norm(model.delta(0, t-beta)
                                 + model.delta(0, t)) == pytest.approx(0.0)
    x_tau = numpy.array([0.5, 2.5])
    y_tau = numpy.array([1.0, 3.7, 0.1])
    D = model.delta_matrix(0, x_tau, [0, 1], y_tau, [1, 1, 0])
    assert D.shape == (2, 3)
    for (i, (x, a)) in enumerate(zip(x_tau, [0, 1])):
        for (j, (y, b)) in enumerate(zip(y_tau, [1, 1, 0])):
            assert D[i, j] == pytest.approx(model.delta(0, x-y)[a, b])
            assert D[i, j] == pytest.approx(model.delta_element(0, x-y, a, b))


@pytest.mark.unit
def test_set_delta_tau():
    model = HybridizationModel(2.0, {'up': [0]}, 5, 11)
    assert model.is_zero()
    model.set_delta_tau({'up': lambda t: -0.5*numpy.ones((1, 1))})
    assert not model.is_zero()
    assert model.delta(0, 0.7)[0, 0] == pytest.approx(-0.5)
    assert model.delta(0, -0.7)[0, 0] == pytest.approx(0.5)
    with pytest.raises(ValueError):
        model.set_delta_tau({'up': numpy.zeros((10, 1, 1))})
