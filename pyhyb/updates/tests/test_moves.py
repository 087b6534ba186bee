import numpy
import pytest
from pyhyb.hybridization import bath_hybridization_tau
from pyhyb.systems.operators import c, c_dag, n
from pyhyb.updates.insert import InsertMove
from pyhyb.updates.remove import RemoveMove
from pyhyb.updates.utils import get_moves
from pyhyb.utils.testing import get_test_configuration, hubbard_atom
from pyhyb.gf.mesh import tau_mesh


def hubbard_configuration(beta=3.0, seed=7, use_estimator=False):
    tau = tau_mesh(beta, 201)
    delta = bath_hybridization_tau(tau, beta, [-0.5, 0.5], [[0.6, 0.6]])
    return get_test_configuration(hubbard_atom(2.0, 1.0),
                                  [('up', [0]), ('down', [0])], beta,
                                  {'up': delta, 'down': delta},
                                  use_estimator=use_estimator, seed=seed)


def two_orbital_configuration(beta=4.0, seed=7):
    tau = tau_mesh(beta, 201)
    V = [[0.7, 0.2, 0.4], [0.3, 0.6, -0.5]]
    delta = bath_hybridization_tau(tau, beta, [-0.8, 0.1, 0.7], V)
    h_loc = (0.3*(c_dag('a', 0)*c('a', 1) + c_dag('a', 1)*c('a', 0))
             - 0.2*n('a', 0) + 0.1*n('a', 1) + 1.5*n('a', 0)*n('a', 1))
    return get_test_configuration(h_loc, {'a': [0, 1]}, beta, {'a': delta},
                                  seed=seed)


def grow(config, rng, norder):
    """Accept insertions with non vanishing weight until norder pairs."""
    moves = [InsertMove(b, config) for b in range(config.nblocks)]
    while config.total_order < norder:
        move = moves[int(rng.integers(len(moves)))]
        ratio = move.attempt(rng)
        if ratio != 0.0:
            move.accept()
        else:
            move.reject()


@pytest.mark.unit
def test_detailed_balance():
    (config, rng) = hubbard_configuration()
    grow(config, rng, 4)
    insert = InsertMove(0, config)
    remove = RemoveMove(0, config)
    nchecked = 0
    while nchecked < 5:
        (x, y) = insert.propose(rng)
        r_insert = insert.evaluate(x, y, rng)
        if r_insert == 0.0:
            insert.reject()
            continue
        insert.accept()
        det = config.dets[0]
        i = int(numpy.searchsorted(det.x_tau, x[0]))
        j = int(numpy.searchsorted(det.y_tau, y[0]))
        r_remove = remove.evaluate(i, j, rng)
        assert r_insert*r_remove == pytest.approx(1.0)
        remove.accept()
        nchecked += 1


@pytest.mark.unit
def test_detailed_balance_multi_orbital():
    (config, rng) = two_orbital_configuration()
    grow(config, rng, 3)
    insert = InsertMove(0, config)
    remove = RemoveMove(0, config)
    nchecked = 0
    while nchecked < 5:
        (x, y) = insert.propose(rng)
        r_insert = insert.evaluate(x, y, rng)
        if r_insert == 0.0:
            continue
        insert.accept()
        det = config.dets[0]
        i = int(numpy.searchsorted(det.x_tau, x[0]))
        j = int(numpy.searchsorted(det.y_tau, y[0]))
        r_remove = remove.evaluate(i, j, rng)
        assert r_insert*r_remove == pytest.approx(1.0)
        remove.reject()
        nchecked += 1


@pytest.mark.unit
def test_sign_consistency():
    (config, rng) = two_orbital_configuration(seed=13)
    (moves, weights) = get_moves(config)
    for step in range(1500):
        move = moves[int(rng.integers(len(moves)))]
        ratio = move.attempt(rng)
        if ratio != 0.0 and rng.random() < min(1.0, abs(ratio)):
            move.accept()
        else:
            move.reject()
        if step % 50 == 0:
            assert config.check_consistency()
            assert config.weight_sign() == config.sign


@pytest.mark.unit
def test_reject_leaves_configuration():
    (config, rng) = hubbard_configuration()
    grow(config, rng, 3)
    det = config.dets[0]
    (D, M, x_tau) = (det.D.copy(), det.M.copy(), det.x_tau.copy())
    (ops, trace, version) = (config.operators, config.trace, config.version)
    insert = InsertMove(0, config)
    remove = RemoveMove(0, config)
    for i in range(10):
        insert.attempt(rng)
        insert.reject()
        remove.attempt(rng)
        remove.reject()
    assert numpy.array_equal(D, det.D)
    assert numpy.array_equal(M, det.M)
    assert numpy.array_equal(x_tau, det.x_tau)
    assert config.operators is ops
    assert config.trace is trace
    assert config.version == version


@pytest.mark.unit
def test_stale_proposal():
    (config, rng) = hubbard_configuration()
    first = InsertMove(0, config)
    second = InsertMove(1, config)
    while first.attempt(rng) == 0.0:
        pass
    while second.attempt(rng) == 0.0:
        pass
    first.accept()
    with pytest.raises(RuntimeError):
        second.accept()


@pytest.mark.unit
def test_equal_times_rejected():
    (config, rng) = hubbard_configuration()
    grow(config, rng, 2)
    insert = InsertMove(0, config)
    tau = config.times[0]
    assert insert.evaluate((tau, 0), (0.5*tau, 0)) == 0.0
    assert insert.evaluate((1.0, 0), (1.0, 0)) == 0.0
    assert insert.proposal is None


@pytest.mark.unit
def test_remove_empty_block():
    (config, rng) = hubbard_configuration()
    remove = RemoveMove(1, config)
    assert remove.attempt(rng) == 0.0
    assert remove.proposal is None


@pytest.mark.unit
def test_zero_hybridization():
    beta = 2.0
    (config, rng) = get_test_configuration(hubbard_atom(2.0, 1.0),
                                           {'up': [0], 'down': [0]}, beta,
                                           {'up': numpy.zeros((201, 1, 1)),
                                            'down': numpy.zeros((201, 1, 1))})
    (moves, weights) = get_moves(config)
    for i in range(200):
        move = moves[int(rng.integers(len(moves)))]
        assert move.attempt(rng) == 0.0
        move.reject()
    assert config.total_order == 0


@pytest.mark.unit
def test_move_weights():
    (config, rng) = hubbard_configuration()
    (moves, weights) = get_moves(config, {'move_weights': {'insert': 2.0,
                                                           'remove': 2.0}})
    assert len(moves) == 4
    assert weights == [2.0]*4
    assert moves[0].name == 'Insert up'
    with pytest.raises(ValueError):
        get_moves(config, {'move_weights': {'insert': 1.0, 'remove': 0.5}})
    with pytest.raises(ValueError):
        get_moves(config, {'move_weights': {'shift': 1.0}})
