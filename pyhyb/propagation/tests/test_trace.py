import numpy
import pytest
import scipy.linalg
from pyhyb.propagation.trace import TraceEstimator
from pyhyb.systems.atomic import AtomicProblem
from pyhyb.systems.operators import FundamentalOperatorSet, fock_operators
from pyhyb.utils.testing import hubbard_atom, two_orbital_hopping
from pyhyb.walkers.configuration import OperatorInsertion


def brute_force_trace(atom, beta, fops, operators):
    """Trace in the full Fock space with dense matrix exponentials."""
    H = atom.hamiltonian
    cops = [c.toarray() for c in fock_operators(len(fops))]
    prod = numpy.eye(H.shape[0])
    tau_prev = 0.0
    for op in operators:
        k = fops[(op.block_name, op.inner)]
        mat = cops[k].T if op.dagger else cops[k]
        prod = numpy.dot(mat, numpy.dot(scipy.linalg.expm(-(op.tau-tau_prev)*H), prod))
        tau_prev = op.tau
    prod = numpy.dot(scipy.linalg.expm(-(beta-tau_prev)*H), prod)
    return numpy.trace(prod)


class Op(object):

    def __init__(self, tau, block_name, block, inner, dagger):
        self.tau = tau
        self.block_name = block_name
        self.block = block
        self.inner = inner
        self.dagger = dagger


def hubbard_setup():
    fops = FundamentalOperatorSet([('up', [0]), ('down', [0])])
    atom = AtomicProblem(hubbard_atom(3.0, 1.2), fops)
    return (fops, atom, [[0], [1]])


def to_insertions(ops):
    return tuple(OperatorInsertion(o.tau, o.block, o.inner, o.dagger)
                 for o in ops)


@pytest.mark.unit
def test_full_trace():
    beta = 4.0
    (fops, atom, mode_index) = hubbard_setup()
    trace = TraceEstimator(atom, beta, mode_index)
    ops = [Op(0.3, 'up', 0, 0, True), Op(1.1, 'down', 1, 0, True),
           Op(2.5, 'up', 0, 0, False), Op(3.2, 'down', 1, 0, False)]
    (sign, log) = trace.full_trace(to_insertions(ops))
    ref = brute_force_trace(atom, beta, fops, ops)
    assert sign*numpy.exp(log-beta*atom.e0) == pytest.approx(ref)
    state = trace.evaluate(to_insertions(ops))
    assert state.sign == sign
    assert state.log == pytest.approx(log)
    empty = trace.initial_state()
    Z = atom.partition_function(beta)
    assert empty.sign*numpy.exp(empty.log) == pytest.approx(Z)


@pytest.mark.unit
def test_vanishing_trace():
    beta = 4.0
    (fops, atom, mode_index) = hubbard_setup()
    trace = TraceEstimator(atom, beta, mode_index)
    ops = [Op(0.3, 'up', 0, 0, True), Op(1.1, 'up', 0, 0, True),
           Op(2.5, 'up', 0, 0, False), Op(3.2, 'up', 0, 0, False)]
    state = trace.evaluate(to_insertions(ops))
    assert state.sign == 0


@pytest.mark.unit
def test_cached_trace():
    beta = 6.0
    fops = FundamentalOperatorSet([('up', [0, 1])])
    atom = AtomicProblem(two_orbital_hopping(0.4, -0.3), fops)
    trace = TraceEstimator(atom, beta, [[0, 1]])
    ops = [Op(0.5, 'up', 0, 0, True), Op(2.0, 'up', 0, 1, False)]
    state = trace.evaluate(to_insertions(ops))
    new = [ops[0], Op(1.2, 'up', 0, 1, True), ops[1],
           Op(4.4, 'up', 0, 0, False)]
    cached = trace.evaluate(to_insertions(new), state=state, first_changed=1)
    (sign, log) = trace.full_trace(to_insertions(new))
    assert cached.sign == sign
    assert cached.log == pytest.approx(log)
    ref = brute_force_trace(atom, beta, fops, new)
    assert sign*numpy.exp(log-beta*atom.e0) == pytest.approx(ref)
    # removal reuses the prefix before the first removed operator.
    removed = trace.evaluate(to_insertions(ops), state=cached,
                             first_changed=1)
    assert removed.sign == state.sign
    assert removed.log == pytest.approx(state.log)


@pytest.mark.unit
def test_estimator_empty_configuration():
    beta = 2.0
    (fops, atom, mode_index) = hubbard_setup()
    trace = TraceEstimator(atom, beta, mode_index, use_estimator=True)
    rng = numpy.random.default_rng(7)
    Z = atom.partition_function(beta)
    for i in range(10):
        state = trace.initial_state(rng)
        assert len(state.cache) == 1
        assert state.sign*numpy.exp(state.log) == pytest.approx(Z)


@pytest.mark.unit
def test_estimator_unbiased():
    beta = 0.5
    (fops, atom, mode_index) = hubbard_setup()
    exact = TraceEstimator(atom, beta, mode_index)
    estimator = TraceEstimator(atom, beta, mode_index, use_estimator=True)
    ops = to_insertions([Op(0.1, 'up', 0, 0, True), Op(0.4, 'up', 0, 0, False)])
    (sign, log) = exact.full_trace(ops)
    rng = numpy.random.default_rng(7)
    nsamples = 20000
    total = 0.0
    for i in range(nsamples):
        state = estimator.evaluate(ops, rng=rng)
        if state.sign != 0:
            total += state.sign*numpy.exp(state.log)
    assert total/nsamples == pytest.approx(sign*numpy.exp(log), rel=0.05)
