import numpy
import pytest
from pyhyb.systems.atomic import AtomicProblem
from pyhyb.systems.operators import FundamentalOperatorSet, c, c_dag, n
from pyhyb.utils.testing import hubbard_atom, two_orbital_hopping


@pytest.mark.unit
def test_single_level_greens_function():
    fops = FundamentalOperatorSet({'up': [0]})
    eps = 0.7
    beta = 5.0
    atom = AtomicProblem(eps*n('up', 0), fops)
    tau = numpy.linspace(0, beta, 11)
    G = atom.greens_function_tau(beta, tau, [('up', 0)])
    ref = -numpy.exp(-eps*tau) / (1.0+numpy.exp(-beta*eps))
    assert G.shape == (11, 1, 1)
    assert numpy.linalg.norm(G[:, 0, 0]-ref) == pytest.approx(0.0)


@pytest.mark.unit
def test_hubbard_atom():
    U = 2.0
    mu = 1.0
    beta = 3.0
    fops = FundamentalOperatorSet({'up': [0], 'down': [0]})
    atom = AtomicProblem(hubbard_atom(U, mu), fops)
    assert atom.nsubspaces == 4
    assert atom.e0 == pytest.approx(-mu)
    Z = atom.partition_function(beta) * numpy.exp(-beta*atom.e0)
    ref = 1 + 2*numpy.exp(beta*mu) + numpy.exp(-beta*(U-2*mu))
    assert Z == pytest.approx(ref)
    tau = numpy.linspace(0, beta, 7)
    G = atom.greens_function_tau(beta, tau, [('up', 0)])[:, 0, 0]
    ref = -((numpy.exp(tau*U/2) + numpy.exp((beta-tau)*U/2))
            / (2+2*numpy.exp(beta*U/2)))
    assert numpy.linalg.norm(G-ref) == pytest.approx(0.0)
    assert G[0] == pytest.approx(-0.5)
    assert G[0] + G[-1] == pytest.approx(-1.0)


@pytest.mark.unit
def test_autopartition_hopping():
    fops = FundamentalOperatorSet({'up': [0, 1]})
    atom = AtomicProblem(two_orbital_hopping(0.5, 0.1), fops)
    assert sorted(atom.dims) == [1, 1, 2]
    # every operator maps a subspace to at most one subspace.
    for dagger in range(2):
        for k in range(len(fops)):
            for B in range(atom.nsubspaces):
                T = atom.connection[dagger, k, B]
                if T >= 0:
                    m = atom.matrices[dagger][k][B]
                    assert m.shape == (atom.dims[T], atom.dims[B])


@pytest.mark.unit
def test_quantum_numbers():
    fops = FundamentalOperatorSet({'up': [0], 'down': [0]})
    h = hubbard_atom(4.0, 2.0)
    atom = AtomicProblem(h, fops, quantum_numbers=[n('up', 0), n('down', 0)])
    assert atom.nsubspaces == 4
    ntot = n('up', 0) + n('down', 0)
    atom = AtomicProblem(h, fops, quantum_numbers=[ntot])
    assert sorted(atom.dims) == [1, 1, 2]
    with pytest.raises(ValueError):
        AtomicProblem(h, fops, quantum_numbers=[c_dag('up', 0)*c('down', 0)
                                                + c_dag('down', 0)*c('up', 0)])


@pytest.mark.unit
def test_invalid_hamiltonian():
    fops = FundamentalOperatorSet({'up': [0], 'down': [0]})
    with pytest.raises(ValueError):
        AtomicProblem(c_dag('up', 0)*c('down', 0), fops)
    with pytest.raises(ValueError):
        AtomicProblem(n('left', 0), fops)


@pytest.mark.unit
def test_autopartition_hopping_chain():
    fops = FundamentalOperatorSet({'up': [0, 1, 2]})
    h = 0.0*n('up', 0)
    for (i, j) in [(0, 1), (1, 2)]:
        h = h + 0.3*(c_dag('up', i)*c('up', j) + c_dag('up', j)*c('up', i))
    atom = AtomicProblem(h, fops)
    # orbitals 0 and 2 are only linked through orbital 1.
    assert sorted(atom.dims) == [1, 1, 3, 3]
    assert [s[0] for s in atom.subspaces] == sorted(s[0] for s in atom.subspaces)
    total = numpy.sort(numpy.concatenate(atom.subspaces))
    assert numpy.array_equal(total, numpy.arange(8))


@pytest.mark.unit
def test_autopartition_spin_flip():
    fops = FundamentalOperatorSet({'up': [0], 'down': [0]})
    h = hubbard_atom(2.0, 1.0) + 0.4*(c_dag('up', 0)*c('down', 0)
                                      + c_dag('down', 0)*c('up', 0))
    atom = AtomicProblem(h, fops)
    assert sorted(atom.dims) == [1, 1, 2]
