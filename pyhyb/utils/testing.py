import numpy
from pyhyb.hybridization import (
        HybridizationModel,
        bath_hybridization_iw,
        weiss_field
        )
from pyhyb.gf.mesh import matsubara_frequencies
from pyhyb.propagation.trace import TraceEstimator
from pyhyb.systems.atomic import AtomicProblem
from pyhyb.systems.operators import FundamentalOperatorSet, c, c_dag, n
from pyhyb.walkers.configuration import Configuration


def noninteracting_impurity_g_tau(beta, tau, eps_d, energies, couplings):
    """Exact G(tau) of a single level coupled to a discrete bath.

    Parameters
    ----------
    beta : float
        Inverse temperature.
    tau : :class:`numpy.ndarray`
        Imaginary time points in [0, beta].
    eps_d : float
        Impurity level.
    energies : :class:`numpy.ndarray`
        Bath levels.
    couplings : :class:`numpy.ndarray`
        Hopping between the impurity and each bath level.

    Returns
    -------
    G : :class:`numpy.ndarray`
        Impurity Green's function on tau.
    """
    energies = numpy.atleast_1d(numpy.asarray(energies, dtype=float))
    couplings = numpy.atleast_1d(numpy.asarray(couplings, dtype=float))
    nb = len(energies)
    H = numpy.zeros((nb+1, nb+1))
    H[0, 0] = eps_d
    H[0, 1:] = couplings
    H[1:, 0] = couplings
    H[1:, 1:] = numpy.diag(energies)
    (e, v) = numpy.linalg.eigh(H)
    tau = numpy.asarray(tau)
    # -exp(-e tau) / (1 + exp(-beta e)) in a stable form.
    fac = -numpy.exp(-numpy.outer(tau, e)
                     - numpy.logaddexp(0.0, -beta*e)[None, :])
    return numpy.dot(fac, v[0, :]**2)


def bath_weiss_field(beta, n_iw, eps_d, energies, couplings):
    """Weiss field of a single level coupled to a discrete bath."""
    iw = matsubara_frequencies(beta, n_iw)
    delta = bath_hybridization_iw(iw, energies, [couplings])
    return weiss_field(iw, [[eps_d]], delta)


def hubbard_atom(U, mu, blocks=('up', 'down')):
    """Local Hamiltonian of a single Hubbard orbital."""
    (up, dn) = blocks
    return (U*n(up, 0)*n(dn, 0) - mu*(n(up, 0) + n(dn, 0)))


def two_orbital_hopping(t, eps, block='up'):
    """Two orbitals of one block coupled by hopping t."""
    h = t*(c_dag(block, 0)*c(block, 1) + c_dag(block, 1)*c(block, 0))
    return h + eps*(n(block, 0) + n(block, 1))


def get_test_configuration(h_loc, gf_struct, beta, delta_tau, n_tau=201,
                           use_estimator=False, seed=7):
    """Empty configuration of a small model.

    Returns
    -------
    config : :class:`pyhyb.walkers.configuration.Configuration`
        Configuration.
    rng : :class:`numpy.random.Generator`
        Random number generator.
    """
    fops = FundamentalOperatorSet(gf_struct)
    model = HybridizationModel(beta, gf_struct, 1, n_tau)
    model.set_delta_tau(delta_tau)
    mode_index = [[fops[(name, i)] for i in indices] for (name, indices)
                  in zip(model.block_names, model.block_indices)]
    atom = AtomicProblem(h_loc, fops)
    rng = numpy.random.default_rng(seed)
    trace = TraceEstimator(atom, beta, mode_index, use_estimator=use_estimator)
    return (Configuration(model, trace, rng=rng), rng)
