"""Helper routines for setting up a calculation from input options."""

import numpy
from pyhyb.hybridization import bath_hybridization_iw, weiss_field
from pyhyb.gf.mesh import matsubara_frequencies
from pyhyb.qmc.comm import FakeComm
from pyhyb.qmc.solver import Solver
from pyhyb.systems.operators import Operator, c, c_dag, get_block_items
from pyhyb.utils.io import get_input_value, read_input


def init_communicator(parallel=False):
    """MPI world communicator if requested, otherwise a serial one."""
    if parallel:
        from mpi4py import MPI
        return MPI.COMM_WORLD
    return FakeComm()


def build_operator(terms):
    """Operator from a list of ``[coefficient, [[kind, block, inner], ...]]``.

    ``kind`` is ``'c'`` or ``'c_dag'`` and the product is taken in the given
    order.
    """
    op = Operator()
    for (coeff, factors) in terms:
        term = Operator({(): float(coeff)})
        for (kind, block, inner) in factors:
            if kind == 'c':
                term = term * c(block, inner)
            elif kind == 'c_dag':
                term = term * c_dag(block, inner)
            else:
                raise ValueError("Unknown operator kind: {}.".format(kind))
        op = op + term
    return op


def get_hybridization(model, verbose=False):
    """Weiss field or Delta(tau) input of a model.

    Returns
    -------
    inputs : dict
        Either ``{'g0_iw': ...}`` built from a discrete bath or
        ``{'delta_tau': ...}`` for a constant hybridization function.
    """
    beta = model['beta']
    blocks = get_block_items(model['gf_struct'])
    bath = get_input_value(model, 'bath', default=None, verbose=verbose)
    flat = get_input_value(model, 'flat_delta', default=None, verbose=verbose)
    if bath is not None:
        iw = matsubara_frequencies(beta, model['n_iw'])
        g0_iw = {}
        levels = model.get('levels', {})
        for (name, indices) in blocks:
            n = len(indices)
            h0 = numpy.array(levels.get(name, numpy.zeros((n, n))),
                             dtype=float).reshape(n, n)
            b = bath[name]
            couplings = numpy.array(b['couplings'], dtype=float).reshape(n, -1)
            delta = bath_hybridization_iw(iw, b['energies'], couplings)
            g0_iw[name] = weiss_field(iw, h0, delta)
        return {'g0_iw': g0_iw}
    elif flat is not None:
        delta_tau = {}
        for (name, indices) in blocks:
            n = len(indices)
            value = numpy.array(flat[name] if isinstance(flat, dict) else flat,
                                dtype=float)
            value = value * numpy.eye(n) if value.ndim == 0 else value
            delta_tau[name] = numpy.tile(value.reshape(n, n),
                                         (model['n_tau'], 1, 1))
        return {'delta_tau': delta_tau}
    else:
        raise ValueError("Model must specify either a bath or flat_delta.")


def setup_calculation(input_options, comm=None):
    """Set up a solver from a json file or an options dict.

    Parameters
    ----------
    input_options : string or dict
        Input filename or options with ``model``, ``qmc`` and ``estimates``
        sections.
    comm : MPI communicator, optional
        Defaults to a serial communicator.

    Returns
    -------
    solver : :class:`pyhyb.qmc.solver.Solver`
        Solver.
    solve_options : dict
        Keyword arguments of :meth:`pyhyb.qmc.solver.Solver.solve`.
    comm : MPI communicator
        Communicator.
    """
    if comm is None:
        comm = init_communicator()
    if isinstance(input_options, str):
        if comm.rank == 0:
            options = read_input(input_options, verbose=True)
        else:
            options = None
        options = comm.bcast(options, root=0)
    else:
        options = input_options
    verbose = options.get('verbosity', 0) > 1 and comm.rank == 0
    model = get_input_value(options, 'model', default={}, alias=['system'],
                            verbose=verbose)
    for key in ['beta', 'gf_struct', 'n_iw', 'n_tau']:
        if key not in model:
            raise ValueError("Model input is missing {}.".format(key))
    qmc = get_input_value(options, 'qmc', default={}, alias=['qmc_options'],
                          verbose=verbose)
    estimates = get_input_value(options, 'estimates', default={},
                                alias=['estimators'], verbose=verbose)
    solver = Solver(model['beta'], model['gf_struct'], model['n_iw'],
                    model['n_tau'], verbose=verbose)
    solve_options = get_hybridization(model, verbose=verbose)
    solve_options['h_loc'] = build_operator(model.get('h_loc', []))
    qn = model.get('quantum_numbers', None)
    if qn is not None:
        solve_options['quantum_numbers'] = [build_operator(q) for q in qn]
        solve_options['use_quantum_numbers'] = True
    solve_options['params'] = qmc
    solve_options['estimates'] = estimates
    solve_options['comm'] = comm
    return (solver, solve_options, comm)


def run_calculation(input_options, comm=None):
    (solver, solve_options, comm) = setup_calculation(input_options, comm)
    solver.solve(**solve_options)
    return solver
