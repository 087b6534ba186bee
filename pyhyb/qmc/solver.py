"""Hybridization expansion continuous time quantum Monte Carlo solver."""

import time
import uuid
from pyhyb.estimators.handler import Estimators
from pyhyb.hybridization import HybridizationModel
from pyhyb.propagation.trace import TraceEstimator
from pyhyb.qmc.comm import FakeComm
from pyhyb.qmc.driver import MonteCarloDriver
from pyhyb.qmc.options import SolveParameters
from pyhyb.qmc.utils import get_random_generator
from pyhyb.systems.atomic import AtomicProblem
from pyhyb.systems.operators import FundamentalOperatorSet, get_block_items
from pyhyb.updates.utils import get_moves
from pyhyb.utils.io import to_json
from pyhyb.utils.misc import get_git_revision_hash
from pyhyb.walkers.configuration import Configuration


class Solver(object):
    """CT-HYB impurity solver.

    Parameters
    ----------
    beta : float
        Inverse temperature.
    gf_struct : dict or list
        Block name to list of inner indices.
    n_iw : int
        Number of Matsubara frequencies.
    n_tau : int
        Number of imaginary time points, at least 2*n_iw.

    Attributes
    ----------
    G0_iw : list of :class:`numpy.ndarray`
        Weiss field per block (with the enforced tail after a solve).
    Delta_tau : list of :class:`numpy.ndarray`
        Hybridization function per block.
    G_tau : list of :class:`numpy.ndarray`
        Measured Green's function per block.
    pert_order : list of :class:`numpy.ndarray`
        Perturbation order histograms (counts) per block.
    average_sign : float
        Average Monte Carlo sign.
    h_loc : :class:`pyhyb.systems.operators.Operator`
        Local Hamiltonian including the quadratic part of the Weiss field.
    """

    def __init__(self, beta, gf_struct, n_iw=1025, n_tau=10001, verbose=False):
        self.model = HybridizationModel(beta, gf_struct, n_iw, n_tau,
                                        verbose=verbose)
        self.beta = self.model.beta
        self.gf_struct = dict((name, list(indices)) for (name, indices)
                              in get_block_items(gf_struct))
        self.n_iw = n_iw
        self.n_tau = n_tau
        self.fops = FundamentalOperatorSet(gf_struct)
        self.mode_index = [[self.fops[(name, i)] for i in indices]
                           for (name, indices) in zip(self.model.block_names,
                                                      self.model.block_indices)]
        self.G0_iw = None
        self.G_tau = None
        self.pert_order = None
        self.average_sign = None
        self.h_loc = None
        self.estimators = None
        self.driver = None

    @property
    def Delta_tau(self):
        return self.model.delta_tau

    @property
    def tau(self):
        return self.model.tau

    @property
    def iw(self):
        return self.model.iw

    def solve(self, h_loc, params, g0_iw=None, delta_tau=None,
              quantum_numbers=None, use_quantum_numbers=False, comm=None,
              estimates={}):
        """Run the Monte Carlo simulation.

        Parameters
        ----------
        h_loc : :class:`pyhyb.systems.operators.Operator`
            Local Hamiltonian (interaction and any non quadratic terms).
        params : dict
            Run options, see :class:`pyhyb.qmc.options.SolveParameters`.
        g0_iw : dict or list, optional
            Weiss field per block. The quadratic part of the local
            Hamiltonian is extracted from its tail.
        delta_tau : dict or list, optional
            Hybridization function per block, used instead of ``g0_iw``.
            ``h_loc`` is then taken to be complete.
        quantum_numbers : list, optional
            Operators commuting with ``h_loc`` used to partition the Hilbert
            space.
        use_quantum_numbers : bool
            Use ``quantum_numbers`` rather than the automatic partition.
        comm : MPI communicator, optional
            Estimators are reduced over its ranks.
        estimates : dict
            Output options, see :class:`pyhyb.estimators.handler.Estimators`.
            Nothing is written unless a ``filename`` is given.

        Returns
        -------
        G_tau : list of :class:`numpy.ndarray`
            G(tau) per block, None if it was not measured.
        """
        if comm is None:
            comm = FakeComm()
        init_time = time.time()
        params = SolveParameters(params, rank=comm.rank)
        self.params = params
        verbose = params.verbosity > 0 and comm.rank == 0
        if verbose:
            print("# Running on {} rank{}.".format(comm.size,
                  's' if comm.size > 1 else ''))
        if g0_iw is not None:
            self.h_loc = self.model.set_weiss_field(g0_iw, h_loc,
                                                    fraction=params.n_tail_fit)
            self.G0_iw = self.model.g0_iw
        elif delta_tau is not None:
            self.model.set_delta_tau(delta_tau)
            self.h_loc = h_loc
        else:
            raise ValueError("Either a Weiss field or a hybridization "
                             "function must be given.")
        qn = quantum_numbers if use_quantum_numbers else None
        if use_quantum_numbers and quantum_numbers is None:
            raise ValueError("use_quantum_numbers requires quantum_numbers.")
        atom = AtomicProblem(self.h_loc, self.fops, quantum_numbers=qn,
                             verbose=verbose)
        trivial = self.model.is_zero()
        if trivial and verbose:
            print("# Warning: hybridization function vanishes. No "
                  "configuration beyond the empty one will be accepted.")
        rng = get_random_generator(params.random_name, params.random_seed,
                                   verbose=verbose)
        trace = TraceEstimator(atom, self.beta, self.mode_index,
                               use_estimator=params.use_trace_estimator)
        config = Configuration(self.model, trace, rng=rng,
                               det_regenerate_freq=params.det_regenerate_freq)
        (moves, weights) = get_moves(config,
                                     {'move_weights': params.move_weights},
                                     verbose=params.verbosity > 1)
        if params.make_histograms:
            move_names = [m.name for m in moves]
        else:
            move_names = None
        self.estimators = Estimators(self.model,
                                     measure_g_tau=params.measure_g_tau,
                                     measure_pert_order=params.measure_pert_order,
                                     options=estimates,
                                     verbose=verbose,
                                     move_names=move_names)
        self.driver = MonteCarloDriver(config, moves, weights,
                                       self.estimators, params, rng,
                                       verbose=verbose)
        if verbose:
            print("# Setup time: {:.3f} s.".format(time.time()-init_time))
        self.driver.run()
        self.estimators.collect(comm)
        if self.estimators.nmeasures == 0 and verbose:
            print("# Warning: no measurements were taken, G(tau) is zero.")
        self.average_sign = self.estimators.average_sign
        g_tau = self.estimators.estimators.get('G_tau')
        if g_tau is not None:
            if trivial:
                labels = [[(name, i) for i in indices] for (name, indices)
                          in zip(self.model.block_names,
                                 self.model.block_indices)]
                g_tau.G_tau = [atom.greens_function_tau(self.beta, self.tau, l)
                               for l in labels]
            else:
                g_tau.finalise()
            self.G_tau = g_tau.G_tau
        hist = self.estimators.estimators.get('pert_order')
        if hist is not None:
            self.pert_order = hist.histograms()
        if comm.rank == 0 and estimates.get('filename') is not None:
            self.estimators.json_string = to_json(self.metadata(comm),
                                                  verbose=params.verbosity)
            self.estimators.write()
            if verbose:
                print("# Written estimates to {}.".format(
                      self.estimators.h5f_name))
        return self.G_tau

    def metadata(self, comm):
        """Description of the run stored with the estimates."""
        md = {
            'uuid': str(uuid.uuid1()),
            'sha1': get_git_revision_hash(),
            'run_time': time.asctime(),
            'nprocs': comm.size,
            'model': {
                'beta': self.beta,
                'gf_struct': self.gf_struct,
                'n_iw': self.n_iw,
                'n_tau': self.n_tau,
                'h_loc': repr(self.h_loc),
            },
            'params': self.params,
            'statistics': {
                'average_sign': self.average_sign,
                'n_measures': self.estimators.nmeasures,
                'n_warmup_cycles_done': self.driver.nwarmup_done,
                'n_cycles_done': self.driver.ncycles_done,
                'acceptance': self.driver.acceptance_rates(),
                'sampling_time': self.driver.run_time,
            }
        }
        return md
