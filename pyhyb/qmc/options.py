from pyhyb.utils.io import get_input_value


class SolveParameters(object):
    r"""Monte Carlo parameters of a solve.

    Initialised from a dict containing the following options, of which only
    ``n_cycles`` is required.

    Parameters
    ----------
    n_cycles : int
        Number of measured cycles per rank.
    length_cycle : int
        Number of move attempts between measurements. Default 50.
    n_warmup_cycles : int
        Number of unmeasured cycles. Default 5000.
    random_seed : int
        Seed of the random number generator. Default 34788 + 928374*rank.
    max_time : float
        Wall clock budget in seconds, -1 for unbounded.
    verbosity : int
        Verbosity, 3 on the root rank and 0 otherwise by default.
    use_trace_estimator : bool
        Estimate the trace from a single randomly drawn subspace.
    measure_g_tau : bool
        Accumulate G(tau). Default True.
    measure_pert_order : bool
        Accumulate perturbation order histograms. Default False.
    move_weights : dict
        Relative weight of insert and remove moves.
    det_regenerate_freq : int
        Number of updates of a block between recomputations of its
        hybridization determinant.
    check_sign_freq : int
        Number of cycles between checks of the running sign against a full
        recomputation, 0 to disable.
    n_tail_fit : float
        Fraction of Matsubara frequencies used in high frequency fits.
    random_name : string
        Bit generator of the random number generator (PCG64, MT19937,
        Philox or SFC64). Default PCG64.
    make_histograms : bool
        Accumulate histograms of acceptance and trace ratios of every move.
        Default False.
    """

    def __init__(self, inputs, rank=0, verbose=False):
        self.n_cycles = get_input_value(inputs, 'n_cycles', default=None,
                                        alias=['ncycles', 'num_cycles'],
                                        verbose=False)
        if self.n_cycles is None:
            raise ValueError("n_cycles must be specified.")
        self.n_cycles = int(self.n_cycles)
        self.length_cycle = int(get_input_value(inputs, 'length_cycle',
                                                default=50, verbose=verbose))
        self.n_warmup_cycles = int(get_input_value(inputs, 'n_warmup_cycles',
                                                   default=5000,
                                                   alias=['nwarmup'],
                                                   verbose=verbose))
        self.random_seed = get_input_value(inputs, 'random_seed',
                                           default=34788+928374*rank,
                                           alias=['rng_seed', 'seed'],
                                           verbose=verbose)
        self.max_time = get_input_value(inputs, 'max_time', default=-1,
                                        verbose=verbose)
        self.verbosity = get_input_value(inputs, 'verbosity',
                                         default=3 if rank == 0 else 0,
                                         verbose=verbose)
        self.use_trace_estimator = get_input_value(inputs,
                                                   'use_trace_estimator',
                                                   default=False,
                                                   verbose=verbose)
        self.measure_g_tau = get_input_value(inputs, 'measure_g_tau',
                                             default=True, verbose=verbose)
        self.measure_pert_order = get_input_value(inputs,
                                                  'measure_pert_order',
                                                  default=False,
                                                  verbose=verbose)
        self.move_weights = get_input_value(inputs, 'move_weights',
                                            default={'insert': 1.0,
                                                     'remove': 1.0},
                                            verbose=verbose)
        self.det_regenerate_freq = int(get_input_value(inputs,
                                                       'det_regenerate_freq',
                                                       default=100,
                                                       verbose=verbose))
        self.check_sign_freq = int(get_input_value(inputs, 'check_sign_freq',
                                                   default=0,
                                                   verbose=verbose))
        self.n_tail_fit = get_input_value(inputs, 'n_tail_fit', default=0.2,
                                          verbose=verbose)
        self.random_name = get_input_value(inputs, 'random_name', default='',
                                           alias=['rng_name'],
                                           verbose=verbose)
        self.make_histograms = get_input_value(inputs, 'make_histograms',
                                               default=False,
                                               verbose=verbose)
        if self.length_cycle < 1:
            raise ValueError("length_cycle must be positive.")
        if self.n_cycles < 0 or self.n_warmup_cycles < 0:
            raise ValueError("Number of cycles must be non-negative.")
        if self.det_regenerate_freq < 1:
            raise ValueError("det_regenerate_freq must be positive.")
        if not 0.0 < self.n_tail_fit <= 1.0:
            raise ValueError("n_tail_fit must be in (0, 1].")
