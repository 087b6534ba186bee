import time
import numpy
from pyhyb.utils.io import format_fixed_width_strings, format_fixed_width_floats


class MonteCarloDriver(object):
    """Metropolis sampling of hybridization expansion configurations.

    A cycle is ``length_cycle`` move attempts followed by one measurement of
    all estimators. Warmup cycles are not measured. The time budget is only
    checked between cycles.

    Parameters
    ----------
    config : :class:`pyhyb.walkers.configuration.Configuration`
        Configuration, updated in place by accepted moves.
    moves : list
        Move objects with ``attempt(rng)``, ``accept()`` and ``reject()``.
    weights : list
        Relative proposal weight of each move.
    estimators : :class:`pyhyb.estimators.handler.Estimators`
        Measurements.
    params : :class:`pyhyb.qmc.options.SolveParameters`
        Run parameters.
    rng : :class:`numpy.random.Generator`
        Random number generator used for all moves.
    verbose : bool
        Print progress.

    Attributes
    ----------
    nproposed, naccepted : :class:`numpy.ndarray`
        Move statistics.
    ncycles_done : int
        Number of measured cycles completed.
    """

    def __init__(self, config, moves, weights, estimators, params, rng,
                 verbose=False):
        self.config = config
        self.moves = moves
        weights = numpy.array(weights, dtype=float)
        self.probabilities = weights / weights.sum()
        self.estimators = estimators
        self.params = params
        self.rng = rng
        self.verbose = verbose
        self.nproposed = numpy.zeros(len(moves), dtype=int)
        self.naccepted = numpy.zeros(len(moves), dtype=int)
        self.ncycles_done = 0
        self.nwarmup_done = 0
        self.run_time = 0.0

    def step(self, record=False):
        """Attempt a single move.

        Parameters
        ----------
        record : bool
            Add the attempt to the move histograms if they are enabled.
        """
        k = self.rng.choice(len(self.moves), p=self.probabilities)
        move = self.moves[k]
        self.nproposed[k] += 1
        ratio = move.attempt(self.rng)
        accept = ratio != 0.0 and self.rng.random() < min(1.0, abs(ratio))
        hist = self.estimators.move_histograms
        if record and hist is not None:
            proposal = move.proposal
            if proposal is None:
                log_trace = None
            else:
                log_trace = proposal.trace.log - self.config.trace.log
            hist.record(k, self.config.total_order, ratio, log_trace, accept)
        if accept:
            move.accept()
            self.naccepted[k] += 1
        else:
            move.reject()

    def cycle(self, record=False):
        for i in range(self.params.length_cycle):
            self.step(record)

    def check_sign(self):
        """Compare the running sign with a recomputation from scratch."""
        sign = self.config.weight_sign()
        if sign != self.config.sign:
            raise RuntimeError("Running sign {} differs from recomputed "
                               "sign {} at order {}.".format(
                                   self.config.sign, sign,
                                   self.config.total_order))

    def _out_of_time(self, start):
        max_time = self.params.max_time
        return max_time is not None and 0 <= max_time < time.time() - start

    def run(self):
        """Warm up then sample and measure.

        Returns
        -------
        completed : bool
            False if sampling was stopped by the time budget.
        """
        start = time.time()
        params = self.params
        completed = True
        if self.verbose:
            print("# Starting warmup: {} cycles of length {}.".format(
                  params.n_warmup_cycles, params.length_cycle))
        for c in range(params.n_warmup_cycles):
            if self._out_of_time(start):
                completed = False
                break
            self.cycle()
            self.nwarmup_done += 1
        if self.verbose:
            print("# Warmup done in {:.3f} s.".format(time.time()-start))
            print("# Starting accumulation: {} cycles.".format(params.n_cycles))
            print(format_fixed_width_strings(['cycle', 'sign',
                                              'acceptance', 'order']))
        report = max(1, params.n_cycles // 10)
        for c in range(params.n_cycles):
            if not completed or self._out_of_time(start):
                completed = False
                break
            self.cycle(record=True)
            self.estimators.record(self.config)
            self.ncycles_done += 1
            if (params.check_sign_freq > 0
                    and self.ncycles_done % params.check_sign_freq == 0):
                self.check_sign()
            if self.verbose and self.ncycles_done % report == 0:
                print(format_fixed_width_floats([self.ncycles_done,
                                                 self.estimators.average_sign,
                                                 self.acceptance_rate(),
                                                 self.config.total_order]))
        self.run_time = time.time() - start
        if self.verbose:
            if not completed:
                print("# Time budget of {} s exhausted after {} cycles."
                      .format(params.max_time, self.ncycles_done))
            self.print_statistics()
        return completed

    def acceptance_rate(self):
        if self.nproposed.sum() == 0:
            return 0.0
        return self.naccepted.sum() / float(self.nproposed.sum())

    def acceptance_rates(self):
        rates = {}
        for (k, move) in enumerate(self.moves):
            p = self.nproposed[k]
            rates[move.name] = self.naccepted[k] / float(p) if p > 0 else 0.0
        return rates

    def print_statistics(self):
        print("# Total time: {:.3f} s.".format(self.run_time))
        print("# Average sign: {: .6f}.".format(self.estimators.average_sign))
        for (name, rate) in self.acceptance_rates().items():
            print("# Acceptance rate ({}): {:.6f}.".format(name, rate))
        ndegenerate = sum(m.ndegenerate for m in self.moves)
        if ndegenerate > 0:
            print("# Rejected {} numerically degenerate proposals."
                  .format(ndegenerate))
