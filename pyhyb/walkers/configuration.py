import bisect
import numpy
from collections import namedtuple
from pyhyb.utils.linalg import permutation_parity, signed_log_det
from pyhyb.walkers.determinant import HybridizationDeterminant

OperatorInsertion = namedtuple('OperatorInsertion',
                               ['tau', 'block', 'inner', 'dagger'])

Proposal = namedtuple('Proposal', ['version', 'block', 'kind', 'det_update',
                                   'trace', 'operators', 'perm_sign',
                                   'sign_ratio'])


def reordering_sign(x_times, y_times):
    """Sign of the permutation bringing the determinant order to time order.

    For every block the operator string is
    ``c(y_1) c^+(x_1) c(y_2) c^+(x_2) ... c(y_n) c^+(x_n)`` with creation
    (x) and annihilation (y) times sorted in ascending order. The product of
    all blocks is compared with the descending time order used in the trace.

    Parameters
    ----------
    x_times : list of :class:`numpy.ndarray`
        Creation operator times for each block.
    y_times : list of :class:`numpy.ndarray`
        Annihilation operator times for each block.

    Returns
    -------
    sign : int
        Permutation parity.
    """
    seq = []
    for (x, y) in zip(x_times, y_times):
        pairs = numpy.empty(2*len(x))
        pairs[0::2] = y
        pairs[1::2] = x
        seq.append(pairs)
    if len(seq) == 0:
        return 1
    return permutation_parity(numpy.concatenate(seq))


class Configuration(object):
    """Monte Carlo configuration of the hybridization expansion.

    Holds the time ordered operators, one hybridization determinant per block,
    the trace state and the running Monte Carlo sign. The configuration is
    only changed through :meth:`commit` of a :class:`Proposal` computed
    against the current version.

    Parameters
    ----------
    model : :class:`pyhyb.hybridization.HybridizationModel`
        Hybridization function.
    trace_estimator : :class:`pyhyb.propagation.trace.TraceEstimator`
        Trace evaluation.
    rng : :class:`numpy.random.Generator`, optional
        Needed to initialise the trace in estimator mode.
    det_regenerate_freq : int
        Recompute the determinants from scratch after this many updates of a
        block.
    """

    def __init__(self, model, trace_estimator, rng=None, det_regenerate_freq=100):
        self.beta = model.beta
        self.model = model
        self.trace_estimator = trace_estimator
        self.nblocks = model.nblocks
        self.block_sizes = model.block_sizes
        self.det_regenerate_freq = det_regenerate_freq
        self.operators = ()
        self.times = []
        self.dets = [HybridizationDeterminant(model, b)
                     for b in range(self.nblocks)]
        self.trace = trace_estimator.initial_state(rng)
        self.perm_sign = 1
        # The empty configuration has sign 1.
        self.sign = 1.0
        self.version = 0
        self.nupdates = numpy.zeros(self.nblocks, dtype=int)

    def order(self, block):
        """Number of operator pairs in a block."""
        return self.dets[block].size

    @property
    def total_order(self):
        return len(self.operators) // 2

    def has_time(self, tau):
        i = bisect.bisect_left(self.times, tau)
        return i < len(self.times) and self.times[i] == tau

    def with_insertion(self, *insertions):
        """Time ordered operators with insertions added.

        Returns
        -------
        operators : tuple
            New operator tuple.
        first : int
            Position of the first operator differing from the current tuple.
        """
        ops = list(self.operators)
        positions = []
        for op in insertions:
            k = bisect.bisect_left([o.tau for o in ops], op.tau)
            ops.insert(k, op)
            positions.append(k)
        return (tuple(ops), min(positions))

    def with_removal(self, *taus):
        """Time ordered operators with the operators at given times removed."""
        positions = sorted(bisect.bisect_left(self.times, t) for t in taus)
        ops = [o for (k, o) in enumerate(self.operators) if k not in positions]
        return (tuple(ops), positions[0])

    def proposal_perm_sign(self, block, x_tau, y_tau):
        """Reordering sign with the times of one block replaced."""
        xs = [d.x_tau for d in self.dets]
        ys = [d.y_tau for d in self.dets]
        xs[block] = x_tau
        ys[block] = y_tau
        return reordering_sign(xs, ys)

    def commit(self, proposal):
        """Apply an accepted proposal."""
        if proposal.version != self.version:
            raise RuntimeError("Stale proposal: configuration version {} "
                               "but proposal computed for version {}."
                               .format(self.version, proposal.version))
        det = self.dets[proposal.block]
        if proposal.kind == 'insert':
            det.complete_insert(proposal.det_update)
        else:
            det.complete_remove(proposal.det_update)
        self.operators = proposal.operators
        self.times = [o.tau for o in self.operators]
        self.trace = proposal.trace
        self.perm_sign = proposal.perm_sign
        self.sign *= proposal.sign_ratio
        self.version += 1
        self.nupdates[proposal.block] += 1
        if self.nupdates[proposal.block] % self.det_regenerate_freq == 0:
            det.regenerate()

    def weight_sign(self):
        """Sign of the configuration weight recomputed from scratch."""
        perm = reordering_sign([d.x_tau for d in self.dets],
                               [d.y_tau for d in self.dets])
        (trace_sign, trace_log) = self.trace_estimator.recompute(
                self.operators, self.trace)
        det_sign = 1.0
        for d in self.dets:
            (s, l) = signed_log_det(d.build_matrix())
            det_sign *= s
        return perm * trace_sign * det_sign

    def check_consistency(self):
        """Check operator bookkeeping against the determinants."""
        for b in range(self.nblocks):
            ops = [o for o in self.operators if o.block == b]
            x = sorted(o.tau for o in ops if o.dagger)
            y = sorted(o.tau for o in ops if not o.dagger)
            if (not numpy.array_equal(x, self.dets[b].x_tau)
                    or not numpy.array_equal(y, self.dets[b].y_tau)):
                return False
        return len(set(self.times)) == len(self.times)
