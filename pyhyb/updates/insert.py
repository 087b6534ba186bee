import numpy
from pyhyb.updates.ratio import combine_ratio
from pyhyb.walkers.configuration import OperatorInsertion, Proposal


class InsertMove(object):
    """Insert a creation / annihilation operator pair in one block.

    Both times are drawn uniformly in [0, beta) and both orbitals uniformly
    within the block. Proposals which would put two operators at the same
    time are rejected.

    Parameters
    ----------
    block : int
        Block index.
    config : :class:`pyhyb.walkers.configuration.Configuration`
        Configuration the move acts on.
    name : string
        Label used in the acceptance statistics.
    """

    def __init__(self, block, config, name=None):
        self.block = block
        self.config = config
        self.block_size = config.block_sizes[block]
        self.beta = config.beta
        self.name = name if name is not None else 'Insert %d' % block
        self.proposal = None
        self.ndegenerate = 0

    def propose(self, rng):
        """Draw the operators to insert.

        Returns
        -------
        x, y : tuple
            (tau, inner) of the creation and annihilation operators.
        """
        x = (rng.uniform(0.0, self.beta), int(rng.integers(self.block_size)))
        y = (rng.uniform(0.0, self.beta), int(rng.integers(self.block_size)))
        return (x, y)

    def attempt(self, rng):
        """Acceptance ratio of a random insertion.

        Parameters
        ----------
        rng : :class:`numpy.random.Generator`
            Random number generator owned by the driver.

        Returns
        -------
        ratio : float
            Signed Metropolis ratio, 0 if the proposal is impossible.
        """
        (x, y) = self.propose(rng)
        return self.evaluate(x, y, rng)

    def evaluate(self, x, y, rng=None):
        """Acceptance ratio for inserting given operators."""
        self.proposal = None
        config = self.config
        if x[0] == y[0] or config.has_time(x[0]) or config.has_time(y[0]):
            return 0.0
        det = config.dets[self.block]
        n = det.size
        det_update = det.try_insert(x, y)
        if det_update.ratio == 0.0 or not numpy.isfinite(det_update.ratio):
            self.ndegenerate += 1
            return 0.0
        (ops, first) = config.with_insertion(
                OperatorInsertion(x[0], self.block, x[1], True),
                OperatorInsertion(y[0], self.block, y[1], False))
        trace = config.trace_estimator.evaluate(ops, state=config.trace,
                                                first_changed=first, rng=rng)
        if trace.sign == 0:
            return 0.0
        (x_tau, y_tau) = det.inserted_times(det_update)
        perm_sign = config.proposal_perm_sign(self.block, x_tau, y_tau)
        t_ratio = (self.block_size*self.beta/(n+1))**2
        ratio = combine_ratio(config, det_update.ratio, trace, perm_sign,
                              t_ratio)
        if numpy.isnan(ratio):
            self.ndegenerate += 1
            return 0.0
        self.proposal = Proposal(config.version, self.block, 'insert',
                                 det_update, trace, ops, perm_sign,
                                 numpy.sign(ratio))
        return ratio

    def accept(self):
        """Commit the pending insertion and return the sign change."""
        sign_ratio = self.proposal.sign_ratio
        self.config.commit(self.proposal)
        self.proposal = None
        return sign_ratio

    def reject(self):
        self.proposal = None
