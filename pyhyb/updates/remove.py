import numpy
from pyhyb.updates.ratio import combine_ratio
from pyhyb.walkers.configuration import Proposal


class RemoveMove(object):
    """Remove a creation / annihilation operator pair from one block.

    The creation and the annihilation operator are chosen independently and
    uniformly among the operators of the block, which is the reverse of
    :class:`pyhyb.updates.insert.InsertMove`.

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
        self.name = name if name is not None else 'Remove %d' % block
        self.proposal = None
        self.ndegenerate = 0

    def attempt(self, rng):
        """Acceptance ratio of a random removal.

        Returns
        -------
        ratio : float
            Signed Metropolis ratio, 0 for an empty block.
        """
        n = self.config.dets[self.block].size
        if n == 0:
            self.proposal = None
            return 0.0
        i = int(rng.integers(n))
        j = int(rng.integers(n))
        return self.evaluate(i, j, rng)

    def evaluate(self, i, j, rng=None):
        """Acceptance ratio for removing creation operator i and
        annihilation operator j of the block."""
        self.proposal = None
        config = self.config
        det = config.dets[self.block]
        n = det.size
        det_update = det.try_remove(i, j)
        if det_update.ratio == 0.0 or not numpy.isfinite(det_update.ratio):
            self.ndegenerate += 1
            return 0.0
        (ops, first) = config.with_removal(det.x_tau[i], det.y_tau[j])
        trace = config.trace_estimator.evaluate(ops, state=config.trace,
                                                first_changed=first, rng=rng)
        if trace.sign == 0:
            return 0.0
        (x_tau, y_tau) = det.removed_times(det_update)
        perm_sign = config.proposal_perm_sign(self.block, x_tau, y_tau)
        t_ratio = (n/(self.block_size*self.beta))**2
        ratio = combine_ratio(config, det_update.ratio, trace, perm_sign,
                              t_ratio)
        if numpy.isnan(ratio):
            self.ndegenerate += 1
            return 0.0
        self.proposal = Proposal(config.version, self.block, 'remove',
                                 det_update, trace, ops, perm_sign,
                                 numpy.sign(ratio))
        return ratio

    def accept(self):
        """Commit the pending removal and return the sign change."""
        sign_ratio = self.proposal.sign_ratio
        self.config.commit(self.proposal)
        self.proposal = None
        return sign_ratio

    def reject(self):
        self.proposal = None
