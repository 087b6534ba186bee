import numpy


class MoveHistograms(object):
    """Analysis histograms of the Monte Carlo moves.

    For every move the number of proposals and acceptances is binned by the
    perturbation order of the configuration the move starts from, and the
    acceptance and trace ratios are binned in log10 of their magnitude.
    Proposals with a vanishing ratio are counted separately.

    Parameters
    ----------
    move_names : list of strings
        Labels of the moves.
    nbins : int
        Number of log10 bins.
    log_range : tuple
        Range of log10 |ratio| covered, values outside are put in the edge
        bins.
    norders : int
        Initial number of perturbation order bins, grown as needed.

    Attributes
    ----------
    proposed, accepted : :class:`numpy.ndarray`
        Counts of shape (nmoves, norders).
    log_ratio, log_trace_ratio : :class:`numpy.ndarray`
        Counts of shape (nmoves, nbins).
    zero_ratio : :class:`numpy.ndarray`
        Number of proposals with vanishing ratio per move.
    """

    name = 'histograms'

    def __init__(self, move_names, nbins=40, log_range=(-10.0, 10.0),
                 norders=16):
        self.move_names = list(move_names)
        self.nmoves = len(self.move_names)
        self.nbins = nbins
        self.log_range = log_range
        self.edges = numpy.linspace(log_range[0], log_range[1], nbins+1)
        self.norders = norders
        self.zero()

    def zero(self):
        self.proposed = numpy.zeros((self.nmoves, self.norders),
                                    dtype=numpy.int64)
        self.accepted = numpy.zeros((self.nmoves, self.norders),
                                    dtype=numpy.int64)
        self.log_ratio = numpy.zeros((self.nmoves, self.nbins),
                                     dtype=numpy.int64)
        self.log_trace_ratio = numpy.zeros((self.nmoves, self.nbins),
                                           dtype=numpy.int64)
        self.zero_ratio = numpy.zeros(self.nmoves, dtype=numpy.int64)

    def _grow(self, size):
        if size > self.proposed.shape[1]:
            new = max(size, 2*self.proposed.shape[1])
            pad = ((0, 0), (0, new-self.proposed.shape[1]))
            self.proposed = numpy.pad(self.proposed, pad)
            self.accepted = numpy.pad(self.accepted, pad)

    def _bin(self, log10):
        (lo, hi) = self.log_range
        ix = int(numpy.floor((log10-lo)/(hi-lo)*self.nbins))
        return min(max(ix, 0), self.nbins-1)

    def record(self, k, order, ratio, log_trace_ratio, accepted):
        """Record one move attempt.

        Parameters
        ----------
        k : int
            Move index.
        order : int
            Perturbation order before the move.
        ratio : float
            Acceptance ratio.
        log_trace_ratio : float or None
            Natural log of the magnitude of the trace ratio, None if the
            move did not evaluate a trace.
        accepted : bool
            Whether the move was accepted.
        """
        self._grow(order+1)
        self.proposed[k, order] += 1
        if accepted:
            self.accepted[k, order] += 1
        if ratio == 0.0:
            self.zero_ratio[k] += 1
        else:
            self.log_ratio[k, self._bin(numpy.log10(abs(ratio)))] += 1
        if log_trace_ratio is not None:
            log10 = log_trace_ratio / numpy.log(10.0)
            self.log_trace_ratio[k, self._bin(log10)] += 1

    def acceptance_by_order(self):
        """Acceptance rate of each move as a function of order, nan where
        nothing was proposed."""
        with numpy.errstate(invalid='ignore', divide='ignore'):
            return self.accepted / self.proposed.astype(float)

    def snapshot(self):
        return {'proposed': self.proposed.copy(),
                'accepted': self.accepted.copy(),
                'log_ratio': self.log_ratio.copy(),
                'log_trace_ratio': self.log_trace_ratio.copy(),
                'zero_ratio': self.zero_ratio.copy()}

    def merge(self, snapshots):
        for snap in snapshots:
            norders = snap['proposed'].shape[1]
            self._grow(norders)
            self.proposed[:, :norders] += snap['proposed']
            self.accepted[:, :norders] += snap['accepted']
            self.log_ratio += snap['log_ratio']
            self.log_trace_ratio += snap['log_trace_ratio']
            self.zero_ratio += snap['zero_ratio']

    def write(self, fh5):
        group = fh5.create_group(self.name)
        group.create_dataset('log10_edges', data=self.edges)
        nz = numpy.nonzero(self.proposed.sum(axis=0))[0]
        top = nz[-1]+1 if len(nz) > 0 else 1
        for (k, name) in enumerate(self.move_names):
            sub = group.create_group(name)
            sub.create_dataset('proposed', data=self.proposed[k, :top])
            sub.create_dataset('accepted', data=self.accepted[k, :top])
            sub.create_dataset('log_ratio', data=self.log_ratio[k])
            sub.create_dataset('log_trace_ratio',
                               data=self.log_trace_ratio[k])
            sub.create_dataset('zero_ratio',
                               data=numpy.array([self.zero_ratio[k]]))
