import numpy


class PerturbationOrderHistogram(object):
    """Histogram of the number of operator pairs in each block.

    Parameters
    ----------
    model : :class:`pyhyb.hybridization.HybridizationModel`
        Provides the block structure.
    nbins : int
        Initial number of bins. The histograms grow as needed.
    """

    name = 'pert_order'

    def __init__(self, model, nbins=16):
        self.block_names = model.block_names
        self.nblocks = model.nblocks
        self.nbins = nbins
        self.zero()

    def zero(self):
        self.counts = [numpy.zeros(self.nbins, dtype=numpy.int64)
                       for b in range(self.nblocks)]
        self.nmeasures = 0

    def _grow(self, b, size):
        if size > len(self.counts[b]):
            new = numpy.zeros(max(size, 2*len(self.counts[b])),
                              dtype=numpy.int64)
            new[:len(self.counts[b])] = self.counts[b]
            self.counts[b] = new

    def record(self, config):
        self.nmeasures += 1
        for b in range(self.nblocks):
            k = config.order(b)
            self._grow(b, k+1)
            self.counts[b][k] += 1

    def histograms(self):
        """Counts trimmed to the largest order visited."""
        hist = []
        for c in self.counts:
            nz = numpy.nonzero(c)[0]
            top = nz[-1]+1 if len(nz) > 0 else 1
            hist.append(c[:top].copy())
        return hist

    def finalise(self):
        """Normalised histograms (probability of each order)."""
        if self.nmeasures == 0:
            return self.histograms()
        return [h / float(self.nmeasures) for h in self.histograms()]

    def snapshot(self):
        return {'counts': self.histograms(), 'nmeasures': self.nmeasures}

    def merge(self, snapshots):
        for snap in snapshots:
            for (b, c) in enumerate(snap['counts']):
                self._grow(b, len(c))
                self.counts[b][:len(c)] += c
            self.nmeasures += snap['nmeasures']

    def write(self, fh5):
        group = fh5.create_group(self.name)
        for (name, h) in zip(self.block_names, self.histograms()):
            group.create_dataset(name, data=h)
