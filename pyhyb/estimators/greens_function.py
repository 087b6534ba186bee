import numpy
from pyhyb.gf.mesh import bin_widths, closest_mesh_index


class GreenFunctionAccumulator(object):
    r"""Imaginary time Green's function estimator.

    For every block the contribution of a configuration is

    .. math::
        G_{ba}(\tau) = -\frac{1}{\beta}\left\langle \sum_{ij} M_{ji}
        \tilde{\delta}(\tau, \tau_j - \tau^{\dagger}_i) \right\rangle

    where :math:`\tau_j` are the annihilation and :math:`\tau^{\dagger}_i`
    the creation operator times, and the delta function picks up a minus sign
    when the difference is negative and is shifted by beta. Contributions are
    binned to the closest point of the tau mesh.

    Parameters
    ----------
    model : :class:`pyhyb.hybridization.HybridizationModel`
        Provides beta, the tau mesh and the block structure.

    Attributes
    ----------
    data : list of :class:`numpy.ndarray`
        Accumulated bins for each block, shape (n_tau, n, n).
    sign_sum : float
        Sum of the Monte Carlo signs of all measurements.
    nmeasures : int
        Number of measurements.
    """

    name = 'G_tau'

    def __init__(self, model):
        self.beta = model.beta
        self.n_tau = model.n_tau
        self.block_names = model.block_names
        self.block_sizes = model.block_sizes
        self.widths = bin_widths(self.beta, self.n_tau)
        self.G_tau = None
        self.zero()

    def zero(self):
        self.data = [numpy.zeros((self.n_tau, s, s)) for s in self.block_sizes]
        self.sign_sum = 0.0
        self.nmeasures = 0

    def record(self, config):
        """Accumulate the contribution of the current configuration.

        Parameters
        ----------
        config : :class:`pyhyb.walkers.configuration.Configuration`
            Current configuration, not modified.
        """
        sign = config.sign
        self.sign_sum += sign
        self.nmeasures += 1
        for (b, det) in enumerate(config.dets):
            if det.size == 0:
                continue
            # element [j, i] pairs annihilator j with creator i, as in M.
            tau = det.y_tau[:, None] - det.x_tau[None, :]
            s = numpy.where(tau < 0, -1.0, 1.0)
            tau = numpy.where(tau < 0, tau+self.beta, tau)
            ix = closest_mesh_index(tau, self.beta, self.n_tau)
            rows = numpy.broadcast_to(det.y_inner[:, None], ix.shape)
            cols = numpy.broadcast_to(det.x_inner[None, :], ix.shape)
            numpy.add.at(self.data[b], (ix, rows, cols), sign*s*det.M)

    def finalise(self):
        """Normalise the accumulated bins.

        Returns
        -------
        G_tau : list of :class:`numpy.ndarray`
            G(tau) for each block, zero if nothing was measured.
        """
        if self.nmeasures == 0:
            self.G_tau = [numpy.zeros_like(d) for d in self.data]
            return self.G_tau
        if self.sign_sum == 0.0:
            raise RuntimeError("Cannot normalise Green's function: "
                               "sum of signs vanishes.")
        norm = -self.beta * self.sign_sum * self.widths[:, None, None]
        self.G_tau = [d / norm for d in self.data]
        return self.G_tau

    def snapshot(self):
        return {'data': [d.copy() for d in self.data],
                'sign_sum': self.sign_sum,
                'nmeasures': self.nmeasures}

    def merge(self, snapshots):
        """Add the content of snapshots to the accumulator."""
        for snap in snapshots:
            for (b, d) in enumerate(snap['data']):
                self.data[b] += d
            self.sign_sum += snap['sign_sum']
            self.nmeasures += snap['nmeasures']

    def write(self, fh5):
        group = fh5.create_group(self.name)
        G_tau = self.G_tau if self.G_tau is not None else self.finalise()
        for (name, g) in zip(self.block_names, G_tau):
            group.create_dataset(name, data=g)
