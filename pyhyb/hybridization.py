"""Hybridization function and quadratic local Hamiltonian from the Weiss field."""

import numpy
from pyhyb.gf.fourier import inverse_fourier
from pyhyb.gf.mesh import matsubara_frequencies, tau_mesh, interpolate_tau
from pyhyb.gf.tail import fit_tail
from pyhyb.systems.operators import c, c_dag, get_block_items


class HybridizationModel(object):
    """Hybridization function Delta(tau) for each block.

    Parameters
    ----------
    beta : float
        Inverse temperature.
    gf_struct : dict or list
        Block name to list of inner indices.
    n_iw : int
        Number of Matsubara frequencies.
    n_tau : int
        Number of imaginary time points. Must be at least 2*n_iw.
    verbose : bool
        Print setup information.

    Attributes
    ----------
    delta_tau : list of :class:`numpy.ndarray`
        Delta(tau) on the tau mesh for each block, shape (n_tau, n, n).
    g0_iw : list of :class:`numpy.ndarray`
        Weiss field rebuilt with the enforced tail, only set by
        :meth:`set_weiss_field`.
    """

    def __init__(self, beta, gf_struct, n_iw, n_tau, verbose=False):
        if n_tau < 2*n_iw:
            raise ValueError("Must use as least twice as many tau points as "
                             "Matsubara frequencies: n_iw = {} but n_tau = "
                             "{}.".format(n_iw, n_tau))
        if beta <= 0:
            raise ValueError("Inverse temperature must be positive.")
        self.beta = float(beta)
        self.n_iw = n_iw
        self.n_tau = n_tau
        self.verbose = verbose
        blocks = get_block_items(gf_struct)
        self.block_names = [name for (name, indices) in blocks]
        self.block_indices = [indices for (name, indices) in blocks]
        self.block_sizes = [len(indices) for (name, indices) in blocks]
        self.nblocks = len(blocks)
        self.iw = matsubara_frequencies(self.beta, n_iw)
        self.tau = tau_mesh(self.beta, n_tau)
        self.delta_tau = [numpy.zeros((n_tau, s, s)) for s in self.block_sizes]
        self.g0_iw = None

    def _check_shape(self, data, b, npts, what):
        s = self.block_sizes[b]
        if data.shape != (npts, s, s):
            raise ValueError("{} for block {} has shape {}, expected "
                             "{}.".format(what, self.block_names[b],
                                          data.shape, (npts, s, s)))

    def _block_data(self, data, b, mesh):
        name = self.block_names[b]
        if isinstance(data, dict):
            d = data[name]
        else:
            d = data[b]
        if callable(d):
            d = numpy.array([d(x) for x in mesh])
        d = numpy.asarray(d)
        s = self.block_sizes[b]
        if d.ndim == 1 and s == 1:
            d = d.reshape(-1, 1, 1)
        return d

    def set_weiss_field(self, g0_iw, h_loc, fraction=0.2):
        """Derive Delta(tau) and the quadratic part of h_loc from G0(iw).

        Parameters
        ----------
        g0_iw : dict or list
            Weiss field for each block, either arrays of shape (n_iw, n, n)
            on the positive Matsubara frequencies or callables of iw.
        h_loc : :class:`pyhyb.systems.operators.Operator`
            Local Hamiltonian without the quadratic part of the Weiss field.
        fraction : float
            Fraction of the frequencies used in the tail fits.

        Returns
        -------
        h_loc : :class:`pyhyb.systems.operators.Operator`
            Local Hamiltonian including the static quadratic terms.
        """
        self.g0_iw = []
        for b in range(self.nblocks):
            name = self.block_names[b]
            indices = self.block_indices[b]
            g0 = self._block_data(g0_iw, b, self.iw).astype(complex)
            self._check_shape(g0, b, self.n_iw, "Weiss field")
            g0_inv = numpy.linalg.inv(g0)
            # G0(iw) = 1/iw + h/(iw)^2 + ...
            g0_tail = fit_tail(self.iw, g0, orders=(1, 2, 3, 4),
                               fraction=fraction)
            h = g0_tail[2]
            for (i, a1) in enumerate(indices):
                for (j, a2) in enumerate(indices):
                    if abs(h[i, j]) > 1e-12:
                        h_loc = (h_loc + float(h[i, j])
                                 * c_dag(name, a1) * c(name, a2))
            # G0^-1(iw) = a iw + b - Delta(iw)
            inv_tail = fit_tail(self.iw, g0_inv, orders=(-1, 0, 1, 2, 3),
                                fraction=fraction)
            a = inv_tail[-1]
            b0 = inv_tail[0]
            delta_iw = (numpy.multiply.outer(self.iw, a) + b0[None, :, :]
                        - g0_inv)
            delta_tail = fit_tail(self.iw, delta_iw, orders=(1, 2, 3, 4, 5),
                                  fraction=fraction)
            self.delta_tau[b] = inverse_fourier(self.iw, delta_iw, self.beta,
                                                self.tau, delta_tail)
            eye = numpy.eye(self.block_sizes[b])
            self.g0_iw.append(numpy.linalg.inv(
                    numpy.multiply.outer(self.iw, eye) + b0[None, :, :]
                    - delta_iw))
            if self.verbose:
                print("# Block {}: 1/iw moment of Delta: {}".format(
                      name, numpy.diag(delta_tail[1]).tolist()))
        return h_loc

    def set_delta_tau(self, delta_tau):
        """Set Delta(tau) directly.

        Parameters
        ----------
        delta_tau : dict or list
            Arrays of shape (n_tau, n, n) on the tau mesh or callables of tau.
        """
        for b in range(self.nblocks):
            d = self._block_data(delta_tau, b, self.tau).astype(float)
            self._check_shape(d, b, self.n_tau, "Delta(tau)")
            self.delta_tau[b] = d

    def is_zero(self, tol=1e-14):
        return all(numpy.abs(d).max() < tol for d in self.delta_tau)

    def delta(self, block, tau):
        """Delta(tau) matrix for tau in (-beta, beta)."""
        return interpolate_tau(self.delta_tau[block], self.beta, tau)

    def delta_element(self, block, tau, a, b):
        return self.delta_matrix(block, [tau], [a], [0.0], [b])[0, 0]

    def delta_matrix(self, block, x_tau, x_inner, y_tau, y_inner):
        """Matrix of Delta_{a_i b_j}(x_i - y_j).

        Parameters
        ----------
        block : int
            Block index.
        x_tau, y_tau : :class:`numpy.ndarray`
            Times of the creation (rows) and annihilation (columns) operators.
        x_inner, y_inner : :class:`numpy.ndarray`
            Position of the orbitals within the block.

        Returns
        -------
        D : :class:`numpy.ndarray`
            Shape (len(x_tau), len(y_tau)).
        """
        x_tau = numpy.asarray(x_tau, dtype=float)
        y_tau = numpy.asarray(y_tau, dtype=float)
        diff = x_tau[:, None] - y_tau[None, :]
        sign = numpy.where(diff < 0, -1.0, 1.0)
        diff = numpy.where(diff < 0, diff+self.beta, diff)
        data = self.delta_tau[block]
        x = diff * (self.n_tau-1) / self.beta
        k = numpy.clip(numpy.floor(x).astype(int), 0, self.n_tau-2)
        frac = x - k
        a = numpy.asarray(x_inner, dtype=int)[:, None]
        b = numpy.asarray(y_inner, dtype=int)[None, :]
        return sign * ((1.0-frac)*data[k, a, b] + frac*data[k+1, a, b])


def bath_hybridization_iw(iw, energies, couplings):
    r"""Hybridization function of a discrete bath.

    .. math::
        \Delta_{ab}(i\omega) = \sum_p \frac{V_{ap}V_{bp}}{i\omega-\epsilon_p}

    Parameters
    ----------
    iw : :class:`numpy.ndarray`
        Matsubara frequencies.
    energies : :class:`numpy.ndarray`
        Bath levels, shape (nbath,).
    couplings : :class:`numpy.ndarray`
        Hopping between orbitals and bath levels, shape (n, nbath).
    """
    V = numpy.atleast_2d(numpy.asarray(couplings, dtype=float))
    eps = numpy.asarray(energies, dtype=float)
    return numpy.einsum('ap,np,bp->nab', V, 1.0/(iw[:, None]-eps[None, :]), V)


def bath_hybridization_tau(tau, beta, energies, couplings):
    r"""Imaginary time hybridization function of a discrete bath.

    .. math::
        \Delta_{ab}(\tau) = -\sum_p V_{ap}V_{bp}
                            \frac{e^{-\epsilon_p\tau}}{1+e^{-\beta\epsilon_p}}
    """
    V = numpy.atleast_2d(numpy.asarray(couplings, dtype=float))
    eps = numpy.asarray(energies, dtype=float)
    tau = numpy.asarray(tau, dtype=float)
    fac = numpy.exp(-numpy.outer(tau, eps)
                    - numpy.logaddexp(0.0, -beta*eps)[None, :])
    return -numpy.einsum('ap,tp,bp->tab', V, fac, V)


def weiss_field(iw, h0, delta_iw):
    """Weiss field G0(iw) = (iw - h0 - Delta(iw))^-1."""
    h0 = numpy.atleast_2d(h0)
    eye = numpy.eye(h0.shape[0])
    return numpy.linalg.inv(numpy.multiply.outer(iw, eye) - h0[None, :, :]
                            - delta_iw)
