"""Matsubara and imaginary time meshes."""

import numpy


def matsubara_frequencies(beta, n_iw):
    """Positive fermionic Matsubara frequencies :math:`i\\omega_n`.

    Parameters
    ----------
    beta : float
        Inverse temperature.
    n_iw : int
        Number of frequencies.

    Returns
    -------
    iw : :class:`numpy.ndarray`
        Complex array of :math:`i(2n+1)\\pi/\\beta`, n = 0, ..., n_iw-1.
    """
    return 1j*(2*numpy.arange(n_iw)+1)*numpy.pi/beta


def tau_mesh(beta, n_tau):
    """Imaginary time mesh including both end points."""
    return numpy.linspace(0.0, beta, n_tau)


def bin_widths(beta, n_tau):
    """Width of the bin around each tau point. Edge bins are half bins."""
    dtau = beta / (n_tau-1)
    widths = numpy.full(n_tau, dtau)
    widths[0] = widths[-1] = 0.5*dtau
    return widths


def closest_mesh_index(tau, beta, n_tau):
    """Index of the tau point closest to tau (array or scalar in [0, beta])."""
    dtau = beta / (n_tau-1)
    ix = numpy.rint(numpy.asarray(tau)/dtau).astype(int)
    return numpy.clip(ix, 0, n_tau-1)


def interpolate_tau(data, beta, tau):
    """Linear interpolation of a function tabulated on :func:`tau_mesh`.

    Arguments in (-beta, 0) are mapped using antiperiodicity,
    :math:`f(\\tau) = -f(\\tau+\\beta)`.

    Parameters
    ----------
    data : :class:`numpy.ndarray`
        Shape (n_tau, ...).
    beta : float
        Inverse temperature.
    tau : float or :class:`numpy.ndarray`
        Arguments in (-beta, beta].

    Returns
    -------
    values : :class:`numpy.ndarray`
        Shape tau.shape + data.shape[1:].
    """
    n_tau = data.shape[0]
    tau = numpy.asarray(tau, dtype=float)
    sign = numpy.where(tau < 0, -1.0, 1.0)
    tau = numpy.where(tau < 0, tau+beta, tau)
    x = tau * (n_tau-1) / beta
    k = numpy.clip(numpy.floor(x).astype(int), 0, n_tau-2)
    frac = x - k
    extra = (1,)*(data.ndim-1)
    frac = frac.reshape(frac.shape+extra)
    sign = sign.reshape(sign.shape+extra)
    return sign * ((1.0-frac)*data[k] + frac*data[k+1])
